from typing import Optional

from fastapi import Depends, HTTPException, Response, status

from src.api.routers import proposals as shared
from src.api.routers import proposals_config
from src.api.routers.proposal_http_errors import raise_proposal_http_exception
from src.core.proposals import (
    ApprovalCommentRequest,
    ApprovalListResponse,
    ApprovalMutationResult,
    ApprovalRecord,
    ApprovalSubmitRequest,
    ChangeRequestRequest,
    ProposalApprovalError,
    ProposalApprovalStatusResponse,
)


def _assert_approvals_api_enabled() -> None:
    if not proposals_config.approvals_api_enabled():
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="PROPOSAL_APPROVALS_API_DISABLED",
        )


# resolved ahead of the service dependency and request validation
_APPROVALS_API_GATE = [Depends(_assert_approvals_api_enabled)]


def _approval_response(result: ApprovalMutationResult, response: Response) -> ApprovalRecord:
    shared.apply_status_change_headers(response, result.status_update)
    return result.approval


@shared.router.get(
    "/proposals/{proposal_id}/approvals",
    dependencies=_APPROVALS_API_GATE,
    response_model=ApprovalListResponse,
    status_code=status.HTTP_200_OK,
    summary="List Proposal Approvals",
    description=(
        "Returns approval records, most recently updated first, with aggregate counts "
        "and the approval percentage over accepted stakeholders."
    ),
)
def list_approvals(
    proposal_id: shared.ProposalIdPath,
    service: shared.ServiceDependency,
) -> ApprovalListResponse:
    try:
        return service.list_approvals(proposal_id=proposal_id)
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)


@shared.router.post(
    "/proposals/{proposal_id}/approvals",
    dependencies=_APPROVALS_API_GATE,
    response_model=ApprovalRecord,
    status_code=status.HTTP_200_OK,
    summary="Submit Approval Decision",
    description=(
        "Records the calling stakeholder's decision and re-derives the proposal status. "
        "Status-change details are returned in X-Proposal-* response headers."
    ),
)
def submit_approval(
    proposal_id: shared.ProposalIdPath,
    payload: ApprovalSubmitRequest,
    actor_id: shared.ActorIdHeader,
    response: Response,
    service: shared.ServiceDependency,
) -> ApprovalRecord:
    try:
        result = service.submit_approval(
            proposal_id=proposal_id,
            actor_id=actor_id,
            status=payload.status,
            comments=payload.comments,
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)
    return _approval_response(result, response)


@shared.router.post(
    "/proposals/{proposal_id}/approve",
    dependencies=_APPROVALS_API_GATE,
    response_model=ApprovalRecord,
    status_code=status.HTTP_200_OK,
    summary="Approve Proposal",
)
def approve_proposal(
    proposal_id: shared.ProposalIdPath,
    actor_id: shared.ActorIdHeader,
    response: Response,
    service: shared.ServiceDependency,
    payload: Optional[ApprovalCommentRequest] = None,
) -> ApprovalRecord:
    try:
        result = service.approve_proposal(
            proposal_id=proposal_id,
            actor_id=actor_id,
            comments=payload.comments if payload else None,
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)
    return _approval_response(result, response)


@shared.router.post(
    "/proposals/{proposal_id}/reject",
    dependencies=_APPROVALS_API_GATE,
    response_model=ApprovalRecord,
    status_code=status.HTTP_200_OK,
    summary="Reject Proposal",
)
def reject_proposal(
    proposal_id: shared.ProposalIdPath,
    actor_id: shared.ActorIdHeader,
    response: Response,
    service: shared.ServiceDependency,
    payload: Optional[ApprovalCommentRequest] = None,
) -> ApprovalRecord:
    try:
        result = service.reject_proposal(
            proposal_id=proposal_id,
            actor_id=actor_id,
            comments=payload.comments if payload else None,
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)
    return _approval_response(result, response)


@shared.router.post(
    "/proposals/{proposal_id}/request-changes",
    dependencies=_APPROVALS_API_GATE,
    response_model=ApprovalRecord,
    status_code=status.HTTP_200_OK,
    summary="Request Proposal Changes",
    description="Records a change request. Comments are required.",
)
def request_changes(
    proposal_id: shared.ProposalIdPath,
    payload: ChangeRequestRequest,
    actor_id: shared.ActorIdHeader,
    response: Response,
    service: shared.ServiceDependency,
) -> ApprovalRecord:
    try:
        result = service.request_changes(
            proposal_id=proposal_id, actor_id=actor_id, comments=payload.comments
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)
    return _approval_response(result, response)


@shared.router.get(
    "/proposals/{proposal_id}/approval-status",
    dependencies=_APPROVALS_API_GATE,
    response_model=ProposalApprovalStatusResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Proposal Approval Status",
    description="Returns the persisted proposal status next to the live approval aggregate.",
)
def get_approval_status(
    proposal_id: shared.ProposalIdPath,
    service: shared.ServiceDependency,
) -> ProposalApprovalStatusResponse:
    try:
        return service.get_approval_status(proposal_id=proposal_id)
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)
