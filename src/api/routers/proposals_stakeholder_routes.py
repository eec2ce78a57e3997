from typing import Annotated

from fastapi import Path, Response, status

from src.api.routers import proposals as shared
from src.api.routers.proposal_http_errors import raise_proposal_http_exception
from src.core.proposals import (
    ProposalApprovalError,
    StakeholderInviteRequest,
    StakeholderListResponse,
    StakeholderRecord,
    StakeholderResponseRequest,
    StakeholderUpdateRequest,
)

StakeholderIdPath = Annotated[
    str,
    Path(description="Stakeholder invitation identifier.", examples=["psh_001"]),
]


@shared.router.post(
    "/proposals/{proposal_id}/stakeholders",
    response_model=StakeholderRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Invite Stakeholder",
    description="Invites a user to review the proposal. Owner only; one invitation per user.",
)
def invite_stakeholder(
    proposal_id: shared.ProposalIdPath,
    payload: StakeholderInviteRequest,
    actor_id: shared.ActorIdHeader,
    service: shared.ServiceDependency,
) -> StakeholderRecord:
    try:
        return service.invite_stakeholder(
            proposal_id=proposal_id, payload=payload, actor_id=actor_id
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)


@shared.router.get(
    "/proposals/{proposal_id}/stakeholders",
    response_model=StakeholderListResponse,
    status_code=status.HTTP_200_OK,
    summary="List Stakeholders",
    description="Lists all stakeholder invitations for the proposal in invitation order.",
)
def list_stakeholders(
    proposal_id: shared.ProposalIdPath,
    service: shared.ServiceDependency,
) -> StakeholderListResponse:
    try:
        return service.list_stakeholders(proposal_id=proposal_id)
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)


@shared.router.patch(
    "/proposals/{proposal_id}/stakeholders/{stakeholder_id}/response",
    response_model=StakeholderRecord,
    status_code=status.HTTP_200_OK,
    summary="Respond to Stakeholder Invitation",
    description=(
        "Accepts or declines an invitation. Only the invited user may respond; the "
        "proposal status is re-derived afterwards."
    ),
)
def respond_to_invitation(
    proposal_id: shared.ProposalIdPath,
    stakeholder_id: StakeholderIdPath,
    payload: StakeholderResponseRequest,
    actor_id: shared.ActorIdHeader,
    service: shared.ServiceDependency,
) -> StakeholderRecord:
    try:
        return service.respond_to_invitation(
            proposal_id=proposal_id,
            stakeholder_id=stakeholder_id,
            payload=payload,
            actor_id=actor_id,
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)


@shared.router.put(
    "/proposals/{proposal_id}/stakeholders/{stakeholder_id}",
    response_model=StakeholderRecord,
    status_code=status.HTTP_200_OK,
    summary="Update Stakeholder",
    description=(
        "Updates the invitation note. An omitted note keeps its current value. Owner only."
    ),
)
def update_stakeholder(
    proposal_id: shared.ProposalIdPath,
    stakeholder_id: StakeholderIdPath,
    payload: StakeholderUpdateRequest,
    actor_id: shared.ActorIdHeader,
    service: shared.ServiceDependency,
) -> StakeholderRecord:
    try:
        return service.update_stakeholder(
            proposal_id=proposal_id,
            stakeholder_id=stakeholder_id,
            payload=payload,
            actor_id=actor_id,
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)


@shared.router.delete(
    "/proposals/{proposal_id}/stakeholders/{stakeholder_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove Stakeholder",
    description="Removes a stakeholder invitation. Owner only.",
)
def remove_stakeholder(
    proposal_id: shared.ProposalIdPath,
    stakeholder_id: StakeholderIdPath,
    actor_id: shared.ActorIdHeader,
    service: shared.ServiceDependency,
) -> Response:
    try:
        service.remove_stakeholder(
            proposal_id=proposal_id, stakeholder_id=stakeholder_id, actor_id=actor_id
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
