import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Path, Query, Response, status

from src.api.routers import proposals_config
from src.api.routers.proposal_http_errors import raise_proposal_http_exception
from src.core.proposals import (
    ProposalApprovalError,
    ProposalApprovalService,
    ProposalCreateRequest,
    ProposalListResponse,
    ProposalRecord,
    ProposalRepository,
    ProposalSortField,
    ProposalStatusSyncResult,
    ProposalUpdateRequest,
    SortOrder,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reformulation Proposals"])

_REPOSITORY: Optional[ProposalRepository] = None
_SERVICE: Optional[ProposalApprovalService] = None

ActorIdHeader = Annotated[
    str,
    Header(
        alias="X-Actor-Id",
        min_length=1,
        description="Authenticated caller id forwarded by the gateway.",
        examples=["pm_001"],
    ),
]

ProposalIdPath = Annotated[
    str,
    Path(description="Reformulation proposal identifier.", examples=["rp_001"]),
]


def get_proposal_repository() -> ProposalRepository:
    global _REPOSITORY
    if _REPOSITORY is None:
        try:
            _REPOSITORY = proposals_config.build_repository()
        except Exception as exc:
            detail = (
                "PROPOSAL_POSTGRES_DSN_REQUIRED"
                if str(exc) == "PROPOSAL_POSTGRES_DSN_REQUIRED"
                else "PROPOSAL_POSTGRES_CONNECTION_FAILED"
            )
            logger.error("proposal.repository.init_failed: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=detail
            ) from exc
    return _REPOSITORY


def get_proposal_approval_service() -> ProposalApprovalService:
    global _SERVICE
    if _SERVICE is None:
        _SERVICE = ProposalApprovalService(repository=get_proposal_repository())
    return _SERVICE


def reset_proposal_approval_service_for_tests() -> None:
    global _REPOSITORY
    global _SERVICE
    _REPOSITORY = None
    _SERVICE = None


ServiceDependency = Annotated[ProposalApprovalService, Depends(get_proposal_approval_service)]


def apply_status_change_headers(
    response: Response, status_update: ProposalStatusSyncResult
) -> None:
    response.headers["X-Proposal-Status-Changed"] = "true" if status_update.changed else "false"
    response.headers["X-Proposal-Old-Status"] = status_update.old_status
    response.headers["X-Proposal-New-Status"] = status_update.new_status


@router.post(
    "/proposals",
    response_model=ProposalRecord,
    status_code=status.HTTP_201_CREATED,
    summary="Create Reformulation Proposal",
    description="Creates a proposal owned by the calling actor in DRAFT status.",
)
def create_proposal(
    payload: ProposalCreateRequest,
    actor_id: ActorIdHeader,
    service: ServiceDependency,
) -> ProposalRecord:
    return service.create_proposal(payload=payload, actor_id=actor_id)


@router.get(
    "/proposals",
    response_model=ProposalListResponse,
    status_code=status.HTTP_200_OK,
    summary="List Reformulation Proposals",
    description=(
        "Lists proposals, newest first by default, with optional filters, sorting and cursor "
        "pagination."
    ),
)
def list_proposals(
    service: ServiceDependency,
    proposal_status: Annotated[
        Optional[str],
        Query(alias="status", description="Lifecycle status filter.", examples=["APPROVED"]),
    ] = None,
    created_by: Annotated[
        Optional[str],
        Query(description="Owner actor id filter.", examples=["pm_001"]),
    ] = None,
    limit: Annotated[
        int,
        Query(ge=1, le=100, description="Page size.", examples=[20]),
    ] = 20,
    cursor: Annotated[
        Optional[str],
        Query(description="Last proposal id of the previous page.", examples=["rp_001"]),
    ] = None,
    category: Annotated[
        Optional[str],
        Query(description="Case-insensitive category match.", examples=["Beverages"]),
    ] = None,
    search: Annotated[
        Optional[str],
        Query(
            description="Case-insensitive text match on product name or formulation.",
            examples=["sugar"],
        ),
    ] = None,
    sort_by: Annotated[
        ProposalSortField,
        Query(description="Sort column.", examples=["current_cost"]),
    ] = "created_at",
    sort_order: Annotated[
        SortOrder,
        Query(description="Sort direction.", examples=["asc"]),
    ] = "desc",
) -> ProposalListResponse:
    return service.list_proposals(
        status=proposal_status,
        created_by=created_by,
        limit=limit,
        cursor=cursor,
        category=category,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get(
    "/proposals/{proposal_id}",
    response_model=ProposalRecord,
    status_code=status.HTTP_200_OK,
    summary="Get Reformulation Proposal",
    description="Returns a proposal with its current lifecycle status.",
)
def get_proposal(proposal_id: ProposalIdPath, service: ServiceDependency) -> ProposalRecord:
    try:
        return service.get_proposal(proposal_id=proposal_id)
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)


@router.put(
    "/proposals/{proposal_id}",
    response_model=ProposalRecord,
    status_code=status.HTTP_200_OK,
    summary="Update Reformulation Proposal",
    description=(
        "Updates product name, current cost, category or formulation. Omitted fields keep "
        "their value and the lifecycle status is left to the synchronizer. Owner only."
    ),
)
def update_proposal(
    proposal_id: ProposalIdPath,
    payload: ProposalUpdateRequest,
    actor_id: ActorIdHeader,
    service: ServiceDependency,
) -> ProposalRecord:
    try:
        return service.update_proposal(
            proposal_id=proposal_id, payload=payload, actor_id=actor_id
        )
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)


@router.delete(
    "/proposals/{proposal_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Reformulation Proposal",
    description="Deletes a proposal and its stakeholders and approvals. Owner only.",
)
def delete_proposal(
    proposal_id: ProposalIdPath,
    actor_id: ActorIdHeader,
    service: ServiceDependency,
) -> Response:
    try:
        service.delete_proposal(proposal_id=proposal_id, actor_id=actor_id)
    except ProposalApprovalError as exc:
        raise_proposal_http_exception(exc)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
