from src.core.proposals.aggregation import approval_percentage, calculate_approval_summary
from src.core.proposals.models import (
    ApprovalCommentRequest,
    ApprovalListResponse,
    ApprovalMutationResult,
    ApprovalRecord,
    ApprovalSubmitRequest,
    ApprovalSummary,
    ChangeRequestRequest,
    ProposalApprovalStatusResponse,
    ProposalCreateRequest,
    ProposalListResponse,
    ProposalRecord,
    ProposalSortField,
    ProposalStatusSyncResult,
    ProposalUpdateRequest,
    SortOrder,
    StakeholderInviteRequest,
    StakeholderListResponse,
    StakeholderRecord,
    StakeholderResponseRequest,
    StakeholderUpdateRequest,
    StatusDecision,
)
from src.core.proposals.repository import ProposalRepository
from src.core.proposals.service import (
    ProposalApprovalError,
    ProposalApprovalService,
    ProposalAuthorizationError,
    ProposalNotFoundError,
    ProposalValidationError,
    StakeholderConflictError,
    StakeholderNotFoundError,
)
from src.core.proposals.status_resolution import determine_status

__all__ = [
    "ApprovalCommentRequest",
    "ApprovalListResponse",
    "ApprovalMutationResult",
    "ApprovalRecord",
    "ApprovalSubmitRequest",
    "ApprovalSummary",
    "ChangeRequestRequest",
    "ProposalApprovalError",
    "ProposalApprovalService",
    "ProposalApprovalStatusResponse",
    "ProposalAuthorizationError",
    "ProposalCreateRequest",
    "ProposalListResponse",
    "ProposalNotFoundError",
    "ProposalRecord",
    "ProposalRepository",
    "ProposalSortField",
    "ProposalStatusSyncResult",
    "ProposalUpdateRequest",
    "ProposalValidationError",
    "StakeholderConflictError",
    "StakeholderInviteRequest",
    "StakeholderListResponse",
    "StakeholderNotFoundError",
    "StakeholderRecord",
    "StakeholderResponseRequest",
    "StakeholderUpdateRequest",
    "SortOrder",
    "StatusDecision",
    "approval_percentage",
    "calculate_approval_summary",
    "determine_status",
]
