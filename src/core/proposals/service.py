import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

from src.core.proposals.aggregation import approval_percentage, calculate_approval_summary
from src.core.proposals.models import (
    ApprovalListResponse,
    ApprovalMutationResult,
    ApprovalRecord,
    ApprovalStatus,
    ApprovalSummary,
    ApprovalSummaryBlock,
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
from src.core.proposals.status_resolution import determine_status

logger = logging.getLogger(__name__)


class ProposalApprovalError(Exception):
    pass


class ProposalNotFoundError(ProposalApprovalError):
    pass


class StakeholderNotFoundError(ProposalApprovalError):
    pass


class ProposalAuthorizationError(ProposalApprovalError):
    pass


class StakeholderConflictError(ProposalApprovalError):
    pass


class ProposalValidationError(ProposalApprovalError):
    pass


class ProposalApprovalService:
    def __init__(self, *, repository: ProposalRepository) -> None:
        self._repository = repository

    def calculate_approval_summary(self, *, proposal_id: str) -> ApprovalSummary:
        return calculate_approval_summary(self._repository, proposal_id=proposal_id)

    def determine_status(self, summary: ApprovalSummary) -> StatusDecision:
        return determine_status(summary)

    def synchronize_proposal_status(self, *, proposal_id: str) -> ProposalStatusSyncResult:
        """Recompute the proposal status from its approvals and persist it if it moved.

        There is no lock across the read-aggregate-write sequence, so two concurrent
        synchronizations of the same proposal resolve as last write wins.
        """

        proposal = self._require_proposal(proposal_id)
        summary = self.calculate_approval_summary(proposal_id=proposal_id)
        decision = determine_status(summary)
        changed = proposal.status != decision.status
        if changed:
            self._repository.update_proposal_status(
                proposal_id=proposal_id, status=decision.status
            )
            logger.info(
                "proposal.status.changed",
                extra={
                    "extra_fields": {
                        "proposal_id": proposal_id,
                        "old_status": proposal.status,
                        "new_status": decision.status,
                        "reason": decision.reason,
                    }
                },
            )
        return ProposalStatusSyncResult(
            old_status=proposal.status,
            new_status=decision.status,
            changed=changed,
            reason=decision.reason,
            summary=summary,
        )

    def is_user_authorized_to_approve(self, *, proposal_id: str, user_id: str) -> bool:
        stakeholder = self._repository.get_stakeholder(proposal_id=proposal_id, user_id=user_id)
        return stakeholder is not None and stakeholder.status == "ACCEPTED"

    def get_or_create_approval(self, *, proposal_id: str, user_id: str) -> ApprovalRecord:
        approval = self._repository.get_approval(proposal_id=proposal_id, user_id=user_id)
        if approval is not None:
            return approval
        return self._repository.create_approval(
            proposal_id=proposal_id, user_id=user_id, status="PENDING"
        )

    def create_proposal(self, *, payload: ProposalCreateRequest, actor_id: str) -> ProposalRecord:
        now = _utc_now()
        proposal = ProposalRecord(
            proposal_id=f"rp_{uuid.uuid4().hex[:12]}",
            product_name=payload.product_name.strip(),
            current_cost=payload.current_cost,
            category=payload.category.strip(),
            formulation=payload.formulation.strip(),
            status="DRAFT",
            created_by=actor_id,
            created_at=now,
            updated_at=now,
        )
        self._repository.create_proposal(proposal)
        logger.info(
            "proposal.created",
            extra={"extra_fields": {"proposal_id": proposal.proposal_id, "actor_id": actor_id}},
        )
        return proposal

    def get_proposal(self, *, proposal_id: str) -> ProposalRecord:
        return self._require_proposal(proposal_id)

    def list_proposals(
        self,
        *,
        status: Optional[str],
        created_by: Optional[str],
        limit: int,
        cursor: Optional[str],
        category: Optional[str] = None,
        search: Optional[str] = None,
        sort_by: ProposalSortField = "created_at",
        sort_order: SortOrder = "desc",
    ) -> ProposalListResponse:
        rows, next_cursor = self._repository.list_proposals(
            status=status,
            created_by=created_by,
            limit=limit,
            cursor=cursor,
            category=category,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
        )
        return ProposalListResponse(items=rows, next_cursor=next_cursor)

    def update_proposal(
        self, *, proposal_id: str, payload: ProposalUpdateRequest, actor_id: str
    ) -> ProposalRecord:
        proposal = self._require_proposal(proposal_id)
        self._require_owner(proposal, actor_id, "PROPOSAL_OWNER_REQUIRED: update")

        changes = payload.model_dump(exclude_none=True)
        for field in ("product_name", "category", "formulation"):
            if field in changes:
                changes[field] = changes[field].strip()
        updated = proposal.model_copy(update={**changes, "updated_at": _utc_now()})
        self._repository.update_proposal(updated)
        logger.info(
            "proposal.updated",
            extra={
                "extra_fields": {
                    "proposal_id": proposal_id,
                    "actor_id": actor_id,
                    "fields": sorted(changes),
                }
            },
        )
        return updated

    def delete_proposal(self, *, proposal_id: str, actor_id: str) -> None:
        proposal = self._require_proposal(proposal_id)
        self._require_owner(proposal, actor_id, "PROPOSAL_OWNER_REQUIRED: delete")
        self._repository.delete_proposal(proposal_id=proposal_id)

    def invite_stakeholder(
        self,
        *,
        proposal_id: str,
        payload: StakeholderInviteRequest,
        actor_id: str,
    ) -> StakeholderRecord:
        proposal = self._require_proposal(proposal_id)
        self._require_owner(proposal, actor_id, "PROPOSAL_OWNER_REQUIRED: invite stakeholder")
        existing = self._repository.get_stakeholder(
            proposal_id=proposal_id, user_id=payload.user_id
        )
        if existing is not None:
            raise StakeholderConflictError("STAKEHOLDER_ALREADY_INVITED")

        stakeholder = StakeholderRecord(
            stakeholder_id=f"psh_{uuid.uuid4().hex[:12]}",
            proposal_id=proposal_id,
            user_id=payload.user_id,
            status="PENDING",
            invited_at=_utc_now(),
            responded_at=None,
            comments=payload.comments,
        )
        self._repository.create_stakeholder(stakeholder)
        return stakeholder

    def list_stakeholders(self, *, proposal_id: str) -> StakeholderListResponse:
        self._require_proposal(proposal_id)
        rows = self._repository.list_stakeholders(proposal_id=proposal_id)
        return StakeholderListResponse(proposal_id=proposal_id, items=rows, total=len(rows))

    def respond_to_invitation(
        self,
        *,
        proposal_id: str,
        stakeholder_id: str,
        payload: StakeholderResponseRequest,
        actor_id: str,
    ) -> StakeholderRecord:
        stakeholder = self._require_stakeholder(proposal_id, stakeholder_id)
        if stakeholder.user_id != actor_id:
            raise ProposalAuthorizationError("STAKEHOLDER_SELF_RESPONSE_REQUIRED")

        stakeholder.status = payload.status
        if payload.comments is not None:
            stakeholder.comments = payload.comments
        stakeholder.responded_at = _utc_now()
        self._repository.update_stakeholder(stakeholder)
        # accepting or declining changes the denominator of the aggregate
        self.synchronize_proposal_status(proposal_id=proposal_id)
        return stakeholder

    def update_stakeholder(
        self,
        *,
        proposal_id: str,
        stakeholder_id: str,
        payload: StakeholderUpdateRequest,
        actor_id: str,
    ) -> StakeholderRecord:
        proposal = self._require_proposal(proposal_id)
        self._require_owner(proposal, actor_id, "PROPOSAL_OWNER_REQUIRED: update stakeholder")
        stakeholder = self._require_stakeholder(proposal_id, stakeholder_id)
        if payload.comments is not None:
            stakeholder.comments = payload.comments
            self._repository.update_stakeholder(stakeholder)
        return stakeholder

    def remove_stakeholder(self, *, proposal_id: str, stakeholder_id: str, actor_id: str) -> None:
        proposal = self._require_proposal(proposal_id)
        self._require_owner(proposal, actor_id, "PROPOSAL_OWNER_REQUIRED: remove stakeholder")
        self._require_stakeholder(proposal_id, stakeholder_id)
        self._repository.delete_stakeholder(stakeholder_id=stakeholder_id)
        self.synchronize_proposal_status(proposal_id=proposal_id)

    def submit_approval(
        self,
        *,
        proposal_id: str,
        actor_id: str,
        status: ApprovalStatus,
        comments: Optional[str],
    ) -> ApprovalMutationResult:
        self._require_proposal(proposal_id)
        if not self.is_user_authorized_to_approve(proposal_id=proposal_id, user_id=actor_id):
            raise ProposalAuthorizationError("ACCEPTED_STAKEHOLDER_REQUIRED")

        approval = self.get_or_create_approval(proposal_id=proposal_id, user_id=actor_id)
        updated = self._repository.update_approval(
            approval_id=approval.approval_id,
            status=status,
            comments=comments,
        )
        status_update = self.synchronize_proposal_status(proposal_id=proposal_id)
        return ApprovalMutationResult(approval=updated, status_update=status_update)

    def approve_proposal(
        self, *, proposal_id: str, actor_id: str, comments: Optional[str]
    ) -> ApprovalMutationResult:
        return self.submit_approval(
            proposal_id=proposal_id, actor_id=actor_id, status="APPROVED", comments=comments
        )

    def reject_proposal(
        self, *, proposal_id: str, actor_id: str, comments: Optional[str]
    ) -> ApprovalMutationResult:
        return self.submit_approval(
            proposal_id=proposal_id, actor_id=actor_id, status="REJECTED", comments=comments
        )

    def request_changes(
        self, *, proposal_id: str, actor_id: str, comments: str
    ) -> ApprovalMutationResult:
        if not comments or not comments.strip():
            raise ProposalValidationError("CHANGE_REQUEST_COMMENTS_REQUIRED")
        return self.submit_approval(
            proposal_id=proposal_id,
            actor_id=actor_id,
            status="CHANGES_REQUESTED",
            comments=comments,
        )

    def list_approvals(self, *, proposal_id: str) -> ApprovalListResponse:
        self._require_proposal(proposal_id)
        approvals = self._repository.list_approvals(proposal_id=proposal_id)
        approvals.sort(key=lambda x: (x.updated_at, x.approval_id), reverse=True)
        summary = self.calculate_approval_summary(proposal_id=proposal_id)
        return ApprovalListResponse(
            proposal_id=proposal_id,
            items=approvals,
            total=len(approvals),
            summary=ApprovalSummaryBlock(
                pending=summary.pending_count,
                approved=summary.approved_count,
                changes_requested=summary.changes_requested_count,
                rejected=summary.rejected_count,
                total_stakeholders=summary.total_stakeholders,
                approval_percentage=approval_percentage(summary),
            ),
        )

    def get_approval_status(self, *, proposal_id: str) -> ProposalApprovalStatusResponse:
        proposal = self._require_proposal(proposal_id)
        summary = self.calculate_approval_summary(proposal_id=proposal_id)
        return ProposalApprovalStatusResponse(
            proposal_id=proposal_id,
            current_status=proposal.status,
            approval_summary=summary,
            approval_percentage=approval_percentage(summary),
        )

    def _require_proposal(self, proposal_id: str) -> ProposalRecord:
        proposal = self._repository.get_proposal(proposal_id=proposal_id)
        if proposal is None:
            raise ProposalNotFoundError("PROPOSAL_NOT_FOUND")
        return proposal

    def _require_stakeholder(self, proposal_id: str, stakeholder_id: str) -> StakeholderRecord:
        stakeholder = self._repository.get_stakeholder_by_id(stakeholder_id=stakeholder_id)
        if stakeholder is None:
            raise StakeholderNotFoundError("STAKEHOLDER_NOT_FOUND")
        if stakeholder.proposal_id != proposal_id:
            raise ProposalValidationError("STAKEHOLDER_PROPOSAL_MISMATCH")
        return stakeholder

    def _require_owner(self, proposal: ProposalRecord, actor_id: str, detail: str) -> None:
        if proposal.created_by != actor_id:
            raise ProposalAuthorizationError(detail)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
