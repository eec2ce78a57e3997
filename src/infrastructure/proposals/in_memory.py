import uuid
from copy import deepcopy
from datetime import datetime, timezone
from threading import Lock
from typing import Optional

from src.core.proposals.models import (
    ApprovalRecord,
    ApprovalStatus,
    ProposalRecord,
    ProposalSortField,
    ProposalStatus,
    SortOrder,
    StakeholderRecord,
)
from src.core.proposals.repository import ProposalRepository


class InMemoryProposalRepository(ProposalRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._proposals: dict[str, ProposalRecord] = {}
        self._stakeholders: dict[str, StakeholderRecord] = {}
        self._approvals: dict[str, ApprovalRecord] = {}

    def create_proposal(self, proposal: ProposalRecord) -> None:
        with self._lock:
            self._proposals[proposal.proposal_id] = deepcopy(proposal)

    def get_proposal(self, *, proposal_id: str) -> Optional[ProposalRecord]:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            return deepcopy(proposal) if proposal is not None else None

    def update_proposal(self, proposal: ProposalRecord) -> None:
        with self._lock:
            stored = self._proposals.get(proposal.proposal_id)
            if stored is None:
                raise KeyError(proposal.proposal_id)
            # status belongs to the synchronizer and is never overwritten by an edit
            self._proposals[proposal.proposal_id] = proposal.model_copy(
                update={"status": stored.status}, deep=True
            )

    def update_proposal_status(
        self, *, proposal_id: str, status: ProposalStatus
    ) -> ProposalRecord:
        with self._lock:
            proposal = self._proposals.get(proposal_id)
            if proposal is None:
                raise KeyError(proposal_id)
            proposal.status = status
            proposal.updated_at = datetime.now(timezone.utc)
            return deepcopy(proposal)

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
    ) -> tuple[list[ProposalRecord], Optional[str]]:
        with self._lock:
            rows = list(self._proposals.values())

        rows = sorted(
            rows,
            key=lambda x: (getattr(x, sort_by), x.proposal_id),
            reverse=sort_order == "desc",
        )

        if status is not None:
            rows = [row for row in rows if row.status == status]
        if created_by is not None:
            rows = [row for row in rows if row.created_by == created_by]
        if category:
            rows = [row for row in rows if category.lower() in row.category.lower()]
        if search:
            needle = search.lower()
            rows = [
                row
                for row in rows
                if needle in row.product_name.lower() or needle in row.formulation.lower()
            ]

        if cursor:
            row_ids = [row.proposal_id for row in rows]
            if cursor in row_ids:
                start = row_ids.index(cursor) + 1
                rows = rows[start:]
            else:
                rows = []

        page = rows[:limit]
        next_cursor = page[-1].proposal_id if len(rows) > limit else None
        return [deepcopy(row) for row in page], next_cursor

    def delete_proposal(self, *, proposal_id: str) -> bool:
        with self._lock:
            if self._proposals.pop(proposal_id, None) is None:
                return False
            self._stakeholders = {
                key: row
                for key, row in self._stakeholders.items()
                if row.proposal_id != proposal_id
            }
            self._approvals = {
                key: row
                for key, row in self._approvals.items()
                if row.proposal_id != proposal_id
            }
            return True

    def create_stakeholder(self, stakeholder: StakeholderRecord) -> None:
        with self._lock:
            for row in self._stakeholders.values():
                if (row.proposal_id, row.user_id) == (stakeholder.proposal_id, stakeholder.user_id):
                    raise ValueError("STAKEHOLDER_UNIQUE_VIOLATION")
            self._stakeholders[stakeholder.stakeholder_id] = deepcopy(stakeholder)

    def get_stakeholder(self, *, proposal_id: str, user_id: str) -> Optional[StakeholderRecord]:
        with self._lock:
            for row in self._stakeholders.values():
                if row.proposal_id == proposal_id and row.user_id == user_id:
                    return deepcopy(row)
        return None

    def get_stakeholder_by_id(self, *, stakeholder_id: str) -> Optional[StakeholderRecord]:
        with self._lock:
            stakeholder = self._stakeholders.get(stakeholder_id)
            return deepcopy(stakeholder) if stakeholder is not None else None

    def list_stakeholders(self, *, proposal_id: str) -> list[StakeholderRecord]:
        with self._lock:
            rows = [row for row in self._stakeholders.values() if row.proposal_id == proposal_id]
        rows.sort(key=lambda x: (x.invited_at, x.stakeholder_id))
        return [deepcopy(row) for row in rows]

    def list_accepted_stakeholders(self, *, proposal_id: str) -> list[StakeholderRecord]:
        return [
            row
            for row in self.list_stakeholders(proposal_id=proposal_id)
            if row.status == "ACCEPTED"
        ]

    def update_stakeholder(self, stakeholder: StakeholderRecord) -> None:
        with self._lock:
            self._stakeholders[stakeholder.stakeholder_id] = deepcopy(stakeholder)

    def delete_stakeholder(self, *, stakeholder_id: str) -> bool:
        with self._lock:
            return self._stakeholders.pop(stakeholder_id, None) is not None

    def get_approval(self, *, proposal_id: str, user_id: str) -> Optional[ApprovalRecord]:
        with self._lock:
            for row in self._approvals.values():
                if row.proposal_id == proposal_id and row.user_id == user_id:
                    return deepcopy(row)
        return None

    def create_approval(
        self, *, proposal_id: str, user_id: str, status: ApprovalStatus = "PENDING"
    ) -> ApprovalRecord:
        now = datetime.now(timezone.utc)
        approval = ApprovalRecord(
            approval_id=f"pap_{uuid.uuid4().hex[:12]}",
            proposal_id=proposal_id,
            user_id=user_id,
            status=status,
            comments=None,
            created_at=now,
            updated_at=now,
        )
        with self._lock:
            for row in self._approvals.values():
                if row.proposal_id == proposal_id and row.user_id == user_id:
                    raise ValueError("APPROVAL_UNIQUE_VIOLATION")
            self._approvals[approval.approval_id] = deepcopy(approval)
        return approval

    def update_approval(
        self, *, approval_id: str, status: ApprovalStatus, comments: Optional[str]
    ) -> ApprovalRecord:
        with self._lock:
            approval = self._approvals.get(approval_id)
            if approval is None:
                raise KeyError(approval_id)
            approval.status = status
            approval.comments = comments
            approval.updated_at = datetime.now(timezone.utc)
            return deepcopy(approval)

    def list_approvals(self, *, proposal_id: str) -> list[ApprovalRecord]:
        with self._lock:
            rows = [row for row in self._approvals.values() if row.proposal_id == proposal_id]
        rows.sort(key=lambda x: (x.created_at, x.approval_id))
        return [deepcopy(row) for row in rows]
