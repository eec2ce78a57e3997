from typing import Optional, Protocol

from src.core.proposals.models import (
    ApprovalRecord,
    ApprovalStatus,
    ProposalRecord,
    ProposalSortField,
    ProposalStatus,
    SortOrder,
    StakeholderRecord,
)


class ProposalRepository(Protocol):
    def create_proposal(self, proposal: ProposalRecord) -> None: ...

    def get_proposal(self, *, proposal_id: str) -> Optional[ProposalRecord]: ...

    def update_proposal(self, proposal: ProposalRecord) -> None: ...

    def update_proposal_status(
        self, *, proposal_id: str, status: ProposalStatus
    ) -> ProposalRecord: ...

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
    ) -> tuple[list[ProposalRecord], Optional[str]]: ...

    def delete_proposal(self, *, proposal_id: str) -> bool: ...

    def create_stakeholder(self, stakeholder: StakeholderRecord) -> None: ...

    def get_stakeholder(
        self, *, proposal_id: str, user_id: str
    ) -> Optional[StakeholderRecord]: ...

    def get_stakeholder_by_id(self, *, stakeholder_id: str) -> Optional[StakeholderRecord]: ...

    def list_stakeholders(self, *, proposal_id: str) -> list[StakeholderRecord]: ...

    def list_accepted_stakeholders(self, *, proposal_id: str) -> list[StakeholderRecord]: ...

    def update_stakeholder(self, stakeholder: StakeholderRecord) -> None: ...

    def delete_stakeholder(self, *, stakeholder_id: str) -> bool: ...

    def get_approval(self, *, proposal_id: str, user_id: str) -> Optional[ApprovalRecord]: ...

    def create_approval(
        self, *, proposal_id: str, user_id: str, status: ApprovalStatus = "PENDING"
    ) -> ApprovalRecord: ...

    def update_approval(
        self, *, approval_id: str, status: ApprovalStatus, comments: Optional[str]
    ) -> ApprovalRecord: ...

    def list_approvals(self, *, proposal_id: str) -> list[ApprovalRecord]: ...
