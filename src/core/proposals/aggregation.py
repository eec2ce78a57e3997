from typing import Iterable

from src.core.proposals.models import ApprovalRecord, ApprovalStatus, ApprovalSummary
from src.core.proposals.repository import ProposalRepository


def calculate_approval_summary(
    repository: ProposalRepository, *, proposal_id: str
) -> ApprovalSummary:
    approvals = repository.list_approvals(proposal_id=proposal_id)
    stakeholders = [
        stakeholder
        for stakeholder in repository.list_accepted_stakeholders(proposal_id=proposal_id)
        if stakeholder.status == "ACCEPTED"
    ]
    return summarize_approvals(approvals=approvals, accepted_stakeholder_count=len(stakeholders))


def summarize_approvals(
    *, approvals: Iterable[ApprovalRecord], accepted_stakeholder_count: int
) -> ApprovalSummary:
    rows = list(approvals)
    return ApprovalSummary(
        total_stakeholders=accepted_stakeholder_count,
        approved_count=_count_status(rows, "APPROVED"),
        rejected_count=_count_status(rows, "REJECTED"),
        changes_requested_count=_count_status(rows, "CHANGES_REQUESTED"),
        # every approval record counts against the pending figure, whatever its status
        pending_count=accepted_stakeholder_count - len(rows),
    )


def approval_percentage(summary: ApprovalSummary) -> int:
    if summary.total_stakeholders <= 0:
        return 0
    return round(summary.approved_count / summary.total_stakeholders * 100)


def _count_status(approvals: list[ApprovalRecord], status: ApprovalStatus) -> int:
    return sum(1 for approval in approvals if approval.status == status)
