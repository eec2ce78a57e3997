from src.core.proposals.models import ApprovalSummary, StatusDecision

NO_ACCEPTED_STAKEHOLDERS_REASON = "No stakeholders have accepted the invitation yet."
ALL_APPROVED_REASON = "All stakeholders approved the proposal."
AWAITING_APPROVALS_REASON = "Waiting for stakeholder approvals."


def determine_status(summary: ApprovalSummary) -> StatusDecision:
    """Resolve the proposal lifecycle status from aggregated approvals.

    Rules are evaluated in priority order and the first match wins. Any change
    request outranks any rejection, and any rejection outranks partial approval,
    regardless of how many other stakeholders approved.
    """

    if summary.total_stakeholders == 0:
        return StatusDecision(status="DRAFT", reason=NO_ACCEPTED_STAKEHOLDERS_REASON)

    if summary.changes_requested_count > 0:
        return StatusDecision(
            status="CHANGES_REQUESTED",
            reason=f"{summary.changes_requested_count} stakeholder(s) requested changes.",
        )

    if summary.rejected_count > 0:
        return StatusDecision(
            status="REJECTED",
            reason=f"{summary.rejected_count} stakeholder(s) rejected the proposal.",
        )

    if summary.approved_count == summary.total_stakeholders:
        return StatusDecision(status="APPROVED", reason=ALL_APPROVED_REASON)

    if summary.approved_count > 0:
        return StatusDecision(
            status="PENDING_APPROVAL",
            reason=(
                f"{summary.approved_count}/{summary.total_stakeholders} "
                "stakeholders have approved."
            ),
        )

    return StatusDecision(status="PENDING_APPROVAL", reason=AWAITING_APPROVALS_REASON)
