from datetime import datetime
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

ProposalStatus = Literal[
    "DRAFT",
    "PENDING_APPROVAL",
    "APPROVED",
    "REJECTED",
    "CHANGES_REQUESTED",
]

StakeholderStatus = Literal["PENDING", "ACCEPTED", "DECLINED"]

ApprovalStatus = Literal["PENDING", "APPROVED", "CHANGES_REQUESTED", "REJECTED"]

ProposalSortField = Literal["created_at", "updated_at", "product_name", "current_cost", "status"]

SortOrder = Literal["asc", "desc"]


class ProposalCreateRequest(BaseModel):
    product_name: str = Field(
        min_length=1,
        max_length=200,
        description="Product under reformulation.",
        examples=["Oat Crunch Cereal"],
    )
    current_cost: Decimal = Field(
        gt=Decimal("0"),
        description="Current unit cost of the product.",
        examples=["2.45"],
    )
    category: str = Field(
        min_length=1,
        max_length=100,
        description="Product category.",
        examples=["Breakfast"],
    )
    formulation: str = Field(
        min_length=1,
        max_length=2000,
        description="Proposed reformulation text.",
        examples=["Replace cane sugar with 30% less sugar and chicory fibre."],
    )


class ProposalUpdateRequest(BaseModel):
    product_name: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=200,
        description="New product name. Omitted fields keep their current value.",
        examples=["Oat Crunch Cereal Lite"],
    )
    current_cost: Optional[Decimal] = Field(
        default=None,
        gt=Decimal("0"),
        description="New current unit cost.",
        examples=["2.30"],
    )
    category: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=100,
        description="New product category.",
        examples=["Breakfast"],
    )
    formulation: Optional[str] = Field(
        default=None,
        min_length=1,
        max_length=2000,
        description="New reformulation text.",
        examples=["Replace cane sugar with 40% less sugar and inulin."],
    )


class StakeholderInviteRequest(BaseModel):
    user_id: str = Field(
        min_length=1,
        description="User invited to review the proposal.",
        examples=["user_quality_01"],
    )
    comments: Optional[str] = Field(
        default=None,
        description="Optional note attached to the invitation.",
        examples=["Please review the allergen impact."],
    )


class StakeholderUpdateRequest(BaseModel):
    comments: Optional[str] = Field(
        default=None,
        description="Replacement invitation note. Omit to keep the current note.",
        examples=["Focus on the allergen statement."],
    )


class StakeholderResponseRequest(BaseModel):
    status: StakeholderStatus = Field(
        description="Invitation response from the invited user.",
        examples=["ACCEPTED"],
    )
    comments: Optional[str] = Field(
        default=None,
        description="Optional response comment.",
        examples=["Happy to review."],
    )


class ApprovalSubmitRequest(BaseModel):
    status: ApprovalStatus = Field(
        description="Approval decision recorded for the calling stakeholder.",
        examples=["APPROVED"],
    )
    comments: Optional[str] = Field(
        default=None,
        description="Optional decision comment.",
        examples=["Cost impact is acceptable."],
    )


class ApprovalCommentRequest(BaseModel):
    comments: Optional[str] = Field(
        default=None,
        description="Optional decision comment.",
        examples=["Looks good."],
    )


class ChangeRequestRequest(BaseModel):
    comments: str = Field(
        min_length=1,
        description="Requested changes. Required when requesting changes.",
        examples=["Shelf-life data for the new fibre blend is missing."],
    )


class ProposalRecord(BaseModel):
    proposal_id: str = Field(description="Internal proposal identifier.", examples=["rp_001"])
    product_name: str = Field(description="Internal product name.", examples=["Oat Crunch"])
    current_cost: Decimal = Field(description="Internal current cost.", examples=["2.45"])
    category: str = Field(description="Internal category.", examples=["Breakfast"])
    formulation: str = Field(description="Internal formulation text.", examples=["Less sugar."])
    status: ProposalStatus = Field(description="Internal lifecycle status.", examples=["DRAFT"])
    created_by: str = Field(description="Internal owner actor id.", examples=["pm_1"])
    created_at: datetime = Field(
        description="Internal creation timestamp.", examples=["2026-02-19T12:00:00+00:00"]
    )
    updated_at: datetime = Field(
        description="Internal last-update timestamp.", examples=["2026-02-19T12:05:00+00:00"]
    )


class StakeholderRecord(BaseModel):
    stakeholder_id: str = Field(description="Internal stakeholder identifier.", examples=["psh_1"])
    proposal_id: str = Field(description="Internal proposal identifier.", examples=["rp_001"])
    user_id: str = Field(description="Internal invited user id.", examples=["user_1"])
    status: StakeholderStatus = Field(
        description="Internal invitation status.", examples=["PENDING"]
    )
    invited_at: datetime = Field(
        description="Internal invitation timestamp.", examples=["2026-02-19T12:00:00+00:00"]
    )
    responded_at: Optional[datetime] = Field(
        default=None,
        description="Internal response timestamp.",
        examples=["2026-02-19T13:00:00+00:00"],
    )
    comments: Optional[str] = Field(
        default=None, description="Internal invitation comments.", examples=["Please review."]
    )


class ApprovalRecord(BaseModel):
    approval_id: str = Field(description="Internal approval identifier.", examples=["pap_001"])
    proposal_id: str = Field(description="Internal proposal identifier.", examples=["rp_001"])
    user_id: str = Field(description="Internal approver user id.", examples=["user_1"])
    status: ApprovalStatus = Field(description="Internal approval status.", examples=["PENDING"])
    comments: Optional[str] = Field(
        default=None, description="Internal decision comments.", examples=["Approved."]
    )
    created_at: datetime = Field(
        description="Internal creation timestamp.", examples=["2026-02-19T12:10:00+00:00"]
    )
    updated_at: datetime = Field(
        description="Internal last-update timestamp.", examples=["2026-02-19T12:10:00+00:00"]
    )


class ApprovalSummary(BaseModel):
    """Aggregate approval counts for one proposal.

    `pending_count` is `total_stakeholders - <number of approval records>` and is
    not clamped: it goes negative when approvals outlive an ACCEPTED invitation.
    """

    model_config = ConfigDict(frozen=True)

    total_stakeholders: int = Field(
        description="Number of stakeholders that accepted the invitation.", examples=[3]
    )
    approved_count: int = Field(description="Approvals with status APPROVED.", examples=[1])
    rejected_count: int = Field(description="Approvals with status REJECTED.", examples=[0])
    changes_requested_count: int = Field(
        description="Approvals with status CHANGES_REQUESTED.", examples=[1]
    )
    pending_count: int = Field(
        description="Accepted stakeholders minus recorded approvals. May be negative.",
        examples=[1],
    )


class StatusDecision(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ProposalStatus = Field(description="Resolved lifecycle status.", examples=["APPROVED"])
    reason: str = Field(
        description="Human-readable explanation of the resolved status.",
        examples=["All stakeholders approved the proposal."],
    )


class ProposalStatusSyncResult(BaseModel):
    old_status: ProposalStatus = Field(
        description="Persisted status before synchronization.", examples=["PENDING_APPROVAL"]
    )
    new_status: ProposalStatus = Field(
        description="Status resolved from current approvals.", examples=["APPROVED"]
    )
    changed: bool = Field(description="Whether the persisted status was updated.", examples=[True])
    reason: str = Field(
        description="Resolver explanation for the new status.",
        examples=["All stakeholders approved the proposal."],
    )
    summary: ApprovalSummary = Field(description="Aggregate used for the decision.")


class ApprovalMutationResult(BaseModel):
    approval: ApprovalRecord = Field(description="Approval record after the mutation.")
    status_update: ProposalStatusSyncResult = Field(
        description="Proposal status synchronization triggered by the mutation."
    )


class ProposalListResponse(BaseModel):
    items: List[ProposalRecord] = Field(description="Proposal page.")
    next_cursor: Optional[str] = Field(
        default=None,
        description="Cursor for the next page, when more rows exist.",
        examples=["rp_002"],
    )


class StakeholderListResponse(BaseModel):
    proposal_id: str = Field(description="Proposal identifier.", examples=["rp_001"])
    items: List[StakeholderRecord] = Field(description="Stakeholders invited to the proposal.")
    total: int = Field(description="Number of invited stakeholders.", examples=[3])


class ApprovalSummaryBlock(BaseModel):
    pending: int = Field(description="Pending count (may be negative).", examples=[1])
    approved: int = Field(description="Approved count.", examples=[1])
    changes_requested: int = Field(description="Changes-requested count.", examples=[1])
    rejected: int = Field(description="Rejected count.", examples=[0])
    total_stakeholders: int = Field(description="Accepted stakeholder count.", examples=[3])
    approval_percentage: int = Field(
        description="Rounded share of accepted stakeholders that approved.", examples=[33]
    )


class ApprovalListResponse(BaseModel):
    proposal_id: str = Field(description="Proposal identifier.", examples=["rp_001"])
    items: List[ApprovalRecord] = Field(description="Approvals, most recently updated first.")
    total: int = Field(description="Number of approval records.", examples=[2])
    summary: ApprovalSummaryBlock = Field(description="Aggregate counts for display.")


class ProposalApprovalStatusResponse(BaseModel):
    proposal_id: str = Field(description="Proposal identifier.", examples=["rp_001"])
    current_status: ProposalStatus = Field(
        description="Persisted proposal status.", examples=["PENDING_APPROVAL"]
    )
    approval_summary: ApprovalSummary = Field(description="Current approval aggregate.")
    approval_percentage: int = Field(
        description="Rounded share of accepted stakeholders that approved.", examples=[33]
    )
