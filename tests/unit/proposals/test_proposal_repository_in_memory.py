from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from src.core.proposals.models import ProposalRecord, StakeholderRecord
from src.infrastructure.proposals import InMemoryProposalRepository

_BASE = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _proposal(proposal_id: str, minutes: int, created_by: str = "owner_1") -> ProposalRecord:
    created_at = _BASE + timedelta(minutes=minutes)
    return ProposalRecord(
        proposal_id=proposal_id,
        product_name="Oat Crunch Cereal",
        current_cost=Decimal("2.45"),
        category="Breakfast",
        formulation="Less sugar.",
        status="DRAFT",
        created_by=created_by,
        created_at=created_at,
        updated_at=created_at,
    )


def _stakeholder(user_id: str, proposal_id: str = "rp_1", status: str = "ACCEPTED"):
    return StakeholderRecord(
        stakeholder_id=f"psh_{proposal_id}_{user_id}",
        proposal_id=proposal_id,
        user_id=user_id,
        status=status,
        invited_at=_BASE,
        responded_at=None,
        comments=None,
    )


def test_returned_records_are_copies():
    repository = InMemoryProposalRepository()
    repository.create_proposal(_proposal("rp_1", 0))

    loaded = repository.get_proposal(proposal_id="rp_1")
    loaded.status = "APPROVED"

    assert repository.get_proposal(proposal_id="rp_1").status == "DRAFT"


def test_update_proposal_status_touches_updated_at():
    repository = InMemoryProposalRepository()
    repository.create_proposal(_proposal("rp_1", 0))

    updated = repository.update_proposal_status(proposal_id="rp_1", status="PENDING_APPROVAL")

    assert updated.status == "PENDING_APPROVAL"
    assert updated.updated_at > _BASE
    with pytest.raises(KeyError):
        repository.update_proposal_status(proposal_id="rp_missing", status="APPROVED")


def test_list_proposals_filters_and_paginates_newest_first():
    repository = InMemoryProposalRepository()
    repository.create_proposal(_proposal("rp_1", 0))
    repository.create_proposal(_proposal("rp_2", 1, created_by="owner_2"))
    repository.create_proposal(_proposal("rp_3", 2))

    page, next_cursor = repository.list_proposals(
        status=None, created_by=None, limit=2, cursor=None
    )
    assert [row.proposal_id for row in page] == ["rp_3", "rp_2"]
    assert next_cursor == "rp_2"

    page, next_cursor = repository.list_proposals(
        status=None, created_by=None, limit=2, cursor="rp_2"
    )
    assert [row.proposal_id for row in page] == ["rp_1"]
    assert next_cursor is None

    page, _ = repository.list_proposals(status=None, created_by="owner_1", limit=10, cursor=None)
    assert [row.proposal_id for row in page] == ["rp_3", "rp_1"]

    page, _ = repository.list_proposals(status="APPROVED", created_by=None, limit=10, cursor=None)
    assert page == []

    page, _ = repository.list_proposals(status=None, created_by=None, limit=10, cursor="rp_x")
    assert page == []


def test_update_proposal_replaces_fields_but_keeps_status():
    repository = InMemoryProposalRepository()
    repository.create_proposal(_proposal("rp_1", 0))
    repository.update_proposal_status(proposal_id="rp_1", status="PENDING_APPROVAL")

    edited = repository.get_proposal(proposal_id="rp_1").model_copy(
        update={"category": "Cereals", "current_cost": Decimal("1.99"), "status": "DRAFT"}
    )
    repository.update_proposal(edited)

    loaded = repository.get_proposal(proposal_id="rp_1")
    assert loaded.category == "Cereals"
    assert loaded.current_cost == Decimal("1.99")
    assert loaded.status == "PENDING_APPROVAL"
    with pytest.raises(KeyError):
        repository.update_proposal(_proposal("rp_missing", 0))


def test_list_proposals_matches_category_and_search_case_insensitively():
    repository = InMemoryProposalRepository()
    repository.create_proposal(_proposal("rp_1", 0))
    repository.create_proposal(
        _proposal("rp_2", 1).model_copy(
            update={"category": "Beverages", "formulation": "Stevia instead of cane sugar."}
        )
    )
    repository.create_proposal(
        _proposal("rp_3", 2).model_copy(
            update={"product_name": "Sparkling Water", "category": "Beverages"}
        )
    )

    page, _ = repository.list_proposals(
        status=None, created_by=None, limit=10, cursor=None, category="BEVERAGE"
    )
    assert [row.proposal_id for row in page] == ["rp_3", "rp_2"]

    page, _ = repository.list_proposals(
        status=None, created_by=None, limit=10, cursor=None, search="stevia"
    )
    assert [row.proposal_id for row in page] == ["rp_2"]

    page, _ = repository.list_proposals(
        status=None, created_by=None, limit=10, cursor=None, search="sparkling"
    )
    assert [row.proposal_id for row in page] == ["rp_3"]


def test_list_proposals_sorts_by_requested_field_and_direction():
    repository = InMemoryProposalRepository()
    repository.create_proposal(
        _proposal("rp_1", 0).model_copy(
            update={"product_name": "Muesli", "current_cost": Decimal("10.00")}
        )
    )
    repository.create_proposal(
        _proposal("rp_2", 1).model_copy(
            update={"product_name": "Granola", "current_cost": Decimal("9.50")}
        )
    )
    repository.create_proposal(
        _proposal("rp_3", 2).model_copy(
            update={"product_name": "Bran Flakes", "current_cost": Decimal("3.20")}
        )
    )

    page, _ = repository.list_proposals(
        status=None,
        created_by=None,
        limit=10,
        cursor=None,
        sort_by="product_name",
        sort_order="asc",
    )
    assert [row.proposal_id for row in page] == ["rp_3", "rp_2", "rp_1"]

    page, next_cursor = repository.list_proposals(
        status=None,
        created_by=None,
        limit=2,
        cursor=None,
        sort_by="current_cost",
        sort_order="desc",
    )
    assert [row.proposal_id for row in page] == ["rp_1", "rp_2"]
    assert next_cursor == "rp_2"

def test_delete_proposal_cascades_to_stakeholders_and_approvals():
    repository = InMemoryProposalRepository()
    repository.create_proposal(_proposal("rp_1", 0))
    repository.create_proposal(_proposal("rp_2", 1))
    repository.create_stakeholder(_stakeholder("u1", "rp_1"))
    repository.create_stakeholder(_stakeholder("u1", "rp_2"))
    repository.create_approval(proposal_id="rp_1", user_id="u1")
    repository.create_approval(proposal_id="rp_2", user_id="u1")

    assert repository.delete_proposal(proposal_id="rp_1") is True
    assert repository.delete_proposal(proposal_id="rp_1") is False

    assert repository.list_stakeholders(proposal_id="rp_1") == []
    assert repository.list_approvals(proposal_id="rp_1") == []
    assert len(repository.list_stakeholders(proposal_id="rp_2")) == 1
    assert len(repository.list_approvals(proposal_id="rp_2")) == 1


def test_stakeholder_is_unique_per_proposal_and_user():
    repository = InMemoryProposalRepository()
    repository.create_stakeholder(_stakeholder("u1"))

    with pytest.raises(ValueError):
        repository.create_stakeholder(
            _stakeholder("u1").model_copy(update={"stakeholder_id": "psh_other"})
        )


def test_list_accepted_stakeholders_excludes_pending_and_declined():
    repository = InMemoryProposalRepository()
    repository.create_stakeholder(_stakeholder("u1"))
    repository.create_stakeholder(_stakeholder("u2", status="PENDING"))
    repository.create_stakeholder(_stakeholder("u3", status="DECLINED"))

    accepted = repository.list_accepted_stakeholders(proposal_id="rp_1")

    assert [row.user_id for row in accepted] == ["u1"]
    assert len(repository.list_stakeholders(proposal_id="rp_1")) == 3


def test_update_and_delete_stakeholder():
    repository = InMemoryProposalRepository()
    repository.create_stakeholder(_stakeholder("u1", status="PENDING"))
    stakeholder = repository.get_stakeholder(proposal_id="rp_1", user_id="u1")
    stakeholder.status = "DECLINED"

    repository.update_stakeholder(stakeholder)

    assert repository.get_stakeholder_by_id(stakeholder_id="psh_rp_1_u1").status == "DECLINED"
    assert repository.delete_stakeholder(stakeholder_id="psh_rp_1_u1") is True
    assert repository.delete_stakeholder(stakeholder_id="psh_rp_1_u1") is False
    assert repository.get_stakeholder(proposal_id="rp_1", user_id="u1") is None


def test_approval_is_unique_per_proposal_and_user():
    repository = InMemoryProposalRepository()
    created = repository.create_approval(proposal_id="rp_1", user_id="u1")

    with pytest.raises(ValueError):
        repository.create_approval(proposal_id="rp_1", user_id="u1")

    assert repository.get_approval(proposal_id="rp_1", user_id="u1") == created


def test_update_approval_replaces_status_and_comments():
    repository = InMemoryProposalRepository()
    created = repository.create_approval(proposal_id="rp_1", user_id="u1")

    updated = repository.update_approval(
        approval_id=created.approval_id, status="CHANGES_REQUESTED", comments="More data."
    )

    assert updated.status == "CHANGES_REQUESTED"
    assert updated.comments == "More data."
    assert updated.created_at == created.created_at
    with pytest.raises(KeyError):
        repository.update_approval(approval_id="pap_missing", status="APPROVED", comments=None)
