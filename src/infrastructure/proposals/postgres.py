import uuid
from contextlib import closing
from datetime import datetime, timezone
from decimal import Decimal
from importlib.util import find_spec
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
from src.infrastructure.postgres_migrations import apply_postgres_migrations

_PROPOSAL_COLUMNS = """
    proposal_id,
    product_name,
    current_cost,
    category,
    formulation,
    status,
    created_by,
    created_at,
    updated_at
"""

_PROPOSAL_SORT_EXPRESSIONS = {
    "created_at": "created_at",
    "updated_at": "updated_at",
    "product_name": "product_name",
    "current_cost": "CAST(current_cost AS NUMERIC)",
    "status": "status",
}

_STAKEHOLDER_COLUMNS = """
    stakeholder_id,
    proposal_id,
    user_id,
    status,
    invited_at,
    responded_at,
    comments
"""

_APPROVAL_COLUMNS = """
    approval_id,
    proposal_id,
    user_id,
    status,
    comments,
    created_at,
    updated_at
"""


class PostgresProposalRepository:
    def __init__(self, *, dsn: str) -> None:
        if not dsn:
            raise RuntimeError("PROPOSAL_POSTGRES_DSN_REQUIRED")
        if find_spec("psycopg") is None:
            raise RuntimeError("PROPOSAL_POSTGRES_DRIVER_MISSING")
        self._dsn = dsn
        self._init_db()

    def create_proposal(self, proposal: ProposalRecord) -> None:
        query = f"""
            INSERT INTO reformulation_proposals ({_PROPOSAL_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
        """
        with closing(self._connect()) as connection:
            connection.execute(
                query,
                (
                    proposal.proposal_id,
                    proposal.product_name,
                    str(proposal.current_cost),
                    proposal.category,
                    proposal.formulation,
                    proposal.status,
                    proposal.created_by,
                    proposal.created_at.isoformat(),
                    proposal.updated_at.isoformat(),
                ),
            )
            connection.commit()

    def get_proposal(self, *, proposal_id: str) -> Optional[ProposalRecord]:
        query = f"""
            SELECT {_PROPOSAL_COLUMNS}
            FROM reformulation_proposals
            WHERE proposal_id = %s
        """
        with closing(self._connect()) as connection:
            row = connection.execute(query, (proposal_id,)).fetchone()
        return _to_proposal(row)

    def update_proposal(self, proposal: ProposalRecord) -> None:
        query = """
            UPDATE reformulation_proposals
            SET product_name = %s, current_cost = %s, category = %s, formulation = %s,
                updated_at = %s
            WHERE proposal_id = %s
        """
        with closing(self._connect()) as connection:
            cursor = connection.execute(
                query,
                (
                    proposal.product_name,
                    str(proposal.current_cost),
                    proposal.category,
                    proposal.formulation,
                    proposal.updated_at.isoformat(),
                    proposal.proposal_id,
                ),
            )
            connection.commit()
        if cursor.rowcount == 0:
            raise KeyError(proposal.proposal_id)

    def update_proposal_status(
        self, *, proposal_id: str, status: ProposalStatus
    ) -> ProposalRecord:
        query = f"""
            UPDATE reformulation_proposals
            SET status = %s, updated_at = %s
            WHERE proposal_id = %s
            RETURNING {_PROPOSAL_COLUMNS}
        """
        with closing(self._connect()) as connection:
            row = connection.execute(
                query,
                (status, datetime.now(timezone.utc).isoformat(), proposal_id),
            ).fetchone()
            connection.commit()
        proposal = _to_proposal(row)
        if proposal is None:
            raise KeyError(proposal_id)
        return proposal

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
        where_clauses = []
        args: list[str] = []
        if status is not None:
            where_clauses.append("status = %s")
            args.append(status)
        if created_by is not None:
            where_clauses.append("created_by = %s")
            args.append(created_by)
        if category:
            where_clauses.append("category ILIKE %s")
            args.append(_contains_pattern(category))
        if search:
            where_clauses.append("(product_name ILIKE %s OR formulation ILIKE %s)")
            args.extend([_contains_pattern(search)] * 2)
        where_sql = f"WHERE {' AND '.join(where_clauses)}" if where_clauses else ""
        order_by = _PROPOSAL_SORT_EXPRESSIONS[sort_by]
        direction = "ASC" if sort_order == "asc" else "DESC"
        query = f"""
            SELECT {_PROPOSAL_COLUMNS}
            FROM reformulation_proposals
            {where_sql}
            ORDER BY {order_by} {direction}, proposal_id {direction}
        """
        with closing(self._connect()) as connection:
            rows = [_to_proposal(row) for row in connection.execute(query, tuple(args)).fetchall()]

        if cursor:
            row_ids = [row.proposal_id for row in rows]
            rows = rows[row_ids.index(cursor) + 1 :] if cursor in row_ids else []

        page = rows[:limit]
        next_cursor = page[-1].proposal_id if len(rows) > limit else None
        return page, next_cursor

    def delete_proposal(self, *, proposal_id: str) -> bool:
        query = "DELETE FROM reformulation_proposals WHERE proposal_id = %s"
        with closing(self._connect()) as connection:
            cursor = connection.execute(query, (proposal_id,))
            connection.commit()
        return cursor.rowcount > 0

    def create_stakeholder(self, stakeholder: StakeholderRecord) -> None:
        query = f"""
            INSERT INTO proposal_stakeholders ({_STAKEHOLDER_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """
        with closing(self._connect()) as connection:
            connection.execute(query, _stakeholder_args(stakeholder))
            connection.commit()

    def get_stakeholder(self, *, proposal_id: str, user_id: str) -> Optional[StakeholderRecord]:
        query = f"""
            SELECT {_STAKEHOLDER_COLUMNS}
            FROM proposal_stakeholders
            WHERE proposal_id = %s AND user_id = %s
        """
        with closing(self._connect()) as connection:
            row = connection.execute(query, (proposal_id, user_id)).fetchone()
        return _to_stakeholder(row)

    def get_stakeholder_by_id(self, *, stakeholder_id: str) -> Optional[StakeholderRecord]:
        query = f"""
            SELECT {_STAKEHOLDER_COLUMNS}
            FROM proposal_stakeholders
            WHERE stakeholder_id = %s
        """
        with closing(self._connect()) as connection:
            row = connection.execute(query, (stakeholder_id,)).fetchone()
        return _to_stakeholder(row)

    def list_stakeholders(self, *, proposal_id: str) -> list[StakeholderRecord]:
        query = f"""
            SELECT {_STAKEHOLDER_COLUMNS}
            FROM proposal_stakeholders
            WHERE proposal_id = %s
            ORDER BY invited_at ASC, stakeholder_id ASC
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (proposal_id,)).fetchall()
        return [_to_stakeholder(row) for row in rows]

    def list_accepted_stakeholders(self, *, proposal_id: str) -> list[StakeholderRecord]:
        query = f"""
            SELECT {_STAKEHOLDER_COLUMNS}
            FROM proposal_stakeholders
            WHERE proposal_id = %s AND status = 'ACCEPTED'
            ORDER BY invited_at ASC, stakeholder_id ASC
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (proposal_id,)).fetchall()
        return [_to_stakeholder(row) for row in rows]

    def update_stakeholder(self, stakeholder: StakeholderRecord) -> None:
        query = """
            UPDATE proposal_stakeholders
            SET status = %s, responded_at = %s, comments = %s
            WHERE stakeholder_id = %s
        """
        with closing(self._connect()) as connection:
            connection.execute(
                query,
                (
                    stakeholder.status,
                    _optional_iso(stakeholder.responded_at),
                    stakeholder.comments,
                    stakeholder.stakeholder_id,
                ),
            )
            connection.commit()

    def delete_stakeholder(self, *, stakeholder_id: str) -> bool:
        query = "DELETE FROM proposal_stakeholders WHERE stakeholder_id = %s"
        with closing(self._connect()) as connection:
            cursor = connection.execute(query, (stakeholder_id,))
            connection.commit()
        return cursor.rowcount > 0

    def get_approval(self, *, proposal_id: str, user_id: str) -> Optional[ApprovalRecord]:
        query = f"""
            SELECT {_APPROVAL_COLUMNS}
            FROM proposal_approvals
            WHERE proposal_id = %s AND user_id = %s
        """
        with closing(self._connect()) as connection:
            row = connection.execute(query, (proposal_id, user_id)).fetchone()
        return _to_approval(row)

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
        query = f"""
            INSERT INTO proposal_approvals ({_APPROVAL_COLUMNS})
            VALUES (%s, %s, %s, %s, %s, %s, %s)
        """
        with closing(self._connect()) as connection:
            connection.execute(
                query,
                (
                    approval.approval_id,
                    approval.proposal_id,
                    approval.user_id,
                    approval.status,
                    approval.comments,
                    approval.created_at.isoformat(),
                    approval.updated_at.isoformat(),
                ),
            )
            connection.commit()
        return approval

    def update_approval(
        self, *, approval_id: str, status: ApprovalStatus, comments: Optional[str]
    ) -> ApprovalRecord:
        query = f"""
            UPDATE proposal_approvals
            SET status = %s, comments = %s, updated_at = %s
            WHERE approval_id = %s
            RETURNING {_APPROVAL_COLUMNS}
        """
        with closing(self._connect()) as connection:
            row = connection.execute(
                query,
                (status, comments, datetime.now(timezone.utc).isoformat(), approval_id),
            ).fetchone()
            connection.commit()
        approval = _to_approval(row)
        if approval is None:
            raise KeyError(approval_id)
        return approval

    def list_approvals(self, *, proposal_id: str) -> list[ApprovalRecord]:
        query = f"""
            SELECT {_APPROVAL_COLUMNS}
            FROM proposal_approvals
            WHERE proposal_id = %s
            ORDER BY created_at ASC, approval_id ASC
        """
        with closing(self._connect()) as connection:
            rows = connection.execute(query, (proposal_id,)).fetchall()
        return [_to_approval(row) for row in rows]

    def _connect(self):
        psycopg, dict_row = _import_psycopg()
        return psycopg.connect(self._dsn, row_factory=dict_row)

    def _init_db(self) -> None:
        with closing(self._connect()) as connection:
            apply_postgres_migrations(connection=connection, namespace="proposals")


def _import_psycopg():
    import psycopg
    from psycopg.rows import dict_row

    return psycopg, dict_row


def _contains_pattern(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _optional_iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def _optional_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def _stakeholder_args(stakeholder: StakeholderRecord) -> tuple:
    return (
        stakeholder.stakeholder_id,
        stakeholder.proposal_id,
        stakeholder.user_id,
        stakeholder.status,
        stakeholder.invited_at.isoformat(),
        _optional_iso(stakeholder.responded_at),
        stakeholder.comments,
    )


def _to_proposal(row) -> Optional[ProposalRecord]:
    if row is None:
        return None
    return ProposalRecord(
        proposal_id=row["proposal_id"],
        product_name=row["product_name"],
        current_cost=Decimal(row["current_cost"]),
        category=row["category"],
        formulation=row["formulation"],
        status=row["status"],
        created_by=row["created_by"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _to_stakeholder(row) -> Optional[StakeholderRecord]:
    if row is None:
        return None
    return StakeholderRecord(
        stakeholder_id=row["stakeholder_id"],
        proposal_id=row["proposal_id"],
        user_id=row["user_id"],
        status=row["status"],
        invited_at=datetime.fromisoformat(row["invited_at"]),
        responded_at=_optional_datetime(row["responded_at"]),
        comments=row["comments"],
    )


def _to_approval(row) -> Optional[ApprovalRecord]:
    if row is None:
        return None
    return ApprovalRecord(
        approval_id=row["approval_id"],
        proposal_id=row["proposal_id"],
        user_id=row["user_id"],
        status=row["status"],
        comments=row["comments"],
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )
