import os
import warnings
from typing import cast

from src.core.proposals.repository import ProposalRepository
from src.infrastructure.proposals import InMemoryProposalRepository, PostgresProposalRepository


def proposal_store_backend_name() -> str:
    backend = os.getenv("PROPOSAL_STORE_BACKEND", "IN_MEMORY").strip().upper()
    if backend == "POSTGRES":
        return "POSTGRES"
    warnings.warn(
        "PROPOSAL_STORE_BACKEND=IN_MEMORY keeps proposals in process memory only; use POSTGRES.",
        DeprecationWarning,
        stacklevel=2,
    )
    return "IN_MEMORY"


def proposal_postgres_dsn() -> str:
    return os.getenv("PROPOSAL_POSTGRES_DSN", "").strip()


def approvals_api_enabled() -> bool:
    value = os.getenv("PROPOSAL_APPROVALS_API_ENABLED")
    if value is None:
        return True
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _postgres_connection_exception_types() -> tuple[type[BaseException], ...]:
    types: list[type[BaseException]] = [
        ConnectionError,
        OSError,
        TimeoutError,
        TypeError,
        ValueError,
    ]
    try:
        import psycopg
    except ImportError:
        pass
    else:
        types.append(psycopg.Error)
    return tuple(types)


def build_repository() -> ProposalRepository:
    if proposal_store_backend_name() != "POSTGRES":
        return cast(ProposalRepository, InMemoryProposalRepository())
    dsn = proposal_postgres_dsn()
    if not dsn:
        raise RuntimeError("PROPOSAL_POSTGRES_DSN_REQUIRED")
    try:
        return cast(ProposalRepository, PostgresProposalRepository(dsn=dsn))
    except RuntimeError:
        raise
    except _postgres_connection_exception_types() as exc:
        raise RuntimeError("PROPOSAL_POSTGRES_CONNECTION_FAILED") from exc
