import argparse
import os
import sys
from importlib.util import find_spec
from pathlib import Path
from typing import Optional, Sequence

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Apply forward-only PostgreSQL migrations for the proposal store."
    )
    parser.add_argument(
        "--dsn",
        default=os.getenv("PROPOSAL_POSTGRES_DSN", "").strip(),
        help="PostgreSQL DSN for the reformulation proposal store.",
    )
    args = parser.parse_args(argv)

    if not args.dsn:
        raise RuntimeError("POSTGRES_MIGRATION_DSN_REQUIRED:proposals")
    if find_spec("psycopg") is None:
        raise RuntimeError("POSTGRES_MIGRATION_DRIVER_MISSING")
    import psycopg
    from psycopg.rows import dict_row

    from src.infrastructure.postgres_migrations import apply_postgres_migrations

    with psycopg.connect(args.dsn, row_factory=dict_row) as connection:
        applied = apply_postgres_migrations(connection=connection, namespace="proposals")
    print(f"Applied {len(applied)} migration(s) for namespace=proposals")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
