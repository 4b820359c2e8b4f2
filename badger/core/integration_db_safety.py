"""Guards that keep destructive test tooling away from real databases.

Integration tests truncate every badger table and ``scripts/ensure_test_db.py``
creates databases, so both refuse to touch anything that is not a local
PostgreSQL database whose name says it is for tests.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass

from sqlalchemy.engine import make_url

DATABASE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
DEFAULT_LOCAL_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "badger_postgres"})
EXTRA_HOSTS_ENV = "INTEGRATION_DB_EXTRA_HOSTS"


@dataclass(frozen=True, slots=True)
class IntegrationDbTarget:
    database_name: str
    host: str
    port: int
    username: str | None
    password: str | None
    problem: str | None = None

    @property
    def is_safe(self) -> bool:
        return self.problem is None


def allowed_hosts() -> frozenset[str]:
    extra = os.environ.get(EXTRA_HOSTS_ENV, "")
    return DEFAULT_LOCAL_HOSTS | {host.strip().lower() for host in extra.split(",") if host.strip()}


def _find_problem(*, backend: str, database_name: str, host: str) -> str | None:
    if backend != "postgresql":
        return "only PostgreSQL databases are supported"
    if not database_name:
        return "database name is empty"
    if "test" not in database_name.lower():
        return "database name must contain 'test'"
    if DATABASE_NAME_RE.fullmatch(database_name) is None:
        return "database name must be a plain [A-Za-z0-9_] identifier"
    if host not in allowed_hosts():
        return f"host {host!r} is not a local test host"
    return None


def inspect_test_database(database_url: str) -> IntegrationDbTarget:
    parsed = make_url(database_url)
    database_name = (parsed.database or "").strip()
    host = (parsed.host or "localhost").strip().lower()
    return IntegrationDbTarget(
        database_name=database_name,
        host=host,
        port=int(parsed.port or 5432),
        username=parsed.username,
        password=parsed.password,
        problem=_find_problem(
            backend=parsed.get_backend_name(),
            database_name=database_name,
            host=host,
        ),
    )


def assert_safe_integration_db(database_url: str) -> IntegrationDbTarget:
    target = inspect_test_database(database_url)
    if not target.is_safe:
        raise RuntimeError(
            f"Refusing to use database {target.database_name!r} on {target.host!r} "
            f"for integration tests: {target.problem}. "
            "Point DATABASE_URL at a local test database such as 'badger_test'."
        )
    return target
