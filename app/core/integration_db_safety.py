"""Guards destructive test setup against pointing at a real campaign database.

Integration tests TRUNCATE the score ledger and referral tables, so the target
must be a local PostgreSQL database whose name carries a ``test`` token.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.engine import make_url

# "test" as its own token: campaign_rewards_test, test_rewards, rewards-test2.
TEST_DB_NAME_RE = re.compile(r"(?:^|[_-])test(?:[_-]|\d*$)", re.IGNORECASE)
LOCAL_DB_HOSTS = frozenset({"localhost", "127.0.0.1", "::1", "postgres", "rewards_postgres"})

UNSAFE_REASONS: dict[str, str] = {
    "not_postgresql": "ledger upserts and row locks need PostgreSQL",
    "missing_database": "the URL names no database",
    "not_a_test_database": "the database name has no 'test' token",
    "remote_host": "the host is not a local or compose PostgreSQL",
}


class UnsafeIntegrationDatabaseError(RuntimeError):
    def __init__(self, target: IntegrationDbTarget, *, wiped_tables: tuple[str, ...]) -> None:
        tables = ", ".join(wiped_tables) or "campaign tables"
        super().__init__(
            f"Refusing to TRUNCATE {tables} on database {target.database_name!r} "
            f"at host {target.host!r}: {UNSAFE_REASONS[target.reason or '']}. "
            "Point DATABASE_URL at a local test database such as 'campaign_rewards_test'."
        )
        self.target = target


@dataclass(frozen=True, slots=True)
class IntegrationDbTarget:
    database_name: str
    host: str
    reason: str | None = None

    @property
    def is_safe(self) -> bool:
        return self.reason is None


def inspect_integration_db(database_url: str) -> IntegrationDbTarget:
    parsed = make_url(database_url)
    database_name = (parsed.database or "").strip()
    host = (parsed.host or "").strip().lower()

    if parsed.get_backend_name() != "postgresql":
        reason = "not_postgresql"
    elif not database_name:
        reason = "missing_database"
    elif TEST_DB_NAME_RE.search(database_name) is None:
        reason = "not_a_test_database"
    elif host not in LOCAL_DB_HOSTS:
        reason = "remote_host"
    else:
        reason = None
    return IntegrationDbTarget(database_name=database_name, host=host, reason=reason)


def assert_safe_integration_db(
    database_url: str,
    *,
    wiped_tables: Iterable[str] = (),
) -> IntegrationDbTarget:
    target = inspect_integration_db(database_url)
    if not target.is_safe:
        raise UnsafeIntegrationDatabaseError(target, wiped_tables=tuple(wiped_tables))
    return target
