# ============================================================================
# DATABASE HEALTH CHECKS
# ============================================================================
# EPOCH: 1 - VIDEO DESCRIPTION SERVICE
# STATUS: Infrastructure - PostgreSQL record store checks
# PURPOSE: Database connectivity, records table and pool saturation
# CREATED: 19 OCT 2026
# ============================================================================
"""
Database Health Checks

Record store checks (priority 30):
- PostgresCheck: SELECT 1 through the pool, records table present
- ConnectionPoolCheck: psycopg_pool statistics
"""

import logging

from psycopg.rows import dict_row

from health.core import HealthCheckPlugin, HealthCheckResult
from health.registry import register_check
from repositories.database import SCHEMA, get_pool, is_database_configured

logger = logging.getLogger(__name__)

RECORDS_TABLE = "video_records"


@register_check(category="database")
class PostgresCheck(HealthCheckPlugin):
    """
    PostgreSQL connectivity check.

    Unhealthy when the database is unreachable: without the record store
    no job can complete.
    """

    name = "postgres"
    timeout_seconds = 5.0

    async def check(self) -> HealthCheckResult:
        if not is_database_configured():
            return HealthCheckResult.unhealthy(
                message="PostgreSQL not configured",
                hint="Set DATABASE_URL or POSTGRES_HOST/POSTGRES_DB",
            )

        pool = get_pool()
        if pool is None:
            return HealthCheckResult.unhealthy(message="Connection pool not initialized")

        try:
            async with pool.connection() as conn:
                async with conn.cursor(row_factory=dict_row) as cur:
                    await cur.execute(
                        """
                        SELECT EXISTS (
                            SELECT FROM information_schema.tables
                            WHERE table_schema = %s AND table_name = %s
                        ) AS table_exists
                        """,
                        (SCHEMA, RECORDS_TABLE),
                    )
                    row = await cur.fetchone()
        except Exception as e:
            return HealthCheckResult.unhealthy(
                message=f"PostgreSQL connection failed: {e}",
                schema=SCHEMA,
            )

        if not row or not row["table_exists"]:
            return HealthCheckResult.unhealthy(
                message=f"Table {SCHEMA}.{RECORDS_TABLE} missing",
                hint="Restart the service to run schema creation",
            )

        return HealthCheckResult.healthy(
            message="PostgreSQL connected",
            schema=SCHEMA,
            table=RECORDS_TABLE,
        )


@register_check(category="database", required_for_ready=False)
class ConnectionPoolCheck(HealthCheckPlugin):
    """
    Connection pool check.

    Degraded when requests are waiting for a connection or the pool is
    at max size with nothing idle.
    """

    name = "connection_pool"
    timeout_seconds = 2.0

    STAT_KEYS = (
        "pool_size",
        "pool_available",
        "pool_min",
        "pool_max",
        "requests_waiting",
        "requests_num",
        "requests_errors",
        "connections_lost",
    )

    async def check(self) -> HealthCheckResult:
        pool = get_pool()
        if pool is None:
            return HealthCheckResult.unhealthy(message="Connection pool not initialized")

        stats = pool.get_stats()
        details = {key: stats.get(key, 0) for key in self.STAT_KEYS}
        size = details["pool_size"]
        available = details["pool_available"]
        waiting = details["requests_waiting"]

        if waiting > 0:
            return HealthCheckResult.degraded(
                message=f"Pool saturated: {waiting} requests waiting ({available}/{size} available)",
                **details,
            )

        if available == 0 and size >= details["pool_max"]:
            return HealthCheckResult.degraded(
                message=f"Pool fully utilized: 0/{size} available",
                **details,
            )

        return HealthCheckResult.healthy(
            message=f"Pool OK: {available}/{size} available",
            **details,
        )


# ============================================================================
# EXPORTS
# ============================================================================

__all__ = [
    "PostgresCheck",
    "ConnectionPoolCheck",
]
