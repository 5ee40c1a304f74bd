"""Apply audit log retention policies once.

Deletes audit records older than each active policy's retention window.
Meant to be run on a schedule (cron, Kubernetes CronJob, ...).

Usage:
    uv run python -m chronicle.cli.purge_audit_logs
"""

import asyncio

from dependency_injector import providers

from chronicle.database.database import sessionmanager
from chronicle.main.config import get_settings
from chronicle.main.container import Container
from chronicle.main.logging import get_logger

logger = get_logger(__name__)


async def purge_audit_logs() -> dict[str, int]:
    """Run every active retention policy and report deleted counts per table."""
    logger.info("Starting audit log retention purge...")

    settings = get_settings()
    sessionmanager.init(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )

    try:
        container = Container(
            settings=providers.Object(settings),
            session_factory=providers.Object(sessionmanager.session),
        )
        purge_stats = await container.retention_service().apply_policies()

        total = sum(purge_stats.values())
        logger.info(
            f"Purge complete: {total} audit logs deleted across {len(purge_stats)} tables",
            extra={"purge_stats": purge_stats},
        )
        return purge_stats
    finally:
        await sessionmanager.close()


def main():
    """Entry point for CLI script."""
    try:
        asyncio.run(purge_audit_logs())
    except KeyboardInterrupt:
        logger.info("Purge interrupted by user")
    except Exception as e:
        logger.error(f"Purge failed: {e}", exc_info=True)
        raise


if __name__ == "__main__":
    main()
