"""
ARQ Background Worker for MemberHub.

Runs the reconciliation sweep for webhook deliveries stuck in processing.
"""
import asyncio
from datetime import timedelta

from arq import cron
from arq.connections import RedisSettings

from memberhub.config import settings
from memberhub.database import AsyncSessionLocal
from memberhub.logging_config import get_logger
from memberhub.routes.metrics import track_stale_reconciled
from memberhub.services.audit_log import AuditLogService


log = get_logger(component="worker")


async def reconcile_stale_deliveries(ctx: dict) -> dict:
    """
    Mark deliveries left in processing past the threshold as failed.

    A delivery stays in processing only if the process died mid-handler.
    """
    older_than = timedelta(minutes=settings.STALE_DELIVERY_MINUTES)
    count = await AuditLogService(AsyncSessionLocal).reconcile_stale(older_than)

    if count:
        track_stale_reconciled(count)
        log.warning("stale_deliveries_reconciled", count=count)

    return {"reconciled": count}


async def main():
    """Run the worker using arq cli."""
    print("Use: arq memberhub.worker.WorkerSettings")
    print(f"Redis: {settings.REDIS_URL}")


class WorkerSettings:
    """Settings for ARQ worker - use with 'arq memberhub.worker.WorkerSettings'"""
    redis_settings = RedisSettings.from_dsn(settings.REDIS_URL)
    job_timeout = 300
    max_tries = 3
    functions = [reconcile_stale_deliveries]
    cron_jobs = [
        cron(reconcile_stale_deliveries, minute={0, 15, 30, 45}, run_at_startup=True),
    ]


if __name__ == "__main__":
    asyncio.run(main())
