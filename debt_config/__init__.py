"""
Configuration layer (``debt_config``).

Responsibility
--------------
Process wiring: runtime settings from the environment, the YAML policy pack
describing the debt state graph and transition rules, and seeding of that
pack into the database.

Architecture position
---------------------
**Config layer** -- outermost.  May import from the kernel,
``debt_services`` and ``debt_batch``; nothing inside the kernel, engines
or services imports from here.

Usage
-----
.. code-block:: python

    from debt_kernel.db.engine import session_scope
    from debt_config import bootstrap, build_follow_up_service, build_scheduler

    settings = bootstrap()
    scheduler = build_scheduler(settings)
    scheduler.start()

    with session_scope() as session:
        service = build_follow_up_service(settings, session)
        service.create_follow_up(...)
"""

from __future__ import annotations

from pathlib import Path

from sqlalchemy.orm import Session

from debt_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from debt_kernel.domain.clock import Clock
from debt_kernel.logging_config import configure_logging, get_logger

from debt_services.follow_up_service import FollowUpService

from debt_batch.lease import RunLease
from debt_batch.scheduler import DailyUpdateScheduler
from debt_config.loader import PolicyPack, compute_checksum, load_policy_pack
from debt_config.seeding import SeedResult, seed_policy_pack
from debt_config.settings import KernelSettings

logger = get_logger("config")

DEFAULT_POLICY_PATH = Path(__file__).parent / "policy" / "default.yaml"


def bootstrap(
    settings: KernelSettings | None = None,
    *,
    create_schema: bool = False,
) -> KernelSettings:
    """Configure logging and the database engine from ``settings``.

    ``settings`` defaults to ``KernelSettings.from_env()``.
    """
    settings = settings or KernelSettings.from_env()
    configure_logging(level=settings.log_level)
    init_engine_from_url(settings.database_url)
    if create_schema:
        create_tables()
    logger.info(
        "kernel_bootstrapped",
        extra={
            "log_level": settings.log_level,
            "daily_run_hour": settings.daily_run_hour,
            "daily_run_minute": settings.daily_run_minute,
            "supervisor_strategy": settings.supervisor_strategy.value,
        },
    )
    return settings


def build_scheduler(
    settings: KernelSettings,
    clock: Clock | None = None,
    use_lease: bool = True,
) -> DailyUpdateScheduler:
    """Daily update scheduler over the engine initialized by ``bootstrap``."""
    session_factory = get_session_factory()
    return DailyUpdateScheduler(
        session_factory,
        clock=clock,
        hour=settings.daily_run_hour,
        minute=settings.daily_run_minute,
        lease=RunLease(session_factory, clock) if use_lease else None,
        authorization_timeout_hours=settings.authorization_timeout_hours,
    )


def build_follow_up_service(
    settings: KernelSettings,
    session: Session,
    clock: Clock | None = None,
) -> FollowUpService:
    """Follow-up use case on ``session`` with the configured assignment strategy
    and authorization priority thresholds."""
    return FollowUpService.from_session(
        session,
        clock,
        strategy=settings.supervisor_strategy,
        high_priority_threshold=settings.high_priority_threshold,
        low_priority_threshold=settings.low_priority_threshold,
    )


__all__ = [
    "DEFAULT_POLICY_PATH",
    "KernelSettings",
    "PolicyPack",
    "SeedResult",
    "bootstrap",
    "build_follow_up_service",
    "build_scheduler",
    "compute_checksum",
    "load_policy_pack",
    "seed_policy_pack",
]
