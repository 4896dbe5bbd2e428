"""Application context for dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sqlalchemy.engine import Engine

from .config import BaseConfig
from .infra.database import SessionFactory, create_db_engine, create_session_factory, init_database
from .infra.repositories import Repositories
from .logging_config import get_logger
from .services.engine import PaymentScheduleEngine

logger = get_logger(__name__)


@dataclass
class AppContext:
    """Centralized application context with services and state."""

    config: BaseConfig
    engine: Engine
    session_factory: SessionFactory
    repos: Repositories
    schedule: PaymentScheduleEngine


def create_app_context(config: Optional[BaseConfig] = None) -> AppContext:
    """Create and initialize the application context."""

    if config is None:
        config = BaseConfig()

    engine = create_db_engine(config)
    init_database(engine)
    session_factory = create_session_factory(engine)

    logger.info(
        "Application context ready",
        extra={
            "database": engine.url.render_as_string(hide_password=True),
            "atomic_payments": config.ATOMIC_PAYMENTS,
        },
    )
    return AppContext(
        config=config,
        engine=engine,
        session_factory=session_factory,
        repos=Repositories.from_session_factory(session_factory),
        schedule=PaymentScheduleEngine(session_factory, config),
    )
