"""Base class for background polling workers."""

import asyncio
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import AbstractAsyncContextManager
from typing import Callable, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import Clock, system_clock
from app.core.config import Settings, get_global_settings
from app.core.database import db_manager
from app.core.logging import bound_log_context

logger = structlog.get_logger(__name__)

SessionFactory = Callable[[], AbstractAsyncContextManager[AsyncSession]]


class BaseWorker(ABC):
    """Abstract base class for all background workers.

    Provides common functionality for one worker iteration ("tick"):
    - A fresh database session per tick
    - Error isolation: a failing tick is logged and the next one still runs
    - Cooperative shutdown through a shared ``asyncio.Event``
    - Metrics collection and structured log context

    Subclasses must implement:
    - execute(): The iteration body
    """

    name: str = "worker"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        clock: Optional[Clock] = None,
        shutdown_event: Optional[asyncio.Event] = None,
        session_factory: Optional[SessionFactory] = None,
    ):
        """Initialize the worker.

        Args:
            settings: Application settings (global settings if None).
            clock: Time source (system clock if None).
            shutdown_event: Event that stops the worker once set.
            session_factory: Opens one database session per tick.
        """
        self.settings = settings or get_global_settings()
        self.clock = clock or system_clock
        self.shutdown_event = shutdown_event or asyncio.Event()
        self.session_factory = session_factory or db_manager.get_session
        self.metrics = defaultdict(int)
        self.metrics.update({"api_requests_made": 0, "records_updated": 0})

    @property
    def stopping(self) -> bool:
        """Whether shutdown has been requested."""
        return self.shutdown_event.is_set()

    @abstractmethod
    async def execute(self, db: AsyncSession) -> None:
        """Run one iteration.

        Implementations check ``self.stopping`` between units of work and
        return early once it is set.

        Args:
            db: Database session scoped to this iteration.
        """
        pass

    async def run(self) -> None:
        """Run one iteration with session handling and error isolation."""
        if self.stopping:
            return

        with bound_log_context(worker=self.name):
            try:
                async with self.session_factory() as db:
                    await self.execute(db)
            except asyncio.CancelledError:
                logger.info("Worker iteration cancelled")
            except Exception as error:
                logger.error(
                    "Worker iteration failed",
                    error=str(error),
                    error_type=type(error).__name__,
                    exc_info=True,
                )
            else:
                logger.debug(
                    "Worker iteration completed",
                    api_requests=self.metrics["api_requests_made"],
                    records_updated=self.metrics["records_updated"],
                )

    async def close(self) -> None:
        """Release resources held across iterations."""
        return None

    def increment_metric(self, metric_name: str, count: int = 1) -> None:
        """Increment a metric counter."""
        self.metrics[metric_name] += count

    def _record_api_request(self, metric: str, count: int) -> None:
        """Track API request counts reported by an API client callback."""
        self.increment_metric(metric, count)
