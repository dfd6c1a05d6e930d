"""Fire-and-forget recording of portfolio analytics events.

:meth:`AnalyticsRecorder.record` schedules the write as a detached task and
returns immediately. The outcome is only logged: losing an event is
acceptable, delaying or failing the caller's request is not. There is no
retry and no ordering between events.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from spatial_showcase.data.db import Database
from spatial_showcase.data.models import AnalyticsEvent

logger = logging.getLogger(__name__)

EVENT_VIEW = "view"
EVENT_INTERACTION = "interaction"
EVENT_TIME_SPENT = "time_spent"


@dataclass(frozen=True)
class RequestMetadata:
    """Request details stored alongside an event."""

    user_agent: str | None = None
    ip_address: str | None = None
    device_type: str | None = None


class AnalyticsRecorder:
    """Dispatch analytics writes without blocking the caller."""

    def __init__(self, database: Database, timeout: float | None = None) -> None:
        self._database = database
        self._timeout = timeout
        # Strong references so pending tasks are not garbage collected.
        self._pending: set[asyncio.Task[None]] = set()

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def record(
        self,
        portfolio_id: str,
        event_type: str,
        payload: Mapping[str, Any] | None = None,
        metadata: RequestMetadata | None = None,
    ) -> asyncio.Task[None] | None:
        """Schedule an event write and return without waiting for it.

        Returns the scheduled task, or ``None`` when no event loop is running
        (the event is dropped and logged).
        """
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning(
                "No running event loop; dropping %s event for portfolio %s",
                event_type,
                portfolio_id,
            )
            return None

        task = loop.create_task(
            self._write(portfolio_id, event_type, dict(payload or {}), metadata),
            name=f"analytics:{event_type}:{portfolio_id}",
        )
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def _write(
        self,
        portfolio_id: str,
        event_type: str,
        payload: dict[str, Any],
        metadata: RequestMetadata | None,
    ) -> None:
        meta = metadata or RequestMetadata()
        try:
            async with self._database.session(self._timeout) as session:
                session.add(
                    AnalyticsEvent(
                        portfolio_id=portfolio_id,
                        event_type=event_type,
                        event_data=payload,
                        user_agent=meta.user_agent,
                        ip_address=meta.ip_address,
                        device_type=meta.device_type,
                    )
                )
        except Exception:
            logger.exception(
                "Error recording %s event for portfolio %s", event_type, portfolio_id
            )
            return
        logger.debug("Recorded %s event for portfolio %s", event_type, portfolio_id)

    async def drain(self, timeout: float | None = 5.0) -> None:
        """Wait (bounded) for in-flight writes, e.g. before disposing the pool."""
        if not self._pending:
            return
        done, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        if pending:
            logger.warning("Abandoning %d unfinished analytics writes", len(pending))
