"""Single-flight lease guarding batch invocations."""

from __future__ import annotations

import logging
import os
import socket
import uuid
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..db.models import SchedulerLease, utcnow
from ..db.session import session_scope

logger = logging.getLogger(__name__)

BATCH_LEASE_NAME = "batch-runner"


def _default_holder() -> str:
    return f"{socket.gethostname()}:{os.getpid()}:{uuid.uuid4().hex[:8]}"[:64]


class InvocationLease:
    """A lock row with an expiry; an expired lease may be taken over."""

    def __init__(
        self,
        name: str = BATCH_LEASE_NAME,
        *,
        ttl_seconds: int = 900,
        holder: Optional[str] = None,
        sessionmaker: Optional[async_sessionmaker[AsyncSession]] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.name = name
        self.ttl = timedelta(seconds=ttl_seconds)
        self.holder = holder or _default_holder()
        self._sessionmaker = sessionmaker
        self._clock = clock
        self.held = False

    async def acquire(self) -> bool:
        now = self._clock()
        try:
            async with session_scope(self._sessionmaker) as session:
                row = await session.scalar(
                    select(SchedulerLease).where(SchedulerLease.name == self.name).with_for_update()
                )
                if row is None:
                    session.add(
                        SchedulerLease(
                            name=self.name, holder=self.holder, acquired_at=now, expires_at=now + self.ttl
                        )
                    )
                elif row.holder == self.holder or row.expires_at <= now:
                    if row.holder != self.holder:
                        logger.warning(
                            "Taking over expired lease",
                            extra={"lease": self.name, "previous_holder": row.holder},
                        )
                    row.holder = self.holder
                    row.acquired_at = now
                    row.expires_at = now + self.ttl
                else:
                    logger.info(
                        "Lease held by another invocation",
                        extra={"lease": self.name, "holder": row.holder, "expires_at": row.expires_at},
                    )
                    return False
        except IntegrityError:
            # another invocation inserted the row first
            return False
        self.held = True
        return True

    async def renew(self) -> bool:
        """Push the expiry forward; ``False`` once another holder has taken over."""

        if not self.held:
            return False
        if await self.acquire():
            return True
        self.held = False
        logger.warning("Lease lost to another invocation", extra={"lease": self.name, "holder_id": self.holder})
        return False

    async def release(self) -> None:
        if not self.held:
            return
        async with session_scope(self._sessionmaker) as session:
            await session.execute(
                delete(SchedulerLease).where(
                    SchedulerLease.name == self.name, SchedulerLease.holder == self.holder
                )
            )
        self.held = False


__all__ = ["BATCH_LEASE_NAME", "InvocationLease"]
