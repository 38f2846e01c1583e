"""Evolution history and the single-request state machine."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Protocol, Tuple

from modules.pipelines.errors import EvolutionError
from modules.pipelines.evolution import EvolutionRequest, EvolutionResult

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_REASON = "Evolution failed."
CANCELLED_REASON = "Evolution cancelled."
TIMESTAMP_STEP = 1e-6


class PipelineStatus(str, Enum):
    """Lifecycle of the current evolution request."""

    IDLE = "idle"
    IN_FLIGHT = "in_flight"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PipelineState:
    status: PipelineStatus
    reason: Optional[str] = None  # FAILED only


@dataclass(frozen=True, slots=True)
class HistoryEntry:
    """A completed evolution and its revision number."""

    result: EvolutionResult
    revision: int


class Evolver(Protocol):
    async def evolve(self, request: EvolutionRequest) -> EvolutionResult: ...


class EvolutionHistoryService:
    """Drive one evolution at a time and keep results newest first.

    ``submit`` is ignored while a request is in flight; retries are simply new
    submissions once the previous one has settled.
    """

    def __init__(self, client: Evolver) -> None:
        self.client = client
        self._state = PipelineState(PipelineStatus.IDLE)
        self._entries: List[HistoryEntry] = []
        self._task: Optional[asyncio.Task] = None

    def submit(self, request: EvolutionRequest) -> Optional[asyncio.Task]:
        """Start an evolution and return its task, or None when one is running.

        Must be called from within a running event loop.
        """
        if self._state.status is PipelineStatus.IN_FLIGHT:
            logger.info("Ignoring submit while an evolution is in flight")
            return None

        loop = asyncio.get_running_loop()
        self._state = PipelineState(PipelineStatus.IN_FLIGHT)
        self._task = loop.create_task(self._run(request))
        self._task.add_done_callback(self._settle_leftover)
        return self._task

    def _settle_leftover(self, task: asyncio.Task) -> None:
        # a task cancelled before its first step never reaches _run
        if task is self._task and self._state.status is PipelineStatus.IN_FLIGHT:
            self._fail(CANCELLED_REASON)

    async def _run(self, request: EvolutionRequest) -> None:
        try:
            result = await self.client.evolve(request)
        except EvolutionError as exc:
            logger.warning("Evolution failed (%s): %s", type(exc).__name__, exc)
            self._fail(str(exc))
            return
        except asyncio.CancelledError:
            logger.warning("Evolution task cancelled before settling")
            self._fail(CANCELLED_REASON)
            raise
        except Exception as exc:  # noqa: BLE001
            logger.exception("Unexpected error during evolution")
            self._fail(str(exc))
            return

        newest = self.latest()
        if newest is not None and result.created_at <= newest.result.created_at:
            # wall clock stepped back or repeated; history timestamps stay strictly increasing
            result = replace(result, created_at=newest.result.created_at + TIMESTAMP_STEP)
        entry = HistoryEntry(result=result, revision=len(self._entries) + 1)
        self._entries.insert(0, entry)
        self._state = PipelineState(PipelineStatus.SUCCEEDED)
        logger.info("Evolution succeeded: revision=%d", entry.revision)

    def _fail(self, reason: str) -> None:
        self._state = PipelineState(PipelineStatus.FAILED, reason=reason or DEFAULT_FAILURE_REASON)

    def current_state(self) -> PipelineState:
        return self._state

    def history(self) -> Tuple[HistoryEntry, ...]:
        """Return completed entries, newest first."""
        return tuple(self._entries)

    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[0] if self._entries else None
