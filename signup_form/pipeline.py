"""
Username availability pipeline.

Turns the stream of username edits into a stream of availability outcomes:

    Idle -> Debouncing(v) -> InFlight(v) -> Settled(v, outcome)

Every accepted edit restarts the debounce timer. An edit equal to the last
accepted one is ignored, and a debounced value equal to the one already
settled is not re-fetched. A newer edit cancels the running cycle and bumps the
generation counter; an outcome whose generation is no longer current is
dropped, so a superseded username can never overwrite a fresher one.

One pipeline feeds any number of listeners; there is exactly one remote call
per accepted value no matter how many listeners are attached. All methods must
be called from the event loop that runs the pipeline.
"""

import asyncio
import contextlib
import logging
from enum import Enum
from typing import Awaitable, Callable, List, Optional

from signup_form.config import USERNAME_DEBOUNCE_SECONDS
from signup_form.exceptions import APIError, FormClosedError, InvalidResponseError
from signup_form.models import AvailabilityOutcome, Failed

logger = logging.getLogger(__name__)

CheckFunction = Callable[[str], Awaitable[AvailabilityOutcome]]
OutcomeListener = Callable[[AvailabilityOutcome], None]


class PipelineState(str, Enum):
    IDLE = "idle"
    DEBOUNCING = "debouncing"
    IN_FLIGHT = "in_flight"
    SETTLED = "settled"


class AvailabilityPipeline:
    def __init__(self, check: CheckFunction, debounce: float = USERNAME_DEBOUNCE_SECONDS):
        self._check = check
        self.debounce = debounce

        self.state = PipelineState.IDLE
        self.value: Optional[str] = None
        self.outcome: Optional[AvailabilityOutcome] = None

        self._seen_first = False
        self._last_accepted: Optional[str] = None
        self._settled_value: Optional[str] = None
        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._listeners: List[OutcomeListener] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: OutcomeListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def submit(self, value: str) -> None:
        """Feed one username edit into the pipeline."""
        if self._closed:
            raise FormClosedError()

        if not self._seen_first:
            # The field's initial value is not something the user typed
            self._seen_first = True
            logger.debug("Skipping initial username value %r", value)
            return

        if value == self._last_accepted:
            logger.debug("Ignoring duplicate username edit %r", value)
            return

        self._last_accepted = value
        self._generation += 1
        self._cancel_task()
        self._transition(PipelineState.DEBOUNCING, value)
        self._task = asyncio.get_running_loop().create_task(self._run_cycle(value, self._generation))

    async def join(self) -> None:
        """Wait until the current cycle (if any) has finished."""
        while self._task is not None and not self._task.done():
            await asyncio.wait({self._task})

    def close(self) -> None:
        """Tear down: cancel any pending work; nothing is published afterwards."""
        if self._closed:
            return
        self._closed = True
        self._generation += 1
        self._cancel_task()
        self._listeners.clear()
        logger.debug("Availability pipeline closed")

    async def aclose(self) -> None:
        task = self._task
        self.close()
        if task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await task

    # ── Internals ────────────────────────────────────────────────────────────

    async def _run_cycle(self, value: str, generation: int) -> None:
        await asyncio.sleep(self.debounce)

        if value == self._settled_value:
            logger.debug("Username %r unchanged since last check; not re-fetching", value)
            self._transition(PipelineState.SETTLED, value)
            return

        self._transition(PipelineState.IN_FLIGHT, value)
        try:
            outcome = await self._check(value)
        except APIError as e:
            outcome = Failed(error=e)
        except Exception as e:
            logger.exception("Availability check for %r failed unexpectedly", value)
            error = InvalidResponseError()
            error.__cause__ = e
            outcome = Failed(error=error)

        if generation != self._generation:
            logger.debug("Dropping stale availability outcome for %r", value)
            return

        self._settled_value = value
        self.outcome = outcome
        self._transition(PipelineState.SETTLED, value)
        self._publish(outcome)

    def _publish(self, outcome: AvailabilityOutcome) -> None:
        for listener in list(self._listeners):
            try:
                listener(outcome)
            except Exception:
                logger.exception("Availability listener %r failed", listener)

    def _transition(self, state: PipelineState, value: str) -> None:
        logger.debug("%s -> %s(%r)", self.state.value, state.value, value)
        self.state = state
        self.value = value

    def _cancel_task(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
