"""
Signup form controller.

Owns the raw inputs, the username availability pipeline and every derived
output. Setters recompute all local facts synchronously, so listeners always
see outputs that match the inputs applied so far; the availability outcome
arrives later and triggers one more recompute when it does.

Create one controller per form session inside a running event loop and close it
when the form goes away. A closed controller cannot be restarted.
"""

import asyncio
import contextlib
import logging
from typing import Awaitable, Callable, Optional, Union

from signup_form.availability_client import AvailabilityClient
from signup_form.config import USERNAME_DEBOUNCE_SECONDS
from signup_form.exceptions import FormClosedError
from signup_form.models import (
    PENDING,
    AuthenticationState,
    AvailabilityOutcome,
    Available,
    Failed,
    FormInputs,
    FormState,
    PasswordStatus,
    Pending,
)
from signup_form.observable import Observable
from signup_form.pipeline import AvailabilityPipeline
from signup_form.reducers import reduce_form_state
from signup_form.validators import check_password_pwned

logger = logging.getLogger(__name__)

PwnedChecker = Callable[[str], Awaitable[bool]]


class SignupFormController:
    def __init__(
        self,
        client: Optional[AvailabilityClient] = None,
        debounce: float = USERNAME_DEBOUNCE_SECONDS,
        password_pwned_checker: Optional[PwnedChecker] = check_password_pwned,
    ):
        self.client = client or AvailabilityClient()
        self.inputs = FormInputs()
        self._availability: Union[Available, Failed, Pending] = PENDING
        self._pwned_checker = password_pwned_checker
        self._pwned_task: Optional[asyncio.Task] = None
        self._closed = False

        initial = reduce_form_state(self.inputs, self._availability)

        # ── Outputs ──────────────────────────────────────────────────────────
        self.is_username_valid = Observable(initial.is_username_valid)
        self.is_password_empty = Observable(initial.is_password_empty)
        self.is_password_matched = Observable(initial.is_password_matched)
        self.is_password_length_sufficient = Observable(initial.is_password_length_sufficient)
        self.password_status: Observable[PasswordStatus] = Observable(initial.password_status)
        self.is_valid = Observable(initial.is_valid)
        self.error_message = Observable(initial.error_message)
        # Not part of validity until a real breach lookup exists
        self.is_password_pwned = Observable(False)
        # Set by the submission flow; the form only passes it through
        self.authentication_state = Observable(AuthenticationState.UNAUTHENTICATED)
        self._state: Observable[FormState] = Observable(initial)

        self.availability_pipeline = AvailabilityPipeline(self.client.check_username_available, debounce)
        self.availability_pipeline.subscribe(self._on_availability)
        self.availability_pipeline.submit(self.inputs.username)

    # ── Inputs ───────────────────────────────────────────────────────────────

    def set_username(self, username: str) -> None:
        self._ensure_open()
        self.inputs.username = username
        self._recompute()
        self.availability_pipeline.submit(username)

    def set_password(self, password: str) -> None:
        self._ensure_open()
        self.inputs.password = password
        self._recompute()
        self._start_pwned_check(password)

    def set_confirm_password(self, confirm_password: str) -> None:
        self._ensure_open()
        self.inputs.confirm_password = confirm_password
        self._recompute()

    def set_authentication_state(self, state: AuthenticationState) -> None:
        self._ensure_open()
        self.authentication_state.set(state)

    # ── Derived state ────────────────────────────────────────────────────────

    @property
    def state(self) -> FormState:
        return self._state.value

    @property
    def availability(self) -> Union[Available, Failed, Pending]:
        return self._availability

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, listener: Callable[[FormState], None]) -> Callable[[], None]:
        """Call ``listener`` with a fresh FormState after every change."""
        return self._state.subscribe(listener)

    # ── Lifecycle ────────────────────────────────────────────────────────────

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.availability_pipeline.close()
        if self._pwned_task is not None and not self._pwned_task.done():
            self._pwned_task.cancel()
        for observable in (
            self.is_username_valid,
            self.is_password_empty,
            self.is_password_matched,
            self.is_password_length_sufficient,
            self.password_status,
            self.is_valid,
            self.error_message,
            self.is_password_pwned,
            self.authentication_state,
            self._state,
        ):
            observable.clear()
        logger.debug("Signup form controller torn down")

    async def aclose(self) -> None:
        pwned_task = self._pwned_task
        await self.availability_pipeline.aclose()
        self.close()
        if pwned_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await pwned_task

    async def __aenter__(self) -> "SignupFormController":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ── Internals ────────────────────────────────────────────────────────────

    def _ensure_open(self) -> None:
        if self._closed:
            raise FormClosedError()

    def _on_availability(self, outcome: AvailabilityOutcome) -> None:
        self._availability = outcome
        self._recompute()

    def _recompute(self) -> None:
        state = reduce_form_state(self.inputs, self._availability)
        self.is_username_valid.set(state.is_username_valid)
        self.is_password_empty.set(state.is_password_empty)
        self.is_password_matched.set(state.is_password_matched)
        self.is_password_length_sufficient.set(state.is_password_length_sufficient)
        self.password_status.set(state.password_status)
        self.is_valid.set(state.is_valid)
        self.error_message.set(state.error_message)
        self._state.set(state)

    def _start_pwned_check(self, password: str) -> None:
        if self._pwned_checker is None:
            return
        if self._pwned_task is not None and not self._pwned_task.done():
            self._pwned_task.cancel()
        self._pwned_task = asyncio.get_running_loop().create_task(self._run_pwned_check(password))

    async def _run_pwned_check(self, password: str) -> None:
        try:
            is_pwned = await self._pwned_checker(password)
        except Exception:
            logger.exception("Password breach check failed")
            return
        if self._closed or password != self.inputs.password:
            return
        self.is_password_pwned.set(is_pwned)
