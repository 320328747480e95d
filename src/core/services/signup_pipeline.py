"""Sign-up form validation pipeline.

This module wires the three form fields and the two remote checks into a
:class:`~core.services.dataflow.DataflowGraph` whose outputs are
``is_form_valid`` and ``error_message``. The graph itself is synchronous;
the remote checks run as asyncio tasks and write their outcomes back into
the graph as source values, so every recomputation happens on the event
loop thread and no locking is needed.

Input shaping per remote edge:

- username -> availability: debounced, de-duplicated against the previous
  settled value, dispatched only for locally valid usernames;
- password -> breach: de-duplicated only, empty passwords are not sent.

Neither edge ever emits the initial field value. A new dispatch cancels the
request still in flight on that edge, and completions carrying an old
sequence number are dropped. Outcomes are also tagged with the value they
answer, so a result for a value the user has since edited away is never
observed by the combinator.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from core.config import AppSettings
from core.domain import errors
from core.domain.models import (
    AuthenticationState,
    AvailabilityOutcome,
    BreachOutcome,
    FormFields,
    PasswordCheck,
    SignupState,
    ValidationSnapshot,
)
from core.interfaces import AvailabilityChecker, BreachChecker
from core.services import validation as rules
from core.services.dataflow import DataflowGraph

logger = logging.getLogger("signup_guard.pipeline")

_UNSET: Any = object()


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (progress, tracing)."""

    check_started: Callable[[str, str], None] | None = None
    check_discarded: Callable[[str, int], None] | None = None


class CheckEdge:
    """Turns successive values of one field into remote-check dispatches.

    ``debounce_seconds == 0`` disables the quiet period. ``skip`` decides
    which settled values are not worth a request; for those ``on_skip`` runs
    instead, after any in-flight request was cancelled.
    """

    def __init__(
        self,
        name: str,
        *,
        dispatch: Callable[[str, int], Awaitable[None]],
        debounce_seconds: float = 0.0,
        skip: Callable[[str], bool] | None = None,
        on_skip: Callable[[str], None] | None = None,
    ) -> None:
        self.name = name
        self._dispatch = dispatch
        self._debounce = debounce_seconds
        self._skip = skip
        self._on_skip = on_skip
        self._last: Any = _UNSET
        self._sequence = 0
        self._timer: asyncio.Task[None] | None = None
        self._request: asyncio.Task[None] | None = None

    @property
    def pending(self) -> bool:
        return any(task is not None and not task.done() for task in (self._timer, self._request))

    def is_current(self, sequence: int) -> bool:
        return sequence == self._sequence

    def push(self, value: str) -> None:
        if self._debounce <= 0:
            self._emit(value)
            return
        if self._timer is not None:
            self._timer.cancel()
        self._timer = asyncio.get_running_loop().create_task(
            self._emit_after_quiet(value), name=f"{self.name}-debounce"
        )

    async def _emit_after_quiet(self, value: str) -> None:
        await asyncio.sleep(self._debounce)
        self._timer = None
        self._emit(value)

    def _emit(self, value: str) -> None:
        if value == self._last:
            logger.debug("%s: unchanged value, no new check", self.name)
            return
        self._last = value
        self._cancel_request()
        self._sequence += 1

        if self._skip is not None and self._skip(value):
            if self._on_skip is not None:
                self._on_skip(value)
            return

        logger.debug("%s: dispatching check #%d", self.name, self._sequence)
        self._request = asyncio.get_running_loop().create_task(
            self._dispatch(value, self._sequence), name=f"{self.name}-request-{self._sequence}"
        )

    def _cancel_request(self) -> None:
        if self._request is not None and not self._request.done():
            logger.debug("%s: cancelling superseded check #%d", self.name, self._sequence)
            self._request.cancel()
        self._request = None

    async def wait(self) -> None:
        """Wait until neither a debounce timer nor a request is outstanding."""

        while True:
            tasks = [t for t in (self._timer, self._request) if t is not None and not t.done()]
            if not tasks:
                return
            await asyncio.wait(tasks)

    async def aclose(self) -> None:
        tasks = [t for t in (self._timer, self._request) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._timer = None
        self._request = None


class SignupPipeline:
    """View-model for the sign-up form.

    Field setters must be called from the running event loop. Outputs are
    always consistent with the latest field values; remote outcomes lag
    behind until the corresponding check settles.
    """

    def __init__(
        self,
        settings: AppSettings | None = None,
        *,
        availability_checker: AvailabilityChecker | None = None,
        breach_checker: BreachChecker | None = None,
        hooks: PipelineHooks | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._hooks = hooks or PipelineHooks()

        if availability_checker is None or breach_checker is None:
            from adapters.availability_check import UsernameAvailabilityChecker
            from adapters.breach_check import PwnedPasswordsChecker

            availability_checker = availability_checker or UsernameAvailabilityChecker(self._settings)
            breach_checker = breach_checker or PwnedPasswordsChecker(self._settings)
        self._availability_checker = availability_checker
        self._breach_checker = breach_checker

        # Never driven by this pipeline; submission is not wired.
        self.authentication_state = AuthenticationState.UNAUTHENTICATED

        self._subscribers: list[Callable[[ValidationSnapshot], None]] = []
        self.graph = DataflowGraph()
        self._build_graph()

        self._username_edge = CheckEdge(
            "username",
            dispatch=self._run_availability,
            debounce_seconds=self._settings.username_debounce_seconds,
            skip=lambda value: not rules.is_username_valid(value, self._settings.username_min_length),
            on_skip=lambda _: self.graph.set(self._availability, None),
        )
        self._password_edge = CheckEdge(
            "password",
            dispatch=self._run_breach,
            skip=rules.is_password_empty,
            on_skip=lambda _: self.graph.set(self._breach, None),
        )
        self.graph.watch(self._username, self._username_edge.push)
        self.graph.watch(self._password, self._password_edge.push)
        self.graph.watch(self._snapshot, self._publish)

    def _build_graph(self) -> None:
        g = self.graph
        s = self._settings

        self._username = g.source("username", "")
        self._password = g.source("password", "")
        self._confirm_password = g.source("confirm_password", "")
        self._availability = g.source("availability", None)
        self._breach = g.source("breach", None)

        self._is_username_valid = g.derive(
            "is_username_valid",
            [self._username],
            lambda username: rules.is_username_valid(username, s.username_min_length),
        )
        empty = g.derive("is_password_empty", [self._password], rules.is_password_empty)
        matched = g.derive(
            "is_password_matched", [self._password, self._confirm_password], rules.is_password_matched
        )
        sufficient = g.derive(
            "is_password_length_sufficient",
            [self._password],
            lambda password: rules.is_password_length_sufficient(password, s.password_min_length),
        )
        self._password_check = g.derive("password_check", [empty, matched, sufficient], rules.password_check)

        current = g.derive(
            "current_availability", [self._availability, self._username], rules.current_availability
        )
        self._is_username_available = g.derive("is_username_available", [current], rules.is_username_available)
        availability_text = g.derive("availability_message", [current], rules.availability_message)
        self._is_password_breached = g.derive(
            "is_password_breached", [self._breach, self._password], rules.is_password_breached
        )

        self._is_form_valid = g.derive(
            "is_form_valid",
            [self._is_username_available, self._is_username_valid, self._password_check, self._is_password_breached],
            lambda available, valid, check, breached: rules.form_is_valid(
                username_available=available,
                username_valid=valid,
                check=check,
                breached=breached,
            ),
        )
        self._error_message = g.derive(
            "error_message",
            [availability_text, self._is_username_valid, self._is_password_breached, self._password_check],
            lambda text, valid, breached, check: rules.error_message(
                availability_text=text,
                username_valid=valid,
                breached=breached,
                check=check,
                username_min_length=s.username_min_length,
                password_min_length=s.password_min_length,
            ),
        )
        self._snapshot = g.derive(
            "snapshot",
            [self._is_form_valid, self._error_message],
            lambda valid, message: ValidationSnapshot(is_form_valid=valid, error_message=message),
        )

    # Inputs

    def set_username(self, value: str) -> None:
        self.graph.set(self._username, value)

    def set_password(self, value: str) -> None:
        self.graph.set(self._password, value)

    def set_confirm_password(self, value: str) -> None:
        self.graph.set(self._confirm_password, value)

    def update(
        self,
        *,
        username: str | None = None,
        password: str | None = None,
        confirm_password: str | None = None,
    ) -> None:
        """Apply several field edits in a single reaction."""

        updates = {
            node: value
            for node, value in (
                (self._username, username),
                (self._password, password),
                (self._confirm_password, confirm_password),
            )
            if value is not None
        }
        if updates:
            self.graph.set_many(updates)

    @property
    def fields(self) -> FormFields:
        return FormFields(
            username=self._username.value,
            password=self._password.value,
            confirm_password=self._confirm_password.value,
        )

    # Outputs

    @property
    def is_username_valid(self) -> bool:
        return self._is_username_valid.value

    @property
    def is_username_available(self) -> bool | None:
        return self._is_username_available.value

    @property
    def password_check(self) -> PasswordCheck:
        return self._password_check.value

    @property
    def is_password_breached(self) -> bool:
        return self._is_password_breached.value

    @property
    def is_form_valid(self) -> bool:
        return self._is_form_valid.value

    @property
    def error_message(self) -> str:
        return self._error_message.value

    @property
    def snapshot(self) -> ValidationSnapshot:
        return self._snapshot.value

    @property
    def checking(self) -> bool:
        return self._username_edge.pending or self._password_edge.pending

    def state(self) -> SignupState:
        current = self.graph.value("current_availability")
        error = current.error if current is not None else None
        return SignupState(
            username=self._username.value,
            is_username_valid=self.is_username_valid,
            is_username_available=self.is_username_available,
            availability_error=error.kind if error is not None else None,
            password_check=self.password_check,
            is_password_breached=self.is_password_breached,
            authentication_state=self.authentication_state,
            snapshot=self.snapshot,
        )

    def subscribe(self, callback: Callable[[ValidationSnapshot], None]) -> Callable[[], None]:
        """Call ``callback`` with every new snapshot; returns an unsubscribe function."""

        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self, snapshot: ValidationSnapshot) -> None:
        failure: Exception | None = None
        for callback in list(self._subscribers):
            try:
                callback(snapshot)
            except Exception as exc:
                if failure is not None:
                    logger.exception("another snapshot subscriber raised")
                    continue
                failure = exc
        if failure is not None:
            raise failure

    # Remote checks

    async def _run_availability(self, username: str, sequence: int) -> None:
        if self._hooks.check_started:
            self._hooks.check_started("username", username)
        try:
            available = await self._availability_checker.check(username)
            outcome = AvailabilityOutcome.success(username, available)
        except asyncio.CancelledError:
            raise
        except errors.APIError as exc:
            logger.info("availability check for %r failed (%s): %s", username, exc.kind.value, exc)
            outcome = AvailabilityOutcome.failure(username, exc)
        except Exception:
            logger.exception("availability checker raised an unclassified error")
            outcome = AvailabilityOutcome.failure(username, errors.InvalidResponseError())

        if not self._username_edge.is_current(sequence):
            self._discard("username", sequence)
            return
        self.graph.set(self._availability, outcome)

    async def _run_breach(self, password: str, sequence: int) -> None:
        if self._hooks.check_started:
            self._hooks.check_started("password", "")
        try:
            breached = await self._breach_checker.is_breached(password)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("breach checker broke its fail-open contract; treating as not breached")
            breached = False

        if not self._password_edge.is_current(sequence):
            self._discard("password", sequence)
            return
        self.graph.set(self._breach, BreachOutcome(password=password, breached=bool(breached)))

    def _discard(self, edge: str, sequence: int) -> None:
        logger.debug("%s: dropping stale response #%d", edge, sequence)
        if self._hooks.check_discarded:
            self._hooks.check_discarded(edge, sequence)

    # Lifecycle

    async def settle(self) -> None:
        """Wait until every pending debounce window and remote check has resolved."""

        while self.checking:
            await self._username_edge.wait()
            await self._password_edge.wait()

    async def aclose(self) -> None:
        await self._username_edge.aclose()
        await self._password_edge.aclose()
        self._subscribers.clear()

    async def __aenter__(self) -> "SignupPipeline":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
