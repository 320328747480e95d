"""Field rules and output combination for the sign-up form.

Every function here is pure: the pipeline feeds them the latest signal
values and stores what they return. Keeping them free of the graph makes
the precedence rules testable with plain arguments.
"""

from __future__ import annotations

from core.domain.errors import ErrorKind
from core.domain.models import AvailabilityOutcome, BreachOutcome, PasswordCheck

DEFAULT_USERNAME_MIN_LENGTH = 3
DEFAULT_PASSWORD_MIN_LENGTH = 6

USERNAME_NOT_AVAILABLE_MESSAGE = "This username is not available"
PASSWORD_BREACHED_MESSAGE = "This password has been compromised before. Choose another one!"
PASSWORD_NO_MATCH_MESSAGE = "Passwords don't match"
PASSWORD_EMPTY_MESSAGE = "Password must not be empty"


def username_invalid_message(min_length: int = DEFAULT_USERNAME_MIN_LENGTH) -> str:
    return f"Username is invalid. Must be more than {min_length - 1} characters"


def password_too_short_message(min_length: int = DEFAULT_PASSWORD_MIN_LENGTH) -> str:
    return f"Password not long enough. Must at least be {min_length} characters"


def is_username_valid(username: str, min_length: int = DEFAULT_USERNAME_MIN_LENGTH) -> bool:
    return len(username) >= min_length


def is_password_empty(password: str) -> bool:
    return len(password) == 0


def is_password_matched(password: str, confirm_password: str) -> bool:
    return password == confirm_password


def is_password_length_sufficient(password: str, min_length: int = DEFAULT_PASSWORD_MIN_LENGTH) -> bool:
    return len(password) >= min_length


def password_check(empty: bool, matched: bool, sufficient: bool) -> PasswordCheck:
    """Collapse the three password booleans into a single verdict.

    Precedence is EMPTY, NO_MATCH, TOO_SHORT, then VALID.
    """

    if empty:
        return PasswordCheck.EMPTY
    if not matched:
        return PasswordCheck.NO_MATCH
    if not sufficient:
        return PasswordCheck.TOO_SHORT
    return PasswordCheck.VALID


def current_availability(
    outcome: AvailabilityOutcome | None, username: str
) -> AvailabilityOutcome | None:
    """Return *outcome* only if it answers the current *username*."""

    if outcome is None or outcome.username != username:
        return None
    return outcome


def is_username_available(outcome: AvailabilityOutcome | None) -> bool | None:
    """Resolve an availability outcome to a boolean.

    A transport error counts as available so that an outage of the
    availability service does not block sign-up. Every other error counts as
    unavailable. ``None`` means no outcome for the current username yet.
    """

    if outcome is None:
        return None
    if outcome.error is not None:
        return outcome.is_transport_error
    return bool(outcome.available)


def availability_message(outcome: AvailabilityOutcome | None) -> str:
    if outcome is None:
        return ""
    error = outcome.error
    if error is None:
        return "" if outcome.available else USERNAME_NOT_AVAILABLE_MESSAGE
    if outcome.is_transport_error:
        return ""
    if error.kind is ErrorKind.VALIDATION:
        return getattr(error, "reason", error.description)
    return error.description


def is_password_breached(outcome: BreachOutcome | None, password: str) -> bool:
    if outcome is None or outcome.password != password:
        return False
    return outcome.breached


def password_check_message(
    check: PasswordCheck, min_length: int = DEFAULT_PASSWORD_MIN_LENGTH
) -> str:
    if check is PasswordCheck.NO_MATCH:
        return PASSWORD_NO_MATCH_MESSAGE
    if check is PasswordCheck.EMPTY:
        return PASSWORD_EMPTY_MESSAGE
    if check is PasswordCheck.TOO_SHORT:
        return password_too_short_message(min_length)
    return ""


def form_is_valid(
    *,
    username_available: bool | None,
    username_valid: bool,
    check: PasswordCheck,
    breached: bool,
) -> bool:
    return bool(username_available) and username_valid and check is PasswordCheck.VALID and not breached


def error_message(
    *,
    availability_text: str,
    username_valid: bool,
    breached: bool,
    check: PasswordCheck,
    username_min_length: int = DEFAULT_USERNAME_MIN_LENGTH,
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH,
) -> str:
    """First non-empty message wins, in on-screen field order."""

    if availability_text:
        return availability_text
    if not username_valid:
        return username_invalid_message(username_min_length)
    if breached:
        return PASSWORD_BREACHED_MESSAGE
    return password_check_message(check, password_min_length)
