"""Tests for the pure field rules and output combination."""

import itertools

import pytest

from core.domain import errors
from core.domain.models import AvailabilityOutcome, BreachOutcome, PasswordCheck
from core.services import validation as rules


# ── Field rules ────────────────────────────────────────────────────────────


class TestFieldRules:
    @pytest.mark.parametrize("username, valid", [("", False), ("ab", False), ("abc", True), ("alice", True)])
    def test_username_length(self, username, valid):
        assert rules.is_username_valid(username) is valid

    def test_username_custom_min_length(self):
        assert rules.is_username_valid("abcd", min_length=5) is False
        assert rules.is_username_valid("abcde", min_length=5) is True

    def test_password_empty(self):
        assert rules.is_password_empty("") is True
        assert rules.is_password_empty(" ") is False

    def test_password_matched(self):
        assert rules.is_password_matched("secret", "secret") is True
        assert rules.is_password_matched("secret", "Secret") is False
        assert rules.is_password_matched("", "") is True

    @pytest.mark.parametrize("password, ok", [("12345", False), ("123456", True), ("", False)])
    def test_password_length(self, password, ok):
        assert rules.is_password_length_sufficient(password) is ok


# ── Password check precedence ──────────────────────────────────────────────


@pytest.mark.parametrize("empty, matched, sufficient", list(itertools.product([True, False], repeat=3)))
def test_password_check_precedence(empty, matched, sufficient):
    result = rules.password_check(empty, matched, sufficient)
    if empty:
        assert result is PasswordCheck.EMPTY
    elif not matched:
        assert result is PasswordCheck.NO_MATCH
    elif not sufficient:
        assert result is PasswordCheck.TOO_SHORT
    else:
        assert result is PasswordCheck.VALID


@pytest.mark.parametrize(
    "password, confirm, expected",
    [
        ("", "", PasswordCheck.EMPTY),
        ("", "abcdef", PasswordCheck.EMPTY),
        ("abc", "abd", PasswordCheck.NO_MATCH),
        ("abc", "abc", PasswordCheck.TOO_SHORT),
        ("abcdef", "abcdef", PasswordCheck.VALID),
    ],
)
def test_password_check_from_fields(password, confirm, expected):
    result = rules.password_check(
        rules.is_password_empty(password),
        rules.is_password_matched(password, confirm),
        rules.is_password_length_sufficient(password),
    )
    assert result is expected


def test_password_check_messages():
    assert rules.password_check_message(PasswordCheck.NO_MATCH) == "Passwords don't match"
    assert rules.password_check_message(PasswordCheck.EMPTY) == "Password must not be empty"
    assert (
        rules.password_check_message(PasswordCheck.TOO_SHORT)
        == "Password not long enough. Must at least be 6 characters"
    )
    assert rules.password_check_message(PasswordCheck.VALID) == ""


# ── Availability resolution ────────────────────────────────────────────────


def _failure(error):
    return AvailabilityOutcome.failure("alice", error)


class TestAvailability:
    def test_no_outcome_is_pending(self):
        assert rules.is_username_available(None) is None
        assert rules.availability_message(None) == ""

    def test_success(self):
        assert rules.is_username_available(AvailabilityOutcome.success("alice", True)) is True
        assert rules.availability_message(AvailabilityOutcome.success("alice", True)) == ""

    def test_taken(self):
        taken = AvailabilityOutcome.success("alice", False)
        assert rules.is_username_available(taken) is False
        assert rules.availability_message(taken) == "This username is not available"

    def test_transport_error_fails_open_silently(self):
        outcome = _failure(errors.TransportError(ConnectionError("refused")))
        assert outcome.is_transport_error
        assert rules.is_username_available(outcome) is True
        assert rules.availability_message(outcome) == ""

    def test_validation_error_uses_server_reason(self):
        outcome = _failure(errors.ValidationError("Username contains a forbidden word"))
        assert rules.is_username_available(outcome) is False
        assert rules.availability_message(outcome) == "Username contains a forbidden word"

    @pytest.mark.parametrize(
        "error",
        [
            errors.InvalidRequestError("URL invalid"),
            errors.InvalidResponseError(),
            errors.DecodingError(),
            errors.ServerError(503, retry_after="120"),
        ],
    )
    def test_other_errors_block_and_describe(self, error):
        outcome = _failure(error)
        assert not outcome.is_transport_error
        assert rules.is_username_available(outcome) is False
        assert rules.availability_message(outcome) == error.description

    def test_outcome_for_other_username_is_ignored(self):
        outcome = AvailabilityOutcome.success("alice", False)
        assert rules.current_availability(outcome, "alice") is outcome
        assert rules.current_availability(outcome, "alicia") is None
        assert rules.current_availability(None, "alice") is None


def test_breach_outcome_only_counts_for_current_password():
    outcome = BreachOutcome(password="password1", breached=True)
    assert rules.is_password_breached(outcome, "password1") is True
    assert rules.is_password_breached(outcome, "password12") is False
    assert rules.is_password_breached(None, "password1") is False


# ── Combination ────────────────────────────────────────────────────────────


class TestFormIsValid:
    def test_all_good(self):
        assert rules.form_is_valid(
            username_available=True, username_valid=True, check=PasswordCheck.VALID, breached=False
        )

    @pytest.mark.parametrize(
        "available, valid, check, breached",
        [
            (None, True, PasswordCheck.VALID, False),
            (False, True, PasswordCheck.VALID, False),
            (True, False, PasswordCheck.VALID, False),
            (True, True, PasswordCheck.TOO_SHORT, False),
            (True, True, PasswordCheck.VALID, True),
        ],
    )
    def test_any_failure_invalidates(self, available, valid, check, breached):
        assert not rules.form_is_valid(
            username_available=available, username_valid=valid, check=check, breached=breached
        )


class TestErrorMessage:
    def test_availability_message_wins(self):
        message = rules.error_message(
            availability_text="Username is reserved",
            username_valid=False,
            breached=True,
            check=PasswordCheck.EMPTY,
        )
        assert message == "Username is reserved"

    def test_invalid_username_before_password_problems(self):
        message = rules.error_message(
            availability_text="", username_valid=False, breached=True, check=PasswordCheck.EMPTY
        )
        assert message == "Username is invalid. Must be more than 2 characters"

    def test_breach_before_password_check(self):
        message = rules.error_message(
            availability_text="", username_valid=True, breached=True, check=PasswordCheck.NO_MATCH
        )
        assert message == "This password has been compromised before. Choose another one!"

    def test_password_check_last(self):
        message = rules.error_message(
            availability_text="", username_valid=True, breached=False, check=PasswordCheck.NO_MATCH
        )
        assert message == "Passwords don't match"

    def test_no_error(self):
        message = rules.error_message(
            availability_text="", username_valid=True, breached=False, check=PasswordCheck.VALID
        )
        assert message == ""

    def test_messages_follow_configured_lengths(self):
        assert rules.username_invalid_message(5) == "Username is invalid. Must be more than 4 characters"
        assert rules.password_too_short_message(10) == "Password not long enough. Must at least be 10 characters"
