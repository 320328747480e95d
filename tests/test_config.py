"""Tests for settings and the per-user .env writer."""

import pytest
from pydantic import ValidationError

from core.config import AppSettings, get_user_config_dir, write_user_env_vars


def test_defaults():
    settings = AppSettings(_env_file=None)
    assert settings.availability_base_url == "http://127.0.0.1:8080"
    assert settings.breach_base_url == "https://api.pwnedpasswords.com"
    assert settings.username_debounce_seconds == 0.8
    assert (settings.username_min_length, settings.password_min_length) == (3, 6)


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("SIGNUP_GUARD_USERNAME_DEBOUNCE_SECONDS", "0.25")
    monkeypatch.setenv("signup_guard_availability_base_url", "http://signup.internal:9000")
    settings = AppSettings(_env_file=None)
    assert settings.username_debounce_seconds == 0.25
    assert settings.availability_base_url == "http://signup.internal:9000"


def test_env_file(tmp_path):
    env = tmp_path / ".env"
    env.write_text("SIGNUP_GUARD_PASSWORD_MIN_LENGTH=10\nUNRELATED=1\n", encoding="utf-8")
    assert AppSettings(_env_file=env).password_min_length == 10


def test_negative_debounce_rejected():
    with pytest.raises(ValidationError):
        AppSettings(_env_file=None, username_debounce_seconds=-1)


def test_xdg_config_dir(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.platform", "linux")
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert get_user_config_dir() == tmp_path / "signup-guard"


def test_write_user_env_vars_merges(tmp_path):
    env_path = tmp_path / "cfg" / ".env"
    env_path.parent.mkdir()
    env_path.write_text('# old\nSIGNUP_GUARD_LOG_LEVEL="INFO"\n', encoding="utf-8")

    write_user_env_vars({"SIGNUP_GUARD_BREACH_BASE_URL": "http://mirror.local"}, env_path=env_path)

    lines = env_path.read_text(encoding="utf-8").splitlines()
    assert lines[0].startswith("#")
    assert lines[1:] == [
        "SIGNUP_GUARD_BREACH_BASE_URL=http://mirror.local",
        "SIGNUP_GUARD_LOG_LEVEL=INFO",
    ]
