"""Tests for settings loading and input validators."""

import pytest
from pydantic import ValidationError

from pairchat.config import Settings, load_settings
from pairchat.main import parse_args
from pairchat.utils.error_codes import ErrorCodes, PairChatError
from pairchat.utils.validators import validate_message_length, validate_nickname


class TestValidators:
    @pytest.mark.parametrize("nickname", ["alice", " bob ", "김"])
    def test_valid_nicknames(self, nickname):
        assert validate_nickname(nickname)

    @pytest.mark.parametrize("nickname", ["", " ", "\t", None])
    def test_blank_nicknames(self, nickname):
        assert not validate_nickname(nickname)

    def test_message_length(self):
        assert validate_message_length("hi")
        assert not validate_message_length("   ")
        assert not validate_message_length("")
        assert not validate_message_length("x" * 11, max_length=10)
        assert validate_message_length("x" * 5000, max_length=0)

    def test_error_carries_code(self):
        err = PairChatError(ErrorCodes.ERR_NETWORK, "boom")
        assert err.code == 101
        assert err.message == "boom"
        assert str(err) == "[101] boom"


class TestSettings:
    def test_defaults(self, monkeypatch):
        for key in ("PAIRCHAT_SERVER_URI", "PAIRCHAT_NICKNAME", "PAIRCHAT_LOG_LEVEL",
                    "PAIRCHAT_MAX_MESSAGE_LENGTH"):
            monkeypatch.delenv(key, raising=False)
        settings = Settings(_env_file=None)
        assert settings.server_uri == "ws://localhost:3010"
        assert settings.nickname == ""
        assert settings.log_level == "WARNING"
        assert settings.max_message_length == 0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("PAIRCHAT_SERVER_URI", "wss://match.example:443")
        monkeypatch.setenv("PAIRCHAT_LOG_LEVEL", "debug")
        settings = Settings(_env_file=None)
        assert settings.server_uri == "wss://match.example:443"
        assert settings.log_level == "DEBUG"

    def test_explicit_overrides_beat_environment(self, monkeypatch):
        monkeypatch.setenv("PAIRCHAT_NICKNAME", "envname")
        settings = load_settings(nickname="cliname", server_uri=None)
        assert settings.nickname == "cliname"
        assert settings.server_uri.startswith("ws")

    @pytest.mark.parametrize("field,value", [
        ("server_uri", "http://localhost:3010"),
        ("log_level", "LOUD"),
        ("open_timeout", 0),
        ("max_message_length", -1),
    ])
    def test_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            Settings(_env_file=None, **{field: value})


class TestArgs:
    def test_parse_args(self):
        args = parse_args(["--server", "ws://h:1", "--nickname", "alice", "--log-level", "INFO"])
        assert vars(args) == {"server_uri": "ws://h:1", "nickname": "alice", "log_level": "INFO"}

    def test_parse_args_defaults_are_none(self):
        assert vars(parse_args([])) == {"server_uri": None, "nickname": None, "log_level": None}
