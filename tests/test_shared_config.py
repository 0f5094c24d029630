import importlib

import shared.config as shared_config
from shared.config import _env_int


def test_env_int_falls_back_on_garbage(monkeypatch) -> None:
    monkeypatch.setenv("WB_TEST_INT", "lots")
    assert _env_int("WB_TEST_INT", 3) == 3


def test_env_int_raises_to_minimum(monkeypatch) -> None:
    monkeypatch.setenv("WB_TEST_INT", "0")
    assert _env_int("WB_TEST_INT", 3, minimum=1) == 1
    monkeypatch.setenv("WB_TEST_INT", "-4")
    assert _env_int("WB_TEST_INT", 3, minimum=1) == 1
    monkeypatch.setenv("WB_TEST_INT", "5")
    assert _env_int("WB_TEST_INT", 3, minimum=1) == 5


def test_retry_attempts_setting_is_never_below_one(monkeypatch) -> None:
    monkeypatch.setenv("WORLDBUILDER_RETRY_MAX_ATTEMPTS", "0")
    try:
        assert importlib.reload(shared_config).RETRY_MAX_ATTEMPTS == 1
    finally:
        monkeypatch.delenv("WORLDBUILDER_RETRY_MAX_ATTEMPTS")
        importlib.reload(shared_config)
