"""Tests for the console filter of the loguru setup."""

from types import SimpleNamespace

import pytest

from src.utils.logger import _console_filter


def _record(level_no: int, message: str) -> dict:
    return {"level": SimpleNamespace(no=level_no), "message": message}


@pytest.mark.parametrize("tag", ["[RPC]", "[MORALIS]", "[PYTH]"])
def test_client_debug_kept_off_console(tag: str) -> None:
    assert not _console_filter(_record(10, f"{tag} retry in 1.0s"))


def test_client_warnings_reach_console() -> None:
    assert _console_filter(_record(30, "[MORALIS] HTTP 503 after retries: /erc20/x/owners"))


def test_engine_debug_reaches_console() -> None:
    assert _console_filter(_record(10, "[SCORE] TEST: 85/100 (SAFE), raw 85"))
