"""
Tests for the command-line entry point
"""
import io
import logging

import pytest

import deskcalc


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.getLogger("deskcalc").handlers.clear()


def test_replay_keys_prints_each_display(capsys):
    assert deskcalc.main(["--keys", "3 + 4 × 2 ="]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out == ["3", "3", "4", "7", "2", "14"]


def test_replay_unknown_key(capsys):
    assert deskcalc.main(["--keys", "1 + foo"]) == 2
    assert "foo" in capsys.readouterr().err


def test_replay_keys_returns_engine():
    engine = deskcalc.replay_keys("5 M+ MR", out=io.StringIO())
    assert engine.memory == 5


def test_cleanup_without_server_is_noop():
    deskcalc.api_process = None
    deskcalc.cleanup_api_server()
    assert deskcalc.api_process is None
