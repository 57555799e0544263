from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from tradegate.domain import Mode
from tradegate.errors import RemoteError
from tradegate.logging import OperationLogger, setup_logger


@pytest.fixture
def restore_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("tradegate")
    saved = (logger.level, logger.propagate, list(logger.handlers))
    logger.handlers.clear()
    yield logger
    for handler in logger.handlers:
        handler.close()
    logger.level, logger.propagate = saved[0], saved[1]
    logger.handlers[:] = saved[2]


def test_setup_logger_is_idempotent(restore_logger: logging.Logger, tmp_path: Path) -> None:
    log_file = tmp_path / "gateway.log"

    first = setup_logger("debug", str(log_file))
    second = setup_logger("info", str(log_file))

    assert first is second is restore_logger
    assert len(first.handlers) == 2
    assert first.level == logging.INFO
    first.info("hello")
    assert "| INFO | tradegate | hello" in log_file.read_text(encoding="utf-8")


def test_operation_line_skips_empty_and_secret_details(caplog: pytest.LogCaptureFixture) -> None:
    log = OperationLogger()

    with caplog.at_level(logging.INFO, logger="tradegate"):
        log.operation("get_position", Mode.PAPER, {"symbol": "AAPL", "qty": None, "secret_key": "x"})
        log.failure("place_order", Mode.LIVE, RemoteError(422, "rejected", mode=Mode.LIVE))
        log.failure("account", None, RuntimeError("boom"))

    messages = [record.getMessage() for record in caplog.records]
    assert messages[0] == "get_position | PAPER | symbol AAPL"
    assert messages[1] == "place_order | LIVE | RemoteError: [LIVE] Alpaca API error 422: rejected"
    assert messages[2] == "account | UNRESOLVED | RuntimeError: boom"
