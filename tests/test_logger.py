"""JSON log lines and ledger context."""

import io
import json
from decimal import Decimal

import pytest

from monetrix.logger import StructuredLogger


@pytest.fixture
def capture(tmp_path, request):
    stream = io.StringIO()
    log = StructuredLogger(
        name=f"test.logger.{request.node.name}",
        stream=stream,
        log_file=str(tmp_path / "monetrix.log"),
    )
    yield log, stream
    for handler in list(log._logger.handlers):
        handler.close()
        log._logger.removeHandler(handler)


def _lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


def test_ledger_fields_are_top_level(capture):
    log, stream = capture
    log.warning(
        "Balance adjustment failed",
        extra={"account_id": "acc-1", "delta": Decimal("-50.00"), "attempt": 2},
    )

    (entry,) = _lines(stream)
    assert entry["level"] == "WARNING"
    assert entry["message"] == "Balance adjustment failed"
    assert entry["account_id"] == "acc-1"
    assert entry["delta"] == "-50.00"
    assert entry["extra"] == {"attempt": 2}


def test_bound_context_is_stamped_on_every_record(capture):
    log, stream = capture
    tx_log = log.bind(transaction_id="tx-1", account_id="acc-1")
    tx_log.info("applied")
    tx_log.info("overridden", extra={"account_id": "acc-2"})
    log.info("unbound")

    first, second, third = _lines(stream)
    assert (first["transaction_id"], first["account_id"]) == ("tx-1", "acc-1")
    assert second["account_id"] == "acc-2"
    assert "transaction_id" not in third
    assert log.context == {}


def test_exception_is_rendered(capture):
    log, stream = capture
    try:
        raise ConnectionError("connection reset by peer")
    except ConnectionError:
        log.error("remote call failed", exc_info=True)

    (entry,) = _lines(stream)
    assert "ConnectionError" in entry["exception"]


def test_debug_is_dropped_at_info_level(capture):
    log, stream = capture
    log.debug("noise")
    assert stream.getvalue() == ""
