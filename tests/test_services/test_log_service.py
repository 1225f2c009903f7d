"""Tests for structured event logging."""

import logging

from dicetable.services.log_service import LogService


def test_format():
    line = LogService.format("pot_awarded", {"table_id": "t1", "amount": 6})
    assert line == "event=pot_awarded | table_id=t1 | amount=6"


def test_events_go_to_logger(caplog):
    service = LogService(logging.getLogger("dicetable.test_events"))
    with caplog.at_level(logging.INFO, logger="dicetable.test_events"):
        service.info("table_created", table_id="t9")
        service.warning("pot_rolled_over", reason="tie")

    assert caplog.records[0].message == "event=table_created | table_id=t9"
    assert caplog.records[1].levelno == logging.WARNING


def test_disabled_level_is_skipped(caplog):
    service = LogService(logging.getLogger("dicetable.quiet"))
    with caplog.at_level(logging.ERROR, logger="dicetable.quiet"):
        service.info("ignored")
        service.error("write_failed", round_id="r")
    assert [r.message for r in caplog.records] == ["event=write_failed | round_id=r"]
