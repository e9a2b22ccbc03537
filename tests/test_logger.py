from __future__ import annotations

import logging

from guestdesk.utils.logger import get_logger, log_event


def test_log_event_joins_fields_in_call_order(caplog):
    logger = get_logger("guestdesk.tests.events")
    caplog.set_level(logging.INFO, logger=logger.name)

    log_event(logger, "Offer accepted", task_id="t-1", employee_id="e-1")

    assert caplog.records[-1].getMessage() == "Offer accepted | task_id=t-1 | employee_id=e-1"
    assert caplog.records[-1].levelno == logging.INFO


def test_log_event_respects_logger_level(caplog):
    logger = get_logger("guestdesk.tests.quiet")
    caplog.set_level(logging.WARNING, logger=logger.name)

    log_event(logger, "Task completed", task_id="t-2")
    log_event(logger, "Offer expired", level=logging.WARNING, task_id="t-2")

    assert [record.getMessage() for record in caplog.records] == ["Offer expired | task_id=t-2"]
