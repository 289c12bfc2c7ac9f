"""get_logger() call styles: %-args and event + keyword fields."""

import logging

from logging_config import get_logger


def test_keyword_fields_are_rendered(caplog):
    caplog.set_level(logging.INFO)
    log = get_logger("studykit.tests")
    log.info("request.received", ip="10.0.0.1", method="GET", path="/health")

    message = caplog.records[-1].getMessage()
    assert message.startswith("request.received")
    assert "method=GET" in message
    assert "path=/health" in message


def test_positional_args_are_interpolated(caplog):
    caplog.set_level(logging.INFO)
    get_logger("studykit.tests").info("session.started id=%s", "abc")
    assert caplog.records[-1].getMessage().startswith("session.started id=abc")


def test_level_is_carried_to_stdlib(caplog):
    caplog.set_level(logging.INFO)
    get_logger("studykit.tests").warning("redis.unavailable", url="redis://x", error="refused")
    record = caplog.records[-1]
    assert record.levelno == logging.WARNING
    assert record.name == "studykit.tests"
