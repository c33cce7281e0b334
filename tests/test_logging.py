"""Tests for run-context logging."""

from __future__ import annotations

import logging

from stormweaver.logging import (
    _ContextFilter,
    _ExtraFormatter,
    current_run_id,
    current_step,
    run_context,
    step_context,
)


def _record(msg: str, **extra: object) -> logging.LogRecord:
    record = logging.makeLogRecord({"name": "stormweaver.test", "msg": msg, "levelno": logging.INFO})
    record.__dict__.update(extra)
    _ContextFilter().filter(record)
    return record


def test_context_is_bound_and_restored() -> None:
    """Steps nest inside a run and are restored on exit."""

    assert current_run_id() == "-"
    with run_context(run_id="r1", step="outline"):
        with step_context("Intro"):
            assert current_step() == "Intro"
            record = _record("hello")
            assert (record.run_id, record.step) == ("r1", "Intro")
        assert current_step() == "outline"
    assert (current_run_id(), current_step()) == ("-", "-")


def test_extra_fields_are_rendered() -> None:
    formatter = _ExtraFormatter(fmt="run=%(run_id)s step=%(step)s %(message)s")

    with run_context(run_id="r2", step="s"):
        text = formatter.format(_record("Section generated", tokens=120, section="Intro"))
        plain = formatter.format(_record("No extras"))

    assert text == "run=r2 step=s Section generated | tokens=120 section=Intro"
    assert plain == "run=r2 step=s No extras"
