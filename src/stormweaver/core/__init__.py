"""Async execution utilities."""

from __future__ import annotations

from stormweaver.core.queue import SerialTaskQueue

__all__ = ["SerialTaskQueue"]
