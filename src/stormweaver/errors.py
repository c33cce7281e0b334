"""Exception types raised by stormweaver."""

from __future__ import annotations


class StormweaverError(Exception):
    """Base class for stormweaver errors."""


class GenerationError(StormweaverError):
    """The generative model failed or returned output that does not fit the schema."""


class EmbeddingError(StormweaverError):
    """The embedding model failed."""


class MalformedOutlineError(StormweaverError):
    """The outline tree cannot be generated (cycles, shared subtrees)."""
