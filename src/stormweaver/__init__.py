"""stormweaver: long-form article generation from a topic.

The core is :func:`generate_article`, which walks an outline tree and writes one section
per node; :func:`storm` adds outline drafting and multi-perspective research in front of it.
"""

from __future__ import annotations

from stormweaver.engine import GenerationOptions, GenerationState, generate_article, generate_section
from stormweaver.orchestrator import storm

__all__ = [
    "GenerationOptions",
    "GenerationState",
    "generate_article",
    "generate_section",
    "storm",
]

__version__ = "0.1.0"
