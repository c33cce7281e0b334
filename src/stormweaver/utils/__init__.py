from __future__ import annotations

from stormweaver.utils.tags import extract_json_object, strip_code_fence

__all__ = ["extract_json_object", "strip_code_fence"]
