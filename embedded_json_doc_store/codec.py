from __future__ import annotations
import json
from typing import Any, Dict

from .errors import DecodeError

# Pretty form is what lands on disk and what Display renders
PRETTY_INDENT = 2


def decode(raw: bytes | str) -> Dict[str, Any]:
    """
    Parse one object-rooted JSON document.
    Raises DecodeError on invalid UTF-8, malformed JSON or a non-object root.
    """
    if isinstance(raw, (bytes, bytearray)):
        try:
            text = bytes(raw).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise DecodeError(f"document is not valid UTF-8: {exc}") from exc
    else:
        text = raw
    try:
        doc = json.loads(text, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise DecodeError(f"malformed document: {exc}") from exc
    except RecursionError as exc:
        raise DecodeError("document is nested too deeply") from exc
    if not isinstance(doc, dict):
        raise DecodeError(f"document root must be an object, got {type(doc).__name__}")
    return doc


def _reject_constant(name: str) -> Any:
    # NaN / Infinity are not JSON
    raise DecodeError(f"non-standard constant {name!r} in document")


def encode(obj: Any) -> bytes:
    return json.dumps(obj, ensure_ascii=False, allow_nan=False, separators=(",", ":")).encode("utf-8")


def encode_pretty(obj: Any) -> bytes:
    return pretty_text(obj).encode("utf-8")


def pretty_text(obj: Any) -> str:
    return json.dumps(obj, ensure_ascii=False, allow_nan=False, indent=PRETTY_INDENT)
