from __future__ import annotations
import json
from typing import Any, Optional


def _strip_code_fences(s: str) -> str:
    """Remove a surrounding ```...``` fence (with or without a language tag)."""
    s = s.strip()
    if s.startswith("```"):
        nl = s.find("\n")
        inner = s[nl + 1 :] if nl != -1 else s
        end = inner.rfind("```")
        if end != -1:
            inner = inner[:end]
        return inner.strip()
    return s


def _extract_balanced_json(s: str, openers: str = "{[") -> Optional[str]:
    """
    Return the first balanced JSON object/array of *s* whose opening bracket is
    in *openers*, ignoring brackets inside strings. ``None`` if there is none.
    """
    start = None
    opener = None
    for i, ch in enumerate(s):
        if ch in openers:
            start = i
            opener = ch
            break
    if start is None:
        return None

    closer = "}" if opener == "{" else "]"
    depth = 0
    in_string = False
    escape = False

    for i in range(start, len(s)):
        c = s[i]
        if escape:
            escape = False
            continue
        if c == "\\" and in_string:
            escape = True
            continue
        if c == '"':
            in_string = not in_string
            continue
        if in_string:
            continue

        if c == opener:
            depth += 1
        elif c == closer:
            depth -= 1
            if depth == 0:
                return s[start : i + 1]
    return None


def safe_json_loads(raw: str) -> Any:
    """
    ``json.loads`` tolerant of model output: strips code fences, then falls
    back to the first balanced object or array. Re-raises the original
    error when nothing parses.
    """
    if raw is None:
        raise ValueError("safe_json_loads: input is None")

    text = _strip_code_fences(str(raw))
    try:
        return json.loads(text)
    except json.JSONDecodeError as first_exc:
        candidate = _extract_balanced_json(text)
        if candidate:
            return json.loads(candidate)
        raise first_exc


def extract_json_array(raw: str) -> Optional[list]:
    """Return the first JSON array found in *raw*, or ``None``."""
    if not raw:
        return None

    text = _strip_code_fences(str(raw))
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        candidate = _extract_balanced_json(text, openers="[")
        if candidate is None:
            return None
        try:
            parsed = json.loads(candidate)
        except json.JSONDecodeError:
            return None

    if isinstance(parsed, dict):
        # Some models wrap the list: {"questions": [...]}
        for value in parsed.values():
            if isinstance(value, list):
                return value
        return None
    return parsed if isinstance(parsed, list) else None
