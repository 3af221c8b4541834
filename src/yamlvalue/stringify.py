"""
Compact single-line rendering of canonical values.

Output looks like JSON with one space after each colon:

    {"a": 1,"b": [true,null,"x"]}

This is a display aid. It is not guaranteed to be re-parsable and it never
raises: values outside the canonical model render as UNKNOWN_TYPE.
"""

import json
import unicodedata
from typing import Any, List, Optional, Set, Tuple

from yamlvalue.values import ValueKind, value_kind

UNKNOWN_TYPE = "unknown type"

_TEXT = "text"
_VALUE = "value"
_LEAVE = "leave"


def quote(text: str) -> str:
    """Double-quote a string, escaping quotes, backslashes and control characters."""
    quoted = json.dumps(text, ensure_ascii=False)
    # json leaves DEL and the C1 range raw
    return "".join(
        f"\\u{ord(ch):04x}" if unicodedata.category(ch) == "Cc" else ch
        for ch in quoted
    )


def _format_number(value: Any) -> str:
    if isinstance(value, float):
        return repr(value)
    return str(value)


def _scalar_text(value: Any, kind: Optional[ValueKind]) -> str:
    if kind is ValueKind.NULL:
        return "null"
    if kind is ValueKind.BOOL:
        return "true" if value else "false"
    if kind is ValueKind.NUMBER:
        return _format_number(value)
    if kind is ValueKind.STRING:
        return quote(value)
    return UNKNOWN_TYPE


def stringify(value: Any) -> str:
    """
    Render a canonical value (or a bare scalar) as compact text.

    Containers are walked with an explicit stack, so nesting depth is bounded
    by memory rather than the interpreter's recursion limit. A container that
    contains itself renders UNKNOWN_TYPE at the point of re-entry.

    Args:
        value: None, bool, int, float, str, OrderedMap or list

    Returns:
        Single-line text; OrderedMap entries appear in insertion order
    """
    out: List[str] = []
    active: Set[int] = set()
    stack: List[Tuple[str, Any]] = [(_VALUE, value)]

    while stack:
        action, item = stack.pop()
        if action == _TEXT:
            out.append(item)
            continue
        if action == _LEAVE:
            active.discard(item)
            continue

        kind = value_kind(item)
        if kind is not ValueKind.ORDERED_MAP and kind is not ValueKind.LIST:
            out.append(_scalar_text(item, kind))
            continue
        if id(item) in active:
            out.append(UNKNOWN_TYPE)
            continue

        active.add(id(item))
        if kind is ValueKind.ORDERED_MAP:
            pending = [(_TEXT, "{")]
            for index, (key, child) in enumerate(item.items()):
                if index:
                    pending.append((_TEXT, ","))
                pending.append((_TEXT, f"{quote(key)}: "))
                pending.append((_VALUE, child))
            pending.append((_TEXT, "}"))
        else:
            pending = [(_TEXT, "[")]
            for index, child in enumerate(item):
                if index:
                    pending.append((_TEXT, ","))
                pending.append((_VALUE, child))
            pending.append((_TEXT, "]"))
        pending.append((_LEAVE, id(item)))
        stack.extend(reversed(pending))

    return "".join(out)


__all__ = ["stringify", "quote", "UNKNOWN_TYPE"]
