"""
Canonical Value Model

Every decoded document is expressed with exactly six kinds of value:

    - Null         -> None
    - Bool         -> bool
    - Number       -> int or float (bool is NOT a number here)
    - String       -> str
    - OrderedMap   -> OrderedMap (string keys, insertion order kept)
    - List         -> list

ARCHITECTURAL RULE:
    Consumers branch on value_kind(), never on ad-hoc isinstance chains.
    Anything value_kind() cannot name is outside the model.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple


class ValueKind(Enum):
    """The closed set of canonical value kinds."""

    NULL = "null"
    BOOL = "bool"
    NUMBER = "number"
    STRING = "string"
    ORDERED_MAP = "ordered_map"
    LIST = "list"


@dataclass
class OrderedMap:
    """
    String-keyed mapping that remembers the order keys were first inserted.

    The order is held explicitly in `order`; `entries` only answers lookups.
    Re-setting an existing key replaces its value and keeps its position.

    Properties:
        order: Keys in first-insertion order
        entries: Key -> canonical value

    Equality is order-sensitive: two maps with the same entries in a
    different order are not equal.
    """

    order: List[str] = field(default_factory=list)
    entries: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, Any]]) -> "OrderedMap":
        result = cls()
        for key, value in pairs:
            result.set(key, value)
        return result

    def set(self, key: str, value: Any) -> None:
        if key not in self.entries:
            self.order.append(key)
        self.entries[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        return self.entries.get(key, default)

    def keys(self) -> List[str]:
        return list(self.order)

    def values(self) -> List[Any]:
        return [self.entries[key] for key in self.order]

    def items(self) -> List[Tuple[str, Any]]:
        return [(key, self.entries[key]) for key in self.order]

    def __getitem__(self, key: str) -> Any:
        return self.entries[key]

    def __contains__(self, key: object) -> bool:
        return key in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def __len__(self) -> int:
        return len(self.order)


def value_kind(value: Any) -> Optional[ValueKind]:
    """
    Classify a value into its canonical kind.

    Args:
        value: Any Python object

    Returns:
        The matching ValueKind, or None if the value is outside the model
        (including plain dicts, which carry no model-owned key order)
    """
    if value is None:
        return ValueKind.NULL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, OrderedMap):
        return ValueKind.ORDERED_MAP
    if isinstance(value, list):
        return ValueKind.LIST
    return None


__all__ = ["ValueKind", "OrderedMap", "value_kind"]
