from __future__ import annotations

import re
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional

ASSESSMENT_TYPES = (
    "Final Exams",
    "Quizzes",
    "Lab Experiments",
    "Tests",
    "Mid Exam",
    "Projects & Presentations",
    "Assignments & Presentations",
    "Presentation",
)

REQUIRED_TOTAL = 100
DIGITS_RE = re.compile(r"[0-9]+")


def _parse_percentage(raw: Any) -> Optional[int]:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float):
        return int(raw) if raw.is_integer() else None
    if raw is None:
        return 0
    if not isinstance(raw, str):
        return None
    text = raw.strip()
    if text == "":
        return 0
    # ASCII digits only; int() would also take "3_0", "+30" and other scripts' digits
    if not DIGITS_RE.fullmatch(text):
        return None
    return int(text)


class AllocationSet(Mapping[str, int]):
    """Named percentage weightings that must add up to exactly 100.

    Instances are immutable; every operation returns a new set. A name mapped
    to 0 means "selected, no weight yet" and only ``toggle`` produces it.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Optional[Mapping[str, int]] = None):
        self._items = MappingProxyType(dict(items or {}))

    def __getitem__(self, name: str) -> int:
        return self._items[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Mapping):
            return dict(self._items) == dict(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(frozenset(self._items.items()))

    def __repr__(self) -> str:
        return f"AllocationSet({dict(self._items)!r})"

    def _replace(self, items: Dict[str, int]) -> "AllocationSet":
        return AllocationSet(items)

    def toggle(self, name: str) -> "AllocationSet":
        items = dict(self._items)
        if name in items:
            del items[name]
        else:
            items[name] = 0
        return self._replace(items)

    def set_value(self, name: str, raw: Any) -> "AllocationSet":
        value = _parse_percentage(raw)
        if value is None or value < 0 or value > REQUIRED_TOTAL:
            return self
        items = dict(self._items)
        if value == 0:
            items.pop(name, None)
        else:
            items[name] = value
        return self._replace(items)

    def remove(self, name: str) -> "AllocationSet":
        if name not in self._items:
            return self
        items = dict(self._items)
        del items[name]
        return self._replace(items)

    def total(self) -> int:
        return sum(self._items.values())

    def is_valid(self) -> bool:
        return self.total() == REQUIRED_TOTAL

    def weighted(self) -> Dict[str, int]:
        return {name: value for name, value in self._items.items() if value > 0}

    def to_dict(self) -> Dict[str, int]:
        return dict(self._items)
