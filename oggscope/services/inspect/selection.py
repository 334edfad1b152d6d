# selection.py
from dataclasses import dataclass, replace
from typing import Generic, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class SelectionCursor(Generic[T]):
    """An optional selected index over a fixed sequence of items.

    Moving the cursor returns a new cursor; the items are never modified.
    ``next`` and ``previous`` wrap around the ends of the list.
    """
    items: Tuple[T, ...]
    selected: Optional[int] = None

    @classmethod
    def with_items(cls, items: Sequence[T]) -> "SelectionCursor[T]":
        return cls(items=tuple(items))

    def __post_init__(self) -> None:
        if self.selected is not None and not 0 <= self.selected < len(self.items):
            raise IndexError(f"Selection {self.selected} out of range for {len(self.items)} items")

    def next(self) -> "SelectionCursor[T]":
        if not self.items:
            return self
        if self.selected is None or self.selected >= len(self.items) - 1:
            return replace(self, selected=0)
        return replace(self, selected=self.selected + 1)

    def previous(self) -> "SelectionCursor[T]":
        if not self.items:
            return self
        if self.selected is None:
            return replace(self, selected=0)
        if self.selected == 0:
            return replace(self, selected=len(self.items) - 1)
        return replace(self, selected=self.selected - 1)

    def unselect(self) -> "SelectionCursor[T]":
        return replace(self, selected=None)

    def select(self, index: int) -> "SelectionCursor[T]":
        return replace(self, selected=index)

    def current(self) -> Optional[T]:
        if self.selected is None:
            return None
        return self.items[self.selected]
