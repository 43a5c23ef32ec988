from __future__ import annotations

from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")


class SelectionList(Generic[T]):
    """Cursor over the runtime items with wrap-around movement.

    ``last_index`` remembers the cursor across :meth:`unselect` so the next
    movement resumes where the operator left off.
    """

    def __init__(self, items: Optional[Sequence[T]] = None):
        self.items: List[T] = list(items or [])
        self.current_index: Optional[int] = None
        self.last_index: Optional[int] = None
        self.view_offset = 0

    def __len__(self) -> int:
        return len(self.items)

    @property
    def selected_item(self) -> Optional[T]:
        if self.current_index is None:
            return None
        return self.items[self.current_index]

    def select(self, index: Optional[int]) -> None:
        if index is None or not self.items:
            self.current_index = None
            return
        self.current_index = max(0, min(index, len(self.items) - 1))

    def _resume_index(self) -> int:
        if self.last_index is not None and self.last_index < len(self.items):
            return self.last_index
        return 0

    def next(self) -> None:
        if not self.items:
            return
        if self.current_index is None:
            self.current_index = self._resume_index()
        elif self.current_index >= len(self.items) - 1:
            self.current_index = 0
        else:
            self.current_index += 1

    def previous(self) -> None:
        if not self.items:
            return
        if self.current_index is None:
            self.current_index = self._resume_index()
        elif self.current_index == 0:
            self.current_index = len(self.items) - 1
        else:
            self.current_index -= 1

    def unselect(self) -> None:
        # view_offset is left alone so the list does not jump
        if self.current_index is not None:
            self.last_index = self.current_index
        self.current_index = None

    def go_top(self) -> None:
        if self.items:
            self.current_index = 0

    def go_bottom(self) -> None:
        if self.items:
            self.current_index = len(self.items) - 1

    def set_items(self, items: Sequence[T]) -> None:
        """Swap in a freshly derived collection and re-clamp the cursor."""
        self.items = list(items)
        self.clamp()

    def clamp(self) -> None:
        count = len(self.items)
        if count == 0:
            self.current_index = None
            self.last_index = None
            self.view_offset = 0
            return
        if self.current_index is not None and self.current_index >= count:
            self.current_index = count - 1
        if self.last_index is not None and self.last_index >= count:
            self.last_index = count - 1
        self.view_offset = min(self.view_offset, count - 1)

    def visible_range(self, height: int) -> Tuple[int, int]:
        """Return ``(start, stop)`` of the rows to draw in *height* lines."""
        count = len(self.items)
        if height <= 0 or count == 0:
            return 0, 0
        offset = min(self.view_offset, max(count - height, 0))
        if self.current_index is not None:
            if self.current_index < offset:
                offset = self.current_index
            elif self.current_index >= offset + height:
                offset = self.current_index - height + 1
        self.view_offset = offset
        return offset, min(offset + height, count)


__all__ = ["SelectionList"]
