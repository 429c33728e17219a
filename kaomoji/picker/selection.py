"""Grid-aware selection cursor over the current result set."""

from dataclasses import dataclass, replace
from enum import Enum


class NavKey(Enum):
    """Navigation inputs understood by the selection controller."""
    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    HOME = "home"
    END = "end"


@dataclass(frozen=True)
class SelectionState:
    """
    Cursor into a result set of `length` items laid out in `columns`
    columns. Invariant: 0 <= cursor < length, or cursor == 0 when empty.
    """
    cursor: int = 0
    length: int = 0
    columns: int = 1


def clamp(state: SelectionState, new_length: int) -> SelectionState:
    """Re-validate the cursor after the result set changed size."""
    if new_length <= 0:
        return replace(state, cursor=0, length=0)
    cursor = state.cursor
    if cursor >= new_length:
        cursor = new_length - 1
    elif cursor < 0:
        cursor = 0
    return replace(state, cursor=cursor, length=new_length)


def move_to(state: SelectionState, index: int) -> SelectionState:
    if state.length == 0:
        return replace(state, cursor=0)
    return replace(state, cursor=max(0, min(index, state.length - 1)))


def navigate(state: SelectionState, key: NavKey) -> SelectionState:
    """
    Pure transition for a navigation key.

    Horizontal moves wrap around, vertical moves clamp at the edges.
    Every move is a no-op on an empty result set.
    """
    if state.length == 0:
        return state

    if key is NavKey.RIGHT:
        return replace(state, cursor=(state.cursor + 1) % state.length)
    if key is NavKey.LEFT:
        return replace(state, cursor=(state.cursor - 1) % state.length)
    if key is NavKey.DOWN:
        return move_to(state, state.cursor + state.columns)
    if key is NavKey.UP:
        return move_to(state, state.cursor - state.columns)
    if key is NavKey.HOME:
        return replace(state, cursor=0)
    if key is NavKey.END:
        return replace(state, cursor=state.length - 1)
    return state


class SelectionController:
    """Holds the selection state and funnels every change through navigate()."""

    def __init__(self, columns: int = 1):
        self.state = SelectionState(columns=max(1, int(columns)))

    @property
    def cursor(self) -> int:
        return self.state.cursor

    @property
    def length(self) -> int:
        return self.state.length

    @property
    def columns(self) -> int:
        return self.state.columns

    def set_columns(self, columns: int) -> None:
        """Update the grid column count supplied by the rendering surface."""
        self.state = replace(self.state, columns=max(1, int(columns)))

    def on_result_set_changed(self, new_length: int) -> None:
        self.state = clamp(self.state, new_length)

    def apply(self, key: NavKey) -> int:
        self.state = navigate(self.state, key)
        return self.state.cursor

    def move_right(self) -> int:
        return self.apply(NavKey.RIGHT)

    def move_left(self) -> int:
        return self.apply(NavKey.LEFT)

    def move_down(self) -> int:
        return self.apply(NavKey.DOWN)

    def move_up(self) -> int:
        return self.apply(NavKey.UP)

    def move_to(self, index: int) -> int:
        self.state = move_to(self.state, index)
        return self.state.cursor
