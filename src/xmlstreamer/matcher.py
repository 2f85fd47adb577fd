from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Tuple

from .cursor import CursorState, NodeKind
from .errors import ConfigurationError


class Action(Enum):
    DESCEND = "descend"
    SKIP_SUBTREE = "skip_subtree"
    EMIT = "emit"
    EMIT_AND_STOP = "emit_and_stop"
    CONTINUE = "continue"


@dataclass(frozen=True)
class TargetPath:
    """
    Element names from the root element down to the elements to stream.
    Index i is the expected name at depth i.
    """

    names: Tuple[str, ...]

    def __post_init__(self) -> None:
        if len(self.names) == 0:
            raise ConfigurationError("Missing element names.")
        for name in self.names:
            if not isinstance(name, str) or not name:
                raise ConfigurationError(f"Invalid element name: {name!r}")

    @classmethod
    def of(cls, names: Iterable[str]) -> "TargetPath":
        return cls(tuple(names))

    @property
    def last_index(self) -> int:
        return len(self.names) - 1

    def __len__(self) -> int:
        return len(self.names)

    def __getitem__(self, depth: int) -> str:
        return self.names[depth]

    def __str__(self) -> str:
        return "/" + "/".join(self.names)


def decide(
    state: CursorState,
    path: TargetPath,
    emitted: int,
    max_elements: Optional[int] = None,
) -> Action:
    if state.kind is not NodeKind.ELEMENT:
        return Action.CONTINUE

    # Never reached while mismatching branches are skipped whole.
    if state.depth > path.last_index:
        return Action.CONTINUE

    if state.name != path[state.depth]:
        return Action.SKIP_SUBTREE

    if state.depth < path.last_index:
        return Action.DESCEND

    if max_elements is not None and emitted + 1 == max_elements:
        return Action.EMIT_AND_STOP
    return Action.EMIT
