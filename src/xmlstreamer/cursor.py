from __future__ import annotations

import copy
import logging
import os
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import IO, Deque, Iterator, Optional, Tuple, Union

from lxml import etree

from .errors import CursorError

logger = logging.getLogger(__name__)

Source = Union[str, "os.PathLike[str]", IO[bytes]]

_EVENTS = ("start", "end", "comment", "pi")


class NodeKind(Enum):
    NONE = "none"
    ELEMENT = "element"
    END_ELEMENT = "end_element"
    COMMENT = "comment"
    PROCESSING_INSTRUCTION = "processing_instruction"


@dataclass(frozen=True)
class CursorState:
    kind: NodeKind
    name: str
    depth: int


NO_NODE = CursorState(NodeKind.NONE, "", 0)


class Cursor(ABC):
    """
    Forward-only pull cursor over the nodes of an XML document.

    Every operation may raise CursorError. The two advance operations return
    False at a clean end of document.
    """

    @abstractmethod
    def open(self, source: Source, encoding: Optional[str] = None) -> None:
        ...

    @property
    @abstractmethod
    def state(self) -> CursorState:
        ...

    @abstractmethod
    def advance(self) -> bool:
        """Move to the next node in document order."""

    @abstractmethod
    def skip_subtree(self) -> bool:
        """Move to the next node, skipping the current element's descendants."""

    @abstractmethod
    def materialize(self) -> etree._Element:
        """Return the current element, with its whole subtree, as a detached tree."""

    @abstractmethod
    def close(self) -> None:
        ...


def qualified_name(elem: etree._Element) -> str:
    # "{namespace}local" with prefix "p" -> "p:local"
    local = etree.QName(elem).localname
    if elem.prefix:
        return f"{elem.prefix}:{local}"
    return local


def _parser_encoding(encoding: Optional[str]) -> Optional[str]:
    # UTF-8 is the parser default: an override naming it leaves the document's
    # own declaration in charge.
    if encoding is not None and encoding.strip().lower().replace("_", "-") in ("utf-8", "utf8"):
        return None
    return encoding


def _release(elem: etree._Element) -> None:
    elem.clear(keep_tail=False)
    parent = elem.getparent()
    if parent is None:
        return
    while elem.getprevious() is not None:
        del parent[0]


class LxmlCursor(Cursor):
    """
    Pull cursor built on lxml's iterparse (start/end/comment/pi events).

    Elements are released once the cursor moves past their end, so memory
    stays proportional to the current branch and not to the document.
    """

    def __init__(
        self,
        *,
        huge_tree: bool = False,
        resolve_entities: bool = False,
        no_network: bool = True,
    ) -> None:
        self.huge_tree = huge_tree
        self.resolve_entities = resolve_entities
        self.no_network = no_network

        self._stream: Optional[IO[bytes]] = None
        self._owns_stream = False
        self._events: Optional[Iterator[Tuple[str, etree._Element]]] = None
        self._replay: Deque[Tuple[str, etree._Element]] = deque()
        self._state = NO_NODE
        self._element: Optional[etree._Element] = None
        self._open_elements = 0

    @property
    def state(self) -> CursorState:
        return self._state

    def open(self, source: Source, encoding: Optional[str] = None) -> None:
        if self._events is not None:
            raise CursorError("Cursor is already open")

        if hasattr(source, "read"):
            stream, owns = source, False
        else:
            try:
                stream, owns = open(os.fspath(source), "rb"), True
            except (OSError, TypeError) as exc:
                raise CursorError(f"Unable to open source data: {exc}") from exc

        try:
            context = etree.iterparse(
                stream,
                events=_EVENTS,
                encoding=_parser_encoding(encoding),
                huge_tree=self.huge_tree,
                resolve_entities=self.resolve_entities,
                no_network=self.no_network,
                recover=False,
            )
        except (etree.LxmlError, LookupError, TypeError) as exc:
            if owns:
                stream.close()
            raise CursorError(f"Unable to open source data: {exc}") from exc

        self._stream, self._owns_stream = stream, owns
        self._events = iter(context)
        self._replay.clear()
        self._state = NO_NODE
        self._element = None
        self._open_elements = 0
        logger.debug("Opened %s (encoding=%s)", getattr(stream, "name", stream), encoding)

    def advance(self) -> bool:
        self._require_open()
        return self._step()

    def skip_subtree(self) -> bool:
        self._require_open()
        if self._state.kind is not NodeKind.ELEMENT:
            return self._step()

        depth = self._state.depth
        while True:
            if not self._step():
                return False
            if self._state.kind is NodeKind.END_ELEMENT and self._state.depth == depth:
                break
        return self._step()

    def materialize(self) -> etree._Element:
        self._require_open()
        if self._state.kind is not NodeKind.ELEMENT or self._element is None:
            raise CursorError(f"Cannot materialize a {self._state.kind.value} node")

        # Read ahead to the element's end; the events are replayed by the
        # next advance so the cursor position does not move.
        consumed = []
        level = 0
        while True:
            item = self._next_event()
            if item is None:
                raise CursorError(f"Unexpected end of document inside <{self._state.name}>")
            consumed.append(item)
            event = item[0]
            if event == "start":
                level += 1
            elif event == "end":
                if level == 0:
                    break
                level -= 1
        self._replay.extendleft(reversed(consumed))

        subtree = copy.deepcopy(self._element)
        subtree.tail = None
        return subtree

    def close(self) -> None:
        stream, owns = self._stream, self._owns_stream
        self._stream = None
        self._owns_stream = False
        self._events = None
        self._replay.clear()
        self._state = NO_NODE
        self._element = None
        self._open_elements = 0

        if stream is not None and owns:
            try:
                stream.close()
            except OSError as exc:
                raise CursorError(str(exc)) from exc
            logger.debug("Closed %s", getattr(stream, "name", stream))

    # ------------------------------------------------------------------

    def _require_open(self) -> None:
        if self._events is None:
            raise CursorError("Cursor is not open")

    def _next_event(self) -> Optional[Tuple[str, etree._Element]]:
        if self._replay:
            return self._replay.popleft()
        try:
            return next(self._events)
        except StopIteration:
            return None
        except (etree.LxmlError, OSError, LookupError, UnicodeError) as exc:
            raise CursorError(str(exc)) from exc

    def _step(self) -> bool:
        if self._state.kind is NodeKind.END_ELEMENT and self._element is not None:
            _release(self._element)

        item = self._next_event()
        if item is None:
            self._state = NO_NODE
            self._element = None
            return False

        event, elem = item
        if event == "start":
            self._state = CursorState(NodeKind.ELEMENT, qualified_name(elem), self._open_elements)
            self._open_elements += 1
        elif event == "end":
            self._open_elements -= 1
            self._state = CursorState(NodeKind.END_ELEMENT, qualified_name(elem), self._open_elements)
        elif event == "pi":
            self._state = CursorState(NodeKind.PROCESSING_INSTRUCTION, elem.target, self._open_elements)
        else:
            self._state = CursorState(NodeKind.COMMENT, "", self._open_elements)
        self._element = elem
        return True
