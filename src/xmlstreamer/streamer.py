from __future__ import annotations

import functools
import logging
from typing import Callable, Iterator, Optional

from lxml import etree

from .config import StreamerSettings, load_settings
from .cursor import Cursor, LxmlCursor, NodeKind, Source
from .errors import ConfigurationError, CursorError, StreamError, translated
from .matcher import Action, TargetPath, decide

logger = logging.getLogger(__name__)

CursorFactory = Callable[[], Cursor]


class ElementStream:
    """
    Lazy sequence of the elements matching a target path in one document.

    The source is opened on the first next() and closed as soon as the
    traversal ends: exhausted, limit reached, failed, or released early
    through close() / the context manager. `count` is the number of elements
    handed out so far and is final once `finished` is true.
    """

    def __init__(
        self,
        source: Source,
        path: TargetPath,
        cursor: Cursor,
        *,
        max_elements: Optional[int] = None,
        encoding: Optional[str] = None,
    ) -> None:
        self.source = source
        self.path = path
        self.max_elements = max_elements
        self.encoding = encoding
        self.count = 0
        self.finished = False
        self._cursor = cursor
        self._consumer_failure: Optional[BaseException] = None
        self._elements = self._traverse()

    def __iter__(self) -> "ElementStream":
        return self

    def __next__(self) -> etree._Element:
        return next(self._elements)

    def __enter__(self) -> "ElementStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        # The consumer's exception stays authoritative over a failed close.
        self._consumer_failure = exc
        self.close()

    def close(self) -> None:
        """Stop the traversal and release the source."""
        self._elements.close()
        self.finished = True

    def _traverse(self) -> Iterator[etree._Element]:
        cursor = self._cursor
        try:
            with translated("open"):
                cursor.open(self.source, self.encoding)
        except StreamError:
            self.finished = True
            raise
        logger.debug("Streaming %s from %s", self.path, self.source)

        failure: Optional[BaseException] = None
        try:
            while True:
                state = cursor.state
                if state.kind is NodeKind.ELEMENT:
                    action = decide(state, self.path, self.count, self.max_elements)

                    if action is Action.SKIP_SUBTREE:
                        with translated("skip"):
                            more = cursor.skip_subtree()
                        if not more:
                            break
                        continue

                    if action in (Action.EMIT, Action.EMIT_AND_STOP):
                        with translated("materialize"):
                            element = cursor.materialize()
                        self.count += 1
                        yield element

                        if action is Action.EMIT_AND_STOP:
                            break

                        with translated("skip"):
                            more = cursor.skip_subtree()
                        if not more:
                            break
                        continue

                with translated("read"):
                    more = cursor.advance()
                if not more:
                    break
        except GeneratorExit:
            raise
        except BaseException as exc:
            failure = exc
            raise
        finally:
            self.finished = True
            self._release(failure or self._consumer_failure)

    def _release(self, failure: Optional[BaseException]) -> None:
        try:
            self._cursor.close()
        except CursorError as exc:
            if failure is not None:
                logger.warning("Ignoring failure while closing %s: %s", self.source, exc)
                return
            raise StreamError(str(exc), operation="close") from exc
        logger.debug("Streamed %d element(s) from %s", self.count, self.source)


class XMLStreamer:
    """
    Streams the elements at a fixed path of an XML document, one at a time.

        streamer = XMLStreamer("products", "product")
        for product in streamer.stream("products.xml"):
            ...
    """

    def __init__(
        self,
        *element_names: str,
        max_elements: Optional[int] = None,
        encoding: Optional[str] = None,
        cursor_factory: CursorFactory = LxmlCursor,
    ) -> None:
        self.path = TargetPath(element_names)
        self.max_elements: Optional[int] = None
        self.encoding = encoding
        self.cursor_factory = cursor_factory
        if max_elements is not None:
            self.set_max_elements(max_elements)

    @classmethod
    def from_settings(
        cls,
        *element_names: str,
        settings: Optional[StreamerSettings] = None,
        max_elements: Optional[int] = None,
    ) -> "XMLStreamer":
        settings = settings or load_settings()
        return cls(
            *element_names,
            max_elements=max_elements,
            encoding=settings.encoding,
            cursor_factory=functools.partial(LxmlCursor, **settings.cursor_options()),
        )

    @property
    def depth(self) -> int:
        return self.path.last_index

    def set_max_elements(self, max_elements: int) -> None:
        """Cap the number of streamed elements, e.g. to preview a large file."""
        if isinstance(max_elements, bool) or not isinstance(max_elements, int):
            raise ConfigurationError("Max elements must be an integer.")
        if max_elements < 1:
            raise ConfigurationError("Max elements cannot be less than 1.")
        self.max_elements = max_elements

    def set_encoding(self, encoding: Optional[str]) -> None:
        """Encoding of the document, when its XML declaration lacks one or is wrong."""
        self.encoding = encoding

    def stream(self, source: Source) -> ElementStream:
        return ElementStream(
            source,
            self.path,
            self.cursor_factory(),
            max_elements=self.max_elements,
            encoding=self.encoding,
        )

    def consume(self, source: Source, callback: Callable[[etree._Element], object]) -> int:
        """Call `callback` with every streamed element; return how many were streamed."""
        with self.stream(source) as elements:
            for element in elements:
                callback(element)
        return elements.count
