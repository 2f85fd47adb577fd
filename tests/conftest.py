"""
Shared fixtures: XML documents written to tmp_path and a scripted cursor
that records every operation the streamer performs.
"""

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pytest
from lxml import etree

from xmlstreamer.cursor import NO_NODE, Cursor, CursorState, NodeKind
from xmlstreamer.errors import CursorError

DOCUMENTS: Dict[str, str] = {
    "products-empty.xml": "<products></products>",
    "products-depth-0.xml": '<?xml version="1.0"?>\n<product id="1"><name>foo</name></product>\n',
    "products-depth-1.xml": (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<products>\n"
        "  <!-- two products -->\n"
        '  <product id="1"><name>foo</name></product>\n'
        '  <product id="2"><name>bar</name></product>\n'
        "</products>\n"
    ),
    "products-depth-2.xml": (
        "<root>"
        "<products>"
        '<product id="1"><name>foo</name></product>'
        '<product id="2"><name>bar</name></product>'
        '<product id="3"><name>baz</name></product>'
        "</products>"
        "<discontinued-products>"
        '<product id="1234"><name>oldie</name></product>'
        "</discontinued-products>"
        "</root>"
    ),
    "empty.xml": "",
    "no-root.xml": '<?xml version="1.0"?>\n',
    "unclosed-root-no-contents.xml": "<a>",
    "unclosed-root-with-contents.xml": "<a><b>1</b>",
    "products-unclosed-element.xml": '<products><product id="1"><name>foo</name></products>',
    "products-invalid-entity.xml": '<products><product id="1"><name>foo & bar</name></product></products>',
}

LATIN1_NAME = "äëïöü"


@pytest.fixture
def xml_file(tmp_path):
    """Write one of DOCUMENTS (or literal content) to disk and return its path."""

    def _write(name: str, content: Optional[str] = None) -> Path:
        path = tmp_path / name
        path.write_text(DOCUMENTS[name] if content is None else content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def latin1_file(tmp_path):
    def _write(declared: bool) -> Path:
        decl = '<?xml version="1.0" encoding="ISO-8859-1"?>\n' if declared else ""
        body = f"{decl}<products><product><name>{LATIN1_NAME}</name></product></products>"
        path = tmp_path / ("iso-8859-1.xml" if declared else "iso-8859-1-no-encoding.xml")
        path.write_bytes(body.encode("iso-8859-1"))
        return path

    return _write


@pytest.fixture
def clean_env(monkeypatch):
    for key in ("ENCODING", "HUGE_TREE", "RESOLVE_ENTITIES", "NO_NETWORK", "LOG_LEVEL"):
        # setenv first so the variable is removed again on undo, even if a
        # .env file loaded during the test set it.
        monkeypatch.setenv("XMLSTREAMER_" + key, "")
        monkeypatch.delenv("XMLSTREAMER_" + key)
    return monkeypatch


# ----------------------------------------------------------------------
# Scripted cursor

Tree = Tuple[str, Sequence["Tree"]]


def flatten(tree: Tree, depth: int = 0) -> List[CursorState]:
    name, children = tree
    nodes = [CursorState(NodeKind.ELEMENT, name, depth)]
    for child in children:
        nodes.extend(flatten(child, depth + 1))
    nodes.append(CursorState(NodeKind.END_ELEMENT, name, depth))
    return nodes


class ScriptedCursor(Cursor):
    """
    Cursor over a precomputed node list. Records operations in `calls` and
    the node indexes it lands on in `visited`.
    """

    def __init__(
        self,
        nodes: List[CursorState],
        *,
        fail: Optional[Dict[str, str]] = None,
        fail_at_node: Optional[int] = None,
    ):
        self.nodes = nodes
        self.fail = fail or {}
        self.fail_at_node = fail_at_node
        self.calls: List[str] = []
        self.visited: List[int] = []
        self.closed = False
        self.source = None
        self.encoding = None
        self._index = -1

    @classmethod
    def of(cls, tree: Tree, **kwargs) -> "ScriptedCursor":
        return cls(flatten(tree), **kwargs)

    @property
    def state(self) -> CursorState:
        if 0 <= self._index < len(self.nodes):
            return self.nodes[self._index]
        return NO_NODE

    def open(self, source, encoding=None) -> None:
        self._call("open")
        self.source = source
        self.encoding = encoding

    def advance(self) -> bool:
        self._call("read")
        return self._move(self._index + 1)

    def skip_subtree(self) -> bool:
        self._call("skip")
        state = self.state
        if state.kind is not NodeKind.ELEMENT:
            return self._move(self._index + 1)
        end = self._index + 1
        while not (self.nodes[end].kind is NodeKind.END_ELEMENT and self.nodes[end].depth == state.depth):
            end += 1
        return self._move(end + 1)

    def materialize(self):
        self._call("materialize")
        elem = etree.Element(self.state.name)
        elem.set("position", str(self._index))
        return elem

    def close(self) -> None:
        self.closed = True
        self._call("close")

    def _call(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail:
            raise CursorError(self.fail[operation])

    def _move(self, index: int) -> bool:
        if self.fail_at_node is not None and index == self.fail_at_node:
            raise CursorError("parser error : Opening and ending tag mismatch")
        self._index = index
        if index < len(self.nodes):
            self.visited.append(index)
            return True
        return False


PRODUCTS: Tree = (
    "products",
    [
        ("product", [("name", [])]),
        ("product", [("name", [])]),
        ("product", [("name", [])]),
    ],
)


@pytest.fixture
def products_tree() -> Tree:
    return PRODUCTS
