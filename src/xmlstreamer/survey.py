from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from .cursor import Cursor, LxmlCursor, NodeKind, Source
from .errors import CursorError, StreamError, translated

logger = logging.getLogger(__name__)


@dataclass
class PathSurvey:
    path_counts: Counter = field(default_factory=Counter)
    max_depth_seen: int = -1
    elements_counted: int = 0
    truncated: bool = False

    def most_common(self, n: int = 30) -> List[Tuple[str, int]]:
        return self.path_counts.most_common(n)

    def suggest_paths(self, n: int = 5) -> List[List[str]]:
        """
        Paths that repeat, most frequent first; good candidates for a
        streamer's element names.
        """
        repeated = [(p, c) for p, c in self.path_counts.most_common() if c > 1]
        return [p.strip("/").split("/") for p, _ in repeated[:n]]

    def as_dict(self, top_n: int = 30) -> Dict[str, object]:
        return {
            "top_paths": self.most_common(top_n),
            "unique_paths": len(self.path_counts),
            "elements_counted": self.elements_counted,
            "max_depth_seen": self.max_depth_seen,
            "truncated": self.truncated,
            "suggested_paths": self.suggest_paths(),
        }


def survey_paths(
    source: Source,
    *,
    max_depth: Optional[int] = None,
    max_nodes: Optional[int] = None,
    encoding: Optional[str] = None,
    cursor: Optional[Cursor] = None,
) -> PathSurvey:
    """
    Walk a document with the cursor and count element paths ("/a/b/c").
    Elements deeper than `max_depth` are skipped with their subtrees.
    """
    cursor = cursor or LxmlCursor()
    survey = PathSurvey()
    stack: List[str] = []

    with translated("open"):
        cursor.open(source, encoding)

    failure: Optional[BaseException] = None
    try:
        with translated("read"):
            more = cursor.advance()
        while more:
            state = cursor.state

            if state.kind is NodeKind.END_ELEMENT:
                del stack[state.depth:]
            elif state.kind is NodeKind.ELEMENT:
                if max_depth is not None and state.depth > max_depth:
                    with translated("skip"):
                        more = cursor.skip_subtree()
                    continue

                del stack[state.depth:]
                stack.append(state.name)
                survey.path_counts["/" + "/".join(stack)] += 1
                survey.elements_counted += 1
                survey.max_depth_seen = max(survey.max_depth_seen, state.depth)

                if max_nodes is not None and survey.elements_counted >= max_nodes:
                    survey.truncated = True
                    break

            with translated("read"):
                more = cursor.advance()
    except Exception as exc:
        failure = exc
        raise
    finally:
        try:
            cursor.close()
        except CursorError as exc:
            if failure is None:
                raise StreamError(str(exc), operation="close") from exc
            logger.warning("Ignoring failure while closing %s: %s", source, exc)

    return survey
