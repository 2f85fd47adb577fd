"""
Stream the elements found at a fixed path of large XML documents, one
subtree at a time, without loading the whole document.
"""

from .config import StreamerSettings, load_settings
from .convert import element_to_dict, element_to_string
from .cursor import Cursor, CursorState, LxmlCursor, NodeKind
from .errors import ConfigurationError, CursorError, StreamError
from .matcher import Action, TargetPath, decide
from .sampler import write_sample
from .streamer import ElementStream, XMLStreamer
from .survey import PathSurvey, survey_paths

__all__ = [
    "XMLStreamer",
    "ElementStream",
    "TargetPath",
    "Action",
    "decide",
    "Cursor",
    "CursorState",
    "LxmlCursor",
    "NodeKind",
    "StreamError",
    "CursorError",
    "ConfigurationError",
    "StreamerSettings",
    "load_settings",
    "element_to_dict",
    "element_to_string",
    "PathSurvey",
    "survey_paths",
    "write_sample",
]
