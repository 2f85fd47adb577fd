from __future__ import annotations

from typing import Any, Dict, Union

from lxml import etree


def _local(tag: str) -> str:
    # "{namespace}Tag" -> "Tag"
    return etree.QName(tag).localname


def element_to_dict(elem: etree._Element) -> Union[str, Dict[str, Any]]:
    """
    Plain-data view of a streamed element.

    Attributes and child elements become keys (local names); a child name
    that repeats collects its values in a list. A leaf element without
    attributes collapses to its stripped text.
    """
    children = [ch for ch in elem if isinstance(ch.tag, str)]
    text = (elem.text or "").strip()

    if not children and not elem.attrib:
        return text

    out: Dict[str, Any] = {_local(k): v for k, v in elem.attrib.items()}

    for ch in children:
        key = _local(ch.tag)
        value = element_to_dict(ch)
        if key in out:
            if not isinstance(out[key], list):
                out[key] = [out[key]]
            out[key].append(value)
        else:
            out[key] = value

    if text:
        out["#text"] = text
    return out


def element_to_string(elem: etree._Element, *, pretty: bool = False) -> str:
    return etree.tostring(elem, encoding="unicode", pretty_print=pretty)
