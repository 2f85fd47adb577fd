from __future__ import annotations

from pathlib import Path
from typing import Iterable, Sequence, Union

from lxml import etree

from .errors import ConfigurationError


def write_sample(
    elements: Iterable[etree._Element],
    output_path: Union[str, Path],
    container_names: Sequence[str],
    max_n: int = 100,
) -> int:
    """
    Write up to `max_n` streamed elements into a small standalone document.

    `container_names` are the elements wrapping the samples, from the root
    down (for a stream of products/product: ["products"]).
    """
    if not container_names:
        raise ConfigurationError("A sample needs at least one container element.")

    root = etree.Element(container_names[0])
    container = root
    for name in container_names[1:]:
        container = etree.SubElement(container, name)

    count = 0
    if max_n > 0:
        # Stop as soon as the sample is full so no further element is read.
        for elem in elements:
            container.append(elem)
            count += 1
            if count >= max_n:
                break

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    etree.ElementTree(root).write(str(output_path), pretty_print=True, xml_declaration=True, encoding="UTF-8")
    return count
