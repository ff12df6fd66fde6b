"""
Generic XML → structured-data conversion.

Documents become nested dicts/lists/strings following the xmltodict
conventions: attributes are prefixed with ``@``, element text sits under
``#text`` when the element also has attributes or children, repeated
siblings become lists, and a text-only element collapses to a plain string.
Those conventions are exactly what produces the shape variance the abstract
normalizer has to resolve.
"""

import re
from typing import Any
from xml.parsers.expat import ExpatError

import xmltodict

from pubminer.constants import ERROR_FRAGMENT_MAX, INLINE_MARKUP_TAGS
from pubminer.data_sources.base_client import InvalidDocumentFormatError

SOURCE = "eutils"

# Opening, closing or empty tag of an inline element. The lookahead keeps
# <b> from matching <body> and <sub> from matching <subject>.
_INLINE_TAG = re.compile(
    r"</?(?:" + "|".join(INLINE_MARKUP_TAGS) + r")(?=[\s/>])[^>]*>"
)


def strip_inline_markup(raw: str) -> str:
    """Drop inline formatting tags, keeping their text in place.

    xmltodict splits mixed content into ``#text`` plus child keys and loses
    their relative order, so <italic>, <sub> and friends are flattened into
    the surrounding text before conversion.
    """
    return _INLINE_TAG.sub("", raw)


def parse_xml(raw: str | bytes, record_id: str | None = None) -> dict[str, Any]:
    """Parse an XML document into a nested mapping.

    Raises InvalidDocumentFormatError when the body is empty or not
    well-formed XML.
    """
    if not raw or not raw.strip():
        raise InvalidDocumentFormatError(
            SOURCE, "empty XML document", step="parse", record_id=record_id
        )
    text = raw.decode(errors="replace") if isinstance(raw, bytes) else raw
    try:
        return xmltodict.parse(strip_inline_markup(text))
    except ExpatError as e:
        raise InvalidDocumentFormatError(
            SOURCE,
            f"failed to parse XML: {e}",
            step="parse",
            record_id=record_id,
            fragment=text[:ERROR_FRAGMENT_MAX],
        ) from e


def dig(node: Any, *path: str) -> Any:
    """Follow ``path`` through nested dicts, returning None at the first gap.

    A list met along the way is entered through its first element, which is
    how single-record efetch responses are read.
    """
    for key in path:
        if isinstance(node, list):
            node = node[0] if node else None
        if not isinstance(node, dict):
            return None
        node = node.get(key)
    return node


def text_of(node: Any) -> str | None:
    """Return the text payload of a converted element, or None if it has none.

    Strings are returned as-is, ``#text`` is used for elements with
    attributes, and ``p`` for PMC containers whose text lives in paragraphs.
    Lists of paragraphs are joined with a blank line.
    """
    if isinstance(node, str):
        return node
    if isinstance(node, list):
        parts = [t for t in (text_of(n) for n in node) if t]
        return "\n\n".join(parts) if parts else None
    if isinstance(node, dict):
        if "#text" in node:
            return node["#text"]
        if "p" in node:
            return text_of(node["p"])
    return None
