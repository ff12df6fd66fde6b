"""
Abstract extraction from efetch XML documents.

The abstract node comes in several shapes depending on the record:

  * a list of labeled sections (PubMed ``AbstractText Label=...`` siblings,
    or PMC ``<sec><title/><p/></sec>`` siblings)
  * a single object (an element with attributes, or a PMC ``<abstract><p>``)
  * plain text

The node is first classified into one of the closed set of shapes below and
only then rendered, so no field probing leaks into callers.
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel

from pubminer.constants import ERROR_FRAGMENT_MAX
from pubminer.data_sources.base_client import InvalidDocumentFormatError
from pubminer.helpers.xml_helpers import dig, parse_xml, text_of
from pubminer.models.model_eutils import AbstractSections

logger = logging.getLogger(__name__)

SOURCE = "eutils"

# Where the abstract lives, per document flavour.
_PMC_ABSTRACT_PATH = ("pmc-articleset", "article", "front", "article-meta", "abstract")
_PUBMED_ABSTRACT_PATH = (
    "PubmedArticleSet",
    "PubmedArticle",
    "MedlineCitation",
    "Article",
    "Abstract",
    "AbstractText",
)
# [1:] drops the set wrapper for bare <article> / <PubmedArticle> roots.
_PMC_PATHS = (_PMC_ABSTRACT_PATH, _PMC_ABSTRACT_PATH[1:])
_PUBMED_PATHS = (_PUBMED_ABSTRACT_PATH, _PUBMED_ABSTRACT_PATH[1:])


class AbstractShape(str, Enum):
    MULTI_SECTION = "multi_section"
    SINGLE_SECTION = "single_section"
    PLAIN_TEXT = "plain_text"
    MALFORMED = "malformed"


class AbstractSegment(BaseModel):
    label: str | None = None
    text: str


class ClassifiedAbstract(BaseModel):
    shape: AbstractShape
    segments: list[AbstractSegment] = []
    detail: str = ""  # describes the offending shape when MALFORMED


def _label_of(segment: dict[str, Any]) -> str | None:
    label = segment.get("@Label")
    if label is None:
        label = text_of(segment.get("title"))
    return label or None


def _malformed(detail: str) -> ClassifiedAbstract:
    return ClassifiedAbstract(shape=AbstractShape.MALFORMED, detail=detail)


def classify_abstract(node: Any) -> ClassifiedAbstract:
    """Decide which shape ``node`` has and collect its text segments."""
    if isinstance(node, dict) and "sec" in node:
        # PMC container: the sections carry the content.
        return classify_abstract(node["sec"])

    if isinstance(node, list):
        segments = []
        for i, seg in enumerate(node):
            if not isinstance(seg, dict):
                return _malformed(f"section {i} is {type(seg).__name__}, not labeled")
            label = _label_of(seg)
            if label is None:
                return _malformed(f"section {i} has no label")
            segments.append(AbstractSegment(label=label, text=text_of(seg) or ""))
        if not segments:
            return _malformed("empty section list")
        return ClassifiedAbstract(shape=AbstractShape.MULTI_SECTION, segments=segments)

    if isinstance(node, dict):
        text = text_of(node)
        if text is None:
            return _malformed(f"object without text (keys: {sorted(node)})")
        return ClassifiedAbstract(
            shape=AbstractShape.SINGLE_SECTION,
            segments=[AbstractSegment(label=_label_of(node), text=text)],
        )

    if isinstance(node, str):
        return ClassifiedAbstract(
            shape=AbstractShape.PLAIN_TEXT, segments=[AbstractSegment(text=node)]
        )

    if node is None:
        return _malformed("abstract is missing")
    return _malformed(f"unexpected {type(node).__name__}")


def render_abstract(classified: ClassifiedAbstract) -> AbstractSections:
    """Turn a classified abstract into the canonical sections mapping."""
    if classified.shape is AbstractShape.MULTI_SECTION:
        sections: AbstractSections = {}
        for seg in classified.segments:
            # last write wins on duplicate labels
            sections[seg.label.lower()] = seg.text
        return sections
    if classified.shape in (AbstractShape.SINGLE_SECTION, AbstractShape.PLAIN_TEXT):
        return {"abstract": classified.segments[0].text}
    raise ValueError(f"cannot render a {classified.shape.value} abstract")


def select_main_abstract(node: Any) -> Any:
    """Pick the main abstract out of sibling PMC <abstract> elements.

    article-meta may carry extra abstracts (author summary, graphical
    abstract) tagged with ``abstract-type``; the untyped one is the main
    abstract. With every sibling typed, the first one is used.
    """
    if not isinstance(node, list) or not node:
        return node
    for candidate in node:
        if not (isinstance(candidate, dict) and "@abstract-type" in candidate):
            return candidate
    return node[0]


def locate_abstract(document: dict[str, Any]) -> Any:
    """Return the abstract node of a converted efetch document, or None."""
    for path in _PMC_PATHS:
        node = dig(document, *path)
        if node is not None:
            return select_main_abstract(node)
    for path in _PUBMED_PATHS:
        node = dig(document, *path)
        if node is not None:
            return node
    return None


def extract_abstract(
    xml_document: str | bytes | dict[str, Any], record_id: str | None = None
) -> AbstractSections:
    """Extract the abstract sections from an efetch document.

    Accepts raw XML or an already converted document. Returns either
    ``{label: text, ...}`` with lower-cased labels, or ``{"abstract": text}``.

    Raises InvalidDocumentFormatError for unparseable XML and for any
    abstract shape outside the recognized ones, including a missing abstract.
    """
    if isinstance(xml_document, dict):
        document = xml_document
    else:
        document = parse_xml(xml_document, record_id=record_id)

    node = locate_abstract(document)
    classified = classify_abstract(node)
    if classified.shape is AbstractShape.MALFORMED:
        logger.warning(
            "unexpected abstract format for %s: %s", record_id, classified.detail
        )
        raise InvalidDocumentFormatError(
            SOURCE,
            f"unexpected abstract format: {classified.detail}",
            step="detail",
            record_id=record_id,
            fragment=repr(node)[:ERROR_FRAGMENT_MAX],
        )
    return render_abstract(classified)
