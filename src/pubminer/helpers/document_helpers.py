"""
Normalization of E-utilities JSON documents.

Turns esearch / elink / esummary responses into the canonical models and
merges side datasets (e.g. demographic annotations) into summary records.
"""

import json
import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any

from pubminer.constants import ERROR_FRAGMENT_MAX, LINKED_ID_TYPE
from pubminer.data_sources.base_client import InvalidDocumentFormatError
from pubminer.models.model_eutils import (
    LinkEnvironment,
    MergedRecord,
    SearchContext,
    SummaryItem,
)

logger = logging.getLogger(__name__)

SOURCE = "eutils"


def _fragment(doc: Any) -> str:
    try:
        return json.dumps(doc, default=str)[:ERROR_FRAGMENT_MAX]
    except (TypeError, ValueError):
        return repr(doc)[:ERROR_FRAGMENT_MAX]


def _invalid(
    message: str, step: str, doc: Any, record_id: str | None = None
) -> InvalidDocumentFormatError:
    return InvalidDocumentFormatError(
        SOURCE, message, step=step, record_id=record_id, fragment=_fragment(doc)
    )


def extract_linked_ids(
    summary_document: Mapping[str, Any],
    id_type: str,
    transform: Callable[[str], str] | None = None,
) -> dict[str, str]:
    """Map each summary ``uid`` to its alternate id of type ``id_type``.

    uids without such an id are left out of the result rather than mapped
    to None. Never raises: a document in an unexpected shape yields an empty
    (or partial) map.
    """
    if not isinstance(summary_document, Mapping):
        return {}
    result = summary_document.get("result")
    if not isinstance(result, Mapping):
        return {}
    uids = result.get("uids")
    if not isinstance(uids, list):
        return {}

    linked: dict[str, str] = {}
    for uid in uids:
        if not isinstance(uid, str):
            continue
        record = result.get(uid)
        if not isinstance(record, Mapping):
            continue
        article_ids = record.get("articleids")
        if not isinstance(article_ids, list):
            continue
        match = next(
            (
                a
                for a in article_ids
                if isinstance(a, Mapping) and a.get("idtype") == id_type
            ),
            None,
        )
        if match is None or not match.get("value"):
            continue
        value = str(match["value"])
        linked[uid] = transform(value) if transform else value
    return linked


def extract_search_result(
    search_document: Mapping[str, Any], term: str
) -> SearchContext:
    """Project an esearch response onto a SearchContext."""
    try:
        esr = search_document["esearchresult"]
        return SearchContext(
            search_term=term,
            web_env=str(esr["webenv"]),
            query_key=str(esr["querykey"]),
            items_found=esr["count"],
            items_returned=esr["retmax"],
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.error("error extracting search results: %s", e)
        raise _invalid(
            f"missing or malformed field {e}", "search", search_document
        ) from e


def extract_link_environment(
    link_document: Mapping[str, Any], previous_query_key: str
) -> LinkEnvironment:
    """Return the session tokens to use after an elink request.

    elink only stores a new result set (and issues a new query key) when it
    returns a ``linksetdbhistories`` section. Without one the link result set
    is the search result set and ``previous_query_key`` is carried forward.
    """
    try:
        link_set = link_document["linksets"][0]
        web_env = str(link_set["webenv"])
    except (KeyError, IndexError, TypeError) as e:
        logger.error("error extracting environment from link results: %s", e)
        raise _invalid(f"missing webenv ({e})", "link", link_document) from e

    histories = link_set.get("linksetdbhistories")
    if not histories:
        logger.debug(
            "elink returned no history; reusing query_key=%s", previous_query_key
        )
        return LinkEnvironment(web_env=web_env, query_key=previous_query_key)

    try:
        query_key = str(histories[0]["querykey"])
    except (KeyError, IndexError, TypeError) as e:
        raise _invalid(
            f"malformed linksetdbhistories ({e})", "link", link_document
        ) from e
    return LinkEnvironment(web_env=web_env, query_key=query_key)


def _author_names(authors: Any) -> list[str]:
    if not isinstance(authors, list):
        return []
    names = []
    for author in authors:
        if isinstance(author, Mapping):
            name = author.get("name")
        else:
            name = author
        if name:
            names.append(str(name))
    return names


def extract_summary_items(
    summary_document: Mapping[str, Any], id_type: str = LINKED_ID_TYPE
) -> list[SummaryItem]:
    """Flatten an esummary response into SummaryItems in upstream order."""
    try:
        result = summary_document["result"]
        uids = result["uids"]
    except (KeyError, TypeError) as e:
        raise _invalid(
            f"missing result uids ({e})", "summary", summary_document
        ) from e
    if not isinstance(uids, list):
        raise _invalid("uids is not a list", "summary", summary_document)

    linked_ids = extract_linked_ids(summary_document, id_type)
    items = []
    for uid in uids:
        record = result.get(uid)
        if not isinstance(record, Mapping):
            raise _invalid(
                "record listed in uids is missing", "summary", summary_document, uid
            )
        items.append(
            SummaryItem(
                uid=str(record.get("uid", uid)),
                title=record.get("title") or "",
                authors=_author_names(record.get("authors")),
                pubdate=record.get("pubdate") or "",
                linked_id=linked_ids.get(uid),
            )
        )
    return items


def merge_side_dataset(
    summary_items: Sequence[SummaryItem],
    side_dataset: Mapping[str, Mapping[str, Any]],
) -> list[MergedRecord]:
    """Left-join ``side_dataset`` onto summary items by uid.

    The record's ``uid`` becomes its PubMed id (``pmid``); the summary uid is
    kept as ``pmcid``. Items without side data merge with nothing. Side fields
    must not overlap the summary fields; on overlap the side value wins.
    """
    merged = []
    for item in summary_items:
        fields = {
            "uid": item.linked_id,
            "title": item.title,
            "authors": list(item.authors),
            "pubdate": item.pubdate,
            "pmid": item.linked_id,
            "pmcid": item.uid,
        }
        fields.update(side_dataset.get(item.uid) or {})
        merged.append(MergedRecord(**fields))
    return merged
