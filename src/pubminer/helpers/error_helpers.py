"""
Error classification.

Maps raw transport and parse failures onto the small taxonomy callers see
(TransportError, InvalidDocumentFormatError) and builds the caller-facing
error shapes. A blank query is not an error; ``is_empty_query``
lets callers short-circuit it to an empty result.
"""

import asyncio
import logging
from xml.parsers.expat import ExpatError

import aiohttp

from pubminer.data_sources.base_client import (
    DataSourceError,
    InvalidDocumentFormatError,
    TransportError,
)
from pubminer.models.model_eutils import (
    ErrorKind,
    ErrorResponse,
    SearchErrorResponse,
    Severity,
)

logger = logging.getLogger(__name__)

SOURCE = "eutils"
DEFAULT_MESSAGE = "An unexpected error occurred. Please try again."

_SHAPE_ERRORS = (KeyError, IndexError, TypeError, ValueError, ExpatError)


def is_empty_query(term: str | None) -> bool:
    return term is None or not term.strip()


def classify_error(
    exc: BaseException, step: str = "unknown", record_id: str | None = None
) -> DataSourceError:
    """Return ``exc`` as a member of the error taxonomy.

    Already-classified errors pass through unchanged. Anything that is not a
    transport or document-shape failure is re-raised.
    """
    if isinstance(exc, DataSourceError):
        return exc
    if isinstance(exc, (asyncio.TimeoutError, aiohttp.ClientError)):
        return TransportError(SOURCE, f"{type(exc).__name__}: {exc}", cause=exc)
    if isinstance(exc, _SHAPE_ERRORS):
        return InvalidDocumentFormatError(
            SOURCE,
            f"{type(exc).__name__}: {exc}",
            step=step,
            record_id=record_id,
        )
    raise exc


def error_kind(err: DataSourceError) -> ErrorKind:
    if isinstance(err, InvalidDocumentFormatError):
        return ErrorKind.INVALID_DOCUMENT
    return ErrorKind.TRANSPORT


def error_severity(err: DataSourceError) -> Severity:
    # Upstream shape drift affects one record; transport failures affect all.
    if isinstance(err, InvalidDocumentFormatError):
        return Severity.WARNING
    return Severity.DANGER


def error_response(err: DataSourceError, record_id: str | None = None) -> ErrorResponse:
    """Caller-facing failure for a single detail fetch."""
    if record_id is None and isinstance(err, InvalidDocumentFormatError):
        record_id = err.record_id
    return ErrorResponse(
        error=err.message or DEFAULT_MESSAGE,
        kind=error_kind(err),
        severity=error_severity(err),
        record_id=record_id,
    )


def search_error_response(term: str, err: DataSourceError) -> SearchErrorResponse:
    """Caller-facing failure for a search chain; counts are zeroed."""
    return SearchErrorResponse(
        search_term=term,
        error=err.message or DEFAULT_MESSAGE,
        kind=error_kind(err),
        severity=Severity.DANGER,
    )
