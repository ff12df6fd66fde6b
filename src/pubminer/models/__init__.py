"""Data models for PubMiner."""

from pubminer.models.model_eutils import (
    AbstractSections,
    ErrorKind,
    ErrorResponse,
    LinkEnvironment,
    MergedRecord,
    SearchContext,
    SearchErrorResponse,
    SearchResultSet,
    Severity,
    SummaryItem,
)

__all__ = [
    "AbstractSections",
    "ErrorKind",
    "ErrorResponse",
    "LinkEnvironment",
    "MergedRecord",
    "SearchContext",
    "SearchErrorResponse",
    "SearchResultSet",
    "Severity",
    "SummaryItem",
]
