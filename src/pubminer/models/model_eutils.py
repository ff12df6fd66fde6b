"""
Pydantic models for E-utilities data.

These are the data contracts between the E-utilities client and its callers.
Callers receive these models - they never see raw API responses. Fields are
snake_case in Python and serialize with camelCase aliases
(``model_dump(by_alias=True)``) for the caller-facing shape.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ------------------------------------------------------------------
# Session state threaded through the query chain
# ------------------------------------------------------------------


class SearchContext(_CamelModel):
    """Result of the esearch step.

    ``web_env``/``query_key`` identify a result set on the NCBI history
    server. They are valid only for the session that issued them and are
    never cached or reused across searches.
    """

    model_config = ConfigDict(frozen=True)

    search_term: str
    web_env: str
    query_key: str
    items_found: int
    items_returned: int


class LinkEnvironment(_CamelModel):
    """Effective session tokens after the elink step."""

    model_config = ConfigDict(frozen=True)

    web_env: str
    query_key: str


# ------------------------------------------------------------------
# Summary records
# ------------------------------------------------------------------


class SummaryItem(_CamelModel):
    """One esummary record."""

    model_config = ConfigDict(frozen=True)

    uid: str  # PMC uid, e.g. "5858162"
    title: str = ""
    authors: list[str] = []
    pubdate: str = ""
    linked_id: str | None = None  # PubMed id, None when unlinked


class MergedRecord(_CamelModel):
    """A summary record with a side dataset (e.g. demographics) merged in.

    Side-dataset fields are stored as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    uid: str | None  # PubMed id when linked
    title: str = ""
    authors: list[str] = []
    pubdate: str = ""
    pmid: str | None = None
    pmcid: str


class SearchResultSet(_CamelModel):
    """Caller-facing search result."""

    search_term: str
    items_found: int
    items_returned: int
    items: list[SummaryItem] = []

    @classmethod
    def empty(cls) -> "SearchResultSet":
        """The result for a blank query; no upstream request is made."""
        return cls(search_term="", items_found=0, items_returned=0, items=[])


# ------------------------------------------------------------------
# Error shapes
# ------------------------------------------------------------------


class Severity(str, Enum):
    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    INVALID_DOCUMENT = "invalid_document"


class ErrorResponse(_CamelModel):
    """Caller-facing failure for a single detail fetch."""

    error: str
    kind: ErrorKind
    severity: Severity = Severity.DANGER
    record_id: str | None = None


class SearchErrorResponse(_CamelModel):
    """Caller-facing failure for a whole search chain."""

    search_term: str
    items_found: int = 0
    items_returned: int = 0
    error: str
    kind: ErrorKind
    severity: Severity = Severity.DANGER


AbstractSections = dict[str, str]
