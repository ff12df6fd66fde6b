"""Project-wide constants."""

from pathlib import Path

# -- Base client defaults ---------------------------------------------------
DEFAULT_TIMEOUT: float = 30.0
DEFAULT_MAX_RETRIES: int = 3

# -- Cache ------------------------------------------------------------------
# Anchored to the project root (two levels above this package's src/ dir) so
# that a single _cache/ directory is used regardless of the working directory.
_PROJECT_ROOT: Path = Path(__file__).parent.parent.parent
DEFAULT_CACHE_DIR: Path = _PROJECT_ROOT / "_cache"
CACHE_TTL: int = 5 * 86400  # 5 days in seconds

# -- NCBI E-utilities -------------------------------------------------------
EUTILS_BASE_URL: str = "https://eutils.ncbi.nlm.nih.gov/entrez/eutils"
ESEARCH_URL: str = f"{EUTILS_BASE_URL}/esearch.fcgi"
ELINK_URL: str = f"{EUTILS_BASE_URL}/elink.fcgi"
ESUMMARY_URL: str = f"{EUTILS_BASE_URL}/esummary.fcgi"
EFETCH_URL: str = f"{EUTILS_BASE_URL}/efetch.fcgi"

# NCBI allows 3 requests/second without an API key and 10 with one.
EUTILS_RPS_ANONYMOUS: float = 3.0
EUTILS_RPS_WITH_KEY: float = 10.0

# -- Query chain ------------------------------------------------------------
SEARCH_DB: str = "pubmed"
SEARCH_FILTER: str = "Therapy/Broad[filter]"
LINK_DBFROM: str = "pubmed"
LINK_DB: str = "pmc"
# Other link names: pubmed_pmc_embargo, pubmed_pmc_local, pubmed_pmc_refs
LINK_NAME: str = "pubmed_pmc"
SUMMARY_DB: str = "pmc"
DETAIL_DB: str = "pmc"
DEFAULT_SUMMARY_PAGE_SIZE: int = 100
DEFAULT_DETAIL_CONCURRENCY: int = 3

# Alternate-id type that maps a PMC summary record back to PubMed.
LINKED_ID_TYPE: str = "pmid"

# Inline formatting elements (JATS and PubMed) flattened into their text.
INLINE_MARKUP_TAGS: tuple[str, ...] = (
    "italic",
    "bold",
    "sub",
    "sup",
    "sc",
    "underline",
    "monospace",
    "i",
    "b",
    "u",
    "named-content",
    "styled-content",
    "xref",
)

# Longest document excerpt attached to an InvalidDocumentFormatError.
ERROR_FRAGMENT_MAX: int = 200
