"""Pytest configuration and fixtures."""

import pytest


@pytest.fixture
def search_document() -> dict:
    """esearch response with history enabled."""
    return {
        "header": {"type": "esearch", "version": "0.3"},
        "esearchresult": {
            "count": "42",
            "retmax": "20",
            "retstart": "0",
            "querykey": "1",
            "webenv": "MCID_search_env",
            "idlist": ["29549234", "29912345"],
        },
    }


@pytest.fixture
def link_document() -> dict:
    """elink response that stored a new result set on the history server."""
    return {
        "header": {"type": "elink", "version": "0.3"},
        "linksets": [
            {
                "dbfrom": "pubmed",
                "webenv": "MCID_link_env",
                "linksetdbhistories": [
                    {"dbto": "pmc", "linkname": "pubmed_pmc", "querykey": "2"}
                ],
            }
        ],
    }


@pytest.fixture
def link_document_no_history() -> dict:
    """elink response without a linksetdbhistories section."""
    return {
        "header": {"type": "elink", "version": "0.3"},
        "linksets": [{"dbfrom": "pubmed", "webenv": "MCID_link_env"}],
    }


@pytest.fixture
def summary_document() -> dict:
    """esummary (db=pmc) response with one linked and one unlinked record."""
    return {
        "header": {"type": "esummary", "version": "0.3"},
        "result": {
            "uids": ["5858162", "6012345"],
            "5858162": {
                "uid": "5858162",
                "title": "Metformin in gestational diabetes",
                "authors": [
                    {"name": "Smith J", "authtype": "Author"},
                    {"name": "Doe A", "authtype": "Author"},
                ],
                "pubdate": "2018 Mar",
                "articleids": [
                    {"idtype": "pmid", "value": "29549234"},
                    {"idtype": "doi", "value": "10.1000/xyz123"},
                    {"idtype": "pmcid", "value": "PMC5858162"},
                ],
            },
            "6012345": {
                "uid": "6012345",
                "title": "Exercise therapy after stroke",
                "authors": [{"name": "Lee K", "authtype": "Author"}],
                "pubdate": "2019 Jun 4",
                "articleids": [{"idtype": "pmcid", "value": "PMC6012345"}],
            },
        },
    }


PMC_SECTIONED_XML = """<?xml version="1.0"?>
<pmc-articleset>
  <article article-type="research-article">
    <front>
      <article-meta>
        <article-id pub-id-type="pmc">5858162</article-id>
        <abstract>
          <sec>
            <title>Background</title>
            <p>Gestational diabetes is common.</p>
          </sec>
          <sec>
            <title>Results</title>
            <p>Metformin lowered glucose.</p>
          </sec>
        </abstract>
      </article-meta>
    </front>
  </article>
</pmc-articleset>
"""

PMC_PARAGRAPH_XML = """<?xml version="1.0"?>
<pmc-articleset>
  <article>
    <front>
      <article-meta>
        <abstract>
          <p>A single paragraph abstract.</p>
        </abstract>
      </article-meta>
    </front>
  </article>
</pmc-articleset>
"""

PMC_NO_ABSTRACT_XML = """<?xml version="1.0"?>
<pmc-articleset>
  <article>
    <front>
      <article-meta>
        <article-id pub-id-type="pmc">7000001</article-id>
      </article-meta>
    </front>
  </article>
</pmc-articleset>
"""


@pytest.fixture
def pmc_sectioned_xml() -> str:
    return PMC_SECTIONED_XML


@pytest.fixture
def pmc_paragraph_xml() -> str:
    return PMC_PARAGRAPH_XML


@pytest.fixture
def pmc_no_abstract_xml() -> str:
    return PMC_NO_ABSTRACT_XML
