"""PubMiner: search PubMed, link to PMC, and normalize E-utilities documents."""

__version__ = "0.1.0"
