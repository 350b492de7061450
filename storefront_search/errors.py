"""Exceptions raised by the search core."""
from __future__ import annotations


class SearchError(Exception):
    """Base class for search failures surfaced to callers."""


class InvalidQueryError(SearchError, ValueError):
    """Search parameters outside their allowed values."""


class RetrievalError(SearchError):
    """The product repository could not answer the query.

    Unlike cache errors these are never masked: the caller decides how to
    present an unavailable search.
    """
