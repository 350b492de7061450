"""Rule-based relevance scoring for the ``relevance`` sort mode.

Every signal is independent and additive, so a candidate can collect several
of them. Weights:

    exact name      100     name prefix      50     featured     20
    exact SKU        80     name substring   30     in stock     10
    short desc hit   15     description hit  10     recent        5

Sorting is stable: candidates with equal scores keep the order the repository
returned them in (newest first), which keeps pages reproducible.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, List

from .models import Candidate

EXACT_NAME_WEIGHT = 100
EXACT_SKU_WEIGHT = 80
NAME_PREFIX_WEIGHT = 50
NAME_SUBSTRING_WEIGHT = 30
SHORT_DESCRIPTION_WEIGHT = 15
DESCRIPTION_WEIGHT = 10
FEATURED_WEIGHT = 20
IN_STOCK_WEIGHT = 10
RECENT_WEIGHT = 5

RECENT_DAYS = 30


@dataclass(frozen=True)
class RankedCandidate:
    candidate: Candidate
    relevance_score: int


def _lower(value: str | None) -> str:
    return (value or "").lower()


def score_candidate(
    candidate: Candidate,
    query: str,
    now: datetime,
    recent_days: int = RECENT_DAYS,
) -> int:
    """Score one candidate against an already-normalized query."""
    name = _lower(candidate.name)
    score = 0
    if name == query:
        score += EXACT_NAME_WEIGHT
    if _lower(candidate.sku) == query:
        score += EXACT_SKU_WEIGHT
    if name.startswith(query):
        score += NAME_PREFIX_WEIGHT
    if query in name:
        score += NAME_SUBSTRING_WEIGHT
    if query in _lower(candidate.short_description):
        score += SHORT_DESCRIPTION_WEIGHT
    if query in _lower(candidate.description):
        score += DESCRIPTION_WEIGHT
    if candidate.is_featured:
        score += FEATURED_WEIGHT
    if candidate.stock_quantity > 0:
        score += IN_STOCK_WEIGHT
    if candidate.created_at > now - timedelta(days=recent_days):
        score += RECENT_WEIGHT
    return score


def rank_candidates(
    candidates: Iterable[Candidate],
    query: str,
    now: datetime,
    recent_days: int = RECENT_DAYS,
) -> List[RankedCandidate]:
    ranked = [
        RankedCandidate(candidate, score_candidate(candidate, query, now, recent_days))
        for candidate in candidates
    ]
    # list.sort is stable, so reverse=True keeps input order among ties.
    ranked.sort(key=lambda item: item.relevance_score, reverse=True)
    return ranked
