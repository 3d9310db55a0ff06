from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

from config.settings import get_settings
from models import ParsedQuery, ScoreBreakdown, SearchResult
from ports.repos import GraphStorePort


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankingConfig:
    """Weights and point tables for result scoring. Defaults come from settings."""

    weight_connection: float = 0.4
    weight_keyword: float = 0.3
    weight_completeness: float = 0.2
    weight_activity: float = 0.1

    degree_points: Dict[int, int] = field(default_factory=lambda: {1: 100, 2: 75, 3: 50})
    other_degree_points: int = 25

    name_points: int = 100
    headline_points: int = 80
    company_points: int = 70
    role_points: int = 70
    multi_term_bonus: int = 50
    empty_query_keyword: int = 50

    completeness_name: int = 10
    completeness_headline: int = 25
    completeness_company: int = 25
    completeness_role: int = 20
    completeness_path: int = 20

    activity_window_days: int = 30
    activity_no_data: int = 30
    activity_none_recent: int = 40
    activity_some: int = 60
    activity_active: int = 80
    activity_very_active: int = 100

    result_limit: int = 50

    @classmethod
    def from_settings(cls) -> "RankingConfig":
        s = get_settings()
        return cls(
            weight_connection=s.weight_connection,
            weight_keyword=s.weight_keyword,
            weight_completeness=s.weight_completeness,
            weight_activity=s.weight_activity,
            activity_window_days=s.activity_window_days,
            result_limit=s.search_result_limit,
        )


def _round(value: float) -> int:
    # Half-up rounding for non-negative scores
    return int(value + 0.5)


def _clamp(value: int) -> int:
    return max(0, min(value, 100))


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle in haystack.lower()


def connection_score(degree: int, config: RankingConfig) -> int:
    return config.degree_points.get(degree, config.other_degree_points)


def keyword_score(result: SearchResult, query: str, config: RankingConfig) -> int:
    """Average of the per-field hit points, plus a multi-term coverage bonus."""
    if not query:
        return config.empty_query_keyword

    q = query.lower()
    score = 0.0
    hits = 0
    for value, points in (
        (result.name, config.name_points),
        (result.headline, config.headline_points),
        (result.company, config.company_points),
        (result.role, config.role_points),
    ):
        if _contains(value, q):
            score += points
            hits += 1

    terms = q.split()
    if len(terms) > 1:
        combined = " ".join(v for v in (result.name, result.headline, result.company, result.role) if v).lower()
        found = sum(1 for t in terms if t in combined)
        score += found / len(terms) * config.multi_term_bonus
        hits += 1

    if hits == 0:
        return 0
    return min(_round(score / hits), 100)


def completeness_score(result: SearchResult, config: RankingConfig) -> int:
    score = config.completeness_name if result.name else 0
    if result.headline:
        score += config.completeness_headline
    if result.company:
        score += config.completeness_company
    if result.role:
        score += config.completeness_role
    if result.path_available:
        score += config.completeness_path
    return min(score, 100)


def activity_band(total: int, recent: int, config: RankingConfig) -> int:
    if total == 0:
        return config.activity_no_data
    if recent == 0:
        return config.activity_none_recent
    if recent < 5:
        return config.activity_some
    if recent < 10:
        return config.activity_active
    return config.activity_very_active


async def activity_score(
    store: GraphStorePort,
    profile_id: str,
    config: RankingConfig,
    now: Optional[datetime] = None,
) -> int:
    now = now or datetime.now(timezone.utc)
    cutoff = (now - timedelta(days=config.activity_window_days)).isoformat()
    total = await store.count_activities(profile_id)
    recent = await store.count_activities(profile_id, since=cutoff) if total else 0
    return activity_band(total, recent, config)


async def get_score_breakdown(
    store: GraphStorePort,
    result: SearchResult,
    query: str,
    config: Optional[RankingConfig] = None,
    now: Optional[datetime] = None,
) -> ScoreBreakdown:
    config = config or RankingConfig.from_settings()
    connection = connection_score(result.connection_degree, config)
    keyword = keyword_score(result, query, config)
    completeness = completeness_score(result, config)
    activity = await activity_score(store, result.profile_id, config, now)
    total = _round(
        connection * config.weight_connection
        + keyword * config.weight_keyword
        + completeness * config.weight_completeness
        + activity * config.weight_activity
    )
    return ScoreBreakdown(
        total=_clamp(total),
        connection=connection,
        keyword=keyword,
        completeness=completeness,
        activity=activity,
    )


_DEGREE_LABELS = {1: "direct connection", 2: "2nd-degree connection"}


def generate_reasoning(result: SearchResult, parsed: ParsedQuery, score: ScoreBreakdown) -> str:
    reasons: List[str] = [_DEGREE_LABELS.get(result.connection_degree, "3rd-degree connection")]

    if parsed.query:
        q = parsed.query.lower()
        if _contains(result.name, q):
            reasons.append("name matches query")
        if _contains(result.headline, q):
            reasons.append("headline matches")
        if _contains(result.company, q):
            reasons.append(f"works at {result.company}")

    filters = parsed.filters
    if filters.company and result.company:
        reasons.append(f"at {result.company}")
    if filters.location:
        reasons.append(f"in {filters.location}")
    if filters.role and result.role:
        reasons.append(f"{filters.role} role")

    if score.completeness >= 80:
        reasons.append("complete profile")
    if score.activity >= 60:
        reasons.append("active user")
    elif score.activity <= 40:
        reasons.append("limited recent activity")
    if result.path_available:
        reasons.append("connection path available")

    if score.total >= 80:
        reasons.append("strong match")
    elif score.total >= 60:
        reasons.append("good match")
    elif score.total >= 40:
        reasons.append("moderate match")

    return ", ".join(reasons)


def sort_results(results: Sequence[SearchResult]) -> List[SearchResult]:
    """Highest score first; equal scores favour the closer connection."""
    return sorted(results, key=lambda r: (-r.match_score, r.connection_degree))


async def rank_results(
    store: GraphStorePort,
    results: Sequence[SearchResult],
    parsed: ParsedQuery,
    config: Optional[RankingConfig] = None,
    now: Optional[datetime] = None,
) -> List[SearchResult]:
    config = config or RankingConfig.from_settings()
    ranked: List[SearchResult] = []
    for result in results:
        score = await get_score_breakdown(store, result, parsed.query, config, now)
        ranked.append(
            result.model_copy(update={"match_score": score.total, "reasoning": generate_reasoning(result, parsed, score)})
        )
    return sort_results(ranked)
