from __future__ import annotations

import logging
from typing import Dict, List, Optional, Union

from models import Node, ParsedQuery, SearchFilters, SearchResult
from ports.repos import GraphStorePort
from services.query_parser import parse_query
from services.ranking import RankingConfig, rank_results


logger = logging.getLogger(__name__)


def to_result(node: Node) -> SearchResult:
    profile = node.profile
    return SearchResult(
        profile_id=node.id,
        name=profile.name,
        headline=profile.headline,
        company=profile.current_company,
        role=profile.current_role,
        location=profile.location,
        connection_degree=node.degree,
        path_available=node.degree <= 3,
    )


def _has(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value.lower()


def matches_text(node: Node, query: str) -> bool:
    if not query:
        return True
    q = query.lower()
    p = node.profile
    return (
        _has(p.name, q)
        or _has(p.headline, q)
        or _has(p.current_company, q)
        or _has(p.current_role, q)
        or any(_has(skill, q) for skill in p.skills)
    )


def matches_filters(node: Node, filters: SearchFilters) -> bool:
    """Every present filter must hold; absent filters always pass."""
    p = node.profile
    if filters.connection_degree and node.degree not in filters.connection_degree:
        return False
    if filters.company and not _has(p.current_company, filters.company.lower()):
        return False
    if filters.location and not _has(p.location, filters.location.lower()):
        return False
    if filters.role and not _has(p.current_role, filters.role.lower()):
        return False
    years = filters.years_experience
    if years is not None:
        total = p.total_years
        if years.min is not None and total < years.min:
            return False
        if years.max is not None and total > years.max:
            return False
    return True


class GraphQueryEngine:
    """Searches the local graph store and ranks the surviving nodes."""

    def __init__(self, store: GraphStorePort, config: Optional[RankingConfig] = None):
        self.store = store
        self.config = config or RankingConfig.from_settings()

    async def _candidates(self, filters: SearchFilters) -> List[Node]:
        if filters.connection_degree:
            return await self.store.nodes_by_degree(filters.connection_degree)
        return await self.store.all_nodes()

    async def _rank(self, nodes: List[Node], parsed: ParsedQuery, limit: int) -> List[SearchResult]:
        ranked = await rank_results(self.store, [to_result(n) for n in nodes], parsed, self.config)
        return ranked[:limit]

    async def search(
        self, query: Union[ParsedQuery, str], limit: Optional[int] = None
    ) -> List[SearchResult]:
        parsed = parse_query(query) if isinstance(query, str) else query
        limit = limit if limit is not None else self.config.result_limit

        candidates = await self._candidates(parsed.filters)
        matched = [n for n in candidates if matches_text(n, parsed.query) and matches_filters(n, parsed.filters)]
        logger.debug(
            "Search %r: %d candidates, %d matched", parsed.query, len(candidates), len(matched)
        )
        return await self._rank(matched, parsed, limit)

    async def search_by_company(self, company_name: str, limit: int = 50) -> List[SearchResult]:
        parsed = ParsedQuery(filters=SearchFilters(company=company_name))
        nodes = [n for n in await self.store.all_nodes() if matches_filters(n, parsed.filters)]
        return await self._rank(nodes, parsed, limit)

    async def search_by_degree(self, degree: int, limit: int = 50) -> List[SearchResult]:
        parsed = ParsedQuery(filters=SearchFilters(connection_degree=[degree]))
        nodes = await self.store.nodes_by_degree([degree])
        return await self._rank(nodes, parsed, limit)

    async def get_graph_stats(self) -> Dict[str, int]:
        counts = await self.store.count_by_degree()
        return {
            "total_nodes": sum(counts.values()),
            "first_degree": counts.get(1, 0),
            "second_degree": counts.get(2, 0),
            "third_degree": counts.get(3, 0),
        }
