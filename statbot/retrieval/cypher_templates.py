"""
Cypher query templates for club statistics.

Each template returns a (query, params) tuple and enforces required parameters.
Templates are aligned with the club graph:
- Player {playerName} -[:PLAYED_IN]-> MatchDetail {team, season, class, goals, assists, ...}
- Fixture {season, homeOrAway, result, distance} -[:HAS_MATCH_DETAILS]-> MatchDetail

Aggregate expressions come from the statistic catalog; player names and
filter values are always passed as bound parameters.
"""

from typing import Callable, Dict, List, Optional, Tuple

from statbot.catalog.club_vocabulary import team_display


class MissingParameterError(ValueError):
    """Raised when a required parameter is missing."""


def _require(params: Dict, keys: List[str]) -> None:
    missing = [k for k in keys if k not in params or params[k] in (None, "")]
    if missing:
        raise MissingParameterError(f"Missing required parameters: {', '.join(missing)}")


FILTER_CONDITIONS = {
    "team": "md.team = $team",
    "season": "md.season = $season",
    "position": "md.class = $position",
}

MATCH_DETAILS = "(p)-[:PLAYED_IN]->(md:MatchDetail)<-[:HAS_MATCH_DETAILS]-(f:Fixture)"


def _where(filters: Optional[Dict[str, str]]) -> str:
    conditions = [FILTER_CONDITIONS[k] for k in FILTER_CONDITIONS if (filters or {}).get(k)]
    return "WHERE " + " AND ".join(conditions) if conditions else ""


def _filter_params(filters: Optional[Dict[str, str]]) -> Dict[str, str]:
    params = {}
    for key, value in (filters or {}).items():
        if key not in FILTER_CONDITIONS:
            raise MissingParameterError(f"Unsupported filter: {key}")
        # Teams are stored by display name ("3rd XI").
        params[key] = team_display(value) if key == "team" else value
    return params


def player_stat(player_name: str, aggregate: str, filters: Optional[Dict[str, str]] = None) -> Tuple[str, Dict]:
    _require(locals(), ["player_name", "aggregate"])
    # OPTIONAL MATCH keeps the player row when no match details pass the filters.
    query = f"""
    MATCH (p:Player {{playerName: $player_name}})
    OPTIONAL MATCH {MATCH_DETAILS}
    {_where(filters)}
    WITH p, {aggregate} AS value, count(md) AS appearances
    RETURN p.playerName AS player, value, appearances
    """
    params = {"player_name": player_name}
    params.update(_filter_params(filters))
    return query, params


def player_label_stat(
    player_name: str,
    group_by: str,
    tally: str,
    filters: Optional[Dict[str, str]] = None,
) -> Tuple[str, Dict]:
    _require(locals(), ["player_name", "group_by", "tally"])
    query = f"""
    MATCH (p:Player {{playerName: $player_name}})
    MATCH {MATCH_DETAILS}
    {_where(filters)}
    WITH p, {group_by} AS label, {tally} AS tally, count(md) AS appearances
    WHERE label IS NOT NULL AND tally > 0
    RETURN p.playerName AS player, label AS value, tally, appearances
    ORDER BY tally DESC, value ASC
    LIMIT 1
    """
    params = {"player_name": player_name}
    params.update(_filter_params(filters))
    return query, params


def ranking_stat(
    aggregate: str,
    limit: int = 1,
    descending: bool = True,
    filters: Optional[Dict[str, str]] = None,
) -> Tuple[str, Dict]:
    _require(locals(), ["aggregate", "limit"])
    direction = "DESC" if descending else "ASC"
    query = f"""
    MATCH (p:Player)
    MATCH {MATCH_DETAILS}
    {_where(filters)}
    WITH p, {aggregate} AS value, count(md) AS appearances
    WHERE value IS NOT NULL
    RETURN p.playerName AS player, value, appearances
    ORDER BY value {direction}, player ASC
    LIMIT $limit
    """
    params = {"limit": int(limit)}
    params.update(_filter_params(filters))
    return query, params


def player_exists(player_name: str) -> Tuple[str, Dict]:
    _require(locals(), ["player_name"])
    query = """
    MATCH (p:Player {playerName: $player_name})
    RETURN p.playerName AS player
    LIMIT 1
    """
    return query, {"player_name": player_name}


TEMPLATE_REGISTRY: Dict[str, Callable[..., Tuple[str, Dict]]] = {
    "player_stat": player_stat,
    "player_label_stat": player_label_stat,
    "ranking_stat": ranking_stat,
    "player_exists": player_exists,
}


def list_templates() -> List[str]:
    return sorted(TEMPLATE_REGISTRY.keys())
