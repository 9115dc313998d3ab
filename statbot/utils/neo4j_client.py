"""
Neo4j driver utilities, configuration lookups and a lightweight health check.

Uses python-dotenv to pull credentials from environment if not explicitly passed.
"""

import logging
import os
from typing import List, Optional

from neo4j import GraphDatabase, Driver
from neo4j.exceptions import DriverError, Neo4jError
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_QUERY_TIMEOUT = 10.0
DEFAULT_CONNECTION_TIMEOUT = 15.0


def get_driver(
    uri: Optional[str] = None,
    username: Optional[str] = None,
    password: Optional[str] = None,
    connection_timeout: float = DEFAULT_CONNECTION_TIMEOUT,
) -> Driver:
    """
    Create a Neo4j driver. If parameters are missing, fall back to environment
    variables populated from a .env file when present.
    """
    load_dotenv()
    uri = uri or os.getenv("NEO4J_URI")
    username = username or os.getenv("NEO4J_USERNAME")
    password = password or os.getenv("NEO4J_PASSWORD")

    if not all([uri, username, password]):
        raise ValueError("NEO4J_URI, NEO4J_USERNAME, and NEO4J_PASSWORD must be set.")

    return GraphDatabase.driver(
        uri,
        auth=(username, password),
        connection_timeout=connection_timeout,
        connection_acquisition_timeout=connection_timeout,
    )


def get_database() -> Optional[str]:
    load_dotenv()
    return os.getenv("NEO4J_DATABASE") or None


def get_query_timeout(default: float = DEFAULT_QUERY_TIMEOUT) -> float:
    """Per-query timeout in seconds from NEO4J_QUERY_TIMEOUT."""
    load_dotenv()
    raw = os.getenv("NEO4J_QUERY_TIMEOUT")
    if not raw:
        return default
    try:
        timeout = float(raw)
    except ValueError:
        logger.warning("Ignoring invalid NEO4J_QUERY_TIMEOUT=%r; using %ss", raw, default)
        return default
    return timeout if timeout > 0 else default


def verify_connection(driver: Driver) -> bool:
    """
    Simple connectivity check. Returns True on success, False otherwise.
    """
    try:
        with driver.session() as session:
            result = session.run("RETURN 1 AS ok").single()
            return bool(result and result["ok"] == 1)
    except (DriverError, Neo4jError) as exc:
        logger.warning("Neo4j connection check failed: %s", exc)
        return False


def load_player_index(driver: Driver, database: Optional[str] = None) -> List[str]:
    """Fetch every player name to prime the entity extractor."""
    session_kwargs = {"database": database} if database else {}
    with driver.session(**session_kwargs) as session:
        rows = session.run("MATCH (p:Player) RETURN p.playerName AS name ORDER BY name").data()
    return [r["name"] for r in rows if r.get("name")]
