"""
Regression harness: ask every catalog question for a set of players against the
live graph and check each answer.

Checks per answer:
  - the statistic resolved to the key whose template generated the question
  - the answer names the player
  - the value can be parsed back with the statistic's extraction pattern, or the
    answer uses that statistic's zero phrase
  - optionally, the parsed value matches a reference CSV (one row per player,
    one column per statistic key; "N/A" allowed)

Usage:
    python scripts/regression_harness.py \
        --players "Luke Bangs" "Oli Goddard" \
        --reference data/reference_stats.csv

Outputs:
  - data/regression_results.json (detailed)
  - data/regression_results.csv (summary)
"""

import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd
from dotenv import load_dotenv

# Make statbot importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from statbot.catalog.stat_registry import COUNT, LABEL, extract_value, generate_test_questions, get_stat  # noqa: E402
from statbot.catalog.zero_phrases import is_zero_answer  # noqa: E402
from statbot.chatbot_service import ChatbotService, QuestionContext  # noqa: E402
from statbot.utils.neo4j_client import get_driver, load_player_index, verify_connection  # noqa: E402

logger = logging.getLogger("regression_harness")

NOT_AVAILABLE = {"", "N/A", "NA", "n/a"}


def load_reference(path: Optional[str]) -> Optional[pd.DataFrame]:
    """Reference stats indexed by player name; every cell kept as text."""
    if not path:
        return None
    frame = pd.read_csv(path, dtype=str).fillna("")
    name_column = "playerName" if "playerName" in frame.columns else frame.columns[0]
    return frame.set_index(name_column)


def expected_value(reference: Optional[pd.DataFrame], player: str, key: str) -> Optional[str]:
    if reference is None or player not in reference.index or key not in reference.columns:
        return None
    return str(reference.at[player, key]).strip()


def values_match(key: str, actual: Any, expected: str) -> bool:
    definition = get_stat(key)
    if definition.shape == LABEL:
        return str(actual).strip().lower() == expected.strip().lower()
    try:
        expected_number = float(expected.rstrip("%"))
    except ValueError:
        return False
    if definition.shape == COUNT:
        return int(actual) == int(round(expected_number))
    return round(float(actual), definition.decimal_places) == round(expected_number, definition.decimal_places)


def sanity_check(key: str, player: str, answer: str, resolved_key: Optional[str], expected: Optional[str]) -> List[str]:
    issues = []
    if resolved_key != key:
        issues.append(f"resolved to {resolved_key} instead of {key}")
    if player not in answer:
        issues.append("answer does not name the player")
    if not answer[:1].isupper() or answer[-1:] not in ".!?":
        issues.append("answer is not a capitalised sentence")

    has_reference = expected is not None and expected not in NOT_AVAILABLE
    no_appearances = expected is not None and expected in NOT_AVAILABLE
    # Zero answers can still carry digits from the filter clause ("for the 3rd XI").
    if is_zero_answer(answer, key, no_appearances=no_appearances):
        if has_reference and not values_match(key, 0, expected):
            issues.append(f"zero answer but reference is {expected}")
        return issues

    value = extract_value(answer, key)
    if value is None:
        issues.append("no value and no matching zero phrase")
    elif has_reference and not values_match(key, value, expected):
        issues.append(f"value {value} does not match reference {expected}")
    return issues


def run_player(service: ChatbotService, player: str, reference: Optional[pd.DataFrame]) -> List[Dict[str, Any]]:
    results = []
    for key, question in generate_test_questions(player):
        response = service.process_question(QuestionContext(question=question, user_context=player))
        analysis = response.processing_details.question_analysis
        expected = expected_value(reference, player, key)
        issues = sanity_check(key, player, response.answer, analysis.get("metricKey"), expected)
        results.append(
            {
                "player": player,
                "key": key,
                "question": question,
                "answer": response.answer,
                "resolved_key": analysis.get("metricKey"),
                "intent": analysis.get("intent"),
                "expected": expected,
                "issues": issues,
                "cypher": response.cypher_query,
            }
        )
        status = "OK" if not issues else "FAIL"
        print(f"[{status}] {player} {key}: {response.answer}")
    return results


def write_outputs(results: List[Dict[str, Any]], out_json: Path, out_csv: Path) -> None:
    out_json.parent.mkdir(parents=True, exist_ok=True)
    out_json.write_text(json.dumps(results, indent=2))
    summary = pd.DataFrame(
        [
            {
                "player": r["player"],
                "key": r["key"],
                "resolved_key": r["resolved_key"],
                "expected": r["expected"],
                "answer": r["answer"],
                "issues": "; ".join(r["issues"]),
            }
            for r in results
        ]
    )
    summary.to_csv(out_csv, index=False)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Ask every catalog question per player and check the answers.")
    parser.add_argument("--players", nargs="*", default=None, help="Players to test (default: first N in graph).")
    parser.add_argument("--max-players", type=int, default=3, help="Players to take from the graph when --players is omitted.")
    parser.add_argument("--reference", default=None, help="Optional reference CSV with expected values.")
    parser.add_argument("--out-json", default="data/regression_results.json", help="Output JSON path.")
    parser.add_argument("--out-csv", default="data/regression_results.csv", help="Output CSV path.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    load_dotenv()
    logging.basicConfig(level=os.getenv("STATBOT_LOG_LEVEL", "WARNING"), format="%(levelname)s: %(message)s")

    driver = get_driver()
    if not verify_connection(driver):
        raise RuntimeError("Neo4j connection failed. Check NEO4J_* in .env.")
    try:
        player_index = load_player_index(driver)
        players = args.players or player_index[: args.max_players]
        service = ChatbotService.from_driver(driver, player_index=player_index)
        reference = load_reference(args.reference)

        results: List[Dict[str, Any]] = []
        for player in players:
            results.extend(run_player(service, player, reference))
    finally:
        driver.close()

    failures = sum(1 for r in results if r["issues"])
    timestamp = datetime.now(timezone.utc).isoformat()
    write_outputs(results, Path(args.out_json), Path(args.out_csv))
    print(f"Wrote {len(results)} results ({failures} with issues) at {timestamp} -> {args.out_json} and {args.out_csv}")


if __name__ == "__main__":
    main()
