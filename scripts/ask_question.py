"""
Ask the chatbot one question from the command line.

Example:
    python scripts/ask_question.py "How many goals has Luke Bangs scored?"
    python scripts/ask_question.py "How many goals have I scored?" --as "Luke Bangs" --details
"""

import argparse
import json
import logging
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

# Make statbot importable
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))

from statbot.chatbot_service import ChatbotService, QuestionContext  # noqa: E402
from statbot.utils.neo4j_client import get_driver  # noqa: E402


def main() -> None:
    parser = argparse.ArgumentParser(description="Answer a club statistics question.")
    parser.add_argument("question", help="Question text.")
    parser.add_argument("--as", dest="user_context", default=None, help="Player to use for 'I'/'my' questions.")
    parser.add_argument("--details", action="store_true", help="Print processing details and Cypher.")
    args = parser.parse_args()

    load_dotenv()
    logging.basicConfig(level=os.getenv("STATBOT_LOG_LEVEL", "WARNING"), format="%(levelname)s %(name)s: %(message)s")

    driver = get_driver()
    try:
        service = ChatbotService.from_driver(driver)
        response = service.process_question(QuestionContext(question=args.question, user_context=args.user_context))
    finally:
        driver.close()

    print(response.answer)
    if args.details:
        print(json.dumps(response.processing_details.to_dict(), indent=2))
        if response.cypher_query:
            print(response.cypher_query)


if __name__ == "__main__":
    main()
