"""Normalize a saved webhook payload and optionally push it to Odoo.

Usage (from backend/): python -m tools.replay_submission payload.json [--submit]
"""

import argparse
import asyncio
import json
from pathlib import Path

from services.order_service import build_submission, process_submission


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("payload", type=Path, help="JSON file with the webhook body")
    parser.add_argument(
        "--submit",
        action="store_true",
        help="Create the sale order in Odoo instead of only printing the lines",
    )
    args = parser.parse_args()

    body = json.loads(args.payload.read_text(encoding="utf-8"))
    submission = build_submission(body)
    print(json.dumps(submission.model_dump(), indent=2))

    if args.submit:
        result = asyncio.run(process_submission(submission))
        print(json.dumps(result.model_dump(), indent=2))


if __name__ == "__main__":
    main()
