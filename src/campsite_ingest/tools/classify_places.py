"""
Place Classifier for campsite imports

This script runs raw Google Places records through the import pipeline and
prints the resulting import candidates. It offers options to:
1. Compare the places against an export of existing campsites for duplicates
2. Disable the AI stage and classify with keywords only
3. Save the candidates to a JSON file instead of printing them

The input file is a JSON list of raw records, each of the form
{"id": ..., "place_id": ..., "raw_data": {<Google Places details>}}.
"""

import argparse
import json
import logging
import sys
from typing import List

from dotenv import load_dotenv

from campsite_ingest.services.deduplication import DeduplicationService, ExistingCampsite
from campsite_ingest.services.place_processing import PlaceProcessingService
from campsite_ingest.services.type_classifier import (
    CLASSIFIER_CONFIDENCE_THRESHOLD,
    TypeClassifierService,
)
from campsite_ingest.utils.general_utils import get_openai_client

logger = logging.getLogger(__name__)


def load_json(path: str):
    with open(path, encoding="utf-8") as f:
        return json.load(f)


def load_existing_campsites(path: str) -> List[ExistingCampsite]:
    """Load existing campsites from a JSON list export."""
    return [ExistingCampsite.model_validate(item) for item in load_json(path)]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Classify raw Google Places records")
    parser.add_argument("input", help="JSON file with a list of raw place records")
    parser.add_argument("--output", help="Write candidates to this file instead of stdout")
    parser.add_argument("--existing", help="JSON file with existing campsites for duplicate checks")
    parser.add_argument(
        "--threshold",
        type=float,
        default=CLASSIFIER_CONFIDENCE_THRESHOLD,
        help="Keyword confidence below which the AI stage runs",
    )
    parser.add_argument("--no-ai", action="store_true", help="Classify with keywords only")
    return parser


def main(argv=None) -> int:
    # Load environment variables from .env file
    load_dotenv()
    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    args = build_parser().parse_args(argv)

    records = load_json(args.input)
    if not isinstance(records, list):
        logger.error(f"{args.input} must contain a JSON list of raw place records")
        return 1

    existing = load_existing_campsites(args.existing) if args.existing else []
    ai_client = None if args.no_ai else get_openai_client()

    service = PlaceProcessingService(
        classifier=TypeClassifierService(
            ai_client=ai_client, confidence_threshold=args.threshold
        ),
        deduplicator=DeduplicationService(existing),
    )
    summary = service.process_places(records)

    output = json.dumps(summary.model_dump(), indent=2, ensure_ascii=False)
    if args.output:
        with open(args.output, "w", encoding="utf-8") as f:
            f.write(output)
        logger.info(f"Saved {len(summary.candidates)} candidates to {args.output}")
    else:
        print(output)

    return 0 if summary.failed == 0 else 2


if __name__ == "__main__":
    sys.exit(main())
