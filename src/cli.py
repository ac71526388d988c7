import argparse
import logging
import sys

from dotenv import load_dotenv

from src.link_suggestion import (
    AccumulationFailedError,
    LinkCollection,
    LinkIdentity,
    normalize_category,
    run_link_suggestion_workflow,
)
from src.link_suggestion.schema import ALL_CATEGORIES, MAX_TARGET_COUNT

logger = logging.getLogger(__name__)


def register_suggest_links(parser: argparse.ArgumentParser) -> None:
    """
    Suggest new links with the generative model and print the outcome as JSON
    """
    parser.add_argument("--keywords", type=str, default=None, help="Topic keywords")
    parser.add_argument(
        "--category",
        action="append",
        default=[],
        choices=ALL_CATEGORIES,
        help="Preferred category (repeatable). Any category when omitted",
    )
    parser.add_argument(
        "--count",
        type=int,
        default=5,
        help=f"Number of new links to suggest (0..{MAX_TARGET_COUNT})",
    )
    parser.add_argument(
        "--exclude-url",
        action="append",
        default=[],
        help="URL that must not be suggested (repeatable)",
    )
    parser.add_argument(
        "--session_id",
        type=str,
        default=None,
        help="Langfuse Session ID for trace correlation",
    )

    def func(args: argparse.Namespace) -> int:
        try:
            outcome = run_link_suggestion_workflow(
                LinkCollection(),
                link_count=args.count,
                keywords=args.keywords,
                preferred_categories=args.category,
                uploaded_links=[LinkIdentity(url=url) for url in args.exclude_url],
                span_context={
                    "trace_init": {
                        "name": "suggest_links_cli",
                        "session_id": args.session_id,
                        "metadata": {
                            "keywords": args.keywords,
                            "count": args.count,
                        },
                    },
                },
            )
        except AccumulationFailedError as e:
            logger.error("Link suggestion failed after %d attempts: %s", e.attempts_used, e)
            return 1
        print(outcome.model_dump_json(indent=2))
        return 0

    parser.set_defaults(func=func)


def register_categorize(parser: argparse.ArgumentParser) -> None:
    """
    Show which category a free-text label maps to
    """
    parser.add_argument("label", type=str, help="Category label to normalize")

    def func(args: argparse.Namespace) -> int:
        print(normalize_category(args.label).value)
        return 0

    parser.set_defaults(func=func)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="AI link suggestion tools")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    register_suggest_links(
        subparsers.add_parser("suggest-links", help="Suggest new links with AI")
    )
    register_categorize(
        subparsers.add_parser("categorize", help="Normalize a category label")
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
