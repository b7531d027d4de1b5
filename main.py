"""
WineLens - Wine Review Exploratory Analysis

CLI entry point for running the analysis pipeline.
"""

import argparse
import logging
import sys

from winemag_eda.orchestrator import PipelineOrchestrator
import config.settings as settings


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="WineLens - Wine Review Exploratory Analysis",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Download the dataset and run the full analysis
  python main.py

  # Analyze a local copy, reusing a saved token table
  python main.py --input data/raw/winemag-data-130k-v2.csv \\
                 --tokens data/tokens/tokens.csv

  # Rerun the tagger even if a checkpoint exists (slow)
  python main.py --recompute-tokens
        """
    )

    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "--input",
        help="Local CSV to analyze (skips the download)"
    )
    source.add_argument(
        "--url",
        default=settings.DATASET_URL,
        help="Dataset URL (default: TidyTuesday winemag-data-130k-v2.csv)"
    )

    parser.add_argument(
        "--data-root",
        default=str(settings.DATA_ROOT),
        help=f"Data directory (default: {settings.DATA_ROOT})"
    )

    parser.add_argument(
        "--output-dir",
        default=str(settings.OUTPUT_ROOT),
        help=f"Output directory (default: {settings.OUTPUT_ROOT})"
    )

    tokens = parser.add_mutually_exclusive_group()
    tokens.add_argument(
        "--tokens",
        help="Precomputed token table (doc_id, lemma, upos) to use instead of the tagger"
    )
    tokens.add_argument(
        "--recompute-tokens",
        action="store_true",
        help="Ignore the token checkpoint and rerun the tagger"
    )

    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )
    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)
    logger = logging.getLogger(__name__)

    print("=" * 60)
    print("WineLens - Wine Review Exploratory Analysis")
    print("=" * 60)
    print(f"Input: {args.input or args.url}")
    print(f"Data root: {args.data_root}")
    print(f"Output: {args.output_dir}")
    if args.tokens:
        print(f"Tokens: {args.tokens}")
    print("=" * 60)
    print()

    try:
        logger.info("Initializing WineLens pipeline...")
        orchestrator = PipelineOrchestrator(
            data_root=args.data_root,
            output_root=args.output_dir,
            precomputed_tokens=args.tokens,
            recompute_tokens=args.recompute_tokens
        )

        output_path = orchestrator.run(input_path=args.input, url=args.url)

        print()
        print("=" * 60)
        print("✅ Pipeline completed successfully!")
        print("=" * 60)
        print(f"Word frequencies: {output_path}")
        print(f"Summary tables: {args.output_dir}")
        print("=" * 60)

        logger.info("WineLens completed successfully")
        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Pipeline interrupted by user")
        print("\n⚠️  Pipeline interrupted")
        sys.exit(1)

    except Exception as e:
        logger.error(f"Pipeline failed: {e}", exc_info=True)
        print(f"\n❌ Pipeline failed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
