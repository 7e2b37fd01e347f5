"""
Command line entry point for BookBrief.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

import structlog

from .core.config import settings
from .core.exceptions import BookBriefError
from .core.logging import setup_logging
from .ingestion import extract_file, preview
from .orchestration import SummarizationPipeline
from .summarization import create_model


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bookbrief",
        description="Summarize long documents with a generative model"
    )
    
    subparsers = parser.add_subparsers(dest='command', help='Available commands')
    
    summarize_parser = subparsers.add_parser('summarize', help='Summarize a TXT, PDF or HTML file')
    summarize_parser.add_argument('file', type=Path, help='Document to summarize')
    summarize_parser.add_argument(
        '--output', '-o',
        type=Path,
        help='Write the summary to this file instead of stdout'
    )
    summarize_parser.add_argument(
        '--json',
        action='store_true',
        help='Print the summary with size metadata as JSON'
    )
    
    preview_parser = subparsers.add_parser('preview', help='Show the start of the extracted text')
    preview_parser.add_argument('file', type=Path, help='Document to preview')
    
    subparsers.add_parser('health', help='Check the model backend')
    
    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    
    setup_logging(settings.log_level, settings.log_format)
    logger = structlog.get_logger(__name__)
    
    if args.command == 'summarize':
        try:
            text = extract_file(args.file)
            pipeline = SummarizationPipeline(create_model(settings), settings)
            result = asyncio.run(pipeline.run(text))
        except BookBriefError as e:
            logger.error("Summarization failed", file=str(args.file), error=str(e))
            sys.exit(1)
        
        if args.json:
            output = json.dumps(result.model_dump(mode="json"), indent=2)
        else:
            output = result.text
        
        if args.output:
            args.output.write_text(output, encoding="utf-8")
            logger.info("Wrote summary", path=str(args.output), chars=result.summary_chars)
        else:
            print(output)
        sys.exit(0)
    
    elif args.command == 'preview':
        try:
            text = extract_file(args.file)
        except BookBriefError as e:
            logger.error("Extraction failed", file=str(args.file), error=str(e))
            sys.exit(1)
        
        result = preview(text, source=str(args.file))
        print(result.preview)
        print(f"\n--- {result.full_length} characters total ---")
        sys.exit(0)
    
    elif args.command == 'health':
        try:
            model = create_model(settings)
        except (BookBriefError, ValueError) as e:
            logger.error("Model backend misconfigured", error=str(e))
            sys.exit(1)
        
        healthy = asyncio.run(model.health_check())
        status_icon = "✅" if healthy else "❌"
        print(f"{status_icon} {settings.model_backend.title()} backend: {'OK' if healthy else 'FAILED'}")
        sys.exit(0 if healthy else 1)
    
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
