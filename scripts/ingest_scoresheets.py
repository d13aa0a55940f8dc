#!/usr/bin/env python3
"""
Scoresheet ingestion from the command line.

Commands:
    preview IMAGE [--out FILE]           OCR + parse one image, write the preview JSON
    confirm JSON [--source-ref REF]      persist a reviewed preview JSON
    batch DIR [--out DIR] [--confirm]    preview (and optionally confirm) a folder of images

Usage:
    python scripts/ingest_scoresheets.py preview sheets/2025-07-12.jpg --out review/2025-07-12.json
    python scripts/ingest_scoresheets.py confirm review/2025-07-12.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path

from config import validate_config
from scorebook.data.ingest import ScoresheetIngestor, ingest_scoresheets
from scorebook.utils.exceptions import ScorebookError

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s"
)
logger = logging.getLogger(__name__)


def cmd_preview(args, ingestor: ScoresheetIngestor) -> int:
    image_path = Path(args.image)
    if not image_path.exists():
        logger.error(f"Image not found: {image_path}")
        return 1

    parsed = ingestor.preview(image_path.read_bytes(), file_name=image_path.name)
    output = json.dumps(parsed.to_dict(), indent=2)

    if args.out:
        Path(args.out).write_text(output)
        logger.info(f"Preview written to {args.out}")
    else:
        print(output)

    for warning in parsed.warnings:
        logger.warning(warning)

    logger.info(f"Source reference: {parsed.source_reference}")
    return 0


def cmd_confirm(args, ingestor: ScoresheetIngestor) -> int:
    json_path = Path(args.json)
    if not json_path.exists():
        logger.error(f"Preview file not found: {json_path}")
        return 1

    try:
        data = json.loads(json_path.read_text())
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {json_path}: {e}")
        return 1

    result = ingestor.confirm(data, source_reference=args.source_ref)

    logger.info("=" * 60)
    logger.info(f"Confirmed {result.source_reference}")
    logger.info(f"  Entries processed:    {result.processed_count}")
    logger.info(f"  Club players updated: {result.players_updated}")
    logger.info(f"  Players created:      {result.players_created}")
    logger.info(f"  Season:               {result.season}")
    if result.ambiguous_names:
        logger.warning(f"  Ambiguous names:      {', '.join(result.ambiguous_names)}")
    logger.info("=" * 60)
    return 0


def cmd_batch(args, ingestor: ScoresheetIngestor) -> int:
    stats = ingest_scoresheets(
        Path(args.directory),
        auto_confirm=args.confirm,
        output_dir=Path(args.out) if args.out else None,
        ingestor=ingestor,
        limit=args.limit,
    )
    return 1 if stats['scoresheets_failed'] else 0


def main():
    parser = argparse.ArgumentParser(description='Ingest cricket scoresheets into the club database')
    parser.add_argument('--db', help='Database path (defaults to SCOREBOOK_DB_PATH)')
    subparsers = parser.add_subparsers(dest='command', required=True)

    preview = subparsers.add_parser('preview', help='OCR and parse one scoresheet image')
    preview.add_argument('image', help='Scoresheet image file')
    preview.add_argument('--out', help='Write preview JSON here instead of stdout')

    confirm = subparsers.add_parser('confirm', help='Persist a reviewed preview JSON file')
    confirm.add_argument('json', help='Preview JSON file (edited as needed)')
    confirm.add_argument('--source-ref', help='Source reference (defaults to the one in the file)')

    batch = subparsers.add_parser('batch', help='Preview every image in a folder')
    batch.add_argument('directory', help='Folder of scoresheet images')
    batch.add_argument('--out', help='Folder for preview JSON files')
    batch.add_argument('--confirm', action='store_true', help='Confirm each preview without review')
    batch.add_argument('--limit', type=int, help='Maximum number of images')

    args = parser.parse_args()

    try:
        validate_config()
    except RuntimeError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1

    ingestor = ScoresheetIngestor(db_path=Path(args.db) if args.db else None)

    commands = {
        'preview': cmd_preview,
        'confirm': cmd_confirm,
        'batch': cmd_batch,
    }

    try:
        return commands[args.command](args, ingestor)
    except ScorebookError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
