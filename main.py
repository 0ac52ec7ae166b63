#!/usr/bin/env python3
"""
Expiry Date OCR Engine - Developer Shell.

Runs the scan pipeline from the command line and prints the result as JSON.

Usage:
    Scan a label photo (native recognizers first, then the cloud service):
        python main.py --image label.jpg
        python main.py --image label.jpg --crop 0 400 1200 300

    Extract from text only (no recognition):
        python main.py --text "BEST BEFORE 3ONOV25"
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

# Add project root to path for imports
PROJECT_ROOT = Path(__file__).parent
sys.path.insert(0, str(PROJECT_ROOT))

from config import ConfigurationManager
from expiry_scan.utils.logger import ROOT_LOGGER_NAME, get_logger, setup_logger_from_config


def parse_arguments(argv: Optional[list] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        description="Expiry Date OCR Engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    Scan a photo:
        python main.py --image label.jpg

    Scan only the capture frame:
        python main.py --image label.jpg --crop 0 400 1200 300

    Parse recognized text:
        python main.py --text "EXP 30/11/25"
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--image", "-i",
        type=str,
        help="Label photo to scan"
    )
    source.add_argument(
        "--text", "-t",
        type=str,
        help="Recognized text to normalize and extract from"
    )

    parser.add_argument(
        "--crop",
        type=int,
        nargs=4,
        metavar=("X", "Y", "W", "H"),
        default=None,
        help="Region of the photo to read, in image pixels"
    )

    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to custom configuration file"
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging"
    )

    return parser.parse_args(argv)


def initialize_system(args: argparse.Namespace) -> ConfigurationManager:
    """
    Load configuration and set up logging.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Initialized configuration manager.
    """
    config = ConfigurationManager(args.config)

    logger = setup_logger_from_config()

    if args.debug:
        logging.getLogger(ROOT_LOGGER_NAME).setLevel(logging.DEBUG)
        for handler in logging.getLogger(ROOT_LOGGER_NAME).handlers:
            handler.setLevel(logging.DEBUG)

    logger.info(f"Expiry Date OCR Engine v{config.get('project.version', '1.0.0')}")
    return config


def extract_from_text(text: str) -> Dict[str, Any]:
    """
    Normalize text and pick its best expiry date.

    Args:
        text: Recognized label text.

    Returns:
        Dictionary with the normalized text, the date and every candidate.
    """
    from expiry_scan.extraction import CandidateDateExtractor
    from expiry_scan.postprocessor import TextNormalizer

    normalized = TextNormalizer().normalize(text)
    extractor = CandidateDateExtractor()
    candidates = extractor.extract(normalized)
    selection = extractor.select_best(normalized)

    return {
        'text': normalized,
        'date': selection.date.isoformat() if selection else None,
        'confidence': selection.confidence if selection else None,
        'rule': selection.candidate.rule if selection else None,
        'candidates': [
            {
                'date': c.date.isoformat(),
                'confidence': c.confidence,
                'rule': c.rule,
                'span': c.span,
                'corrections': [s.to_dict() for s in c.corrections]
            }
            for c in candidates
        ]
    }


async def scan_image(image_path: str, crop: Optional[list] = None) -> Dict[str, Any]:
    """
    Run the full scan pipeline on a photo.

    Args:
        image_path: Path to the label photo.
        crop: Optional [x, y, width, height] in image pixels.

    Returns:
        Result dictionary (real or synthetic).
    """
    from expiry_scan.input_handler import CropRegion
    from expiry_scan.scanner import ExpiryDateScanner

    region = CropRegion(*crop) if crop else None
    scanner = ExpiryDateScanner()
    result = await scanner.scan(image_path, crop=region)
    return result.to_dict()


def main(argv: Optional[list] = None) -> int:
    """
    Main function - entry point for command-line execution.

    Returns:
        Exit code (0 when a date was resolved, 1 otherwise).
    """
    try:
        args = parse_arguments(argv)
        initialize_system(args)
        logger = get_logger(__name__)

        if args.text is not None:
            output = extract_from_text(args.text)
            resolved = output['date'] is not None
        else:
            output = asyncio.run(scan_image(args.image, args.crop))
            resolved = bool(output.get('success'))

        print(json.dumps(output, indent=2))

        if not resolved:
            logger.warning("No expiry date resolved; enter the date manually")
        return 0 if resolved else 1

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    except KeyboardInterrupt:
        print("\nOperation cancelled by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
