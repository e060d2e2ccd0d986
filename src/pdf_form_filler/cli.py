# SPDX-License-Identifier: Apache-2.0
"""
PDF Form Filler - CLI Tool

Detects the fields of a flat PDF form, fills them from a personal data
profile and stamps a signature image onto the page.

Usage:
    fill-pdf <form.pdf> [options]

Examples:
    fill-pdf form.pdf -p profile.json                    # Hugging Face detection
    fill-pdf form.pdf -p profile.json --signature sig.png
    fill-pdf form.pdf -p profile.json --backend fallback  # Offline demo layout
    fill-pdf form.pdf -p profile.json -o ./filled.pdf
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from datetime import date
from pathlib import Path
from typing import Any, NoReturn, Optional

from dotenv import load_dotenv

from pdf_form_filler.core.models import PersonalRecord, SignatureAsset
from pdf_form_filler.detectors import FallbackDetector, FieldDetector, get_huggingface_detector
from pdf_form_filler.fonts import (
    DEFAULT_FONT_URLS,
    FontSource,
    LocalFontSource,
    RemoteFontSource,
    StandardFontSource,
)
from pdf_form_filler.pipeline.fill_pipeline import FillPipeline, PipelineConfig

logger = logging.getLogger(__name__)

# Default output directory
DEFAULT_OUTPUT_DIR = "./output/"

TOKEN_ENV_VARS = ("HF_TOKEN", "HUGGINGFACE_TOKEN")


def parse_date(value: str) -> date:
    """argparse type for ISO dates (YYYY-MM-DD)."""
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date {value!r} (expected YYYY-MM-DD)"
        ) from None


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed argument Namespace.
    """
    parser = argparse.ArgumentParser(
        prog="fill-pdf",
        description="PDF Form Filler - Fills flat PDF forms from a personal data profile",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s form.pdf -p profile.json                      # Hugging Face detection
  %(prog)s form.pdf -p profile.json --signature sig.png  # With signature image
  %(prog)s form.pdf -p profile.json --backend fallback   # Offline demo layout
  %(prog)s form.pdf -p profile.json --payload json       # Base64 JSON request body
  %(prog)s form.pdf -p profile.json --no-font-fetch      # Standard font only

Environment Variables:
  HF_TOKEN            Hugging Face access token (required for --backend huggingface)
  HUGGINGFACE_TOKEN   Alternative name for HF_TOKEN
""",
    )

    # Input file
    parser.add_argument(
        "input",
        type=Path,
        help="Path to the PDF form to fill",
    )

    # Output options
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help=f"Output file path (default: {DEFAULT_OUTPUT_DIR}filled.pdf)",
    )

    # Personal data
    data_group = parser.add_argument_group("Personal data options")
    data_group.add_argument(
        "-p",
        "--profile",
        type=Path,
        help="JSON profile (flat record, or saved profile with formData/signatureDataUrl)",
    )
    data_group.add_argument(
        "--signature",
        type=Path,
        help="Signature PNG (overrides a signature stored in the profile)",
    )
    data_group.add_argument(
        "--date",
        type=parse_date,
        help="Date written into date fields, YYYY-MM-DD (default: today)",
    )

    # Detection
    detect_group = parser.add_argument_group("Detection options")
    detect_group.add_argument(
        "-b",
        "--backend",
        default="huggingface",
        choices=["huggingface", "fallback"],
        help="Field detector (default: huggingface)",
    )
    detect_group.add_argument(
        "--token",
        help="Hugging Face access token (or set HF_TOKEN)",
    )
    detect_group.add_argument(
        "--model-url",
        help="Detection model endpoint (default: Donut fine-tuned on CORD)",
    )
    detect_group.add_argument(
        "--payload",
        default="binary",
        choices=["binary", "json"],
        help="Request body: raw image bytes or base64 JSON (default: binary)",
    )
    detect_group.add_argument(
        "--no-fallback",
        action="store_true",
        help="Fail instead of using the fallback field layout when nothing is detected",
    )
    detect_group.add_argument(
        "--timeout",
        type=float,
        default=30.0,
        help="Detection timeout in seconds (default: 30)",
    )

    # Rasterization
    raster_group = parser.add_argument_group("Rasterization options")
    raster_group.add_argument(
        "--scale",
        type=float,
        default=2.0,
        help="Render scale in pixels per point (default: 2.0)",
    )
    raster_group.add_argument(
        "--image-format",
        default="jpeg",
        choices=["jpeg", "png"],
        help="Image format sent to the detector (default: jpeg)",
    )

    # Font
    font_group = parser.add_argument_group("Font options")
    font_group.add_argument(
        "--font-url",
        action="append",
        metavar="URL",
        help="Display font URL, repeatable; tried in order (default: Dancing Script)",
    )
    font_group.add_argument(
        "--font-file",
        type=Path,
        help="Local TrueType/OpenType/WOFF font file",
    )
    font_group.add_argument(
        "--no-font-fetch",
        action="store_true",
        help="Do not download a display font; use Helvetica-Oblique",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )

    args = parser.parse_args(argv)
    if args.backend == "fallback" and args.no_fallback:
        parser.error("--no-fallback cannot be combined with --backend fallback")
    return args


def resolve_token(args: argparse.Namespace) -> str:
    """Token from --token or the environment ("" if unset)."""
    if args.token:
        return str(args.token)
    for name in TOKEN_ENV_VARS:
        value = os.environ.get(name, "")
        if value:
            return value
    return ""


def load_profile(path: Path) -> tuple[PersonalRecord, Optional[SignatureAsset]]:
    """Load a personal data profile.

    Accepts a flat record (snake_case or camelCase keys) or the saved
    profile shape ``{"formData": {...}, "signatureDataUrl": ..., "timestamp": ...}``.

    Raises:
        ValueError: If the file is not a JSON object or the signature is invalid.
        OSError: If the file cannot be read.
    """
    data: Any = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Profile must be a JSON object: {path}")

    signature: Optional[SignatureAsset] = None
    if isinstance(data.get("formData"), dict):
        record = PersonalRecord.from_dict(data["formData"])
        data_url = data.get("signatureDataUrl")
        if data_url:
            signature = SignatureAsset.from_data_url(str(data_url))
    else:
        record = PersonalRecord.from_dict(data)
    return record, signature


def create_detector(args: argparse.Namespace) -> FieldDetector:
    """Create the field detector for the selected backend."""
    if args.backend == "fallback":
        return FallbackDetector()

    HuggingFaceDetector = get_huggingface_detector()
    detector: FieldDetector = HuggingFaceDetector(
        model_url=args.model_url,
        payload=args.payload,
        timeout=args.timeout,
        use_fallback=not args.no_fallback,
    )
    return detector


def create_font_source(args: argparse.Namespace) -> FontSource:
    """Create the display font source."""
    if args.font_file:
        return LocalFontSource(args.font_file)
    if args.no_font_fetch:
        return StandardFontSource()
    return RemoteFontSource(args.font_url or DEFAULT_FONT_URLS)


async def run(args: argparse.Namespace) -> int:
    """Execute the form filling pipeline.

    Args:
        args: Command line arguments.

    Returns:
        Exit code (0: success, 1: failure).
    """
    input_path: Path = args.input

    # Validate input file
    if not input_path.exists():
        print(f"Error: File not found: {input_path}", file=sys.stderr)
        return 1

    if input_path.suffix.lower() != ".pdf":
        print(f"Error: Not a PDF file: {input_path}", file=sys.stderr)
        return 1

    # Personal data
    record = PersonalRecord()
    signature: Optional[SignatureAsset] = None
    try:
        if args.profile:
            record, signature = load_profile(args.profile)
        if args.signature:
            signature = SignatureAsset.from_png(args.signature.read_bytes())
    except (OSError, ValueError) as e:
        print(f"Error: Could not load personal data: {e}", file=sys.stderr)
        return 1

    token = resolve_token(args)
    if args.backend == "huggingface" and not token:
        print(
            "Error: A Hugging Face token is required for --backend huggingface.\n"
            "  Set --token option or HF_TOKEN environment variable.\n"
            "  Or use --backend fallback for the offline demo layout.",
            file=sys.stderr,
        )
        return 1

    config = PipelineConfig(
        scale=args.scale,
        image_format=args.image_format,
        use_fallback_fields=not args.no_fallback,
        detection_timeout=args.timeout,
    )
    try:
        pipeline = FillPipeline(create_detector(args), create_font_source(args), config)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    # Display settings
    print(f"Input: {input_path}")
    print(f"Backend: {args.backend}")
    if args.backend == "huggingface":
        print(f"Payload: {args.payload}")
    print(f"Signature: {'yes' if signature else 'no'}")
    print()

    try:
        print("Filling...")
        result = await pipeline.fill(
            input_path,
            record,
            credential=token or None,
            signature=signature,
            today=args.date,
        )
    except Exception as e:
        print(f"Error: processing failed: {e}", file=sys.stderr)
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1

    output_path: Path = args.output or Path(DEFAULT_OUTPUT_DIR) / result.filename
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(result.pdf_bytes)

    # Display results
    print()
    print(f"Complete: {output_path}")
    status = result.completeness.value
    if result.was_fallback:
        status += " (fallback field layout)"
    print(f"  Status: {status}")
    if result.stats:
        stats = result.stats
        print(f"  Detected: {stats.get('detected_fields', 0)}")
        print(f"  Drawn: {stats.get('drawn_fields', 0)}")
        print(f"  Skipped: {stats.get('skipped_fields', 0)}")
        print(f"  Font: {stats.get('font', '')}")
    if result.missing:
        print(f"  Missing: {', '.join(result.missing)}")

    return 0


def main() -> NoReturn:
    """Main entry point."""
    args = parse_args()

    # Configure logging
    log_level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=log_level, format="%(levelname)s: %(message)s")

    load_dotenv(Path.cwd() / ".env")

    exit_code = asyncio.run(run(args))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
