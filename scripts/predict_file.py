#!/usr/bin/env python3
"""Predict the facial emotion in a single image file.

This script runs emotion inference on one image and outputs the result
as JSON to stdout.

Usage:
    python scripts/predict_file.py --input face.jpg
    python scripts/predict_file.py --input face.jpg --model-dir models/emotion
    python scripts/predict_file.py --input face.jpg --model-dir https://host/models/emotion

Example output:
    {
        "emotion": "happy",
        "confidence": 0.85,
        "probabilities": {"angry": 0.02, "disgust": 0.01, "fear": 0.03, "happy": 0.85, ...},
        "model_name": "fer2013-cnn"
    }
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from faceio.errors import ImageIOError
from model import EmotionPipeline, LoaderConfig, ModelLoader
from model.errors import ModelError


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Predict the facial emotion in an image file",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    %(prog)s --input face.jpg
    %(prog)s --input face.jpg --model-dir models/emotion --pretty
    %(prog)s --input face.jpg --device cuda
        """,
    )
    parser.add_argument(
        "--input", "-i",
        type=str,
        required=True,
        help="Path to the input image (PNG, JPEG, ...)",
    )
    parser.add_argument(
        "--model-dir", "-m",
        type=str,
        default="models/emotion",
        help="Directory or URL holding model_info.json and the model (default: models/emotion)",
    )
    parser.add_argument(
        "--device", "-d",
        type=str,
        default="cpu",
        help="Device to run inference on (cpu or cuda, default: cpu)",
    )
    parser.add_argument(
        "--pretty", "-p",
        action="store_true",
        help="Pretty-print JSON output with indentation",
    )
    return parser


async def predict(input_path: Path, model_dir: str, device: str) -> dict:
    """Load the model, run one prediction and dispose of the model."""
    loader = ModelLoader(model_dir, LoaderConfig(device=device))
    pipeline = EmotionPipeline(loader)
    try:
        await pipeline.wait_for_ready()
        result = await pipeline.detect_emotion_bytes(input_path)
    finally:
        loader.dispose()
    return result.to_dict()


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the script.

    Returns:
        Exit code: 0 success, 1 missing file, 2 image error, 3 model error,
        4 unexpected error.
    """
    args = build_parser().parse_args(argv)

    input_path = Path(args.input)
    if not input_path.exists():
        print(json.dumps({
            "error": "File not found",
            "code": "FILE_NOT_FOUND",
            "path": str(input_path),
        }), file=sys.stderr)
        return 1

    try:
        output = asyncio.run(predict(input_path, args.model_dir, args.device))
    except ImageIOError as e:
        print(json.dumps({
            "error": e.message,
            "code": e.code,
            "details": e.details,
        }), file=sys.stderr)
        return 2
    except ModelError as e:
        print(json.dumps({
            "error": e.message,
            "code": e.code,
            "details": e.details,
        }), file=sys.stderr)
        return 3
    except Exception as e:
        print(json.dumps({
            "error": str(e),
            "code": "UNKNOWN_ERROR",
        }), file=sys.stderr)
        return 4

    if args.pretty:
        print(json.dumps(output, indent=2))
    else:
        print(json.dumps(output))
    return 0


if __name__ == "__main__":
    sys.exit(main())
