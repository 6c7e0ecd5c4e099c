"""
idphotoshop command line

Generate an ID photo from a local image and a free-text instruction, using the
remote processing service:
- Validates the photo (exactly one clear face)
- Segments the person
- Generates the ID photo with the requested size/background/style/lighting

Usage:
  idphotoshop --input me.jpg --instruction "生成2寸证件照，蓝色背景" --output id.png
  idphotoshop --health --base-url http://localhost:3001

Service settings come from IDPHOTO_API_BASE_URL / IDPHOTO_API_KEY unless given
on the command line.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from typing import Optional

from idphotoshop.app.uploads import load_uploaded_image
from idphotoshop.core.config import AppConfig
from idphotoshop.core.errors import PhotoProcessingError
from idphotoshop.core.models import ProgressEvent
from idphotoshop.instructions.parser import parse_instruction
from idphotoshop.pipeline.orchestrator import PhotoPipeline
from idphotoshop.remote.client import RemoteProcessingClient

DEFAULT_INSTRUCTION = "生成1寸证件照，白色背景"


def _print_progress(event: ProgressEvent) -> None:
    print(f"[{event.percent:3d}%] {event.message}", file=sys.stderr)


async def _generate(config: AppConfig, input_path: str, instruction: str, output_path: str) -> None:
    image = load_uploaded_image(input_path)
    options = parse_instruction(instruction)
    async with RemoteProcessingClient(config) as client:
        result = await PhotoPipeline(client).run(image, options, instruction, on_progress=_print_progress)
    with open(output_path, "wb") as f:
        f.write(result.final_image_bytes())


async def _health(config: AppConfig) -> bool:
    async with RemoteProcessingClient(config) as client:
        return await client.health_check()


def _build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Generate an ID photo from a photo and a free-text instruction.")
    p.add_argument("--input", "-i", help="Path to input image (jpg/png/webp)")
    p.add_argument("--output", "-o", help="Path to write the generated photo")
    p.add_argument("--instruction", default=DEFAULT_INSTRUCTION, help=f'Free-text request (default: "{DEFAULT_INSTRUCTION}")')
    p.add_argument("--base-url", help="Processing service URL (default: $IDPHOTO_API_BASE_URL)")
    p.add_argument("--api-key", help="Bearer credential (default: $IDPHOTO_API_KEY)")
    p.add_argument("--health", action="store_true", help="Only check whether the service is reachable")
    p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = AppConfig.from_env()
    except ValueError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    if args.base_url:
        config = replace(config, base_url=args.base_url)
    if args.api_key is not None:
        config = replace(config, api_key=args.api_key)

    if args.health:
        ok = asyncio.run(_health(config))
        print("Service is healthy." if ok else "Service is unavailable.")
        return 0 if ok else 1

    if not args.input or not args.output:
        parser.error("--input and --output are required unless --health is given")

    try:
        asyncio.run(_generate(config, args.input, args.instruction, args.output))
    except PhotoProcessingError as e:
        print(f"ERROR: {e.message} ({e.code})", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    print(f"Saved: {args.output}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
