"""Command line entry point for the Nutrilens project."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from . import AnalysisError, AnalysisService, AppConfig, ImagePayload, PlatformHint, SettingsStore

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Nutrilens food photo analyzer")
    parser.add_argument(
        "--input",
        "-i",
        type=Path,
        help="Food photo to analyze.",
    )
    parser.add_argument(
        "--platform",
        choices=[hint.value for hint in PlatformHint],
        default=PlatformHint.DEFAULT.value,
        help="Platform hint used to select the provider endpoint.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Read settings from this YAML or JSON file instead of the user settings.",
    )
    parser.add_argument(
        "--api-key",
        help="Override the provider API key.",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Override the provider timeout in seconds.",
    )
    parser.add_argument(
        "--serve",
        action="store_true",
        help="Run the HTTP server instead of analyzing a single file.",
    )
    parser.add_argument("--host", default="127.0.0.1", help="Server bind address.")
    parser.add_argument("--port", type=int, default=3000, help="Server port.")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging.",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    if not args.serve and args.input is None:
        parser.error("--input is required unless --serve is given.")

    config = _load_config(args)

    if args.serve:
        import uvicorn

        from .adapters.server import create_app

        uvicorn.run(create_app(config), host=args.host, port=args.port)
        return 0

    try:
        image = ImagePayload.from_path(args.input).ensure_within(config.max_image_bytes)
        result = AnalysisService(config).analyze(image, args.platform)
    except AnalysisError as exc:
        sys.stderr.write(f"{exc.kind.value}: {exc}\n")
        return 1

    json.dump(result.as_dict(), sys.stdout, indent=2, ensure_ascii=False)
    sys.stdout.write("\n")
    return 0


def _load_config(args: argparse.Namespace) -> AppConfig:
    if args.config is not None:
        config = AppConfig.load(args.config).with_environment()
    else:
        config = SettingsStore().load()

    updates: dict[str, object] = {}
    if args.api_key:
        updates["api_key"] = args.api_key
    if args.timeout is not None:
        updates["timeout"] = args.timeout
    if updates:
        config = AppConfig.model_validate({**config.model_dump(), **updates})
    return config


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
