#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from pydantic import ValidationError

from .errors import BundleError
from .log import setup_logging
from .models import DEFAULT_COMMON_SELECTOR, DEFAULT_ICON_SELECTOR, CSSOptions, load_config
from .pipeline import build_bundle
from .resolve import DirectoryResolver, NodeModulesResolver, PathResolver

logger = logging.getLogger("iconbundle.cli")

DEFAULT_OUTPUT_NAME = "icons.css"


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="iconbundle",
        description="Bundle Iconify icon sets and SVG directories into one CSS file.",
    )
    ap.add_argument("config", type=Path, help="Path to the bundle config JSON")
    ap.add_argument("-o", "--output", type=Path, help=f"Output CSS path (default: {DEFAULT_OUTPUT_NAME} beside the config)")
    where = ap.add_mutually_exclusive_group()
    where.add_argument("--node-modules", type=Path, help="Start directory for the node_modules lookup (default: config directory)")
    where.add_argument("--packages-root", type=Path, help="Resolve package paths under this directory instead of node_modules")
    ap.add_argument("--selector", default=DEFAULT_ICON_SELECTOR, help=f"Icon selector template (default: {DEFAULT_ICON_SELECTOR})")
    ap.add_argument(
        "--common-selector",
        default=DEFAULT_COMMON_SELECTOR,
        help=f"Common selector template; empty string to merge into icon selectors (default: {DEFAULT_COMMON_SELECTOR})",
    )
    ap.add_argument("--format", choices=["expanded", "compact", "compressed"], default="expanded", help="CSS output format")
    ap.add_argument("--log-file", type=Path, help="Also write DEBUG logs to this file")
    ap.add_argument("-v", "--verbose", action="store_true", help="Log per-file details")
    return ap


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    try:
        config = load_config(args.config)
        css_options = CSSOptions(
            icon_selector=args.selector,
            common_selector=args.common_selector or None,
            format=args.format,
        )
    except (OSError, ValidationError, ValueError) as e:
        logger.error("Invalid config %s: %s", args.config, e)
        return 2

    resolve_path: PathResolver
    if args.packages_root:
        resolve_path = DirectoryResolver(args.packages_root)
    else:
        resolve_path = NodeModulesResolver(args.node_modules or config.base_dir)

    output = args.output or (config.base_dir / DEFAULT_OUTPUT_NAME)
    try:
        build_bundle(config, output, resolve_path=resolve_path, css_options=css_options)
    except BundleError as e:
        logger.error("%s", e)
        return 1
    except OSError as e:
        logger.error("I/O error while bundling: %s", e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
