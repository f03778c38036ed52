from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .colors import Color, is_empty_color
from .css import build_css, write_output
from .errors import EmptyIconFilter, IconSourceNotFound
from .iconset import IconSet, get_icons, import_directory, load_icon_set
from .models import BundleConfig, CSSOptions, SVGSource
from .resolve import NodeModulesResolver, PathResolver, ResolvedSource, resolve_sources
from .svg import cleanup_svg, optimize_svg, parse_colors

logger = logging.getLogger(__name__)

CURRENT_COLOR = "currentColor"


@dataclass(frozen=True)
class BundleResult:
    output: Path
    icon_sets: list[dict[str, Any]]
    dropped: list[str] = field(default_factory=list)

    @property
    def icon_count(self) -> int:
        return sum(len(s["icons"]) for s in self.icon_sets)


def monotone_color(attr: str, value: str, color: Color | None) -> str:
    """Replace every real color with currentColor; keep empty and unparseable values."""
    if color is None or is_empty_color(color):
        return value
    return CURRENT_COLOR


def load_json_source(source: ResolvedSource) -> dict[str, Any]:
    data = load_icon_set(source.path)
    if not source.icons:
        logger.debug("Loaded %s: %d icons", source.path, len(data["icons"]))
        return data

    filtered = get_icons(data, source.icons)
    if filtered is None:
        raise EmptyIconFilter(source.path, list(source.icons))
    found = set(filtered["icons"]) | set(filtered.get("aliases") or {})
    missing = [name for name in source.icons if name not in found]
    if missing:
        logger.warning("%s: icons not found: %s", source.path, ", ".join(missing))
    logger.debug("Loaded %s: %d of %d requested icons", source.path, len(source.icons) - len(missing), len(source.icons))
    return filtered


def clean_icon_set(icon_set: IconSet, *, monotone: bool, source_dir: Path | str) -> list[str]:
    """
    Clean up every imported icon in place, one at a time. Icons that fail are
    logged and removed; the names of removed icons are returned.
    """
    dropped: list[str] = []
    for name, kind in icon_set.items():
        if kind != "icon":
            continue

        svg = icon_set.to_svg(name)
        if svg is None:
            logger.error("Invalid icon %s in %s", name, source_dir)
            icon_set.remove(name)
            dropped.append(name)
            continue

        try:
            cleanup_svg(svg)
            if monotone:
                colors = parse_colors(svg, monotone_color)
                if colors.has_unset_color:
                    logger.warning("%s from %s has shapes without a fill color; they will not follow currentColor", name, source_dir)
            optimize_svg(svg)
        except Exception as e:  # noqa: BLE001
            logger.error("Error parsing %s from %s: %s", name, source_dir, e)
            logger.debug("Traceback for %s", name, exc_info=True)
            icon_set.remove(name)
            dropped.append(name)
            continue

        icon_set.from_svg(name, svg)
    return dropped


def import_svg_source(source: SVGSource, *, base_dir: Path) -> tuple[dict[str, Any], list[str]]:
    directory = base_dir / source.dir
    if not directory.is_dir():
        raise IconSourceNotFound(str(source.dir), [base_dir])
    icon_set = import_directory(directory, prefix=source.prefix)
    if source.monotone:
        # Recolored icons render as masks so they follow the text color
        icon_set.info = {"palette": False}
    dropped = clean_icon_set(icon_set, monotone=source.monotone, source_dir=directory)
    exported = icon_set.export()
    logger.info("Imported %d icons from %s as '%s'", len(exported["icons"]), directory, source.prefix)
    return exported, [f"{source.prefix}:{name}" for name in dropped]


def collect_icon_sets(config: BundleConfig, resolve_path: PathResolver) -> tuple[list[dict[str, Any]], list[str]]:
    icon_sets: list[dict[str, Any]] = []
    dropped: list[str] = []

    sources = resolve_sources(config, resolve_path)
    logger.info("Resolved %d icon set files", len(sources))
    for source in sources:
        icon_sets.append(load_json_source(source))

    for svg_source in config.svg:
        exported, lost = import_svg_source(svg_source, base_dir=config.base_dir)
        icon_sets.append(exported)
        dropped.extend(lost)

    return icon_sets, dropped


def build_bundle(
    config: BundleConfig,
    output: Path | str,
    *,
    resolve_path: PathResolver | None = None,
    css_options: CSSOptions | None = None,
) -> BundleResult:
    """
    Run the whole pipeline and write one CSS file. Any BundleError raised on the
    way propagates before the file is written.
    """
    if resolve_path is None:
        resolve_path = NodeModulesResolver(config.base_dir)

    icon_sets, dropped = collect_icon_sets(config, resolve_path)
    css = build_css(icon_sets, css_options)
    path = write_output(output, css)

    result = BundleResult(output=path, icon_sets=icon_sets, dropped=dropped)
    if dropped:
        logger.warning("Dropped %d invalid icons: %s", len(dropped), ", ".join(dropped))
    logger.info("Saved CSS to %s (%d icon sets, %d icons)", path, len(icon_sets), result.icon_count)
    return result
