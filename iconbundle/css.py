from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

from .iconset import get_icon_data
from .models import CSSOptions
from .svg import SVG_NS, format_number

logger = logging.getLogger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class CSSBlock:
    selector: str
    rules: dict[str, str]


@dataclass(frozen=True)
class RenderedIcon:
    body: str
    view_box: tuple[float, float, float, float]

    @property
    def width(self) -> float:
        return self.view_box[2]

    @property
    def height(self) -> float:
        return self.view_box[3]


def icon_to_svg(icon: dict[str, Any]) -> RenderedIcon:
    """Apply rotation and flips from full icon data, wrapping the body in a <g transform>."""
    left, top = float(icon["left"]), float(icon["top"])
    width, height = float(icon["width"]), float(icon["height"])
    body = icon["body"]
    transforms: list[str] = []
    rotation = int(icon.get("rotate") or 0)

    if icon.get("hFlip"):
        if icon.get("vFlip"):
            rotation += 2
        else:
            transforms.append(f"translate({format_number(width + left)} {format_number(-top)})")
            transforms.append("scale(-1 1)")
            left = top = 0.0
    elif icon.get("vFlip"):
        transforms.append(f"translate({format_number(-left)} {format_number(height + top)})")
        transforms.append("scale(1 -1)")
        left = top = 0.0

    rotation %= 4
    if rotation == 1:
        center = height / 2 + top
        transforms.insert(0, f"rotate(90 {format_number(center)} {format_number(center)})")
    elif rotation == 2:
        transforms.insert(0, f"rotate(180 {format_number(width / 2 + left)} {format_number(height / 2 + top)})")
    elif rotation == 3:
        center = width / 2 + left
        transforms.insert(0, f"rotate(-90 {format_number(center)} {format_number(center)})")

    if rotation % 2 == 1:
        left, top = top, left
        width, height = height, width

    if transforms:
        body = f'<g transform="{" ".join(transforms)}">{body}</g>'
    return RenderedIcon(body=body, view_box=(left, top, width, height))


def icon_to_html(rendered: RenderedIcon) -> str:
    left, top, width, height = (format_number(v) for v in rendered.view_box)
    return (
        f'<svg xmlns="{SVG_NS}" width="{width}" height="{height}" '
        f'viewBox="{left} {top} {width} {height}">{rendered.body}</svg>'
    )


def encode_svg_for_url(svg: str) -> str:
    encoded = (
        svg.replace('"', "'")
        .replace("%", "%25")
        .replace("#", "%23")
        .replace("<", "%3C")
        .replace(">", "%3E")
    )
    return _WHITESPACE_RE.sub(" ", encoded)


def svg_to_data(svg: str) -> str:
    return "data:image/svg+xml," + encode_svg_for_url(svg)


def svg_to_url(svg: str) -> str:
    return f'url("{svg_to_data(svg)}")'


def _detect_mode(icon_set: dict[str, Any], names: list[str], options: CSSOptions) -> str | None:
    if options.mode:
        return options.mode
    palette = (icon_set.get("info") or {}).get("palette")
    if isinstance(palette, bool):
        return "background" if palette else "mask"
    for name in names:
        icon = get_icon_data(icon_set, name)
        if icon:
            return "mask" if "currentColor" in icon["body"] else "background"
    return None


def common_css_rules(mode: str, var_name: str | None) -> dict[str, str]:
    rules = {"display": "inline-block", "width": "1em", "height": "1em"}
    if mode == "background":
        if var_name:
            rules["background-image"] = f"var(--{var_name})"
        rules["background-repeat"] = "no-repeat"
        rules["background-size"] = "100% 100%"
    else:
        rules["background-color"] = "currentColor"
        if var_name:
            rules["-webkit-mask-image"] = f"var(--{var_name})"
            rules["mask-image"] = f"var(--{var_name})"
        rules["-webkit-mask-repeat"] = "no-repeat"
        rules["mask-repeat"] = "no-repeat"
        rules["-webkit-mask-size"] = "100% 100%"
        rules["mask-size"] = "100% 100%"
    return rules


def icon_css_rules(icon: dict[str, Any], mode: str, var_name: str | None) -> dict[str, str]:
    rendered = icon_to_svg(icon)
    url = svg_to_url(icon_to_html(rendered))
    rules: dict[str, str] = {}
    if var_name:
        rules[f"--{var_name}"] = url
    elif mode == "background":
        rules["background-image"] = url
    else:
        rules["-webkit-mask-image"] = url
        rules["mask-image"] = url
    if rendered.width != rendered.height:
        ratio = math.ceil(rendered.width / rendered.height * 100) / 100
        rules["width"] = f"{format_number(ratio)}em"
    return rules


def format_css(blocks: Iterable[CSSBlock], fmt: str = "expanded") -> str:
    out: list[str] = []
    for block in blocks:
        if fmt == "compressed":
            body = ";".join(f"{k}:{v}" for k, v in block.rules.items())
            out.append(f"{block.selector}{{{body}}}")
        elif fmt == "compact":
            body = " ".join(f"{k}: {v};" for k, v in block.rules.items())
            out.append(f"{block.selector} {{ {body} }}\n")
        else:
            body = "".join(f"  {k}: {v};\n" for k, v in block.rules.items())
            out.append(f"{block.selector} {{\n{body}}}\n")
    return ("" if fmt == "compressed" else "\n" if fmt == "expanded" else "").join(out)


def get_icons_css(icon_set: dict[str, Any], names: Iterable[str], options: CSSOptions | None = None) -> str:
    """
    Render one CSS block for the given icons of a set: a shared rule under the
    common selector followed by one rule per icon.
    """
    options = options or CSSOptions()
    names = list(names)
    prefix = icon_set["prefix"]
    errors: list[str] = []

    mode = _detect_mode(icon_set, names, options)
    if mode is None:
        mode = "mask"
        errors.append(f"/* cannot detect icon mode: not set in options and icon set is missing info, rendering as {mode} */")
    var_name = options.var_name
    if var_name is None and mode == "mask":
        var_name = "svg"

    icon_selector = options.icon_selector.replace("{prefix}", prefix)
    common_selector = (options.common_selector or "").replace("{prefix}", prefix)
    override_selector = (options.override_selector or (common_selector + options.icon_selector)).replace("{prefix}", prefix)
    has_common = bool(common_selector) and common_selector != icon_selector

    common_rules = common_css_rules(mode, var_name)
    blocks: list[CSSBlock] = []
    if has_common:
        blocks.append(CSSBlock(selector=common_selector, rules=common_rules))

    icon_selectors: list[str] = []
    for name in names:
        icon = get_icon_data(icon_set, name)
        if icon is None:
            errors.append(f"/* Could not find icon: {name} */")
            continue
        rules = icon_css_rules(icon, mode, var_name)
        needs_override = has_common and any(key in common_rules for key in rules)
        selector = (override_selector if needs_override else icon_selector).replace("{name}", name)
        blocks.append(CSSBlock(selector=selector, rules=rules))
        icon_selectors.append(selector)

    if not has_common and icon_selectors:
        joiner = "," if options.format == "compressed" else ", "
        blocks.insert(0, CSSBlock(selector=joiner.join(icon_selectors), rules=common_rules))

    result = format_css(blocks, options.format)
    if errors:
        result += "\n" + "\n".join(errors)
    return result


def build_css(icon_sets: Iterable[dict[str, Any]], options: CSSOptions | None = None) -> str:
    """One block per icon set, in order, separated by a single newline. Aliases get their own rules."""
    return "\n".join(
        get_icons_css(icon_set, [*icon_set["icons"], *(icon_set.get("aliases") or {})], options)
        for icon_set in icon_sets
    )


def write_output(path: Path | str, content: str) -> Path:
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.debug("Cannot create %s: %s", path.parent, e)
    path.write_text(content, encoding="utf-8")
    return path
