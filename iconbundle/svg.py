from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Callable

from lxml import etree
from picosvg.svg import SVG as PicoSVG
from picosvg.svg_path_iter import parse_svg_path

from .colors import Color, parse_color
from .errors import SVGCleanupError

logger = logging.getLogger(__name__)

SVG_NS = "http://www.w3.org/2000/svg"
XLINK_NS = "http://www.w3.org/1999/xlink"

DEFAULT_PRECISION = 3

# Elements an icon may contain.
SVG_TAGS = frozenset(
    """
    svg g defs symbol use path rect circle ellipse line polyline polygon text tspan textPath
    linearGradient radialGradient stop clipPath mask pattern marker switch
    filter feBlend feColorMatrix feComponentTransfer feComposite feConvolveMatrix
    feDiffuseLighting feDisplacementMap feDistantLight feDropShadow feFlood feFuncA feFuncB
    feFuncG feFuncR feGaussianBlur feMerge feMergeNode feMorphology feOffset fePointLight
    feSpecularLighting feSpotLight feTile feTurbulence
    animate animateMotion animateTransform set mpath
    """.split()
)
REMOVED_TAGS = frozenset({"metadata", "title", "desc"})
UNSAFE_TAGS = frozenset({"script", "foreignObject", "iframe", "object", "embed", "audio", "video", "canvas", "image", "a"})

PRESENTATION_ATTRIBUTES = frozenset(
    """
    fill fill-opacity fill-rule stroke stroke-width stroke-linecap stroke-linejoin
    stroke-miterlimit stroke-dasharray stroke-dashoffset stroke-opacity opacity color
    clip-rule clip-path mask filter stop-color stop-opacity flood-color flood-opacity
    lighting-color display visibility vector-effect shape-rendering paint-order
    font-family font-size font-weight font-style text-anchor dominant-baseline
    letter-spacing marker-start marker-mid marker-end
    """.split()
)
DROPPED_ATTRIBUTES = frozenset({"class", "enable-background", "version", "baseProfile"})

COLOR_ATTRIBUTES = ("fill", "stroke", "stop-color", "flood-color", "lighting-color", "color")
SHAPE_TAGS = frozenset({"path", "rect", "circle", "ellipse", "polygon", "polyline", "text"})

NUMERIC_ATTRIBUTES = frozenset(
    """
    x y x1 y1 x2 y2 cx cy r rx ry fx fy width height stroke-width stroke-dashoffset
    stroke-dasharray stroke-miterlimit opacity fill-opacity stroke-opacity stop-opacity
    offset points transform
    """.split()
)
DEFAULT_ATTRIBUTE_VALUES = {
    "fill-opacity": "1",
    "stroke-opacity": "1",
    "opacity": "1",
    "stroke-width": "1",
    "stroke-linecap": "butt",
    "stroke-linejoin": "miter",
    "stroke-miterlimit": "4",
    "stroke-dashoffset": "0",
    "stroke-dasharray": "none",
    "fill-rule": "nonzero",
    "clip-rule": "nonzero",
    "visibility": "visible",
}

_NUMBER_RE = re.compile(r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?")
_LENGTH_RE = re.compile(r"^\s*([-+]?(?:\d+\.?\d*|\.\d+))(px)?\s*$")
_URL_REF_RE = re.compile(r"url\(\s*['\"]?#([^'\")\s]+)['\"]?\s*\)")
_CSS_COMMENT_RE = re.compile(r"/\*.*?\*/", re.S)
_CSS_RULE_RE = re.compile(r"([^{}]+)\{([^{}]*)\}")
_SIMPLE_SELECTOR_RE = re.compile(r"^([a-zA-Z][\w-]*)?(?:\.([\w-]+))?$")

# Path data: starts with a moveto and holds only commands, numbers and separators
_PATH_DATA_RE = re.compile(r"^\s*(?:[Mm][MmZzLlHhVvCcSsQqTtAa0-9eE.,+\-\s]*)?$")


def format_number(value: float, precision: int | None = None) -> str:
    if precision is not None:
        value = round(value, precision)
    value = float(value)
    if value.is_integer():
        return str(int(value))
    text = repr(value)
    if "e" in text:
        text = f"{value:.{precision if precision is not None else 12}f}".rstrip("0").rstrip(".")
    return text


def compact_number(value: float, precision: int) -> str:
    text = format_number(value, precision)
    if text.startswith("0."):
        return text[1:]
    if text.startswith("-0."):
        return "-" + text[2:]
    return text


def parse_view_box(value: str) -> tuple[float, float, float, float]:
    parts = value.replace(",", " ").split()
    if len(parts) != 4:
        raise ValueError(f"Invalid viewBox '{value}'")
    left, top, width, height = (float(p) for p in parts)
    return left, top, width, height


def _blank_to_none(text: str | None) -> str | None:
    return text if text and text.strip() else None


def _import_node(node: etree._Element) -> etree._Element:
    """Copy a parsed element, dropping the SVG namespace from tags and turning xlink:href into href."""
    qname = etree.QName(node)
    tag = qname.localname if qname.namespace in (None, SVG_NS) else node.tag
    out = etree.Element(tag)
    for key, value in node.attrib.items():
        qkey = etree.QName(key)
        if qkey.namespace == XLINK_NS and qkey.localname == "href":
            if "href" not in node.attrib:
                out.set("href", value)
        else:
            out.set(key, value)
    out.text = _blank_to_none(node.text)
    for child in node.iterchildren("*"):
        copied = _import_node(child)
        copied.tail = _blank_to_none(child.tail)
        out.append(copied)
    return out


class SVG:
    """Parsed SVG document. Tags and attributes are kept without the SVG namespace."""

    def __init__(self, content: str | bytes) -> None:
        if isinstance(content, bytes):
            content = content.decode("utf-8")
        pico = PicoSVG.fromstring(content)
        pico = pico.remove_title_meta_desc()
        root = pico.svg_root
        if etree.QName(root).localname != "svg":
            raise ValueError(f"Root element is <{etree.QName(root).localname}>, expected <svg>")
        self.root = _import_node(root)

    @property
    def view_box(self) -> tuple[float, float, float, float]:
        value = self.root.get("viewBox")
        if value is not None:
            return parse_view_box(value)
        width = _parse_length(self.root.get("width"))
        height = _parse_length(self.root.get("height"))
        if width is None or height is None:
            raise ValueError("SVG has no viewBox and no width/height")
        return 0.0, 0.0, width, height

    def body(self) -> str:
        return "".join(etree.tostring(child, encoding="unicode", with_tail=False) for child in self.root)


def _parse_length(value: str | None) -> float | None:
    m = _LENGTH_RE.match(value or "")
    return float(m.group(1)) if m else None


def _parse_declarations(text: str) -> list[tuple[str, str]]:
    out: list[tuple[str, str]] = []
    for chunk in text.split(";"):
        prop, sep, value = chunk.partition(":")
        if not sep:
            continue
        prop = prop.strip().lower()
        value = value.replace("!important", "").strip()
        if prop and value:
            out.append((prop, value))
    return out


# ---- cleanup ---------------------------------------------------------------


def _apply_stylesheets(root: etree._Element) -> None:
    rules: list[tuple[int, str | None, str | None, list[tuple[str, str]]]] = []
    for el in list(root.iter("style")):
        css = _CSS_COMMENT_RE.sub("", el.text or "")
        if "@" in css:
            raise SVGCleanupError("Unsupported at-rule in <style>")
        for m in _CSS_RULE_RE.finditer(css):
            declarations = _parse_declarations(m.group(2))
            for selector in m.group(1).split(","):
                selector = selector.strip()
                if not selector:
                    continue
                sm = _SIMPLE_SELECTOR_RE.match(selector)
                if not sm:
                    raise SVGCleanupError(f"Unsupported selector '{selector}' in <style>")
                tag, cls = sm.groups()
                specificity = (1 if tag else 0) + (10 if cls else 0)
                rules.append((specificity, tag, cls, declarations))
        el.getparent().remove(el)

    # Stable sort: equal specificity keeps source order
    rules.sort(key=lambda r: r[0])
    for _, tag, cls, declarations in rules:
        for el in root.iter():
            if tag and el.tag != tag:
                continue
            if cls and cls not in (el.get("class") or "").split():
                continue
            for prop, value in declarations:
                if prop in PRESENTATION_ATTRIBUTES:
                    el.set(prop, value)


def _apply_inline_styles(root: etree._Element) -> None:
    for el in root.iter():
        style = el.attrib.pop("style", None)
        if not style:
            continue
        for prop, value in _parse_declarations(style):
            if prop in PRESENTATION_ATTRIBUTES:
                el.set(prop, value)
            else:
                logger.debug("Dropping style property %s on <%s>", prop, el.tag)


def _check_elements(parent: etree._Element) -> None:
    for el in list(parent):
        tag = el.tag
        if not isinstance(tag, str) or tag.startswith("{") or tag in REMOVED_TAGS:
            parent.remove(el)
            continue
        if tag in UNSAFE_TAGS:
            raise SVGCleanupError(f"Unsafe element <{tag}>")
        if tag not in SVG_TAGS or tag == "svg":
            raise SVGCleanupError(f"Unexpected element <{tag}>")
        _check_elements(el)


def _cleanup_attributes(root: etree._Element) -> None:
    for el in root.iter():
        for key in list(el.attrib):
            if key.startswith("{") or key.startswith("data-") or key in DROPPED_ATTRIBUTES:
                del el.attrib[key]
            elif key.lower().startswith("on"):
                raise SVGCleanupError(f"Event handler '{key}' on <{el.tag}>")
            elif key == "href" and not el.attrib[key].startswith("#"):
                raise SVGCleanupError(f"External reference on <{el.tag}>")


def _cleanup_root(root: etree._Element) -> None:
    value = root.get("viewBox")
    if value is None:
        width = _parse_length(root.get("width"))
        height = _parse_length(root.get("height"))
        if width is None or height is None:
            raise SVGCleanupError("Missing viewBox")
        view_box = (0.0, 0.0, width, height)
    else:
        try:
            view_box = parse_view_box(value)
        except ValueError as e:
            raise SVGCleanupError(str(e)) from e
    if view_box[2] <= 0 or view_box[3] <= 0:
        raise SVGCleanupError("Empty viewBox")

    moved = {k: v for k, v in root.attrib.items() if k in PRESENTATION_ATTRIBUTES or k == "transform"}
    root.attrib.clear()
    root.set("viewBox", " ".join(format_number(v) for v in view_box))
    if moved and len(root):
        group = etree.Element("g")
        for key, val in moved.items():
            group.set(key, val)
        for child in list(root):
            group.append(child)
        root.append(group)


def cleanup_svg(svg: SVG) -> None:
    """
    Strip everything an icon does not need and normalize the root element.

    Raises SVGCleanupError for content that cannot be used in an icon.
    """
    root = svg.root
    _apply_stylesheets(root)
    _apply_inline_styles(root)
    _check_elements(root)
    _cleanup_attributes(root)
    _cleanup_root(root)
    # Editor attributes are gone; drop the declarations they left behind
    etree.cleanup_namespaces(root)


# ---- colors ----------------------------------------------------------------

ColorCallback = Callable[[str, str, Color | None], str]


@dataclass
class ParsedColors:
    colors: list[str]
    has_unset_color: bool


def _has_unset_fill(root: etree._Element) -> bool:
    for el in root.iter(*SHAPE_TAGS):
        node = el
        unset = True
        while node is not None:
            if node.tag in ("clipPath", "mask") or node.get("fill") is not None:
                unset = False
                break
            node = node.getparent()
        if unset:
            return True
    return False


def parse_colors(svg: SVG, callback: ColorCallback | None = None) -> ParsedColors:
    """
    Visit every color attribute. ``callback(attr, value, color)`` returns the
    value to keep; ``color`` is None when the value is not a plain color.
    Missing colors are never added.
    """
    found: list[str] = []
    for el in svg.root.iter():
        for attr in COLOR_ATTRIBUTES:
            value = el.get(attr)
            if value is None:
                continue
            if callback is not None:
                replacement = callback(attr, value, parse_color(value))
                if replacement != value:
                    el.set(attr, replacement)
                    value = replacement
            if value not in found:
                found.append(value)
    return ParsedColors(colors=found, has_unset_color=_has_unset_fill(svg.root))


# ---- optimization ----------------------------------------------------------


def parse_path(d: str) -> list[tuple[str, list[float]]]:
    """Split path data into one (command, args) pair per segment; extra moveto pairs become linetos."""
    if not _PATH_DATA_RE.match(d):
        raise ValueError(f"Invalid path data '{d}'")
    return [(cmd, list(args)) for cmd, args in parse_svg_path(d, exploded=True)]


def serialize_path(segments: list[tuple[str, list[float]]], precision: int = DEFAULT_PRECISION) -> str:
    out: list[str] = []
    prev_cmd: str | None = None
    last = ""
    for cmd, args in segments:
        implicit = (prev_cmd == cmd and cmd not in "Mm") or (prev_cmd, cmd) in (("M", "L"), ("m", "l"))
        if not implicit or not args:
            out.append(cmd)
            last = ""
        for i, value in enumerate(args):
            if cmd in "Aa" and i in (3, 4):
                text = "1" if value else "0"
            else:
                text = compact_number(value, precision)
            if last and not (text.startswith("-") or (text.startswith(".") and "." in last)):
                out.append(" ")
            out.append(text)
            last = text
        prev_cmd = cmd
    return "".join(out)


def minify_path(d: str, precision: int = DEFAULT_PRECISION) -> str:
    return serialize_path(parse_path(d), precision)


def _round_attributes(root: etree._Element, precision: int) -> None:
    for el in root.iter():
        for key, value in list(el.attrib.items()):
            if key == "d":
                el.set(key, minify_path(value, precision))
            elif key in NUMERIC_ATTRIBUTES:
                el.set(key, _NUMBER_RE.sub(lambda m: compact_number(float(m.group()), precision), value))


def _inherits(el: etree._Element, attr: str) -> bool:
    node = el.getparent()
    while node is not None:
        if node.get(attr) is not None:
            return True
        node = node.getparent()
    return False


def _remove_default_attributes(root: etree._Element) -> None:
    for el in root.iter():
        for key, default in DEFAULT_ATTRIBUTE_VALUES.items():
            if el.get(key) == default and not _inherits(el, key):
                del el.attrib[key]


def _collapse_groups(parent: etree._Element) -> None:
    for el in list(parent):
        _collapse_groups(el)
        if el.tag in ("g", "defs") and len(el) == 0:
            parent.remove(el)
        elif el.tag == "g" and not el.attrib:
            index = parent.index(el)
            for offset, child in enumerate(list(el)):
                parent.insert(index + offset, child)
            parent.remove(el)


def _remove_unused_ids(root: etree._Element) -> None:
    refs: set[str] = set()
    for el in root.iter():
        for key, value in el.attrib.items():
            refs.update(_URL_REF_RE.findall(value))
            if key == "href" and value.startswith("#"):
                refs.add(value[1:])
    for el in root.iter():
        if el.get("id") is not None and el.get("id") not in refs:
            del el.attrib["id"]


def optimize_svg(svg: SVG, *, precision: int = DEFAULT_PRECISION) -> None:
    """Shrink the document: round numbers, minify paths, drop defaults, flatten groups and unused ids."""
    root = svg.root
    _round_attributes(root, precision)
    _remove_default_attributes(root)
    _collapse_groups(root)
    _remove_unused_ids(root)
