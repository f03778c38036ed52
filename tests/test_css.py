from pathlib import Path
from typing import Any

from iconbundle.css import (
    build_css,
    get_icons_css,
    icon_to_svg,
    svg_to_url,
    write_output,
)
from iconbundle.iconset import get_icon_data
from iconbundle.models import CSSOptions

HOME = '<path fill="currentColor" d="M0 0h24v24H0z"/>'


def make_set(prefix: str, **icons: dict[str, Any]) -> dict[str, Any]:
    return {"prefix": prefix, "icons": icons}


def test_default_selectors() -> None:
    icon_set = make_set("ri", home={"body": HOME, "width": 24, "height": 24})
    css = get_icons_css(icon_set, ["home"])
    assert css.startswith(".icon--ri {\n  display: inline-block;\n  width: 1em;\n  height: 1em;\n")
    assert "  mask-image: var(--svg);\n" in css
    assert "\n.ri-home {\n  --svg: url(\"data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg'" in css
    assert "width='24' height='24' viewBox='0 0 24 24'" in css


def test_non_square_icon_uses_override_selector() -> None:
    icon_set = make_set("ri", wide={"body": HOME, "width": 32, "height": 16})
    css = get_icons_css(icon_set, ["wide"])
    assert ".icon--ri.ri-wide {" in css
    assert "  width: 2em;\n" in css


def test_missing_icon_comment() -> None:
    icon_set = make_set("ri", home={"body": HOME})
    css = get_icons_css(icon_set, ["home", "nope"])
    assert css.endswith("\n/* Could not find icon: nope */")


def test_background_mode_from_palette() -> None:
    icon_set = {"prefix": "logos", "info": {"palette": True}, "icons": {"a": {"body": '<path fill="#f00" d="M0 0h1"/>'}}}
    css = get_icons_css(icon_set, ["a"])
    assert "background-repeat: no-repeat;" in css
    assert ".logos-a {\n  background-image: url(" in css
    assert "--svg" not in css


def test_background_mode_detected_from_body() -> None:
    icon_set = make_set("c", a={"body": '<path fill="#f00" d="M0 0h1"/>'})
    assert ".c-a {\n  background-image: url(" in get_icons_css(icon_set, ["a"])


def test_without_common_selector() -> None:
    icon_set = make_set("ri", a={"body": HOME}, b={"body": HOME})
    css = get_icons_css(icon_set, ["a", "b"], CSSOptions(common_selector=None))
    assert css.startswith(".ri-a, .ri-b {\n  display: inline-block;")
    assert ".icon--ri" not in css


def test_custom_selector_and_compressed_format() -> None:
    icon_set = make_set("ri", home={"body": HOME})
    options = CSSOptions(icon_selector=".i-{prefix}--{name}", format="compressed")
    css = get_icons_css(icon_set, ["home"], options)
    assert css.startswith(".icon--ri{display:inline-block;width:1em;height:1em;")
    assert ".i-ri--home{--svg:url(" in css
    assert "\n" not in css


def test_build_css_keeps_order() -> None:
    first = make_set("a", x={"body": HOME})
    second = make_set("b", y={"body": HOME})
    css = build_css([first, second])
    assert css == get_icons_css(first, ["x"]) + "\n" + get_icons_css(second, ["y"])
    assert css.index(".a-x") < css.index(".b-y")


def test_icon_to_svg_transforms() -> None:
    rotated = icon_to_svg(get_icon_data(make_set("t", a={"body": "<g/>", "width": 24, "rotate": 1}), "a"))
    assert rotated.body == '<g transform="rotate(90 8 8)"><g/></g>'
    assert rotated.view_box == (0.0, 0.0, 16.0, 24.0)

    flipped = icon_to_svg(get_icon_data(make_set("t", a={"body": "<g/>", "width": 24, "hFlip": True}), "a"))
    assert flipped.body == '<g transform="translate(24 0) scale(-1 1)"><g/></g>'
    assert flipped.width == 24


def test_svg_to_url_encoding() -> None:
    url = svg_to_url('<svg width="1">\n  <path d="M0 0h100%"/>#</svg>')
    assert url == "url(\"data:image/svg+xml,%3Csvg width='1'%3E %3Cpath d='M0 0h100%25'/%3E%23%3C/svg%3E\")"


def test_write_output_creates_directories(tmp_path: Path) -> None:
    path = write_output(tmp_path / "dist" / "css" / "icons.css", ".a {}\n")
    assert path.read_text(encoding="utf-8") == ".a {}\n"


def test_build_css_includes_aliases() -> None:
    icon_set = {
        "prefix": "ri",
        "icons": {"home": {"body": HOME}},
        "aliases": {"house": {"parent": "home"}, "home-flipped": {"parent": "home", "hFlip": True}},
    }
    css = build_css([icon_set])
    assert ".ri-house {" in css
    assert ".ri-home-flipped {" in css
    assert "scale(-1 1)" in css
