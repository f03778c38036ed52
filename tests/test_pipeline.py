import logging
import re
from pathlib import Path

import pytest

from conftest import write_json, write_svg
from iconbundle.errors import EmptyIconFilter, IconSourceNotFound
from iconbundle.models import BundleConfig, CSSOptions, SVGSource
from iconbundle.pipeline import build_bundle, import_svg_source, load_json_source
from iconbundle.resolve import DirectoryResolver, ResolvedSource

STAR = '<path fill="#ff0000" d="M12 2l3 7h7l-6 4 2 7-6-4-6 4 2-7-6-4h7z"/>'


def test_load_json_source_filter(icon_set_file: Path) -> None:
    data = load_json_source(ResolvedSource(path=icon_set_file, icons=("a", "c")))
    assert list(data["icons"]) == ["a", "c"]
    assert data["prefix"] == "p"


def test_load_json_source_without_filter(icon_set_file: Path) -> None:
    data = load_json_source(ResolvedSource(path=icon_set_file))
    assert list(data["icons"]) == ["a", "b", "c"]
    assert "b-flipped" in data["aliases"]


def test_load_json_source_empty_filter(icon_set_file: Path) -> None:
    with pytest.raises(EmptyIconFilter) as exc:
        load_json_source(ResolvedSource(path=icon_set_file, icons=("x", "y")))
    assert str(icon_set_file) in str(exc.value)
    assert exc.value.icons == ["x", "y"]


def test_load_json_source_partial_filter_warns(icon_set_file: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="iconbundle"):
        data = load_json_source(ResolvedSource(path=icon_set_file, icons=("a", "zzz")))
    assert list(data["icons"]) == ["a"]
    assert "zzz" in caplog.text


def test_import_svg_source_drops_invalid_icons(tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
    write_svg(tmp_path / "svg" / "one.svg", '<path d="M0 0h24v24z"/>')
    (tmp_path / "svg" / "broken.svg").write_text("<svg><path></svg>", encoding="utf-8")
    write_svg(tmp_path / "svg" / "evil.svg", "<script>alert(1)</script>")
    write_svg(tmp_path / "svg" / "two.svg", '<circle cx="12" cy="12" r="10"/>')

    with caplog.at_level(logging.ERROR, logger="iconbundle"):
        exported, dropped = import_svg_source(SVGSource(dir="svg", prefix="test"), base_dir=tmp_path)

    assert sorted(exported["icons"]) == ["one", "two"]
    assert dropped == ["test:broken", "test:evil"]
    assert "evil" in caplog.text


def test_import_svg_source_monotone(tmp_path: Path) -> None:
    write_svg(tmp_path / "svg" / "star.svg", STAR + '<path fill="none" d="M0 0h1"/><path d="M5 5h1"/>')

    exported, _ = import_svg_source(SVGSource(dir="svg", prefix="custom", monotone=True), base_dir=tmp_path)
    body = exported["icons"]["star"]["body"]
    assert 'fill="currentColor"' in body
    assert 'fill="none"' in body
    assert '<path d="M5 5h1"/>' in body
    assert "#ff0000" not in body

    colored, _ = import_svg_source(SVGSource(dir="svg", prefix="custom"), base_dir=tmp_path)
    assert 'fill="#ff0000"' in colored["icons"]["star"]["body"]


def test_import_svg_source_keeps_aliases(tmp_path: Path) -> None:
    target = write_svg(tmp_path / "svg" / "home.svg", '<path d="M0 0h24v24z"/>')
    (tmp_path / "svg" / "house.svg").symlink_to(target)

    exported, _ = import_svg_source(SVGSource(dir="svg", prefix="test"), base_dir=tmp_path)
    assert list(exported["icons"]) == ["home"]
    assert exported["aliases"] == {"house": {"parent": "home"}}


def test_import_svg_source_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(IconSourceNotFound):
        import_svg_source(SVGSource(dir="missing", prefix="test"), base_dir=tmp_path)


def test_build_bundle_end_to_end(tmp_path: Path, icon_set_data: dict) -> None:
    write_json(tmp_path / "sets" / "p.json", icon_set_data)
    write_json(tmp_path / "packages" / "@iconify" / "json" / "json" / "mdi.json", {
        "prefix": "mdi",
        "icons": {"home": {"body": '<path fill="currentColor" d="M10 20v-6h4v6"/>', "width": 24, "height": 24}},
    })
    write_svg(tmp_path / "svg" / "star.svg", STAR)

    config = BundleConfig.model_validate(
        {
            "json": [{"filename": "sets/p.json", "icons": ["a", "b"]}],
            "icons": ["mdi:home"],
            "svg": [{"dir": "svg", "prefix": "custom"}],
            "base_dir": tmp_path,
        }
    )
    output = tmp_path / "dist" / "icons.css"
    result = build_bundle(config, output, resolve_path=DirectoryResolver(tmp_path / "packages"))

    css = output.read_text(encoding="utf-8")
    assert result.output == output
    assert result.icon_count == 4
    assert result.dropped == []
    positions = [css.index(selector) for selector in (".p-a {", ".p-b {", ".mdi-home {", ".custom-star {")]
    assert positions == sorted(positions)
    assert ".p-c" not in css


def test_build_bundle_custom_selector(tmp_path: Path) -> None:
    write_svg(tmp_path / "svg" / "star.svg", STAR)
    config = BundleConfig.model_validate({"svg": [{"dir": "svg", "prefix": "custom"}], "base_dir": tmp_path})

    build_bundle(config, tmp_path / "icons.css", css_options=CSSOptions(icon_selector=".icon-{name}"))
    assert ".icon-star {" in (tmp_path / "icons.css").read_text(encoding="utf-8")


def test_build_bundle_fatal_error_writes_nothing(tmp_path: Path) -> None:
    write_svg(tmp_path / "svg" / "star.svg", STAR)
    config = BundleConfig.model_validate(
        {"json": ["@iconify-json/missing/icons.json"], "svg": [{"dir": "svg", "prefix": "custom"}], "base_dir": tmp_path}
    )
    output = tmp_path / "icons.css"
    with pytest.raises(IconSourceNotFound):
        build_bundle(config, output, resolve_path=DirectoryResolver(tmp_path))
    assert not output.exists()


def icon_selectors(css: str) -> list[str]:
    return [s for s in re.findall(r"^(\.[a-z0-9-]+) \{$", css, re.M) if not s.startswith(".icon--")]


def test_build_bundle_json_and_svg_sources(tmp_path: Path) -> None:
    write_json(tmp_path / "p.json", {
        "prefix": "p",
        "icons": {
            "a": {"body": '<path fill="currentColor" d="M0 0h16v16H0z"/>'},
            "b": {"body": '<path fill="currentColor" d="M2 2h12v12H2z"/>'},
        },
    })
    write_svg(tmp_path / "custom" / "star.svg", STAR)
    config = BundleConfig.model_validate(
        {"json": ["p.json"], "svg": [{"dir": "custom", "prefix": "custom"}], "base_dir": tmp_path}
    )

    build_bundle(config, tmp_path / "icons.css")
    css = (tmp_path / "icons.css").read_text(encoding="utf-8")
    assert icon_selectors(css) == [".p-a", ".p-b", ".custom-star"]


def test_monotone_directory_renders_as_mask(tmp_path: Path) -> None:
    write_svg(tmp_path / "svg" / "a.svg", '<path d="M0 0h24v24z"/>')
    write_svg(tmp_path / "svg" / "b.svg", STAR)
    config = BundleConfig.model_validate(
        {"svg": [{"dir": "svg", "prefix": "c", "monotone": True}], "base_dir": tmp_path}
    )

    result = build_bundle(config, tmp_path / "icons.css")
    css = (tmp_path / "icons.css").read_text(encoding="utf-8")
    assert result.icon_sets[0]["info"] == {"palette": False}
    assert "  mask-image: var(--svg);\n" in css
    assert ".c-b {\n  --svg: url(" in css
    assert "background-image" not in css


def test_symlinked_svg_gets_its_own_rule(tmp_path: Path) -> None:
    target = write_svg(tmp_path / "svg" / "home.svg", '<path fill="currentColor" d="M0 0h24v24z"/>')
    (tmp_path / "svg" / "house.svg").symlink_to(target)
    config = BundleConfig.model_validate({"svg": [{"dir": "svg", "prefix": "c"}], "base_dir": tmp_path})

    build_bundle(config, tmp_path / "icons.css")
    css = (tmp_path / "icons.css").read_text(encoding="utf-8")
    assert icon_selectors(css) == [".c-home", ".c-house"]
