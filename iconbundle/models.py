from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .names import MATCH_ICON_NAME

DEFAULT_ICON_SELECTOR = ".{prefix}-{name}"
DEFAULT_COMMON_SELECTOR = ".icon--{prefix}"


def _check_prefix(value: str) -> str:
    if not MATCH_ICON_NAME.match(value):
        raise ValueError(f"prefix '{value}' must contain only a-z, 0-9 and single dashes")
    return value


class SVGSource(BaseModel):
    """Directory of SVG files imported as one icon set."""

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    dir: Path
    prefix: str
    monotone: bool = False

    @field_validator("prefix")
    @classmethod
    def validate_prefix(cls, value: str) -> str:
        return _check_prefix(value)

    @field_validator("dir", mode="before")
    @classmethod
    def validate_dir(cls, value: object) -> object:
        # Path("") would silently become "."
        if isinstance(value, str) and not value.strip():
            raise ValueError("dir must not be empty")
        return value


class JSONSource(BaseModel):
    """Icon set JSON file, optionally filtered to a list of icon names."""

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True)

    filename: str = Field(..., min_length=1)
    icons: tuple[str, ...] | None = None

    @property
    def is_package_path(self) -> bool:
        return self.filename.startswith("@")


class BundleConfig(BaseModel):
    """Everything one bundle run reads. Immutable once constructed."""

    model_config = ConfigDict(extra="forbid", frozen=True, str_strip_whitespace=True, populate_by_name=True)

    svg: tuple[SVGSource, ...] = ()
    icons: tuple[str, ...] = ()
    json_sources: tuple[JSONSource, ...] = Field(default=(), alias="json")
    base_dir: Path = Field(default_factory=Path.cwd, exclude=True)

    @field_validator("json_sources", mode="before")
    @classmethod
    def coerce_json_sources(cls, value: object) -> object:
        if value is None:
            return ()
        if isinstance(value, (list, tuple)):
            return tuple({"filename": item} if isinstance(item, str) else item for item in value)
        return value

    @field_validator("svg", "icons", mode="before")
    @classmethod
    def coerce_none(cls, value: object) -> object:
        return () if value is None else value


class CSSOptions(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    icon_selector: str = DEFAULT_ICON_SELECTOR
    common_selector: str | None = DEFAULT_COMMON_SELECTOR
    override_selector: str | None = None
    mode: Literal["mask", "background"] | None = None
    var_name: str | None = None
    format: Literal["expanded", "compact", "compressed"] = "expanded"

    @field_validator("icon_selector")
    @classmethod
    def validate_icon_selector(cls, value: str) -> str:
        if "{name}" not in value:
            raise ValueError("icon_selector must contain {name}")
        return value


def load_config(path: Path | str) -> BundleConfig:
    """Load a bundle config JSON file; relative paths resolve against the file's directory."""
    path = Path(path)
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError(f"{path}: config must be a JSON object")
    return BundleConfig.model_validate({**raw, "base_dir": path.resolve().parent})
