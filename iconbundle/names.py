from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

MATCH_ICON_NAME = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


@dataclass(frozen=True)
class IconName:
    provider: str
    prefix: str
    name: str

    def __str__(self) -> str:
        base = f"{self.prefix}:{self.name}" if self.prefix else self.name
        return f"@{self.provider}:{base}" if self.provider else base


def validate_icon_name(icon: IconName | None, *, allow_simple_name: bool = False) -> bool:
    if icon is None:
        return False
    if icon.provider and not MATCH_ICON_NAME.match(icon.provider):
        return False
    if not (allow_simple_name and icon.prefix == "") and not MATCH_ICON_NAME.match(icon.prefix):
        return False
    return bool(MATCH_ICON_NAME.match(icon.name))


def string_to_icon(
    value: str,
    *,
    validate: bool = True,
    allow_simple_name: bool = False,
    provider: str = "",
) -> IconName | None:
    """
    Parse "prefix:name", "@provider:prefix:name" or "prefix-name".

    Returns None for anything that does not split into a prefix and a name.
    """
    if not isinstance(value, str):
        return None
    text = value.strip()
    parts = text.split(":")

    if text.startswith("@"):
        if len(parts) < 2 or len(parts) > 3:
            return None
        provider = parts.pop(0)[1:]

    if len(parts) > 3 or not parts:
        return None

    if len(parts) > 1:
        name = parts.pop()
        prefix = parts.pop()
        result = IconName(provider=parts[0] if parts else provider, prefix=prefix, name=name)
        return None if validate and not validate_icon_name(result) else result

    # No colon: try "prefix-name"
    dashed = parts[0].split("-")
    if len(dashed) > 1:
        result = IconName(provider=provider, prefix=dashed[0], name="-".join(dashed[1:]))
        return None if validate and not validate_icon_name(result) else result

    if allow_simple_name and provider == "":
        result = IconName(provider="", prefix="", name=parts[0])
        return None if validate and not validate_icon_name(result, allow_simple_name=True) else result

    return None


def organize_icons_list(icons: Iterable[str]) -> dict[str, list[str]]:
    """Group icon references by prefix, keeping first-seen order and dropping duplicates."""
    grouped: dict[str, list[str]] = {}
    for value in icons:
        item = string_to_icon(value)
        if item is None:
            continue
        names = grouped.setdefault(item.prefix, [])
        if item.name not in names:
            names.append(item.name)
    return grouped


_KEYWORD_SEPARATORS_RE = re.compile(r"[\s_./\\:]+")
_KEYWORD_INVALID_RE = re.compile(r"[^a-z0-9-]")
_KEYWORD_DASHES_RE = re.compile(r"-{2,}")


def cleanup_icon_keyword(keyword: str) -> str:
    """Turn a file stem such as "Arrow_Left.old" into a valid icon name ("arrow-left-old")."""
    text = _KEYWORD_SEPARATORS_RE.sub("-", (keyword or "").strip().lower())
    text = _KEYWORD_INVALID_RE.sub("", text)
    return _KEYWORD_DASHES_RE.sub("-", text).strip("-")
