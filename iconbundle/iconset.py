from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Iterator, Literal

from lxml import etree

from .errors import InvalidIconSet
from .names import cleanup_icon_keyword
from .svg import SVG, format_number

logger = logging.getLogger(__name__)

DEFAULT_ICON_DIMENSIONS: dict[str, Any] = {"left": 0, "top": 0, "width": 16, "height": 16}
DEFAULT_ICON_TRANSFORMATIONS: dict[str, Any] = {"rotate": 0, "vFlip": False, "hFlip": False}
DEFAULT_ICON_PROPS: dict[str, Any] = {**DEFAULT_ICON_DIMENSIONS, **DEFAULT_ICON_TRANSFORMATIONS}
DEFAULT_EXTENDED_ICON_PROPS: dict[str, Any] = {**DEFAULT_ICON_PROPS, "body": "", "hidden": False}

# Keys copied from the source set when extracting a subset.
SET_PROPS_TO_COPY = ("left", "top", "width", "height")


def load_icon_set(path: Path | str) -> dict[str, Any]:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise InvalidIconSet(path, f"not valid JSON ({e})") from e
    except (OSError, UnicodeDecodeError) as e:
        raise InvalidIconSet(path, f"cannot read file ({e})") from e
    validate_icon_set(data, filename=path)
    return data


def validate_icon_set(data: Any, *, filename: Path | str = "<memory>") -> None:
    if not isinstance(data, dict):
        raise InvalidIconSet(filename, "document must be an object")
    if not isinstance(data.get("prefix"), str) or not data["prefix"]:
        raise InvalidIconSet(filename, "missing prefix")
    if not isinstance(data.get("icons"), dict):
        raise InvalidIconSet(filename, "missing icons")
    for name, icon in data["icons"].items():
        if not isinstance(icon, dict) or not isinstance(icon.get("body"), str):
            raise InvalidIconSet(filename, f"icon '{name}' has no body")
    aliases = data.get("aliases")
    if aliases is not None and not isinstance(aliases, dict):
        raise InvalidIconSet(filename, "aliases must be an object")


def get_icons_tree(data: dict[str, Any], names: Iterable[str] | None = None) -> dict[str, list[str] | None]:
    """
    Map each name to the chain of parents it needs, or None if it cannot be
    resolved (unknown name, dangling or circular alias). Parents visited on the
    way are included in the result.
    """
    icons = data.get("icons") or {}
    aliases = data.get("aliases") or {}
    resolved: dict[str, list[str] | None] = {}

    def resolve(name: str) -> list[str] | None:
        if name in icons:
            resolved[name] = []
            return resolved[name]
        if name not in resolved:
            # Mark first so a circular chain resolves to None
            resolved[name] = None
            parent = (aliases.get(name) or {}).get("parent")
            value = resolve(parent) if parent else None
            if value is not None:
                resolved[name] = [parent, *value]
        return resolved[name]

    for name in names if names is not None else [*icons, *aliases]:
        resolve(name)
    return resolved


def merge_icon_transformations(parent: dict[str, Any], child: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    if bool(parent.get("hFlip")) != bool(child.get("hFlip")):
        result["hFlip"] = True
    if bool(parent.get("vFlip")) != bool(child.get("vFlip")):
        result["vFlip"] = True
    rotate = (int(parent.get("rotate") or 0) + int(child.get("rotate") or 0)) % 4
    if rotate:
        result["rotate"] = rotate
    return result


def merge_icon_data(parent: dict[str, Any], child: dict[str, Any]) -> dict[str, Any]:
    result = merge_icon_transformations(parent, child)
    for key in DEFAULT_EXTENDED_ICON_PROPS:
        if key in DEFAULT_ICON_TRANSFORMATIONS:
            if key in parent and key not in result:
                result[key] = DEFAULT_ICON_TRANSFORMATIONS[key]
        elif key in child:
            result[key] = child[key]
        elif key in parent:
            result[key] = parent[key]
    return result


def get_icon_data(data: dict[str, Any], name: str) -> dict[str, Any] | None:
    """Full icon data for an icon or alias, with set defaults applied; None if missing."""
    icons = data.get("icons") or {}
    aliases = data.get("aliases") or {}
    if name in icons:
        parents: list[str] = []
    else:
        chain = get_icons_tree(data, [name]).get(name)
        if chain is None:
            return None
        parents = chain

    props: dict[str, Any] = {}
    for item in (name, *parents):
        props = merge_icon_data(icons.get(item) or aliases.get(item) or {}, props)
    return {**DEFAULT_EXTENDED_ICON_PROPS, **merge_icon_data(data, props)}


def get_icons(data: dict[str, Any], names: Iterable[str], *, not_found: bool = False) -> dict[str, Any] | None:
    """
    Extract a subset of an icon set. Aliases bring their parents along.

    Returns None if none of the names exist, unless ``not_found`` is set, in
    which case the missing names are listed under "not_found".
    """
    names = list(names)
    source_icons = data.get("icons") or {}
    source_aliases = data.get("aliases") or {}
    result: dict[str, Any] = {"prefix": data["prefix"], "icons": {}}
    if data.get("lastModified"):
        result["lastModified"] = data["lastModified"]

    empty = True
    for name, chain in get_icons_tree(data, names).items():
        if chain is None:
            if not_found and name in names:
                result.setdefault("not_found", []).append(name)
        elif name in source_icons:
            result["icons"][name] = dict(source_icons[name])
            empty = False
        else:
            result.setdefault("aliases", {})[name] = dict(source_aliases[name])

    for key in SET_PROPS_TO_COPY:
        if key in data:
            result[key] = data[key]

    if empty and not not_found:
        return None
    return result


@dataclass
class IconEntry:
    type: Literal["icon", "alias"]
    body: str = ""
    props: dict[str, Any] = field(default_factory=dict)
    parent: str | None = None
    # Raw file content for imported icons not yet converted
    source: str | None = None


class IconSet:
    """Mutable icon set used while importing and cleaning up SVG files."""

    def __init__(self, prefix: str, *, info: dict[str, Any] | None = None) -> None:
        self.prefix = prefix
        self.info = info
        self.entries: dict[str, IconEntry] = {}

    def __len__(self) -> int:
        return len(self.entries)

    def __contains__(self, name: str) -> bool:
        return name in self.entries

    def names(self) -> list[str]:
        return list(self.entries)

    def items(self) -> Iterator[tuple[str, str]]:
        """Yield (name, type) pairs over a snapshot, so entries can be removed while iterating."""
        for name, entry in list(self.entries.items()):
            yield name, entry.type

    def set_source(self, name: str, content: str) -> None:
        self.entries[name] = IconEntry(type="icon", source=content)

    def set_alias(self, name: str, parent: str, **props: Any) -> None:
        self.entries[name] = IconEntry(type="alias", parent=parent, props=props)

    def remove(self, name: str) -> None:
        self.entries.pop(name, None)
        # Aliases pointing at a removed icon go too
        for other, entry in list(self.entries.items()):
            if entry.type == "alias" and entry.parent == name:
                self.remove(other)

    def to_svg(self, name: str) -> SVG | None:
        entry = self.entries.get(name)
        if entry is None or entry.type != "icon":
            return None
        try:
            if entry.source is not None:
                return SVG(entry.source)
            box = {**DEFAULT_ICON_DIMENSIONS, **entry.props}
            view_box = " ".join(format_number(box[k]) for k in ("left", "top", "width", "height"))
            return SVG(f'<svg xmlns="http://www.w3.org/2000/svg" viewBox="{view_box}">{entry.body}</svg>')
        except (etree.XMLSyntaxError, ValueError) as e:
            logger.debug("Cannot parse %s:%s: %s", self.prefix, name, e)
            return None

    def from_svg(self, name: str, svg: SVG) -> None:
        left, top, width, height = svg.view_box
        props: dict[str, Any] = {"width": width, "height": height}
        if left:
            props["left"] = left
        if top:
            props["top"] = top
        self.entries[name] = IconEntry(type="icon", body=svg.body(), props=props)

    def export(self) -> dict[str, Any]:
        """Export as Iconify JSON. Icons that were never converted from source are skipped."""
        icons: dict[str, Any] = {}
        aliases: dict[str, Any] = {}
        for name, entry in self.entries.items():
            if entry.type == "icon":
                if entry.source is not None:
                    continue
                icons[name] = {"body": entry.body, **copy.deepcopy(entry.props)}
            elif entry.parent:
                aliases[name] = {"parent": entry.parent, **copy.deepcopy(entry.props)}

        result: dict[str, Any] = {"prefix": self.prefix}
        if self.info:
            result["info"] = copy.deepcopy(self.info)
        result["icons"] = icons
        # Drop aliases whose parent did not survive
        tree = get_icons_tree({"icons": icons, "aliases": aliases})
        aliases = {k: v for k, v in aliases.items() if tree.get(k) is not None}
        if aliases:
            result["aliases"] = aliases
        return result


def _icon_name(directory: Path, path: Path) -> str:
    rel = path.relative_to(directory).with_suffix("")
    return cleanup_icon_keyword("-".join(rel.parts))


def import_directory(directory: Path | str, *, prefix: str, include_subdirs: bool = True) -> IconSet:
    """
    Build an icon set from the SVG files in a directory.

    File content is stored as-is; parsing happens later in ``IconSet.to_svg``.
    A symlink to another SVG file in the same directory becomes an alias of
    that icon.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise NotADirectoryError(str(directory))

    icon_set = IconSet(prefix)
    pattern = "**/*" if include_subdirs else "*"
    files = [p for p in sorted(directory.glob(pattern)) if p.is_file() and p.suffix.lower() == ".svg"]

    links: list[tuple[str, Path]] = []
    for path in files:
        name = _icon_name(directory, path)
        if not name:
            logger.warning("Skipping %s: cannot derive an icon name", path)
            continue
        if name in icon_set:
            logger.warning("Skipping %s: duplicate icon name '%s'", path, name)
            continue
        if path.is_symlink():
            links.append((name, path))
            continue
        icon_set.set_source(name, path.read_text(encoding="utf-8", errors="replace"))

    root = directory.resolve()
    for name, path in links:
        target = path.resolve()
        parent = _icon_name(root, target) if target.is_relative_to(root) else ""
        if parent and parent != name and parent in icon_set:
            icon_set.set_alias(name, parent)
        else:
            icon_set.set_source(name, path.read_text(encoding="utf-8", errors="replace"))

    logger.debug("Imported %d entries from %s", len(icon_set), directory)
    return icon_set
