from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from .errors import IconSourceNotFound
from .models import BundleConfig
from .names import organize_icons_list

logger = logging.getLogger(__name__)

# Full icon index: one JSON file per prefix.
ICON_INDEX_PATH = "@iconify/json/json/{prefix}.json"

PathResolver = Callable[[str], Path]


def _split_logical(name: str) -> tuple[str, ...]:
    parts = tuple(p for p in name.replace("\\", "/").split("/") if p)
    if not parts or any(p in (".", "..") for p in parts):
        raise IconSourceNotFound(name)
    return parts


class NodeModulesResolver:
    """
    Resolve package-relative paths the way Node does: look in ./node_modules,
    then in each parent directory's node_modules, up to the filesystem root.
    """

    def __init__(self, start: Path | str | None = None) -> None:
        self.start = Path(start or Path.cwd()).resolve()

    def candidates(self, name: str) -> list[Path]:
        parts = _split_logical(name)
        return [d / "node_modules" / Path(*parts) for d in (self.start, *self.start.parents)]

    def __call__(self, name: str) -> Path:
        searched = self.candidates(name)
        for path in searched:
            if path.is_file():
                logger.debug("Resolved %s -> %s", name, path)
                return path
        raise IconSourceNotFound(name, searched)


class DirectoryResolver:
    """Resolve package-relative paths under one fixed root, e.g. a vendored copy of the packages."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root).resolve()

    def __call__(self, name: str) -> Path:
        path = self.root / Path(*_split_logical(name))
        if not path.is_file():
            raise IconSourceNotFound(name, [self.root])
        logger.debug("Resolved %s -> %s", name, path)
        return path


@dataclass(frozen=True)
class ResolvedSource:
    path: Path
    icons: tuple[str, ...] | None = None


def resolve_sources(config: BundleConfig, resolve_path: PathResolver) -> list[ResolvedSource]:
    """
    Turn the config's JSON entries and bare icon references into files to load.

    Explicit JSON sources come first, in declaration order, followed by one
    filtered source per prefix referenced in ``config.icons``.
    """
    out: list[ResolvedSource] = []

    for item in config.json_sources:
        if item.is_package_path:
            path = resolve_path(item.filename)
        else:
            path = config.base_dir / item.filename
            if not path.is_file():
                raise IconSourceNotFound(item.filename, [path.parent])
        out.append(ResolvedSource(path=path, icons=item.icons or None))

    for prefix, names in organize_icons_list(config.icons).items():
        path = resolve_path(ICON_INDEX_PATH.format(prefix=prefix))
        out.append(ResolvedSource(path=path, icons=tuple(names)))

    return out
