from __future__ import annotations

from pathlib import Path


class BundleError(RuntimeError):
    """Fatal error that aborts the bundle run before any output is written."""


class IconSourceNotFound(BundleError):
    def __init__(self, name: str, searched: list[Path] | None = None) -> None:
        self.name = name
        self.searched = list(searched or [])
        where = ", ".join(str(p) for p in self.searched)
        msg = f"Cannot find icon source {name}"
        if where:
            msg += f" (searched: {where})"
        super().__init__(msg)


class InvalidIconSet(BundleError):
    def __init__(self, filename: Path | str, reason: str) -> None:
        self.filename = str(filename)
        super().__init__(f"Invalid icon set {self.filename}: {reason}")


class EmptyIconFilter(BundleError):
    def __init__(self, filename: Path | str, icons: list[str]) -> None:
        self.filename = str(filename)
        self.icons = list(icons)
        super().__init__(f"Cannot find required icons in {self.filename}")


class SVGCleanupError(ValueError):
    """Raised for a single SVG that cannot be cleaned up; the icon is dropped."""
