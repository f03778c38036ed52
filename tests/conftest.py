from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import pytest

SVG_HEAD = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 24 24">'


def write_json(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def write_svg(path: Path, body: str, head: str = SVG_HEAD) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(f"{head}{body}</svg>", encoding="utf-8")
    return path


@pytest.fixture
def icon_set_data() -> dict[str, Any]:
    return {
        "prefix": "p",
        "icons": {
            "a": {"body": '<path fill="currentColor" d="M0 0h16v16H0z"/>'},
            "b": {"body": '<path fill="currentColor" d="M2 2h12v12H2z"/>'},
            "c": {"body": '<circle cx="8" cy="8" r="8" fill="currentColor"/>', "width": 32},
        },
        "aliases": {
            "b-flipped": {"parent": "b", "hFlip": True},
        },
        "width": 16,
        "height": 16,
    }


@pytest.fixture
def icon_set_file(tmp_path: Path, icon_set_data: dict[str, Any]) -> Path:
    return write_json(tmp_path / "p.json", icon_set_data)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger("iconbundle")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
