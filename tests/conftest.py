"""Shared fixtures: a Capacitor-style application project on disk."""

from __future__ import annotations

import json
import plistlib
import random
from pathlib import Path
from typing import Any, Callable, Dict

import pytest

from l10nsync.graph import IdGenerator, ProjectGraph

FIXTURES = Path(__file__).parent / "fixtures"


@pytest.fixture
def pbxproj_text() -> str:
    """Manifest of a freshly generated single-target iOS app."""
    return (FIXTURES / "App.pbxproj").read_text(encoding="utf-8")


@pytest.fixture
def make_graph(pbxproj_text: str) -> Callable[..., ProjectGraph]:
    """Build a ProjectGraph with a seeded ID generator."""

    def _make(text: str | None = None, seed: int = 7) -> ProjectGraph:
        return ProjectGraph.from_text(
            text if text is not None else pbxproj_text,
            id_generator=IdGenerator(rng=random.Random(seed)),
        )

    return _make


@pytest.fixture
def app_project(tmp_path: Path, pbxproj_text: str) -> Path:
    """Application root with android/, ios/ and an empty localizations/."""
    res = tmp_path / "android" / "app" / "src" / "main" / "res" / "values"
    res.mkdir(parents=True)
    (res / "strings.xml").write_text(
        '<?xml version="1.0" encoding="utf-8"?>\n'
        "<resources>\n"
        '    <string name="app_name">My App</string>\n'
        '    <string name="title_activity_main">My App</string>\n'
        "</resources>\n",
        encoding="utf-8",
    )

    app_dir = tmp_path / "ios" / "App" / "App"
    app_dir.mkdir(parents=True)
    info: Dict[str, Any] = {
        "CFBundleDevelopmentRegion": "en",
        "CFBundleDisplayName": "My App",
        "CFBundleName": "$(PRODUCT_NAME)",
        "NSCameraUsageDescription": "Camera access",
    }
    (app_dir / "Info.plist").write_bytes(plistlib.dumps(info))

    xcodeproj = tmp_path / "ios" / "App" / "App.xcodeproj"
    xcodeproj.mkdir()
    (xcodeproj / "project.pbxproj").write_text(pbxproj_text, encoding="utf-8")

    (tmp_path / "localizations").mkdir()
    return tmp_path


@pytest.fixture
def write_locale(app_project: Path) -> Callable[[str, Dict[str, Any]], Path]:
    """Write ``localizations/<locale>.json``."""

    def _write(locale: str, data: Dict[str, Any]) -> Path:
        path = app_project / "localizations" / f"{locale}.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
