"""Native project layout discovery.

Every path is resolved against an explicit project root; nothing here reads
the process working directory.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

logger = logging.getLogger("l10nsync.utils.path_utils")

MANIFEST_NAME = "project.pbxproj"


@dataclass(frozen=True)
class IOSLayout:
    """Locations of the iOS artifacts."""

    resource_dir: Path
    info_plist: Path
    manifest: Optional[Path]


def resolve_under(root: Path, relative: str | Path) -> Path:
    """Join ``relative`` onto ``root``; absolute paths are kept as given."""
    candidate = Path(relative)
    return candidate if candidate.is_absolute() else root / candidate


def find_android_res_dir(project_root: Path, res_dir: str | Path) -> Optional[Path]:
    """Return the Android ``res`` directory if it exists."""
    path = resolve_under(project_root, res_dir)
    return path if path.is_dir() else None


def find_xcode_manifest(parent: Path, project_name: str) -> Optional[Path]:
    """Locate ``<project_name>.xcodeproj/project.pbxproj`` under ``parent``.

    Falls back to the only ``*.xcodeproj`` bundle of ``parent`` when the
    named one does not exist.
    """
    preferred = parent / f"{project_name}.xcodeproj" / MANIFEST_NAME
    if preferred.is_file():
        return preferred

    bundles = sorted(p for p in parent.glob("*.xcodeproj") if (p / MANIFEST_NAME).is_file())
    if len(bundles) == 1:
        logger.debug("Using %s instead of %s.xcodeproj", bundles[0].name, project_name)
        return bundles[0] / MANIFEST_NAME
    if len(bundles) > 1:
        logger.warning(
            "Several Xcode projects in %s and none named %s.xcodeproj; skipping manifest update",
            parent,
            project_name,
        )
    return None


def find_ios_layout(
    project_root: Path,
    resource_dirs: Sequence[str],
    project_name: str,
) -> Optional[IOSLayout]:
    """Find the first candidate resource directory holding an ``Info.plist``.

    Args:
        project_root: Application project root.
        resource_dirs: Candidate directories, relative to ``project_root``.
        project_name: Xcode project name (without ``.xcodeproj``).

    Returns:
        IOSLayout or None when no candidate contains ``Info.plist``.
    """
    for candidate in resource_dirs:
        directory = resolve_under(project_root, candidate)
        info_plist = directory / "Info.plist"
        if info_plist.is_file():
            manifest = find_xcode_manifest(directory.parent, project_name)
            logger.debug("iOS resources at %s (manifest: %s)", directory, manifest)
            return IOSLayout(resource_dir=directory, info_plist=info_plist, manifest=manifest)
    return None
