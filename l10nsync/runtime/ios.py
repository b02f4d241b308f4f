"""iOS pipeline: ``InfoPlist.strings``, ``Info.plist`` and the Xcode project.

The Xcode manifest is handled last. It is loaded, synchronized in memory
and written back only when synchronization completed without error, so a
failed run never leaves a half-updated ``project.pbxproj`` behind.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Dict, List

from l10nsync.graph import (
    GraphIntegrityError,
    ManifestSynchronizer,
    PbxprojSyntaxError,
    ProjectGraph,
)
from l10nsync.parsers.base import MissingTargetError, ResourceParseError
from l10nsync.parsers.ios import InfoPlist, StringsFile
from l10nsync.parsers.locales import LocaleConfig
from l10nsync.runtime.context import PlatformResult, PlatformStatus, RunContext
from l10nsync.utils.fs import atomic_write_text
from l10nsync.utils.path_utils import find_ios_layout

logger = logging.getLogger("l10nsync.runtime.ios")

PLATFORM = "ios"

_manifest_locks: Dict[Path, threading.Lock] = {}
_manifest_locks_guard = threading.Lock()


def manifest_lock(path: Path) -> threading.Lock:
    """Return the in-process lock serializing runs on one manifest file."""
    key = path.resolve()
    with _manifest_locks_guard:
        return _manifest_locks.setdefault(key, threading.Lock())


def update_ios_localizations(
    context: RunContext, configs: List[LocaleConfig]
) -> PlatformResult:
    """Apply the ``ios`` section of every locale file.

    Args:
        context: Run context.
        configs: Parsed locale configurations.

    Returns:
        PlatformResult: Files written, warnings and errors.

    Raises:
        MissingTargetError: If no candidate directory holds an ``Info.plist``.
    """
    settings = context.config.ios
    result = PlatformResult(PLATFORM)

    layout = find_ios_layout(context.project_root, settings.resource_dirs, settings.project_name)
    if layout is None:
        raise MissingTargetError(
            PLATFORM,
            "iOS project directory not found. Make sure you have run 'npx cap add ios' first.",
        )

    try:
        info_plist = InfoPlist.load(layout.info_plist)
    except ResourceParseError as err:
        logger.error("Error reading Info.plist: %s", err)
        result.status = PlatformStatus.FAILED
        result.record_error(str(err))
        return result

    languages: List[str] = []
    for config in configs:
        strings = config.strings_for(PLATFORM)
        if strings is None:
            logger.info("No iOS configuration found in %s, skipping...", config.path.name)
            continue
        languages.append(config.locale)

        accepted, warnings = info_plist.select_keys(strings, config.locale)
        result.warnings.extend(warnings)
        if config.locale == info_plist.development_region:
            info_plist.apply_development_values(accepted, settings.info_plist_mode)

        path = layout.resource_dir / f"{config.locale}.lproj" / settings.strings_name
        try:
            existing = path.read_bytes() if path.exists() else None
            bundle = StringsFile.load(path)
            bundle.update(accepted)
            if bundle.render().encode("utf-8") == existing:
                logger.debug("%s already up to date", path)
                continue
            if not context.dry_run:
                bundle.write()
            result.written.append(path)
            logger.info("Updated %s", path)
        except (ResourceParseError, OSError) as err:
            logger.error("Error processing %s: %s", config.path.name, err)
            result.record_error(str(err))

    if not languages:
        return result.finish()

    info_plist.add_localizations(languages)
    if info_plist.modified:
        try:
            if not context.dry_run:
                info_plist.write()
            result.written.append(layout.info_plist)
            logger.info("Updated Info.plist with variables and localizations")
        except OSError as err:
            logger.error("Error writing %s: %s", layout.info_plist, err)
            result.record_error(str(err))

    if not settings.update_project:
        logger.debug("Xcode project update disabled by configuration")
    elif layout.manifest is None:
        logger.info("No Xcode project found next to %s, skipping project update", layout.resource_dir)
    else:
        synchronize_manifest(context, layout.manifest, languages, result)

    return result.finish()


def synchronize_manifest(
    context: RunContext,
    manifest: Path,
    languages: List[str],
    result: PlatformResult,
) -> bool:
    """Load, synchronize and write back one ``project.pbxproj``.

    Returns:
        bool: True when the manifest was (or in dry-run mode would be) written.
    """
    settings = context.config.ios
    synchronizer = ManifestSynchronizer(
        strings_name=settings.strings_name,
        baseline_regions=settings.baseline_regions,
        group_name=settings.group_name,
    )

    with manifest_lock(manifest):
        try:
            graph = ProjectGraph.load(manifest)
            report = synchronizer.synchronize(graph, languages)
        except (GraphIntegrityError, PbxprojSyntaxError) as err:
            logger.error("Xcode project %s left untouched: %s", manifest, err)
            result.status = PlatformStatus.FAILED
            result.record_error(f"{manifest.name}: {err}")
            return False
        except (OSError, UnicodeDecodeError) as err:
            logger.error("Error reading Xcode project %s: %s", manifest, err)
            result.record_error(str(err))
            return False

        if not report.changed:
            logger.info("Xcode project already up to date")
            return False

        try:
            if not context.dry_run:
                atomic_write_text(manifest, graph.to_text())
        except OSError as err:
            logger.error("Error writing Xcode project %s: %s", manifest, err)
            result.record_error(str(err))
            return False

    result.written.append(manifest)
    logger.info("Updated Xcode project configuration")
    return True
