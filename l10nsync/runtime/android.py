"""Android pipeline: merge locale strings into ``values*/strings.xml``."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from l10nsync.parsers.android import AndroidStringsFile, values_folders
from l10nsync.parsers.base import MissingTargetError, ResourceParseError
from l10nsync.parsers.locales import LocaleConfig
from l10nsync.runtime.context import PlatformResult, RunContext
from l10nsync.utils.path_utils import find_android_res_dir

logger = logging.getLogger("l10nsync.runtime.android")

PLATFORM = "android"


def _read_existing(path: Path) -> Optional[str]:
    if not path.exists():
        return None
    return path.read_text(encoding="utf-8")


def update_android_localizations(
    context: RunContext, configs: List[LocaleConfig]
) -> PlatformResult:
    """Merge the ``android`` section of every locale file into the res tree.

    Args:
        context: Run context.
        configs: Parsed locale configurations.

    Returns:
        PlatformResult: Files written and per-file errors.

    Raises:
        MissingTargetError: If the Android resource directory does not exist.
    """
    settings = context.config.android
    result = PlatformResult(PLATFORM)

    res_dir = find_android_res_dir(context.project_root, settings.res_dir)
    if res_dir is None:
        raise MissingTargetError(
            PLATFORM,
            f"Android resources directory not found ({settings.res_dir}). "
            'Make sure you have run "npx cap add android" first.',
        )

    for config in configs:
        strings = config.strings_for(PLATFORM)
        if strings is None:
            logger.info("No Android configuration found in %s, skipping...", config.path.name)
            continue

        folders = values_folders(
            config.locale,
            default_locale=settings.default_locale,
            mappings=settings.language_mappings,
        )
        for folder in folders:
            path = res_dir / folder / settings.strings_file
            try:
                existing = _read_existing(path)
                bundle = AndroidStringsFile.load(path)
                bundle.update(strings)
                if bundle.render() == existing:
                    logger.debug("%s already up to date", path)
                    continue
                if not context.dry_run:
                    bundle.write()
                result.written.append(path)
                logger.info("Updated %s (merged %d strings)", path, len(strings))
            except (ResourceParseError, OSError, UnicodeDecodeError) as err:
                logger.error("Error processing %s for %s: %s", config.path.name, path, err)
                result.record_error(str(err))

    return result.finish()
