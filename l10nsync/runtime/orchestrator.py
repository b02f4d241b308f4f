"""Run orchestration across platforms.

Locale files are discovered once; the Android and iOS pipelines then run
side by side on a small thread pool. They touch disjoint file trees, and a
failure in one never prevents the other from completing.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Sequence

from l10nsync.parsers.base import ConfigParseError, MissingTargetError
from l10nsync.parsers.locales import LocaleConfig, discover_locale_configs
from l10nsync.runtime.android import update_android_localizations
from l10nsync.runtime.context import PlatformResult, PlatformStatus, RunContext
from l10nsync.runtime.ios import update_ios_localizations

logger = logging.getLogger("l10nsync.runtime.orchestrator")

PlatformPipeline = Callable[[RunContext, List[LocaleConfig]], PlatformResult]

PIPELINES: Dict[str, PlatformPipeline] = {
    "android": update_android_localizations,
    "ios": update_ios_localizations,
}

PLATFORM_CHOICES = ("ios", "android", "both")


@dataclass
class RunSummary:
    """Aggregated outcome of one invocation."""

    results: List[PlatformResult] = field(default_factory=list)
    config_errors: List[ConfigParseError] = field(default_factory=list)

    @property
    def failed(self) -> bool:
        return any(r.failed for r in self.results)


def expand_platforms(platform: str) -> List[str]:
    """Turn a ``--platform`` choice into the list of pipelines to run."""
    choice = platform.lower()
    if choice == "both":
        return ["android", "ios"]
    if choice in PIPELINES:
        return [choice]
    raise ValueError(f"Unknown platform {platform!r}; expected one of {', '.join(PLATFORM_CHOICES)}")


def _run_platform(
    platform: str, context: RunContext, configs: List[LocaleConfig]
) -> PlatformResult:
    pipeline = PIPELINES[platform]
    try:
        return pipeline(context, configs)
    except MissingTargetError as err:
        logger.info("%s", err)
        return PlatformResult(platform, status=PlatformStatus.SKIPPED, message=str(err))
    except Exception as err:
        logger.error("%s update failed: %s", platform, err, exc_info=True)
        return PlatformResult(platform, status=PlatformStatus.FAILED, errors=[str(err)])


def run(context: RunContext, platforms: Sequence[str]) -> RunSummary:
    """Run the selected platform pipelines.

    Args:
        context: Run context.
        platforms: Platform names (``android``, ``ios``).

    Returns:
        RunSummary: One result per platform, in the requested order.

    Raises:
        FileNotFoundError: If the localizations directory does not exist.
    """
    configs, config_errors = discover_locale_configs(context.localizations_dir)
    summary = RunSummary(config_errors=config_errors)

    enabled = {
        "android": context.config.android.enabled,
        "ios": context.config.ios.enabled,
    }
    selected: List[str] = []
    for platform in platforms:
        if enabled.get(platform, False):
            selected.append(platform)
        else:
            logger.info("%s update disabled by configuration", platform)
            summary.results.append(
                PlatformResult(platform, status=PlatformStatus.SKIPPED, message="disabled")
            )

    if len(selected) > 1:
        with ThreadPoolExecutor(max_workers=len(selected), thread_name_prefix="l10nsync") as pool:
            futures = [pool.submit(_run_platform, p, context, configs) for p in selected]
            summary.results.extend(f.result() for f in futures)
    else:
        summary.results.extend(_run_platform(p, context, configs) for p in selected)

    return summary
