"""Run context and per-platform results.

The context is assembled once by the CLI and handed to every platform
pipeline; it carries the project root explicitly so no step depends on
the process working directory.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from l10nsync.config import SyncConfig
from l10nsync.parsers.base import KeyNotFoundWarning


class PlatformStatus(str, Enum):
    """Outcome of one platform pipeline."""

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class RunContext:
    """Inputs shared by all platform pipelines.

    Args:
        project_root: Application project root.
        config: Validated configuration.
        dry_run: Compute every change but write nothing.
    """

    project_root: Path
    config: SyncConfig
    dry_run: bool = False

    @property
    def localizations_dir(self) -> Path:
        path = Path(self.config.localizations_dir)
        return path if path.is_absolute() else self.project_root / path


@dataclass
class PlatformResult:
    """What one platform pipeline did."""

    platform: str
    status: PlatformStatus = PlatformStatus.UNCHANGED
    written: List[Path] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[KeyNotFoundWarning] = field(default_factory=list)
    message: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.status == PlatformStatus.FAILED

    def record_error(self, message: str) -> None:
        self.errors.append(message)

    def finish(self) -> "PlatformResult":
        """Derive the final status from what was recorded."""
        if self.status in (PlatformStatus.SKIPPED, PlatformStatus.FAILED):
            return self
        if self.errors:
            self.status = PlatformStatus.PARTIAL
        elif self.written:
            self.status = PlatformStatus.UPDATED
        else:
            self.status = PlatformStatus.UNCHANGED
        return self
