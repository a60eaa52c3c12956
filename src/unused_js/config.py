"""Runtime options for the unused JavaScript report."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

UNUSED_BYTES_IGNORE_THRESHOLD = 20 * 1024
UNUSED_BYTES_IGNORE_BUNDLE_SOURCE_THRESHOLD = 512
DEFAULT_MAX_CONCURRENCY = 8

_OPTION_KEYS = {
    "unusedThreshold": "unused_threshold",
    "bundleSourceUnusedThreshold": "bundle_source_unused_threshold",
    "maxConcurrency": "max_concurrency",
}


@dataclass(frozen=True)
class ReportOptions:
    # Thresholds are taken as given: no validation or clamping.
    unused_threshold: float = UNUSED_BYTES_IGNORE_THRESHOLD
    bundle_source_unused_threshold: float = UNUSED_BYTES_IGNORE_BUNDLE_SOURCE_THRESHOLD
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any] | None) -> ReportOptions:
        """Build options from a runtime mapping, ignoring unknown or ``None`` entries."""
        kwargs = {}
        for key, value in (options or {}).items():
            attr = _OPTION_KEYS.get(key, key if key in _OPTION_KEYS.values() else None)
            if attr is not None and value is not None:
                kwargs[attr] = value
        return cls(**kwargs)
