"""
Hot path profiling for the tokenizers and decoder.

Set TRANSIT_PROFILE before import to time every profiled section: lexing,
string parsing, scalar decoding, tag dispatch. Without it ProfileContext is
an empty context manager.
"""

import logging
import os
import time
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)

PROFILE_HOT_PATHS = __debug__ and "TRANSIT_PROFILE" in os.environ


@dataclass
class HotPathStats:
    """Accumulated timings for one profiled section."""

    section: str
    calls: int = 0
    total_ns: int = 0
    units: int = 0
    failures: int = 0

    @property
    def mean_ns(self) -> float:
        return self.total_ns / self.calls if self.calls else 0.0

    def record(self, duration_ns: int, units: int = 0, failed: bool = False) -> None:
        """Adds one call; units is whatever the section consumes (chars, items)."""
        self.calls += 1
        self.total_ns += duration_ns
        self.units += units
        if failed:
            self.failures += 1


def log_hot_path_stats(level: int = logging.INFO) -> None:
    """Logs collected statistics, slowest section first."""
    stats = sorted(
        get_hot_path_stats().values(), key=lambda s: s.total_ns, reverse=True
    )
    for s in stats:
        logger.log(
            level,
            "%-16s calls=%d total=%.3fms mean=%.0fns units=%d failures=%d",
            s.section,
            s.calls,
            s.total_ns / 1e6,
            s.mean_ns,
            s.units,
            s.failures,
        )


if PROFILE_HOT_PATHS:
    _hot_path_stats: dict[str, HotPathStats] = {}

    class ProfileContext:
        """Times the enclosed block under a section name."""

        def __init__(self, section: str, units: int = 0):
            self.section = section
            self.units = units
            self.start_time = 0

        def __enter__(self) -> "ProfileContext":
            self.start_time = time.perf_counter_ns()
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            duration = time.perf_counter_ns() - self.start_time
            stats = _hot_path_stats.get(self.section)
            if stats is None:
                stats = _hot_path_stats[self.section] = HotPathStats(self.section)
            stats.record(duration, self.units, failed=exc_type is not None)

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        """Returns a snapshot of the statistics collected so far."""
        return dict(_hot_path_stats)

    def clear_hot_path_stats() -> None:
        _hot_path_stats.clear()

else:

    class ProfileContext:  # type: ignore[no-redef]
        def __init__(self, section: str, units: int = 0) -> None:
            pass

        def __enter__(self) -> "ProfileContext":
            return self

        def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
            pass

    def get_hot_path_stats() -> dict[str, HotPathStats]:
        return {}

    def clear_hot_path_stats() -> None:
        pass


__all__ = [
    "PROFILE_HOT_PATHS",
    "HotPathStats",
    "ProfileContext",
    "clear_hot_path_stats",
    "get_hot_path_stats",
    "log_hot_path_stats",
]
