from __future__ import annotations

import logging
import os
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator

try:  # pragma: no cover - platform specific fallback
    import resource
except ImportError:  # pragma: no cover - Windows fallback
    resource = None  # type: ignore

from vpsphere import config as vp_config


def _read_rss_bytes() -> int | None:
    try:
        with open("/proc/self/statm", "r", encoding="utf-8") as handle:
            contents = handle.readline().strip().split()
        if len(contents) >= 2:
            rss_pages = int(contents[1])
            page_size = os.sysconf("SC_PAGE_SIZE")
            return int(rss_pages * page_size)
    except (OSError, ValueError, AttributeError):
        pass
    if resource is None:  # pragma: no cover - Windows fallback
        return None
    usage = resource.getrusage(resource.RUSAGE_SELF)
    if getattr(usage, "ru_maxrss", 0):
        return int(usage.ru_maxrss * 1024)
    return None


@dataclass(frozen=True)
class ResourceSnapshot:
    wall: float
    cpu_user: float | None
    cpu_system: float | None
    rss_bytes: int | None

    @classmethod
    def capture(cls, *, sample_resources: bool) -> "ResourceSnapshot":
        wall = time.perf_counter()
        if not sample_resources:
            return cls(wall=wall, cpu_user=None, cpu_system=None, rss_bytes=None)
        times = os.times()
        return cls(
            wall=wall,
            cpu_user=float(times.user),
            cpu_system=float(times.system),
            rss_bytes=_read_rss_bytes(),
        )


def _format_ms(start: float | None, end: float | None) -> str:
    if start is None or end is None:
        return "NA"
    return f"{(end - start) * 1e3:.3f}"


def _format_delta(start: int | None, end: int | None) -> str:
    if start is None or end is None:
        return "NA"
    return str(end - start)


@dataclass
class OperationLog:
    """Collects metadata for a single logged operation."""

    op: str
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_metadata(self, **values: Any) -> None:
        self.metadata.update(values)

    def render(self, start: ResourceSnapshot, end: ResourceSnapshot) -> str:
        parts = [
            f"op={self.op}",
            f"wall_ms={(end.wall - start.wall) * 1e3:.3f}",
            f"cpu_user_ms={_format_ms(start.cpu_user, end.cpu_user)}",
            f"cpu_system_ms={_format_ms(start.cpu_system, end.cpu_system)}",
            f"rss_delta={_format_delta(start.rss_bytes, end.rss_bytes)}",
        ]
        parts.extend(f"{key}={value}" for key, value in self.metadata.items())
        return " ".join(parts)


@contextmanager
def log_operation(logger: logging.Logger, op: str) -> Iterator[OperationLog]:
    """Emit a single INFO line with timing/resource data once ``op`` finishes.

    Resource sampling is controlled by ``VPSPHERE_ENABLE_DIAGNOSTICS``; when it
    is disabled only wall time is measured and the remaining fields read ``NA``.
    Nothing is logged if the wrapped block raises.
    """

    sample = vp_config.runtime_config().enable_diagnostics
    op_log = OperationLog(op=op)
    start = ResourceSnapshot.capture(sample_resources=sample)
    yield op_log
    end = ResourceSnapshot.capture(sample_resources=sample)
    logger.info(op_log.render(start, end))


__all__ = ["OperationLog", "ResourceSnapshot", "log_operation"]
