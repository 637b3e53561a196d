"""
Process resource usage for the admin status endpoint.
"""

from typing import Any

import psutil

_process: psutil.Process | None = None


def _get_process() -> psutil.Process:
    global _process
    if _process is None:
        _process = psutil.Process()
    return _process


def memory_usage() -> dict[str, int]:
    """Resident and virtual memory of this process, in bytes."""
    info = _get_process().memory_info()
    return {"rss": info.rss, "vms": info.vms}


def process_start_time() -> float:
    """Epoch seconds at which this process was started."""
    return _get_process().create_time()


def cpu_usage() -> dict[str, float]:
    """User and system CPU time consumed by this process, in seconds."""
    times = _get_process().cpu_times()
    return {"user": round(times.user, 3), "system": round(times.system, 3)}


def get_process_metrics() -> dict[str, Any]:
    """Memory and CPU usage together."""
    return {"memory": memory_usage(), "cpu": cpu_usage()}
