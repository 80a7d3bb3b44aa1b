"""Process data providers for grim."""

import logging
import time
from typing import Protocol

import psutil

from grim.models import ProcessInfo, ProcessSnapshot

logger = logging.getLogger(__name__)

# Attributes to fetch in oneshot
PROCESS_ATTRS = [
    "pid",
    "name",
    "cmdline",
    "cpu_percent",
    "memory_info",
    "create_time",
    "ppid",
]


class ProcessProvider(Protocol):
    """What grim needs from the operating system."""

    def snapshot(self) -> ProcessSnapshot:
        """Enumerate every visible process."""
        ...

    def terminate(self, pid: int) -> bool:
        """Ask the OS to terminate ``pid``; True if the signal was accepted."""
        ...

    def refresh_one(self, pid: int) -> ProcessInfo | None:
        """Re-read the stats of a single process, or None if it is gone."""
        ...


class PsutilProvider:
    """
    Process provider backed by psutil.

    psutil.Process handles are kept between snapshots so that cpu_percent
    reports usage since the previous poll instead of 0.0. Processes that die
    mid-poll, deny access, or are zombies are skipped.
    """

    def __init__(self) -> None:
        """Initialize the PsutilProvider with no cached handles."""
        self._handles: dict[int, psutil.Process] = {}

    def snapshot(self) -> ProcessSnapshot:
        """Collect every process with oneshot() and keep the psutil handles."""
        processes: list[ProcessInfo] = []
        handles: dict[int, psutil.Process] = {}

        for proc in psutil.process_iter(attrs=PROCESS_ATTRS):
            try:
                with proc.oneshot():
                    processes.append(self._to_info(proc.info))
                    handles[proc.pid] = proc
            except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
                continue

        self._handles = handles
        logger.debug("Collected %d processes", len(processes))
        return ProcessSnapshot(processes)

    def refresh_one(self, pid: int) -> ProcessInfo | None:
        """Re-read one process, reusing the cached handle while it is alive."""
        proc = self._handles.get(pid)
        try:
            if proc is None or not proc.is_running():
                proc = psutil.Process(pid)
                self._handles[pid] = proc
            with proc.oneshot():
                info = proc.as_dict(attrs=PROCESS_ATTRS)
            return self._to_info(info)
        except (psutil.NoSuchProcess, psutil.ZombieProcess):
            self._handles.pop(pid, None)
            return None
        except psutil.AccessDenied:
            logger.debug("Access denied refreshing PID %d", pid)
            return None

    def terminate(self, pid: int) -> bool:
        """Kill ``pid``; False if it is gone or access is denied."""
        try:
            proc = self._handles.get(pid) or psutil.Process(pid)
            proc.kill()
        except psutil.NoSuchProcess:
            logger.info("PID %d already exited", pid)
            return False
        except psutil.AccessDenied:
            logger.warning("Permission denied killing PID %d", pid)
            return False
        self._handles.pop(pid, None)
        return True

    @staticmethod
    def _to_info(info: dict) -> ProcessInfo:
        """Build a ProcessInfo with safe defaults for None values."""
        mem_info = info.get("memory_info")
        memory_rss = mem_info.rss if mem_info else 0

        create_time = info.get("create_time")
        uptime = int(max(0.0, time.time() - create_time)) if create_time else 0

        ppid = info.get("ppid")

        return ProcessInfo(
            pid=info.get("pid", 0),
            name=info.get("name") or "",
            cmd=tuple(info.get("cmdline") or ()),
            cpu_usage=info.get("cpu_percent") or 0.0,
            memory=memory_rss // 1024,
            uptime=uptime,
            parent_pid=ppid if ppid else None,
        )
