"""
Process discovery.

Turns command-name patterns into process ids using psutil. This sits outside
the sampling pipeline, which only ever deals with numeric targets.
"""

import logging
import os
import re
from typing import List, Optional

import psutil

logger = logging.getLogger(__name__)


def find_pids_by_command(pattern: str, exclude_pid: Optional[int] = None) -> List[int]:
    """
    Return the pids whose command name matches a regular expression.

    Args:
        pattern: Regex searched in each process name.
        exclude_pid: Pid to leave out; defaults to the calling process.

    Returns:
        Matching pids in ascending order.
    """
    compiled = re.compile(pattern)
    if exclude_pid is None:
        exclude_pid = os.getpid()

    pids = []
    for proc in psutil.process_iter(attrs=["pid", "name"]):
        try:
            info = proc.info
            name = info.get("name") or ""
            if info["pid"] != exclude_pid and compiled.search(name):
                pids.append(info["pid"])
        except (psutil.NoSuchProcess, psutil.AccessDenied, psutil.ZombieProcess):
            continue

    logger.debug(f"Pattern '{pattern}' matched {len(pids)} processes")
    return sorted(pids)


def all_pids(exclude_pid: Optional[int] = None) -> List[int]:
    """Return every pid on the system except the calling process."""
    if exclude_pid is None:
        exclude_pid = os.getpid()
    return sorted(pid for pid in psutil.pids() if pid != exclude_pid)
