"""
System interaction utilities.
"""

from .discovery import all_pids, find_pids_by_command

__all__ = ["all_pids", "find_pids_by_command"]
