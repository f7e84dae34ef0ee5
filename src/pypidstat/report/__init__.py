"""
Report rendering for sampled snapshots.
"""

from .renderer import GROUP_HEADERS, ReportRenderer, TidDisplay, id_header

__all__ = ["GROUP_HEADERS", "ReportRenderer", "TidDisplay", "id_header"]
