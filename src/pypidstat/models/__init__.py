"""
Data models for the sampling pipeline.

Snapshot Models:
- Target identity and metric-group selection
- Per-group counter records and the immutable Snapshot built from them
- Task-group snapshots pairing a process with its threads

Configuration Models:
- Application-wide settings loaded from config.toml
"""

from .config import AppConfig, CollectionConfig, GeneralConfig, ReportConfig
from .snapshot import (
    COUNTER_TYPES,
    CpuCounters,
    CtxSwitchCounters,
    GroupCounters,
    Identity,
    IoCounters,
    MemCounters,
    MetricGroup,
    MetricSelection,
    Snapshot,
    StackCounters,
    TargetId,
    TaskGroupSnapshot,
)

__all__ = [
    # Configuration models
    "AppConfig",
    "GeneralConfig",
    "CollectionConfig",
    "ReportConfig",
    # Snapshot models
    "MetricGroup",
    "MetricSelection",
    "TargetId",
    "Identity",
    "CpuCounters",
    "MemCounters",
    "IoCounters",
    "CtxSwitchCounters",
    "StackCounters",
    "GroupCounters",
    "COUNTER_TYPES",
    "Snapshot",
    "TaskGroupSnapshot",
]
