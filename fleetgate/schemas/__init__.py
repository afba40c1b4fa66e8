"""Value schemas."""

from .summary import GroupSummary, DeviceSummary

__all__ = ["GroupSummary", "DeviceSummary"]
