"""Pipeline orchestration for resume-to-job matching."""

from .orchestrator import MESSAGES, MatchOrchestrator

__all__ = ["MatchOrchestrator", "MESSAGES"]
