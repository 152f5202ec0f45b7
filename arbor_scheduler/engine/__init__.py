"""Scheduling assistant composing the services over a database session."""

from .orchestrator import SchedulingAssistant

__all__ = ["SchedulingAssistant"]
