"""Background scheduler (staleness sweep)."""

from .scheduler_config import SchedulerManager

__all__ = ["SchedulerManager"]
