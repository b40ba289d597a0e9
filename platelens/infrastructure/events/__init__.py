"""Event/job queue implementations."""

from platelens.infrastructure.events.in_memory_queue import InMemoryJobQueue

__all__ = ["InMemoryJobQueue"]
