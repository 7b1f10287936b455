"""Routers package for the Taskboard backend."""

from .recurrence import router as recurrence_router

__all__ = ["recurrence_router"]
