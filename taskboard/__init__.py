"""Taskboard backend: recurring task scheduling."""
