"""Taskflow: todos, projects, notes and notifications over a pluggable JSON storage layer."""

__version__ = "0.1.0"
