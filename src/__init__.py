"""Jira work item export: revision mapping and collapsing."""

__version__ = "0.1.0"
