"""Mapping of Jira change history onto work item revisions."""
