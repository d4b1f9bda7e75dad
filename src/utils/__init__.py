"""Utility modules for the Jira work item export.

Field value transformers, rank and sprint decoding, HTML correction and
JSON persistence helpers.
"""
