"""Jira access for the export.

``JiraClient`` is exposed lazily so the mapping layer and its tests can be
imported without the ``jira`` package's import cost.
"""

__all__ = ["JiraClient", "JiraProvider"]


def __getattr__(name: str) -> object:  # pragma: no cover - simple lazy import
    if name == "JiraClient":
        from .jira_client import JiraClient as _JiraClient  # noqa: PLC0415

        return _JiraClient
    if name == "JiraProvider":
        from .provider import JiraProvider as _JiraProvider  # noqa: PLC0415

        return _JiraProvider
    raise AttributeError(name)
