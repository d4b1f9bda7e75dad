"""Jira API client for the work item export.

Implements the JiraProvider protocol on top of the ``jira`` library: field
catalog lookups, attachment downloads, user email resolution and issue link
types. Lookups that are repeated for every revision are cached per client.
"""

from pathlib import Path
from typing import Any

import requests
from jira import JIRA, JIRAError

from src import config
from src.display import configure_logging
from src.mappings.link_mapping import classify_link_type
from src.models.export_summary import ExportIssuesSummary
from src.models.jira_revision import JiraAttachment, JiraLink, RevisionAction
from src.type_definitions import ChangeType

HTTP_OK = 200
CUSTOM_FIELD_PREFIX = "customfield_"
DOWNLOAD_CHUNK_SIZE = 64 * 1024

try:
    from src.config import logger
except Exception:  # noqa: BLE001
    logger = configure_logging("INFO", None)


class JiraError(Exception):
    """Base exception for all Jira client errors."""


class JiraConnectionError(JiraError):
    """Error when connection to Jira server fails."""


class JiraAuthenticationError(JiraError):
    """Error when authentication to Jira fails."""


class JiraApiError(JiraError):
    """Error when Jira API returns an error response."""


class JiraResourceNotFoundError(JiraError):
    """Error when a requested Jira resource is not found."""


class JiraClient:
    """Jira client used while mapping exported items.

    Connection problems and API failures of catalog requests raise JiraError
    subclasses. Per-item lookups (attachments, users) never raise: they log
    and return None or fall back to the identifier, so that a single broken
    attachment or deleted user does not stop an item from being exported.
    """

    def __init__(
        self,
        attachments_dir: Path | str | None = None,
        summary: ExportIssuesSummary | None = None,
        field_overrides: dict[str, int] | None = None,
        jira: JIRA | None = None,
    ) -> None:
        self.jira_url: str = config.jira_config.get("url", "")
        self.jira_username: str = config.jira_config.get("username", "")
        self.jira_token: str = config.jira_config.get("api_token", "")
        self.verify_ssl: bool = config.jira_config.get("verify_ssl", True)
        self.download_timeout: int = config.jira_config.get("download_timeout", 60)
        self.base_url = self.jira_url.rstrip("/")

        self.attachments_dir = Path(attachments_dir or config.get_path("attachments"))
        self.summary = summary if summary is not None else ExportIssuesSummary()
        self.field_overrides = dict(field_overrides or {})

        # Caches
        self._fields_by_name: dict[str, list[str]] | None = None
        self._fields_by_key: dict[str, list[str]] | None = None
        self._link_types: list[dict[str, Any]] | None = None
        self._user_emails: dict[str, str] = {}

        self.jira: JIRA | None = jira
        if self.jira is None:
            if not self.jira_url:
                msg = "Jira URL is required"
                raise ValueError(msg)
            if not self.jira_token:
                msg = "Jira API token is required"
                raise ValueError(msg)
            self._connect()

    def _connect(self) -> None:
        """Connect to the Jira API.

        Token authentication is tried first (Jira Cloud and Server PAT), then
        basic authentication with the username.

        Raises:
            JiraAuthenticationError: If all authentication methods fail

        """
        connection_errors = []

        try:
            logger.info("Attempting to connect to Jira using token authentication")
            self.jira = JIRA(
                server=self.jira_url,
                token_auth=self.jira_token,
                options={"verify": self.verify_ssl},
            )
            server_info = self.jira.server_info()
            logger.success(
                "Successfully connected to Jira server: %s (%s)",
                server_info.get("baseUrl"),
                server_info.get("version"),
            )
            return  # noqa: TRY300
        except Exception as e:  # noqa: BLE001
            error_msg = f"Token authentication failed: {e!s}"
            logger.warning(error_msg)
            connection_errors.append(error_msg)

        try:
            self.jira = JIRA(
                server=self.jira_url,
                basic_auth=(self.jira_username, self.jira_token),
                options={"verify": self.verify_ssl},
            )
            logger.debug("Successfully connected using basic authentication")
            return  # noqa: TRY300
        except Exception as e:  # noqa: BLE001
            error_msg = f"Basic authentication failed: {e!s}"
            logger.warning(error_msg)
            connection_errors.append(error_msg)

        logger.error("All authentication methods failed for Jira connection to %s", self.jira_url)
        msg = f"Failed to authenticate with Jira: {'; '.join(connection_errors)}"
        raise JiraAuthenticationError(msg) from None

    def _require_connection(self) -> JIRA:
        if not self.jira:
            msg = "Jira client is not initialized"
            raise JiraConnectionError(msg)
        return self.jira

    # ------------------------------------------------------------------
    # Field catalog
    # ------------------------------------------------------------------

    def _load_field_catalog(self) -> None:
        jira = self._require_connection()
        try:
            fields = jira.fields()
        except Exception as e:
            error_msg = f"Failed to retrieve the Jira field catalog: {e!s}"
            logger.exception(error_msg)
            raise JiraApiError(error_msg) from e

        by_name: dict[str, list[str]] = {}
        by_key: dict[str, list[str]] = {}
        for field in fields:
            field_id = field.get("id", "")
            name = field.get("name", "")
            override = self.field_overrides.get(name)
            if override is not None and field_id != f"{CUSTOM_FIELD_PREFIX}{override}":
                # Keep ambiguous names resolvable to the configured field only
                name = f"{name}.{field_id.removeprefix(CUSTOM_FIELD_PREFIX)}"

            by_name.setdefault(name.lower(), []).append(field_id)
            if field.get("key"):
                by_key.setdefault(str(field["key"]).lower(), []).append(field_id)

        self._fields_by_name = by_name
        self._fields_by_key = by_key
        logger.debug("Loaded %d fields from the Jira field catalog", len(fields))

    def get_custom_id(self, field_name: str) -> str | None:
        """Resolve a field display name (or key) to its field id."""
        if self._fields_by_name is None or self._fields_by_key is None:
            self._load_field_catalog()

        key = field_name.lower()
        for catalog in (self._fields_by_name, self._fields_by_key):
            ids = catalog.get(key) if catalog else None
            if not ids:
                continue
            if len(ids) > 1:
                logger.warning(
                    "Multiple Jira fields named '%s' (%s), using '%s'. Set a field override to pick another.",
                    field_name,
                    ", ".join(ids),
                    ids[0],
                )
            return ids[0]
        return None

    # ------------------------------------------------------------------
    # Attachments
    # ------------------------------------------------------------------

    def get_attachment_info(self, attachment_id: str | int) -> JiraAttachment | None:
        jira = self._require_connection()
        try:
            info = jira.attachment(str(attachment_id))
        except (JIRAError, requests.RequestException) as e:
            logger.warning("Could not fetch attachment %s: %s", attachment_id, e)
            return None
        return JiraAttachment(
            id=str(attachment_id),
            filename=getattr(info, "filename", None),
            url=getattr(info, "content", None),
        )

    def download_attachment(self, attachment: JiraAttachment) -> JiraAttachment | None:
        """Download an attachment to ``<attachments_dir>/<id>/<filename>``."""
        if not attachment.url or not attachment.filename:
            info = self.get_attachment_info(attachment.id)
            if info is None:
                return None
            attachment = attachment.model_copy(
                update={
                    "url": attachment.url or info.url,
                    "filename": attachment.filename or info.filename,
                },
            )
        if not attachment.url or not attachment.filename:
            logger.warning("Attachment %s has no download url", attachment.id)
            return None

        target = self.attachments_dir / attachment.id / attachment.filename
        jira = self._require_connection()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            response = jira._session.get(  # noqa: SLF001
                attachment.url, stream=True, timeout=self.download_timeout,
            )
            response.raise_for_status()
            with target.open("wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        except (requests.RequestException, OSError) as e:
            logger.warning(
                "Failed to download attachment %s (%s): %s", attachment.id, attachment.filename, e,
            )
            return None

        logger.debug("Downloaded attachment %s to %s", attachment.id, target)
        return attachment.model_copy(update={"local_path": str(target)})

    def download_attachment_by_id(self, attachment_id: int) -> JiraAttachment | None:
        info = self.get_attachment_info(attachment_id)
        if info is None:
            return None
        return self.download_attachment(info)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def _fetch_user(self, user: str) -> dict[str, Any] | None:
        jira = self._require_connection()
        try:
            found = jira.user(user)
            return {"emailAddress": getattr(found, "emailAddress", None)}
        except requests.RequestException as e:
            logger.warning("Jira unreachable while looking up user %s: %s", user, e)
            return None
        except JIRAError as e:
            logger.debug("User lookup by id failed for %s: %s", user, e)

        # Jira Server identifies some users by key only
        try:
            response = jira._session.get(  # noqa: SLF001
                f"{self.base_url}/rest/api/2/user", params={"key": user}, timeout=30,
            )
        except requests.RequestException as e:
            logger.debug("User lookup by key failed for %s: %s", user, e)
            return None
        if response.status_code != HTTP_OK:
            return None
        return response.json()

    def get_user_email(self, user: str) -> str:
        """Email of a user; the identifier itself when the user has none."""
        if user in self._user_emails:
            return self._user_emails[user]

        data = self._fetch_user(user)
        if data is None:
            logger.warning("Could not find Jira user '%s', using the identifier", user)
            email = user
        elif not data.get("emailAddress"):
            logger.warning("Jira user '%s' has no email address, using the identifier", user)
            self.summary.add_unmapped_user(user)
            email = user
        else:
            email = data["emailAddress"]

        self._user_emails[user] = email
        return email

    # ------------------------------------------------------------------
    # Links
    # ------------------------------------------------------------------

    def get_link_types(self) -> list[dict[str, Any]]:
        """Get all issue link types from Jira.

        Returns:
            List of issue link type dictionaries with id, name, inward, and outward

        Raises:
            JiraApiError: If the API request fails

        """
        if self._link_types is not None:
            return self._link_types

        jira = self._require_connection()
        try:
            link_types = jira.issue_link_types()
        except Exception as e:
            error_msg = f"Failed to get issue link types: {e!s}"
            logger.exception(error_msg)
            raise JiraApiError(error_msg) from e

        if not link_types:
            logger.warning("No issue link types found in Jira")
        self._link_types = [
            {
                "id": link_type.id,
                "name": link_type.name,
                "inward": link_type.inward,
                "outward": link_type.outward,
            }
            for link_type in link_types
        ]
        return self._link_types

    def get_link_type(self, descriptor: str, target_key: str) -> tuple[dict[str, Any] | None, bool]:
        return classify_link_type(self.get_link_types(), descriptor, target_key)

    def build_link_action(
        self,
        descriptor: str,
        source_key: str,
        target_key: str,
        change_type: ChangeType,
    ) -> RevisionAction[JiraLink] | None:
        """Raw link action for a changelog link entry, None if unclassifiable."""
        link_type, is_inward = self.get_link_type(descriptor, target_key)
        if link_type is None:
            return None
        return RevisionAction[JiraLink](
            change_type=change_type,
            value=JiraLink(
                source_item=source_key,
                target_item=target_key,
                link_type=link_type["name"],
                is_inward_link=is_inward,
            ),
        )
