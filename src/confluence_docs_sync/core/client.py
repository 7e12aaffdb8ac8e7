import json
import logging
import threading
from pathlib import Path
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..config import Config
from ..errors import RequestError, ValidationError
from ..models import LocalPage, Meta, RemotePage
from ..validators import validate_type

logger = logging.getLogger(__name__)

CONTENT_PATH = "/wiki/rest/api/content"
CURRENT_USER_PATH = "/wiki/rest/api/user/current"
EXPAND_PROPERTIES = ",".join(
    [
        "version",
        "metadata.properties.repo",
        "metadata.properties.path",
        "metadata.properties.sha",
        "metadata.properties.git_ref",
        "metadata.properties.git_sha",
        "metadata.properties.publisher_version",
    ]
)
TIMEOUT = (10, 60)


def create_session(allowed_methods: frozenset[str] | None = None) -> requests.Session:
    """Session retrying transient 5xx and connection failures.

    Args:
        allowed_methods: HTTP verbs that may be retried. Defaults to the
            idempotent verbs of urllib3.
    """
    retry_strategy = Retry(
        total=3,
        backoff_factor=0.5,
        status_forcelist=[500, 502, 503, 504],
        allowed_methods=allowed_methods or Retry.DEFAULT_ALLOWED_METHODS,
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry_strategy)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


class ConfluenceClient:
    """Blocking client for the Confluence Cloud content REST API.

    One ``requests.Session`` is kept per thread since calls are dispatched
    through ``asyncio.to_thread``.
    """

    def __init__(self, config: Config):
        self.config = config
        self.base_url = config.host.rstrip("/")
        self._thread_local = threading.local()
        self._current_user: dict[str, Any] | None = None

    @property
    def session(self) -> requests.Session:
        """Session bound to the current thread."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = create_session()
        session.auth = (self.config.user, self.config.token)
        session.headers.update({"Accept": "application/json"})
        return session

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def validate_response(
        self, response: requests.Response, valid: tuple[int, ...] = (200,)
    ) -> Any:
        """
        Return the decoded JSON body, or raise when the status is unexpected.

        Raises:
            RequestError: If ``response.status_code`` is not in ``valid``.
        """
        try:
            data = response.json() if response.content else {}
        except ValueError:
            data = {"message": response.text}

        if response.status_code not in valid:
            logger.error(
                json.dumps(
                    {
                        "status": response.status_code,
                        "statusText": response.reason,
                        "data": data,
                    },
                    indent=2,
                    default=str,
                )
            )
            message = data.get("message") if isinstance(data, dict) else None
            raise RequestError(response.status_code, response.reason or "", message)
        return data

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    def _page_info(self, data: dict[str, Any], parent_id: int | None = None) -> RemotePage:
        properties = (data.get("metadata") or {}).get("properties")
        return RemotePage(
            id=int(data["id"]),
            version=data["version"]["number"],
            title=data["title"],
            meta=Meta.from_properties(properties),
            parent_id=parent_id,
        )

    def find_page(self, title: str) -> RemotePage | None:
        """
        Look up a page of the configured space by exact title.
        """
        validate_type("title", title, str)
        response = self.session.get(
            self._url(CONTENT_PATH),
            params={
                "title": title,
                "type": "page",
                "spaceKey": self.config.space_key,
                "expand": EXPAND_PROPERTIES,
            },
            timeout=TIMEOUT,
        )
        data = self.validate_response(response)
        results = data.get("results") or []
        if not results:
            return None
        return self._page_info(results[0])

    def get_child_pages(self, parent_id: int) -> dict[str | None, RemotePage]:
        """
        Fetch every direct child of ``parent_id``, following pagination.

        Returns:
            Child pages keyed by their ``meta.path``.
        """
        validate_type("parent_id", parent_id, int)
        pages: dict[str | None, RemotePage] = {}
        url: str | None = self._url(f"{CONTENT_PATH}/{parent_id}/child/page")
        params: dict[str, Any] | None = {
            "expand": EXPAND_PROPERTIES,
            "start": 0,
            "limit": self.config.page_limit,
        }

        while url:
            response = self.session.get(url, params=params, timeout=TIMEOUT)
            data = self.validate_response(response)
            results = data.get("results") or []
            if not results:
                break
            for item in results:
                page = self._page_info(item, parent_id)
                pages[page.path] = page

            links = data.get("_links") or {}
            if links.get("next"):
                # next already carries the query string
                url = self._url(links.get("context", "") + links["next"])
                params = None
            else:
                url = None

        return pages

    def current_user(self) -> dict[str, Any]:
        """
        Account that owns the API token, cached for the client lifetime.
        """
        if self._current_user is None:
            response = self.session.get(self._url(CURRENT_USER_PATH), timeout=TIMEOUT)
            data = self.validate_response(response)
            self._current_user = {
                "type": data.get("type"),
                "accountId": data.get("accountId"),
                "accountType": data.get("accountType"),
            }
        return self._current_user

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    def _page_payload(
        self, title: str, html: str, meta: Meta | None, parent_id: int | None
    ) -> dict[str, Any]:
        validate_type("title", title, str)
        validate_type("html", html, str)
        validate_type("meta", meta, Meta, optional=True)
        validate_type("parent_id", parent_id, int, optional=True)

        properties: dict[str, Any] = {"editor": {"key": "editor", "value": "v2"}}
        if meta is not None:
            properties.update(meta.to_properties())

        return {
            "title": title,
            "type": "page",
            "ancestors": [{"id": parent_id}] if parent_id else [],
            "body": {"storage": {"value": html, "representation": "storage"}},
            "metadata": {"properties": properties},
            "restrictions": {
                "update": {
                    "operation": "update",
                    "restrictions": {
                        "user": {"results": [self.current_user()]},
                        "group": {"results": []},
                    },
                }
            },
        }

    def create_page(self, page: LocalPage) -> int:
        """
        Create ``page`` under its ``parent_page_id``.

        Returns:
            The id of the new page.
        """
        validate_type("page", page, LocalPage)
        payload = self._page_payload(
            page.title, page.html, page.meta, page.parent_page_id
        )
        payload["space"] = {"key": self.config.space_key}
        response = self.session.post(
            self._url(CONTENT_PATH), json=payload, timeout=TIMEOUT
        )
        data = self.validate_response(response)
        return int(data["id"])

    def update_page(
        self,
        page_id: int,
        version: int,
        title: str,
        html: str,
        parent_id: int | None = None,
        meta: Meta | None = None,
    ) -> None:
        """
        Replace the body of an existing page.

        Args:
            page_id: Confluence content id.
            version: New version number, the current version plus one.
        """
        validate_type("page_id", page_id, int)
        validate_type("version", version, int)
        payload = self._page_payload(title, html, meta, parent_id)
        payload["version"] = {"number": version}
        response = self.session.put(
            self._url(f"{CONTENT_PATH}/{page_id}"), json=payload, timeout=TIMEOUT
        )
        self.validate_response(response)

    def delete_page(self, page_id: int) -> None:
        """
        Delete a page. A page that is already gone counts as deleted.
        """
        validate_type("page_id", page_id, int)
        response = self.session.delete(
            self._url(f"{CONTENT_PATH}/{page_id}"), timeout=TIMEOUT
        )
        self.validate_response(response, valid=(204, 404))

    def create_attachment(self, page_id: int, path: Path) -> None:
        """
        Upload ``path`` as an attachment of ``page_id``, replacing any
        attachment with the same file name.
        """
        validate_type("page_id", page_id, int)
        validate_type("path", path, Path)
        if not path.is_file():
            raise ValidationError(f"Attachment '{path}' not exists")

        with path.open("rb") as fh:
            response = self.session.put(
                self._url(f"{CONTENT_PATH}/{page_id}/child/attachment"),
                headers={"X-Atlassian-Token": "nocheck"},
                data={"minorEdit": "true"},
                files={"file": (path.name, fh)},
                timeout=TIMEOUT,
            )
        self.validate_response(response)
