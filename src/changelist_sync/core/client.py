import logging
import threading
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qs, urlparse

import requests

from ..config import Config
from ..errors import RemoteError

logger = logging.getLogger(__name__)

# Called with every response (and its originating request) for inspection.
ResponseObserver = Callable[[requests.Response], None]


@dataclass(frozen=True)
class ClientSettings:
    """Connection settings for one Contentful API host."""

    space_id: str
    access_token: str
    environment_id: str = "master"
    host: str = "cdn.contentful.com"
    timeout: tuple[float, float] = (10, 60)


class ContentfulClient:
    def __init__(
        self,
        settings: ClientSettings,
        observers: list[ResponseObserver] | None = None,
    ):
        self.settings = settings
        self.observers = list(observers or [])
        self._thread_local = threading.local()
        self.base_url = self._get_base_url()

    @property
    def session(self) -> requests.Session:
        """Current thread's session."""
        return self._get_session()

    def _get_base_url(self) -> str:
        return (
            f"https://{self.settings.host.rstrip('/')}"
            f"/spaces/{self.settings.space_id}"
            f"/environments/{self.settings.environment_id}"
        )

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers["Authorization"] = (
            f"Bearer {self.settings.access_token}"
        )
        session.headers["Accept"] = "application/json"
        return session

    def add_observer(self, observer: ResponseObserver) -> None:
        self.observers.append(observer)

    def _dispatch(self, response: requests.Response, *args, **kwargs):
        # requests response hook: inspection only, never alters the response
        for observer in self.observers:
            try:
                observer(response)
            except Exception:
                logger.debug("Response observer failed", exc_info=True)

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """
        Issue a GET request and return the decoded JSON body.
        """
        session = self._get_session()
        try:
            response = session.get(
                url,
                params=params,
                timeout=self.settings.timeout,
                hooks={"response": self._dispatch},
            )
        except requests.RequestException as e:
            raise RemoteError(
                f"Request to {self.settings.host} failed: {e}", url=url
            ) from e

        if response.status_code >= 400:
            raise RemoteError(
                self._error_message(response),
                status_code=response.status_code,
                url=url,
            )

        try:
            return response.json()
        except ValueError as e:
            raise RemoteError(
                f"Invalid JSON from {self.settings.host}: {e}",
                status_code=response.status_code,
                url=url,
            ) from e

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """Build a message from a Contentful error body if there is one."""
        detail = response.reason or "error"
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            error_id = body.get("sys", {}).get("id")
            message = body.get("message")
            if message:
                detail = f"{error_id}: {message}" if error_id else message
        return f"HTTP {response.status_code} from Contentful: {detail}"

    def iter_sync_pages(
        self, initial: bool = True, sync_type: str = "all"
    ) -> Iterator[dict[str, Any]]:
        """
        Yield every page of a sync run, following nextPageUrl until the
        response carries nextSyncUrl.
        """
        page = self._get(
            f"{self.base_url}/sync",
            params={"initial": str(initial).lower(), "type": sync_type},
        )
        while True:
            yield page
            next_page = page.get("nextPageUrl")
            if not next_page:
                return
            page = self._get(next_page)

    def sync(
        self, initial: bool = True, sync_type: str = "all"
    ) -> dict[str, Any]:
        """
        Run a sync and collect all pages.

        Returns:
            Dict with ``items`` (all records across pages, in order) and
            ``nextSyncToken``.
        """
        items: list[dict[str, Any]] = []
        next_sync_url = None
        for page in self.iter_sync_pages(initial, sync_type):
            items.extend(page.get("items", []))
            next_sync_url = page.get("nextSyncUrl")

        return {
            "items": items,
            "nextSyncToken": sync_token_from_url(next_sync_url),
        }

    def get_entries(self, query: dict[str, Any]) -> dict[str, Any]:
        """
        Query entries. Returns the raw collection (items, includes, total).
        """
        return self._get(f"{self.base_url}/entries", params=query)


def sync_token_from_url(url: str | None) -> str | None:
    """Extract the ``sync_token`` query parameter from a sync URL."""
    if not url:
        return None
    values = parse_qs(urlparse(url).query).get("sync_token")
    return values[0] if values else None


def logging_observer(response: requests.Response) -> None:
    """Log request and response lines at DEBUG level."""
    request = response.request
    logger.debug(
        "%s %s -> %d (%d bytes)",
        request.method,
        request.url,
        response.status_code,
        len(response.content or b""),
    )


def create_client(
    config: Config,
    preview: bool = False,
    observers: list[ResponseObserver] | None = None,
) -> ContentfulClient:
    """Build the delivery or preview client from run configuration.

    Both clients share the same interface and differ only in host and
    access token.
    """
    if preview:
        token = config.preview_token
        host = config.preview_host
    else:
        token = config.delivery_token
        host = config.delivery_host

    settings = ClientSettings(
        space_id=config.space_id,
        access_token=token,
        environment_id=config.environment_id,
        host=host,
    )
    client_observers = list(observers or [])
    if config.verbosity >= 3:
        client_observers.append(logging_observer)
    return ContentfulClient(settings, observers=client_observers)
