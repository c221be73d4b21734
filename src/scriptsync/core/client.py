"""HTTP gateway for the remote script project content API."""

import logging
import threading
from typing import Any, Protocol, Sequence

import requests

from ..config import Config
from ..errors import ContentApiError, InvalidFileType
from ..sync.models import FileKind, RemoteFileRecord

logger = logging.getLogger(__name__)


class ContentGateway(Protocol):
    """Remote project content capability used by the sync engine."""

    def fetch_content(
        self, script_id: str, version: int | None = None
    ) -> list[RemoteFileRecord]: ...

    def replace_content(
        self, script_id: str, files: Sequence[RemoteFileRecord]
    ) -> None: ...


class ScriptClient:
    """REST client for the script project content endpoints.

    ``GET  {api_url}/projects/{scriptId}/content[?versionNumber=N]``
    ``PUT  {api_url}/projects/{scriptId}/content`` with ``{"files": [...]}``
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()

    @property
    def session(self) -> requests.Session:
        """Accessor for the current thread's session."""
        return self._get_session()

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        if self.config.access_token:
            session.headers["Authorization"] = (
                f"Bearer {self.config.access_token}"
            )
        session.headers["Accept"] = "application/json"
        session.verify = not self.config.insecure
        return session

    def _content_url(self, script_id: str) -> str:
        return f"{self.config.api_url.rstrip('/')}/projects/{script_id}/content"

    def _request(self, method: str, url: str, **kwargs: Any) -> Any:
        """
        Make an API request and decode the JSON response.

        Raises:
            ContentApiError: On transport failures and non-2xx responses.
        """
        session = self._get_session()
        logger.debug("%s %s", method, url)
        try:
            response = session.request(
                method,
                url,
                timeout=(10, self.config.timeout),
                **kwargs,
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            raise self._error_from_response(exc.response, exc) from exc
        except requests.RequestException as exc:
            raise ContentApiError(str(exc)) from exc

        if not response.content:
            return {}
        return response.json()

    @staticmethod
    def _error_from_response(
        response: requests.Response | None, exc: Exception
    ) -> ContentApiError:
        """Build a ContentApiError from an error response.

        Google-style bodies ``{"error": {"message", "errors": [...]}}`` are
        unpacked; the first detailed message wins over the top-level one.
        """
        if response is None:
            return ContentApiError(str(exc))

        status = response.status_code
        try:
            body = response.json()
        except ValueError:
            body = None

        error = body.get("error") if isinstance(body, dict) else None
        if not isinstance(error, dict):
            text = response.text or str(exc)
            return ContentApiError(text, status=status)

        original = error.get("message") or str(exc)
        message = original
        detailed = error.get("errors")
        if isinstance(detailed, list) and detailed:
            first = detailed[0]
            if isinstance(first, dict) and first.get("message"):
                message = first["message"]
        return ContentApiError(
            message, status=status, original_message=original, details=error
        )

    def fetch_content(
        self, script_id: str, version: int | None = None
    ) -> list[RemoteFileRecord]:
        """
        Fetch the project's files, optionally at a specific version.
        """
        params = {"versionNumber": version} if version is not None else None
        data = self._request(
            "GET", self._content_url(script_id), params=params
        )
        files = data.get("files") or []
        logger.debug("Fetched %d remote files", len(files))
        return [self._parse_record(f) for f in files]

    @staticmethod
    def _parse_record(raw: dict[str, Any]) -> RemoteFileRecord:
        """Build a record from one entry of the response's ``files`` list.

        Raises:
            InvalidFileType: If the entry's ``type`` is missing or is not a
                project file kind.
        """
        kind = raw.get("type")
        try:
            file_kind = FileKind(kind)
        except ValueError as exc:
            raise InvalidFileType(kind) from exc
        if file_kind == FileKind.UNKNOWN:
            raise InvalidFileType(kind)
        return RemoteFileRecord(
            name=raw.get("name", ""),
            type=file_kind,
            source=raw.get("source"),
        )

    def replace_content(
        self, script_id: str, files: Sequence[RemoteFileRecord]
    ) -> None:
        """
        Replace the full project content with *files*.
        """
        payload = {
            "scriptId": script_id,
            "files": [f.model_dump(mode="json") for f in files],
        }
        self._request("PUT", self._content_url(script_id), json=payload)
        logger.debug("Replaced remote content with %d files", len(files))
