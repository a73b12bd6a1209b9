"""GitLab REST API client for latest-commit retrieval."""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests
from requests.adapters import HTTPAdapter

from .config import Config
from .errors import ApiError, FetchError
from .models import Branch, FetchErrorKind, Project

logger = logging.getLogger(__name__)


class GitLabClient:
    """Small, typed client for the GitLab v4 projects and branches APIs."""

    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitLab API client.

        Args:
            config: Validated runtime configuration including URL, namespace and token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._base_url = f"{config.gitlab_url}/api/v4"
        self._cancelled = threading.Event()

        self._session = requests.Session()
        self._session.headers.update(
            {
                "Accept": "application/json",
                "PRIVATE-TOKEN": config.token,
            }
        )

        # One pooled connection per concurrent lookup.
        adapter = HTTPAdapter(pool_connections=1, pool_maxsize=config.max_workers)
        self._session.mount("https://", adapter)
        self._session.mount("http://", adapter)

    def _build_url(self, path: str) -> str:
        """Build a fully qualified API URL from a path below ``/api/v4``."""
        return f"{self._base_url}/{path.lstrip('/')}"

    def _parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """Parse GitLab ISO8601 timestamps into timezone-aware datetimes."""
        if not value:
            return None

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        parsed = datetime.fromisoformat(normalized)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def cancel(self) -> None:
        """Stop all outstanding lookups at their next attempt or backoff."""
        self._cancelled.set()

    def _raise_if_cancelled(self, url: str) -> None:
        if self._cancelled.is_set():
            raise FetchError(FetchErrorKind.CANCELLED, f"GitLab request cancelled: GET {url}")

    def _wait_backoff(self, url: str, seconds: int) -> None:
        """Sleep before a retry, returning early if the client is cancelled."""
        if self._cancelled.wait(seconds):
            self._raise_if_cancelled(url)

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Execute a GET request with retry logic for network errors, 429 and 5xx.

        Raises:
            FetchError: ``UNAUTHORIZED`` on 401/403, ``NOT_FOUND`` on 404, and
                ``TRANSIENT_NETWORK`` once the retry budget is exhausted, and
                ``CANCELLED`` once :meth:`cancel` has been called.
            ApiError: If any other HTTP >= 400 is returned or the body is not
                a JSON object.
        """
        url = self._build_url(path)

        for attempt in range(1, self._MAX_RETRIES + 1):
            self._raise_if_cancelled(url)
            try:
                response = self._session.get(url, params=params, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                if attempt == self._MAX_RETRIES:
                    raise FetchError(
                        FetchErrorKind.TRANSIENT_NETWORK,
                        f"GitLab request failed after retries: GET {url}",
                    ) from exc
                backoff = min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))
                logger.warning(
                    "GitLab request raised, retrying",
                    extra={"url": url, "attempt": attempt, "backoff_seconds": backoff},
                )
                self._wait_backoff(url, backoff)
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                backoff = self._extract_backoff_seconds(response, attempt)
                logger.warning(
                    "GitLab request throttled or failed, retrying",
                    extra={
                        "url": url,
                        "status_code": status_code,
                        "attempt": attempt,
                        "backoff_seconds": backoff,
                    },
                )
                self._wait_backoff(url, backoff)
                continue

            if is_retryable:
                raise FetchError(
                    FetchErrorKind.TRANSIENT_NETWORK,
                    f"GitLab request failed after retries: GET {url} returned {status_code}",
                    status_code=status_code,
                )

            if status_code in (401, 403):
                raise FetchError(
                    FetchErrorKind.UNAUTHORIZED,
                    f"GitLab rejected the access token: GET {url} returned {status_code}",
                    status_code=status_code,
                )

            if status_code == 404:
                raise FetchError(
                    FetchErrorKind.NOT_FOUND,
                    f"GitLab resource not found: GET {url}",
                    status_code=status_code,
                )

            if status_code >= 400:
                raise ApiError(
                    "GitLab API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise ApiError(f"GitLab API returned invalid JSON: GET {url}") from exc

            if not isinstance(payload, dict):
                raise ApiError(f"GitLab API returned unexpected payload shape: GET {url}")

            return payload

        raise FetchError(
            FetchErrorKind.TRANSIENT_NETWORK,
            f"GitLab request failed after retries: GET {url}",
        )

    def get_project(self, path: str) -> Project:
        """Look up a project by its full ``namespace/name`` path."""
        payload = self._get_json(f"projects/{quote(path, safe='')}")

        project_id = payload.get("id")
        if project_id is None:
            raise ApiError(f"GitLab project payload is missing 'id': path={path}, payload={payload}")

        return Project(
            id=int(project_id),
            path_with_namespace=str(payload.get("path_with_namespace") or path),
            default_branch=payload.get("default_branch") or None,
            empty_repo=bool(payload.get("empty_repo", False)),
        )

    def get_branch(self, project_id: int, branch: str) -> Branch:
        """Fetch a branch and its head commit."""
        payload = self._get_json(
            f"projects/{project_id}/repository/branches/{quote(branch, safe='')}"
        )

        commit = payload.get("commit") or {}
        committed_date = self._parse_datetime(commit.get("committed_date"))
        if committed_date is None:
            raise ApiError(
                "GitLab branch payload is missing required fields: "
                f"project_id={project_id}, branch={branch}, payload={payload}"
            )

        return Branch(
            name=str(payload.get("name") or branch),
            default=bool(payload.get("default", False)),
            commit_id=str(commit.get("id") or ""),
            committed_date=committed_date,
        )

    def latest_commit_timestamp(self, repository_id: str) -> datetime:
        """Return the commit time of the head of a repository's default branch.

        The default branch is whatever the project reports, so repositories on
        ``main`` and ``master`` are handled alike.

        Raises:
            FetchError: ``NOT_FOUND`` when the repository does not exist,
                ``EMPTY_REPOSITORY`` when it has no commits, plus the kinds
                raised by the underlying request.
        """
        path = f"{self._config.namespace}/{repository_id}"
        project = self.get_project(path)

        if project.empty_repo or not project.default_branch:
            raise FetchError(
                FetchErrorKind.EMPTY_REPOSITORY,
                f"Repository '{path}' has no commits.",
            )

        try:
            branch = self.get_branch(project.id, project.default_branch)
        except FetchError as exc:
            if exc.kind is not FetchErrorKind.NOT_FOUND:
                raise
            raise FetchError(
                FetchErrorKind.EMPTY_REPOSITORY,
                f"Repository '{path}' has no commits on default branch '{project.default_branch}'.",
            ) from exc

        if not branch.default:
            logger.warning(
                "Branch is not reported as the default branch",
                extra={"repository": path, "branch": branch.name},
            )

        return branch.committed_date
