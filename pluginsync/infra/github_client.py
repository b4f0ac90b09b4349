"""
GitHub API client infrastructure for pluginsync.

Provides a clean abstraction over the hosting API calls the services need:
- Authenticates with a token, or with ~/.netrc through requests
- Materializes paginated list endpoints
- Tracks rate limit headers and warns when they run low
- Maps failures onto the pluginsync error taxonomy

The client is stateless across calls. Construct it once and pass it to
every service that needs it.
"""

import base64
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, List, Dict, Any

import requests

from ..exit_codes import (
    ConfigurationError,
    HostApiError,
    PermissionDenied,
    RefUpdateConflict,
)

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"

# Traffic endpoints still require the preview media type on older servers
TRAFFIC_ACCEPT = 'application/vnd.github.beta+json'


@dataclass
class RateLimitStatus:
    """GitHub API rate limit status."""
    remaining: int
    limit: int
    reset_time: int  # Unix timestamp
    used: int

    @property
    def minutes_until_reset(self) -> int:
        """Minutes until rate limit resets."""
        now = int(time.time())
        return max(0, (self.reset_time - now) // 60)

    @property
    def is_low(self) -> bool:
        """Check if rate limit is getting low (< 100 remaining)."""
        return self.remaining < 100


def _netrc_path() -> Path:
    return Path(os.environ.get('NETRC') or Path.home() / '.netrc')


class GitHubClient:
    """
    GitHub API client for fork sync, content publication and metadata.

    Example:
        client = GitHubClient(token="...")
        repo = client.get_repository("intelsdi-x/snap-plugin-collector-cpu")
        refs = client.list_refs(repo["full_name"])
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: int = 30,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token (defaults to PLUGINSYNC_GITHUB_TOKEN or GITHUB_TOKEN env var;
                   without one requests falls back to ~/.netrc)
            api_url: Base URL of the API
            timeout: HTTP request timeout in seconds
            session: Preconfigured requests session (mainly for tests)
        """
        self.token = token or os.environ.get('PLUGINSYNC_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github.v3+json',
            'User-Agent': 'pluginsync',
        })
        if self.token:
            self.session.headers['Authorization'] = f'token {self.token}'
        self._rate_limit_status: Optional[RateLimitStatus] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GitHubClient':
        """
        Build a client from the loaded configuration.

        Raises:
            ConfigurationError: If no token is configured and ~/.netrc is missing
        """
        github = config.get('github', {})
        token = github.get('token') or os.environ.get('PLUGINSYNC_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        if not token and not _netrc_path().exists():
            raise ConfigurationError(
                "missing GitHub credentials: set github.token, GITHUB_TOKEN or $HOME/.netrc"
            )
        return cls(
            token=token,
            api_url=github.get('api_url') or DEFAULT_API_URL,
            timeout=github.get('timeout_seconds', 30),
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _update_rate_limit_from_headers(self, headers) -> None:
        """Update rate limit status from response headers."""
        try:
            remaining = int(headers.get('X-RateLimit-Remaining', -1))
            limit = int(headers.get('X-RateLimit-Limit', -1))
            reset_time = int(headers.get('X-RateLimit-Reset', 0))
            used = int(headers.get('X-RateLimit-Used', 0))
        except (ValueError, TypeError):
            return

        if remaining >= 0 and limit >= 0:
            self._rate_limit_status = RateLimitStatus(
                remaining=remaining,
                limit=limit,
                reset_time=reset_time,
                used=used
            )

            if self._rate_limit_status.is_low:
                logger.warning(
                    f"GitHub API rate limit low: {remaining}/{limit} remaining, "
                    f"resets in {self._rate_limit_status.minutes_until_reset} minutes"
                )

    def get_rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status from the last API response, if any."""
        return self._rate_limit_status

    def _url(self, endpoint: str) -> str:
        if endpoint.startswith('http'):
            return endpoint
        return f"{self.api_url}/{endpoint.lstrip('/')}"

    def _send(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """Send one request, mapping transport failures to HostApiError."""
        url = self._url(endpoint)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise HostApiError(f"GitHub API request failed: {method} {endpoint}: {e}") from e

        self._update_rate_limit_from_headers(response.headers)
        logger.debug(f"{method} {endpoint} -> {response.status_code}")
        return response

    def _raise_for_status(self, response: requests.Response, method: str, endpoint: str) -> None:
        status = response.status_code
        if status < 400:
            return

        message = f"GitHub API error {status} for {method} {endpoint}"
        try:
            detail = response.json().get('message')
        except (ValueError, AttributeError):
            detail = None
        if detail:
            message = f"{message}: {detail}"

        if status == 403:
            raise PermissionDenied(message, status)
        raise HostApiError(message, status)

    def _decode(self, response: requests.Response, endpoint: str) -> Any:
        """Decode a JSON body; empty bodies decode to None."""
        if response.status_code == 204 or not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise HostApiError(
                f"GitHub API returned invalid JSON for {endpoint}: {e}", response.status_code
            ) from e

    def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        """Send a request and return the decoded JSON body."""
        response = self._send(method, endpoint, **kwargs)
        self._raise_for_status(response, method, endpoint)
        return self._decode(response, endpoint)

    def _lookup(self, endpoint: str, **kwargs) -> Optional[Any]:
        """GET that treats 404 as an absent resource."""
        response = self._send('GET', endpoint, **kwargs)
        if response.status_code == 404:
            return None
        self._raise_for_status(response, 'GET', endpoint)
        return self._decode(response, endpoint)

    def _paginate(self, endpoint: str, params: Optional[Dict[str, Any]] = None) -> List[Any]:
        """GET every page of a list endpoint following Link rel="next"."""
        items: List[Any] = []
        url: Optional[str] = endpoint
        params = dict(params or {}, per_page=100)

        while url:
            response = self._send('GET', url, params=params)
            self._raise_for_status(response, 'GET', endpoint)
            page = self._decode(response, endpoint)
            if isinstance(page, list):
                items.extend(page)
            elif page:
                items.append(page)
            url = response.links.get('next', {}).get('url')
            # The next link already carries the query string
            params = None

        return items

    # ------------------------------------------------------------------
    # Repositories
    # ------------------------------------------------------------------

    def get_repository(self, name: str) -> Optional[Dict[str, Any]]:
        """
        Get repository payload.

        Args:
            name: Full repository name (owner/repo)

        Returns:
            API payload or None if not found
        """
        return self._lookup(f"repos/{name}")

    def repository_exists(self, name: str) -> bool:
        """Check if repository exists and is accessible."""
        return self.get_repository(name) is not None

    def get_file_content(self, name: str, path: str, ref: Optional[str] = None) -> Optional[bytes]:
        """
        Get the decoded content of a file.

        Returns:
            File bytes, or None if the file does not exist
        """
        params = {'ref': ref} if ref else None
        data = self._lookup(f"repos/{name}/contents/{path.lstrip('/')}", params=params)
        if data is None:
            return None
        if not isinstance(data, dict) or 'content' not in data:
            raise HostApiError(f"{path} in {name} is not a file")
        return base64.b64decode(data['content'])

    def list_releases(self, name: str) -> List[Dict[str, Any]]:
        """List every release of a repository."""
        return self._paginate(f"repos/{name}/releases")

    def get_clone_stats(self, name: str, per: str = 'week') -> Dict[str, Any]:
        """Clone traffic (count and uniques) for the last two weeks."""
        return self._request(
            'GET', f"repos/{name}/traffic/clones",
            params={'per': per}, headers={'Accept': TRAFFIC_ACCEPT}
        ) or {}

    def get_view_stats(self, name: str, per: str = 'week') -> Dict[str, Any]:
        """View traffic (count and uniques) for the last two weeks."""
        return self._request(
            'GET', f"repos/{name}/traffic/views",
            params={'per': per}, headers={'Accept': TRAFFIC_ACCEPT}
        ) or {}

    def create_pull_request(
        self,
        upstream: str,
        base: str,
        head: str,
        title: str,
        body: str = ""
    ) -> Dict[str, Any]:
        """
        Open a pull request against ``upstream``.

        Args:
            upstream: Full name of the repository receiving the PR
            base: Branch the changes should be merged into
            head: ``owner:branch`` holding the changes
            title: Pull request title
            body: Pull request description
        """
        return self._request('POST', f"repos/{upstream}/pulls", json={
            'base': base,
            'head': head,
            'title': title,
            'body': body,
        })

    # ------------------------------------------------------------------
    # Git data: refs and objects
    # ------------------------------------------------------------------

    def list_refs(self, name: str) -> List[Dict[str, Any]]:
        """List every ref of a repository (all pages)."""
        try:
            return self._paginate(f"repos/{name}/git/refs")
        except HostApiError as e:
            # 409: empty repository without any refs
            if e.status in (404, 409):
                return []
            raise

    def get_ref(self, name: str, ref: str) -> Optional[Dict[str, Any]]:
        """Get a single ref given as ``heads/<branch>``."""
        return self._lookup(f"repos/{name}/git/ref/{ref}")

    def create_ref(self, name: str, ref: str, sha: str) -> Dict[str, Any]:
        """
        Create a ref.

        Args:
            name: Full repository name
            ref: Ref given as ``heads/<branch>``; sent as ``refs/heads/<branch>``
            sha: Commit the new ref points at
        """
        if not ref.startswith('refs/'):
            ref = f"refs/{ref}"
        return self._request('POST', f"repos/{name}/git/refs", json={'ref': ref, 'sha': sha})

    def update_ref(self, name: str, ref: str, sha: str, force: bool = False) -> Dict[str, Any]:
        """
        Move a ref to a new commit.

        Raises:
            RefUpdateConflict: If the update was rejected (HTTP 422), e.g. not
                a fast-forward or the pointer moved since it was read
        """
        if ref.startswith('refs/'):
            ref = ref[len('refs/'):]
        endpoint = f"repos/{name}/git/refs/{ref}"
        response = self._send('PATCH', endpoint, json={'sha': sha, 'force': force})
        if response.status_code == 422:
            raise RefUpdateConflict(f"Update of {ref} in {name} to {sha} was rejected")
        self._raise_for_status(response, 'PATCH', endpoint)
        return self._decode(response, endpoint)

    def get_commit(self, name: str, sha: str) -> Dict[str, Any]:
        """Get a git commit object."""
        return self._request('GET', f"repos/{name}/git/commits/{sha}")

    def create_blob(self, name: str, content: str, encoding: str = "base64") -> str:
        """Create a blob and return its SHA."""
        data = self._request('POST', f"repos/{name}/git/blobs", json={
            'content': content,
            'encoding': encoding,
        })
        return data['sha']

    def create_tree(
        self,
        name: str,
        entries: List[Dict[str, Any]],
        base_tree: Optional[str] = None
    ) -> str:
        """Create a tree on top of ``base_tree`` and return its SHA."""
        payload: Dict[str, Any] = {'tree': entries}
        if base_tree:
            payload['base_tree'] = base_tree
        data = self._request('POST', f"repos/{name}/git/trees", json=payload)
        return data['sha']

    def create_commit(self, name: str, message: str, tree: str, parents: List[str]) -> str:
        """Create a commit and return its SHA."""
        data = self._request('POST', f"repos/{name}/git/commits", json={
            'message': message,
            'tree': tree,
            'parents': parents,
        })
        return data['sha']
