"""
GitHub API client infrastructure for reconverge.

Provides a clean abstraction over the GitHub releases API:
- Anonymous access, or token-authenticated when a token is configured
- Handles rate limiting with exponential backoff
- Streams release assets to disk
"""

import os
import time
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Dict, Any

import requests

from ..domain.release import Release

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.github.com"
USER_AGENT = "reconverge"


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
        """Check if rate limit is getting low (< 10 remaining).

        Anonymous callers only get 60 requests per hour.
        """
        return self.remaining < 10


class GitHubClient:
    """
    GitHub API client with rate limiting.

    Example:
        client = GitHubClient()
        release = client.get_latest_release("owner/repo")
        if release:
            print(f"Latest: {release.version}")
    """

    def __init__(
        self,
        token: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: int = 30,
        download_timeout: int = 300,
        max_retries: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize GitHubClient.

        Args:
            token: GitHub token (defaults to RECONVERGE_GITHUB_TOKEN or GITHUB_TOKEN env var)
            api_url: API base URL
            timeout: Timeout for API requests in seconds
            download_timeout: Timeout for asset downloads in seconds
            max_retries: Maximum retry attempts for rate-limited requests
            base_delay: Base delay for exponential backoff
            max_delay: Maximum delay between retries
            session: requests session to use (a new one by default)
        """
        self.token = token or os.environ.get('RECONVERGE_GITHUB_TOKEN') or os.environ.get('GITHUB_TOKEN')
        self.api_url = api_url.rstrip('/')
        self.timeout = timeout
        self.download_timeout = download_timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.session = session or requests.Session()
        self.session.headers.update({
            'Accept': 'application/vnd.github+json',
            'User-Agent': USER_AGENT,
        })
        if self.token:
            self.session.headers['Authorization'] = f'token {self.token}'
        self._rate_limit_status: Optional[RateLimitStatus] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'GitHubClient':
        github = config.get('github', {})
        rate_limit = github.get('rate_limit', {})
        return cls(
            token=github.get('token') or None,
            api_url=github.get('api_url', DEFAULT_API_URL),
            timeout=github.get('timeout_seconds', 30),
            download_timeout=github.get('download_timeout_seconds', 300),
            max_retries=rate_limit.get('max_retries', 3),
            max_delay=rate_limit.get('max_delay_seconds', 60),
        )

    @property
    def rate_limit_status(self) -> Optional[RateLimitStatus]:
        """Rate limit status from the last API response, if any."""
        return self._rate_limit_status

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

    def _backoff(self, attempt: int) -> None:
        delay = min(self.base_delay * (2 ** attempt), self.max_delay)
        logger.info(f"Retrying GitHub API in {delay}s (attempt {attempt + 1})")
        time.sleep(delay)

    def _api(self, endpoint: str) -> Optional[Dict[str, Any]]:
        """GET ``endpoint`` and return the decoded JSON object, or None."""
        url = f"{self.api_url}/{endpoint}"

        for attempt in range(self.max_retries):
            try:
                response = self.session.get(url, timeout=self.timeout)
            except requests.RequestException as e:
                logger.warning(f"GitHub API request failed: {e}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                continue

            self._update_rate_limit_from_headers(response.headers)

            if response.status_code == 200:
                try:
                    data = response.json()
                except ValueError as e:
                    logger.warning(f"GitHub API returned invalid JSON for {endpoint}: {e}")
                    return None
                if not isinstance(data, dict):
                    logger.warning(f"GitHub API returned unexpected payload for {endpoint}")
                    return None
                return data

            if response.status_code in (403, 429):
                # Rate limited
                reset_time = response.headers.get('X-RateLimit-Reset')
                if reset_time and reset_time.isdigit():
                    wait_time = int(reset_time) - int(time.time())
                    if 0 < wait_time < self.max_delay:
                        logger.info(f"Rate limited, waiting {wait_time}s")
                        time.sleep(wait_time)
                        continue
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                continue

            if response.status_code == 404:
                logger.warning(f"GitHub API: {endpoint} not found")
                return None

            logger.warning(f"GitHub API error {response.status_code} for {endpoint}")
            return None

        logger.warning(f"GitHub API gave up on {endpoint} after {self.max_retries} attempts")
        return None

    def get_latest_release(self, repo_id: str) -> Optional[Release]:
        """
        Get the most recent published release.

        Args:
            repo_id: Repository in ``owner/name`` form

        Returns:
            Release or None if it could not be fetched
        """
        data = self._api(f"repos/{repo_id}/releases/latest")
        if data is None:
            return None
        return Release.from_api_response(data)

    def download(self, url: str, destination: Path) -> bool:
        """
        Stream ``url`` to ``destination``.

        Returns:
            True if the whole file was written
        """
        try:
            with self.session.get(
                url,
                headers={'Accept': 'application/octet-stream'},
                stream=True,
                timeout=self.download_timeout,
            ) as response:
                response.raise_for_status()
                with open(destination, 'wb') as f:
                    for chunk in response.iter_content(chunk_size=1024 * 64):
                        if chunk:
                            f.write(chunk)
        except (requests.RequestException, OSError) as e:
            logger.warning(f"Download of {url} failed: {e}")
            return False
        return True
