"""
Infrastructure layer for pluginsync.

Contains abstractions for external systems:
- GitHubClient: GitHub API access (refs, git objects, contents, traffic)

These provide clean interfaces that can be replaced by fakes for testing.
"""

from .github_client import GitHubClient, RateLimitStatus

__all__ = [
    'GitHubClient',
    'RateLimitStatus',
]
