"""
Ref resolution for pluginsync.
"""

import logging
from typing import Optional

from ..domain import Ref
from ..infra import GitHubClient

logger = logging.getLogger(__name__)


class RefResolver:
    """
    Resolves a ref name to the commit it currently points at.

    Refs are listed fresh on every call. A cached answer could be stale by
    the time a ref update relies on it.
    """

    def __init__(self, client: GitHubClient):
        self.client = client

    def resolve(self, repository: str, ref_name: str) -> Optional[str]:
        """
        Resolve ``ref_name`` (e.g. ``refs/heads/master``) in ``repository``.

        Returns:
            Commit SHA, or None when the repository has no such ref
        """
        for data in self.client.list_refs(repository):
            ref = Ref.from_api_response(data)
            if ref.name == ref_name:
                logger.debug(f"{repository} {ref_name} -> {ref.sha}")
                return ref.sha
        logger.debug(f"{repository} has no ref {ref_name}")
        return None
