"""
Repository traffic and download metrics for pluginsync.
"""

import logging
from typing import Any, Dict, Optional

from ..domain import Repository
from ..exit_codes import PermissionDenied
from ..infra import GitHubClient

logger = logging.getLogger(__name__)


class MetricsCollector:
    """Collects weekly traffic and release download counts."""

    def __init__(self, client: GitHubClient):
        self.client = client

    def collect(self, repository: Repository) -> Dict[str, Optional[Dict[str, Any]]]:
        """
        Traffic and download metrics keyed by repository full name.

        Traffic endpoints need admin access. Without it the metrics are
        None and a warning is logged; the caller's run carries on.
        """
        name = repository.full_name
        try:
            return {name: self._collect(name)}
        except PermissionDenied:
            logger.warning(f"Require admin access to {name} for repo metrics.")
            return {name: None}

    def _collect(self, name: str) -> Dict[str, Any]:
        clones = self.client.get_clone_stats(name, per='week')
        views = self.client.get_view_stats(name, per='week')

        metric: Dict[str, Any] = {
            'clones': {
                'count': clones.get('count', 0),
                'uniques': clones.get('uniques', 0),
            },
            'views': {
                'count': views.get('count', 0),
                'uniques': views.get('uniques', 0),
            },
        }

        total = 0
        for release in self.client.list_releases(name):
            assets = {}
            for asset in release.get('assets', []):
                count = asset.get('download_count', 0)
                total += count
                assets[asset.get('name')] = count
            metric[release.get('tag_name')] = assets
        metric['total'] = total

        return metric
