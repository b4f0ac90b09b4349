"""
Per-repository context for pluginsync.

PluginRepo binds one hosted repository to the services that operate on it,
all sharing a single injected GitHubClient. Derived documents (metadata,
sync configuration) are memoized on the instance, so each repository's
results stay scoped to its own context.
"""

import logging
from functools import cached_property
from typing import Any, Dict, List, Optional

from ..config import (
    DEFAULT_ARTIFACT_URL_TEMPLATE,
    DEFAULT_BADGE_TEMPLATE,
    get_default_config,
    load_config_defaults,
)
from ..domain import Repository, PluginIdentity, SyncResult, PublishResult, parse_plugin_identity
from ..exit_codes import ConfigurationError
from ..infra import GitHubClient
from .content_commit import ContentCommitPipeline
from .fork_sync import ForkSyncEngine, DEFAULT_ORIGIN_BRANCH
from .metadata_service import MetadataResolver
from .metrics_service import MetricsCollector
from .ref_resolver import RefResolver

logger = logging.getLogger(__name__)


class PluginRepo:
    """
    A plugin repository and the operations pluginsync performs on it.

    Example:
        client = GitHubClient.from_config(config)
        repo = PluginRepo("example/snap-plugin-collector-cpu", client, config)
        repo.sync_branch("master")
        print(repo.metadata())
    """

    def __init__(
        self,
        name: str,
        client: GitHubClient,
        config: Optional[Dict[str, Any]] = None,
        supported: bool = False
    ):
        """
        Initialize PluginRepo.

        Args:
            name: Full repository name (owner/repo)
            client: Hosting API client shared by every service
            config: Configuration dict (defaults if None)
            supported: Whether the plugin is officially supported

        Raises:
            ConfigurationError: If the repository does not exist or is not accessible
        """
        self.name = name
        self.client = client
        self.config = config or get_default_config()
        self.supported = supported

        data = client.get_repository(name)
        if data is None:
            raise ConfigurationError(
                f"{name} is not a valid github repository "
                f"(or your account does not have access to this private repo)"
            )
        self.repository = Repository.from_api_response(data)

        plugins = self.config.get('plugins', {})
        self.organization = self.config.get('organization', '')
        self.resolver = RefResolver(client)
        self.fork_sync = ForkSyncEngine(client, self.resolver)
        self.pipeline = ContentCommitPipeline(
            client,
            organization=self.organization,
            tool_name=plugins.get('tool_name', 'pluginsync'),
            protected_branch=plugins.get('protected_branch', 'master'),
        )
        self.metadata_resolver = MetadataResolver(
            client,
            organization=self.organization,
            config_defaults=lambda: load_config_defaults(self.config),
            badge_template=plugins.get('badge_template') or DEFAULT_BADGE_TEMPLATE,
            badge_exempt=tuple(plugins.get('badge_exempt', ('Mesos',))),
            artifact_url_template=plugins.get('artifact_url_template') or DEFAULT_ARTIFACT_URL_TEMPLATE,
        )
        self.metrics_collector = MetricsCollector(client)

        self._metadata: Optional[Dict[str, Any]] = None
        self._sync_config: Optional[Dict[str, Any]] = None

    @property
    def owner(self) -> str:
        return self.repository.owner

    @property
    def upstream(self) -> Optional[str]:
        return self.repository.upstream

    @cached_property
    def identity(self) -> PluginIdentity:
        """Plugin name and type, parsed once from the repository name."""
        return parse_plugin_identity(self.repository.full_name)

    def ref_sha(self, ref: str, repository: Optional[str] = None) -> Optional[str]:
        """Current commit of ``ref`` in this (or another) repository."""
        return self.resolver.resolve(repository or self.name, ref)

    def sync_branch(
        self,
        branch: str,
        origin: Optional[str] = None,
        origin_branch: str = DEFAULT_ORIGIN_BRANCH
    ) -> SyncResult:
        """Sync ``branch`` with the upstream (or ``origin``) ``origin_branch``."""
        return self.fork_sync.sync_branch(self.repository, branch, origin, origin_branch)

    def update_content(self, path: str, content: str | bytes, branch: str = 'master') -> PublishResult:
        """Commit ``content`` to ``path`` on ``branch``."""
        return self.pipeline.publish(self.repository, path, content, branch)

    def create_pull_request(self, branch: str, message: str, source: str = 'master') -> Dict[str, Any]:
        """Open a pull request from ``branch`` into the upstream ``source`` branch."""
        return self.pipeline.create_pull_request(self.repository, branch, message, source)

    def metadata(self) -> Dict[str, Any]:
        """Effective metadata document, computed once per context."""
        if self._metadata is None:
            self._metadata = self.metadata_resolver.metadata(self.repository, self.identity, self.supported)
        return self._metadata

    def sync_config(self) -> Dict[str, Any]:
        """Merged ``config_defaults`` and ``.sync.yml``, computed once per context."""
        if self._sync_config is None:
            self._sync_config = self.metadata_resolver.sync_config(self.repository)
        return self._sync_config

    def artifact_urls(self, build_id: str) -> List[Dict[str, str]]:
        """Artifact URL per build matrix platform for ``build_id``."""
        return self.metadata_resolver.build_artifact_urls(self.repository, build_id, self.sync_config())

    def metrics(self) -> Dict[str, Optional[Dict[str, Any]]]:
        """Traffic and download metrics (None without admin access)."""
        return self.metrics_collector.collect(self.repository)
