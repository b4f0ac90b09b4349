"""
pluginsync - Keep a fleet of plugin repositories in step.

pluginsync syncs maintained forks with their upstreams, publishes generated
files into fork branches through the git data API, and derives a metadata
document per plugin repository from organization defaults and repository
overrides.

Quick Start:
    import pluginsync

    config = pluginsync.load_config()
    client = pluginsync.GitHubClient.from_config(config)

    repo = pluginsync.PluginRepo("example/snap-plugin-collector-cpu", client, config)

    # Point the fork's master at upstream master
    repo.sync_branch("master")

    # Commit a generated file to a work branch
    repo.update_content(".travis.yml", rendered, branch="pluginsync")

    # Plugin metadata for documentation
    print(repo.metadata())

Domain Objects:
    Repository - Identity of a hosted repository
    PluginIdentity - Plugin name and type derived from a repository name
    SyncResult, PublishResult - Outcomes of sync and publish

Services:
    ForkSyncEngine - Fork branch synchronization
    ContentCommitPipeline - Content publication
    MetadataResolver - Metadata and sync configuration
"""

__version__ = "0.4.0"

# Domain objects
from .domain import (
    Repository,
    PluginIdentity,
    SyncState,
    SyncResult,
    PublishResult,
    parse_plugin_identity,
    plugin_capitalize,
    plugin_type,
)

# Infrastructure
from .infra import GitHubClient

# Services
from .services import (
    RefResolver,
    ForkSyncEngine,
    ContentCommitPipeline,
    MetadataResolver,
    MetricsCollector,
    PluginRepo,
)

# Errors
from .exit_codes import (
    PluginsyncError,
    ConfigurationError,
    ArgumentError,
    PolicyViolation,
    HostApiError,
    PermissionDenied,
    RefUpdateConflict,
    SyncConflictError,
)

# Configuration and helpers
from .config import load_config, save_config
from .utils import MISSING, deep_fetch, deep_merge

__all__ = [
    # Version
    "__version__",
    # Domain objects
    "Repository",
    "PluginIdentity",
    "SyncState",
    "SyncResult",
    "PublishResult",
    "parse_plugin_identity",
    "plugin_capitalize",
    "plugin_type",
    # Infrastructure
    "GitHubClient",
    # Services
    "RefResolver",
    "ForkSyncEngine",
    "ContentCommitPipeline",
    "MetadataResolver",
    "MetricsCollector",
    "PluginRepo",
    # Errors
    "PluginsyncError",
    "ConfigurationError",
    "ArgumentError",
    "PolicyViolation",
    "HostApiError",
    "PermissionDenied",
    "RefUpdateConflict",
    "SyncConflictError",
    # Configuration and helpers
    "load_config",
    "save_config",
    "MISSING",
    "deep_fetch",
    "deep_merge",
]
