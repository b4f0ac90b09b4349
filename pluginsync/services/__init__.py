"""
Service layer for pluginsync.

Contains the operations that coordinate domain objects and the hosting API:
- RefResolver: Ref name to commit resolution
- ForkSyncEngine: Fork branch synchronization with bounded conflict retry
- ContentCommitPipeline: File publication through the git data API
- MetadataResolver: Plugin metadata and layered sync configuration
- MetricsCollector: Traffic and download metrics
- PluginRepo: Per-repository context wiring the services together

Services receive their GitHubClient explicitly; none of them creates one.
"""

from .ref_resolver import RefResolver
from .fork_sync import ForkSyncEngine
from .content_commit import ContentCommitPipeline
from .metadata_service import MetadataResolver
from .metrics_service import MetricsCollector
from .plugin_repo import PluginRepo

__all__ = [
    'RefResolver',
    'ForkSyncEngine',
    'ContentCommitPipeline',
    'MetadataResolver',
    'MetricsCollector',
    'PluginRepo',
]
