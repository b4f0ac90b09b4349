"""
Domain layer for pluginsync.

Contains pure domain objects with no I/O or side effects:
- Repository: Identity of a hosted repository
- Ref, SyncTarget, TreeEntry: Inputs of sync and publish operations
- SyncResult, PublishResult: Outcomes of those operations
- PluginIdentity: Plugin name and type derived from a repository name

These objects are immutable and provide serialization methods for
JSONL output.
"""

from .repository import (
    Repository,
    Ref,
    SyncTarget,
    TreeEntry,
    SyncState,
    SyncResult,
    PublishResult,
    branch_ref,
)
from .plugin import (
    PluginIdentity,
    PLUGIN_TYPES,
    parse_plugin_identity,
    plugin_capitalize,
    plugin_type,
)

__all__ = [
    'Repository',
    'Ref',
    'SyncTarget',
    'TreeEntry',
    'SyncState',
    'SyncResult',
    'PublishResult',
    'branch_ref',
    'PluginIdentity',
    'PLUGIN_TYPES',
    'parse_plugin_identity',
    'plugin_capitalize',
    'plugin_type',
]
