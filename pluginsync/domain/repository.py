"""
Repository domain objects for pluginsync.

Repository is the read-only identity of a hosted repository. Ref, SyncTarget
and the result types describe the inputs and outcomes of sync and publish
operations. All of them are immutable and serializable for JSONL output.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Dict, Any


@dataclass(frozen=True)
class Repository:
    """
    Immutable identity of a repository on the hosting service.

    Example:
        repo = Repository.from_api_response(client_payload)
        if repo.upstream:
            print(f"{repo.full_name} is a fork of {repo.upstream}")
    """
    owner: str
    name: str
    full_name: str
    is_fork: bool = False
    parent_full_name: Optional[str] = None
    description: Optional[str] = None
    html_url: str = ""
    owner_url: str = ""
    default_branch: str = "master"

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Repository':
        """Create from a hosting API repository payload."""
        owner = data.get('owner') or {}
        parent = data.get('parent') or {}

        return cls(
            owner=owner.get('login', '') if isinstance(owner, dict) else str(owner),
            name=data.get('name', ''),
            full_name=data.get('full_name', ''),
            is_fork=data.get('fork', False),
            parent_full_name=parent.get('full_name') if isinstance(parent, dict) else None,
            description=data.get('description'),
            html_url=data.get('html_url', ''),
            owner_url=owner.get('html_url', '') if isinstance(owner, dict) else '',
            default_branch=data.get('default_branch', 'master'),
        )

    @property
    def upstream(self) -> Optional[str]:
        """Full name of the repository this one was forked from."""
        if self.is_fork:
            return self.parent_full_name
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'owner': self.owner,
            'name': self.name,
            'full_name': self.full_name,
            'is_fork': self.is_fork,
            'parent_full_name': self.parent_full_name,
            'description': self.description,
            'html_url': self.html_url,
            'owner_url': self.owner_url,
            'default_branch': self.default_branch,
        }


@dataclass(frozen=True)
class Ref:
    """A named pointer to a commit. Fetched fresh on every resolution."""
    name: str
    sha: str

    @classmethod
    def from_api_response(cls, data: Dict[str, Any]) -> 'Ref':
        return cls(name=data.get('ref', ''), sha=(data.get('object') or {}).get('sha', ''))


def branch_ref(branch: str) -> str:
    """Fully qualified ref name for a branch (``refs/heads/<branch>``)."""
    return f"refs/heads/{branch}"


@dataclass(frozen=True)
class SyncTarget:
    """Source and destination of one fork sync."""
    source_repo: str
    source_branch: str
    fork_repo: str
    fork_branch: str

    @property
    def source_ref(self) -> str:
        return branch_ref(self.source_branch)

    @property
    def fork_ref(self) -> str:
        return branch_ref(self.fork_branch)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'source_repo': self.source_repo,
            'source_branch': self.source_branch,
            'fork_repo': self.fork_repo,
            'fork_branch': self.fork_branch,
        }


@dataclass(frozen=True)
class TreeEntry:
    """One path entry of a tree creation request."""
    path: str
    sha: str
    mode: str = "100644"  # regular file
    type: str = "blob"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'path': self.path,
            'mode': self.mode,
            'type': self.type,
            'sha': self.sha,
        }


class SyncState(Enum):
    """How a fork branch related to its upstream when it was synced."""
    MISSING = "missing"                    # Fork ref absent, created
    IN_SYNC = "in_sync"                    # Already at upstream commit
    DIVERGED = "diverged"                  # Updated on first attempt
    CONFLICT_RETRIED = "conflict_retried"  # Updated after one conflict


@dataclass(frozen=True)
class SyncResult:
    """Outcome of a successful fork sync."""
    target: SyncTarget
    state: SyncState
    sha: str

    @property
    def changed(self) -> bool:
        return self.state is not SyncState.IN_SYNC

    def to_dict(self) -> Dict[str, Any]:
        result = self.target.to_dict()
        result.update({
            'state': self.state.value,
            'sha': self.sha,
            'changed': self.changed,
        })
        return result


@dataclass(frozen=True)
class PublishResult:
    """Objects created by a content publication."""
    repository: str
    branch: str
    path: str
    blob_sha: str
    tree_sha: str
    commit_sha: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'repository': self.repository,
            'branch': self.branch,
            'path': self.path,
            'blob_sha': self.blob_sha,
            'tree_sha': self.tree_sha,
            'commit_sha': self.commit_sha,
        }
