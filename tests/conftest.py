"""
Shared fixtures for pluginsync tests.

FakeGitHubClient stands in for GitHubClient: it keeps refs, files and
releases in memory and records every call so tests can assert on the
exact sequence of reads and writes.
"""

from typing import Any, Dict, List, Optional

import pytest

from pluginsync.config import get_default_config
from pluginsync.domain import Repository
from pluginsync.exit_codes import PermissionDenied, RefUpdateConflict

ORG = "intelsdi-x"

WRITE_METHODS = {
    'create_ref', 'update_ref', 'create_blob', 'create_tree',
    'create_commit', 'create_pull_request',
}


def repo_payload(
    full_name: str,
    fork: bool = False,
    parent: Optional[str] = None,
    description: Optional[str] = "A plugin"
) -> Dict[str, Any]:
    """Minimal repository payload as the API returns it."""
    owner, name = full_name.split('/', 1)
    data = {
        'name': name,
        'full_name': full_name,
        'fork': fork,
        'description': description,
        'html_url': f"https://github.com/{full_name}",
        'default_branch': 'master',
        'owner': {'login': owner, 'html_url': f"https://github.com/{owner}"},
    }
    if parent:
        data['parent'] = {'full_name': parent}
    return data


def make_repository(full_name: str, **kwargs) -> Repository:
    return Repository.from_api_response(repo_payload(full_name, **kwargs))


class FakeGitHubClient:
    """In-memory hosting API recording every call."""

    def __init__(self):
        self.repos: Dict[str, Dict[str, Any]] = {}
        self.refs: Dict[str, Dict[str, str]] = {}
        self.files: Dict[tuple, bytes] = {}
        self.releases: Dict[str, List[Dict[str, Any]]] = {}
        self.traffic: Dict[str, Dict[str, Any]] = {}
        self.forbidden: set = set()
        self.calls: List[tuple] = []
        self.update_conflicts = 0
        self.on_conflict = None
        self._counter = 0

    # Test helpers

    def add_repo(self, full_name: str, **kwargs) -> None:
        self.repos[full_name] = repo_payload(full_name, **kwargs)

    def set_ref(self, name: str, ref: str, sha: str) -> None:
        self.refs.setdefault(name, {})[ref] = sha

    @property
    def writes(self) -> List[tuple]:
        return [call for call in self.calls if call[0] in WRITE_METHODS]

    def called(self, method: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == method]

    def _next(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}{self._counter}"

    # GitHubClient interface

    def get_repository(self, name):
        self.calls.append(('get_repository', name))
        return self.repos.get(name)

    def repository_exists(self, name):
        return self.get_repository(name) is not None

    def list_refs(self, name):
        self.calls.append(('list_refs', name))
        return [
            {'ref': ref, 'object': {'sha': sha, 'type': 'commit'}}
            for ref, sha in self.refs.get(name, {}).items()
        ]

    def get_ref(self, name, ref):
        self.calls.append(('get_ref', name, ref))
        sha = self.refs.get(name, {}).get(f"refs/{ref}")
        if sha is None:
            return None
        return {'ref': f"refs/{ref}", 'object': {'sha': sha}}

    def create_ref(self, name, ref, sha):
        self.calls.append(('create_ref', name, ref, sha))
        self.set_ref(name, f"refs/{ref}", sha)
        return {'ref': f"refs/{ref}", 'object': {'sha': sha}}

    def update_ref(self, name, ref, sha, force=False):
        self.calls.append(('update_ref', name, ref, sha))
        if self.update_conflicts:
            self.update_conflicts -= 1
            if self.on_conflict:
                self.on_conflict(self)
            raise RefUpdateConflict(f"Update of {ref} in {name} to {sha} was rejected")
        self.set_ref(name, f"refs/{ref}", sha)
        return {'ref': f"refs/{ref}", 'object': {'sha': sha}}

    def get_commit(self, name, sha):
        self.calls.append(('get_commit', name, sha))
        return {'sha': sha, 'tree': {'sha': f"tree-of-{sha}"}}

    def create_blob(self, name, content, encoding="base64"):
        self.calls.append(('create_blob', name, content, encoding))
        return self._next('blob')

    def create_tree(self, name, entries, base_tree=None):
        self.calls.append(('create_tree', name, entries, base_tree))
        return self._next('tree')

    def create_commit(self, name, message, tree, parents):
        self.calls.append(('create_commit', name, message, tree, parents))
        return self._next('commit')

    def create_pull_request(self, upstream, base, head, title, body=""):
        self.calls.append(('create_pull_request', upstream, base, head, title))
        return {'number': 7, 'html_url': f"https://github.com/{upstream}/pull/7"}

    def get_file_content(self, name, path, ref=None):
        self.calls.append(('get_file_content', name, path))
        return self.files.get((name, path))

    def list_releases(self, name):
        self.calls.append(('list_releases', name))
        return self.releases.get(name, [])

    def get_clone_stats(self, name, per='week'):
        self.calls.append(('get_clone_stats', name, per))
        if name in self.forbidden:
            raise PermissionDenied(f"GitHub API error 403 for GET repos/{name}/traffic/clones")
        return self.traffic.get(name, {}).get('clones', {})

    def get_view_stats(self, name, per='week'):
        self.calls.append(('get_view_stats', name, per))
        if name in self.forbidden:
            raise PermissionDenied(f"GitHub API error 403 for GET repos/{name}/traffic/views")
        return self.traffic.get(name, {}).get('views', {})


@pytest.fixture
def client():
    return FakeGitHubClient()


@pytest.fixture
def config(tmp_path):
    """Default configuration with the organization defaults in a temp file."""
    defaults = tmp_path / 'config_defaults.yml'
    defaults.write_text("global:\n  build:\n    matrix: []\n")
    config = get_default_config()
    config['organization'] = ORG
    config['plugins']['config_defaults'] = str(defaults)
    return config
