"""
Fork synchronization for pluginsync.

Keeps a fork branch pointing at the current commit of an upstream branch.
Ref updates are optimistic: when the hosting service rejects one because a
pointer moved, the upstream commit is resolved again and the update is
retried exactly once.
"""

import logging
from typing import Optional

from ..domain import Repository, SyncTarget, SyncState, SyncResult
from ..exit_codes import ConfigurationError, RefUpdateConflict, SyncConflictError
from ..infra import GitHubClient
from .ref_resolver import RefResolver

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN_BRANCH = "master"


class ForkSyncEngine:
    """
    Service for syncing fork branches with their upstream.

    Example:
        engine = ForkSyncEngine(client)
        result = engine.sync_branch(repo, "master")
        print(result.state)
    """

    def __init__(self, client: GitHubClient, resolver: Optional[RefResolver] = None):
        self.client = client
        self.resolver = resolver or RefResolver(client)

    def target(
        self,
        repository: Repository,
        branch: str,
        origin: Optional[str] = None,
        origin_branch: str = DEFAULT_ORIGIN_BRANCH
    ) -> SyncTarget:
        """
        Work out which upstream branch ``branch`` of ``repository`` follows.

        Raises:
            ConfigurationError: If the repository is not a fork and no origin is given
        """
        parent = origin or repository.upstream
        if not parent:
            raise ConfigurationError(
                f"Repo {repository.full_name} is not a fork and no origin specified for syncing."
            )
        return SyncTarget(
            source_repo=parent,
            source_branch=origin_branch or DEFAULT_ORIGIN_BRANCH,
            fork_repo=repository.full_name,
            fork_branch=branch,
        )

    def _origin_sha(self, target: SyncTarget) -> str:
        sha = self.resolver.resolve(target.source_repo, target.source_ref)
        if sha is None:
            raise ConfigurationError(
                f"Upstream {target.source_repo} has no branch {target.source_branch} to sync from"
            )
        return sha

    def sync_branch(
        self,
        repository: Repository,
        branch: str,
        origin: Optional[str] = None,
        origin_branch: str = DEFAULT_ORIGIN_BRANCH
    ) -> SyncResult:
        """
        Make ``branch`` of ``repository`` point at the upstream branch head.

        Args:
            repository: Fork to update
            branch: Fork branch to update
            origin: Upstream full name overriding the recorded fork parent
            origin_branch: Upstream branch to follow

        Returns:
            SyncResult describing which state the branch was in

        Raises:
            ConfigurationError: No upstream to sync from
            SyncConflictError: The update conflicted twice
            HostApiError: Any other API failure
        """
        target = self.target(repository, branch, origin, origin_branch)
        fork_ref = f"heads/{target.fork_branch}"

        origin_sha = self._origin_sha(target)
        fork_sha = self.resolver.resolve(target.fork_repo, target.fork_ref)

        if fork_sha is None:
            logger.info(f"Creating {target.fork_repo} {target.fork_branch} at {origin_sha}")
            self.client.create_ref(target.fork_repo, fork_ref, origin_sha)
            return SyncResult(target, SyncState.MISSING, origin_sha)

        if fork_sha == origin_sha:
            logger.debug(f"{target.fork_repo} {target.fork_branch} already at {origin_sha}")
            return SyncResult(target, SyncState.IN_SYNC, origin_sha)

        try:
            self.client.update_ref(target.fork_repo, fork_ref, origin_sha)
            return SyncResult(target, SyncState.DIVERGED, origin_sha)
        except RefUpdateConflict:
            logger.warning(
                f"Fork {target.fork_repo} is out of sync with {target.source_repo}, "
                f"syncing to {target.fork_repo} {target.source_branch}"
            )

        # Resolved again after the rejected update, never reused
        origin_sha = self._origin_sha(target)
        try:
            self.client.update_ref(target.fork_repo, fork_ref, origin_sha)
        except RefUpdateConflict as e:
            raise SyncConflictError(
                f"Unable to sync {target.fork_repo} {target.fork_branch} with "
                f"{target.source_repo} {target.source_branch}: ref update conflicted twice"
            ) from e
        return SyncResult(target, SyncState.CONFLICT_RETRIED, origin_sha)
