"""
Content publication for pluginsync.

Publishes a file into a branch by building the commit graph directly
through the git data API: blob, tree on top of the branch tree, commit
on top of the branch head, then the ref update. Only the final ref update
mutates anything visible; objects created before a failed ref update stay
behind unreferenced.
"""

import base64
import logging
from typing import Optional, Dict, Any

from ..domain import Repository, TreeEntry, PublishResult
from ..exit_codes import ConfigurationError, HostApiError, PolicyViolation
from ..infra import GitHubClient

logger = logging.getLogger(__name__)

DEFAULT_TOOL_NAME = "pluginsync"
PROTECTED_BRANCH = "master"


class ContentCommitPipeline:
    """
    Service for committing generated content to plugin forks.

    Example:
        pipeline = ContentCommitPipeline(client, organization="intelsdi-x")
        pipeline.publish(repo, ".travis.yml", rendered, branch="pluginsync")
    """

    def __init__(
        self,
        client: GitHubClient,
        organization: str,
        tool_name: str = DEFAULT_TOOL_NAME,
        protected_branch: str = PROTECTED_BRANCH
    ):
        self.client = client
        self.organization = organization
        self.tool_name = tool_name
        self.protected_branch = protected_branch

    def check_policy(self, repository: Repository, branch: str) -> None:
        """
        Refuse targets this tool must never commit to.

        Raises:
            PolicyViolation: For organization repositories or the protected branch
        """
        namespace = repository.full_name.split('/', 1)[0]
        if namespace == self.organization or repository.owner == self.organization:
            raise PolicyViolation(f"This tool cannot directly commit to {self.organization} repos")
        if branch == self.protected_branch:
            raise PolicyViolation(f"This tool cannot directly commit to {self.protected_branch} branch")

    def publish(
        self,
        repository: Repository,
        path: str,
        content: str | bytes,
        branch: str = PROTECTED_BRANCH
    ) -> PublishResult:
        """
        Commit ``content`` to ``path`` on ``branch``.

        Every step consumes the identifier produced by the previous one, so
        the calls are strictly sequential.

        Raises:
            PolicyViolation: Before any network call, for forbidden targets
            HostApiError: If any API call fails
        """
        self.check_policy(repository, branch)

        name = repository.full_name
        ref = f"heads/{branch}"
        message = f"update {path} by {self.tool_name} tool"
        if isinstance(content, str):
            content = content.encode('utf-8')
        encoded = base64.b64encode(content).decode('ascii')

        head = self.client.get_ref(name, ref)
        if head is None:
            raise HostApiError(f"{name} has no branch {branch}", 404)
        latest_commit = head['object']['sha']
        base_tree = self.client.get_commit(name, latest_commit)['tree']['sha']

        blob_sha = self.client.create_blob(name, encoded, "base64")
        entry = TreeEntry(path=path, sha=blob_sha)
        tree_sha = self.client.create_tree(name, [entry.to_dict()], base_tree)
        commit_sha = self.client.create_commit(name, message, tree_sha, [latest_commit])
        self.client.update_ref(name, ref, commit_sha)

        logger.info(f"Committed {path} to {name} {branch} as {commit_sha}")
        return PublishResult(
            repository=name,
            branch=branch,
            path=path,
            blob_sha=blob_sha,
            tree_sha=tree_sha,
            commit_sha=commit_sha,
        )

    def create_pull_request(
        self,
        repository: Repository,
        branch: str,
        message: str,
        source: str = PROTECTED_BRANCH,
        body: str = ""
    ) -> Dict[str, Any]:
        """
        Propose ``branch`` of a fork for merging into its upstream.

        Raises:
            ConfigurationError: If the repository is not a fork
        """
        upstream: Optional[str] = repository.upstream
        if not upstream:
            raise ConfigurationError(f"Repo {repository.full_name} is not a fork, no upstream for a pull request")
        head = f"{repository.owner}:{branch}"
        logger.info(f"Opening pull request {head} -> {upstream} {source}")
        return self.client.create_pull_request(upstream, source, head, message, body)
