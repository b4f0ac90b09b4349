"""
Metadata resolution for pluginsync.

Builds the metadata document of a plugin repository from three layers:
fields computed from the repository itself, the repository's own
``metadata.yml`` and a few organization rules. Also merges the
organization ``config_defaults`` with a repository's ``.sync.yml`` and
derives build artifact URLs from the merged build matrix.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import yaml

from ..config import DEFAULT_ARTIFACT_URL_TEMPLATE, DEFAULT_BADGE_TEMPLATE
from ..domain import Repository, PluginIdentity, plugin_capitalize
from ..exit_codes import HostApiError
from ..infra import GitHubClient
from ..utils import deep_fetch, deep_merge, load_yaml_document

logger = logging.getLogger(__name__)

METADATA_FILE = 'metadata.yml'
SYNC_FILE = '.sync.yml'
NO_DESCRIPTION = 'No description available.'
CORE_MAINTAINER = 'core'
MATRIX_PATH = ('global', 'build', 'matrix')

# GOARCH values published under a different architecture name
ARCH_ALIASES = {'amd64': 'x86_64'}


class MetadataResolver:
    """
    Service producing plugin metadata and sync configuration.

    Stateless: memoization belongs to the per-repository context that
    calls it.

    Example:
        resolver = MetadataResolver(client, organization="intelsdi-x")
        doc = resolver.metadata(repo, parse_plugin_identity(repo.name))
    """

    def __init__(
        self,
        client: GitHubClient,
        organization: str,
        config_defaults: Optional[Callable[[], Dict[str, Any]]] = None,
        badge_template: str = DEFAULT_BADGE_TEMPLATE,
        badge_exempt: tuple = ('Mesos',),
        artifact_url_template: str = DEFAULT_ARTIFACT_URL_TEMPLATE
    ):
        """
        Initialize MetadataResolver.

        Args:
            client: Hosting API client
            organization: Organization whose repositories are managed
            config_defaults: Loader for the organization defaults document
            badge_template: CI badge markdown, formatted with organization and repo
            badge_exempt: Plugin names that never get a CI badge
            artifact_url_template: Artifact URL, formatted with repo, build, os and arch
        """
        self.client = client
        self.organization = organization
        self.config_defaults = config_defaults or dict
        self.badge_template = badge_template
        self.badge_exempt = tuple(badge_exempt)
        self.artifact_url_template = artifact_url_template

    def is_managed(self, repository: Repository) -> bool:
        return repository.owner == self.organization

    def fetch_yaml(self, repository: Repository, path: str) -> Optional[Dict[str, Any]]:
        """
        Fetch and parse a YAML document from the repository.

        Returns:
            Parsed document, or None if the file does not exist

        Raises:
            yaml.YAMLError: If the file is not valid YAML
            HostApiError: If the API call fails
        """
        content = self.client.get_file_content(repository.full_name, path)
        if content is None:
            return None
        return load_yaml_document(content)

    def overlay(self, repository: Repository, path: str) -> Dict[str, Any]:
        """Repository document at ``path``, or an empty overlay when unusable."""
        try:
            document = self.fetch_yaml(repository, path)
        except yaml.YAMLError as e:
            logger.debug(f"Ignoring malformed {path} in {repository.full_name}: {e}")
            return {}
        except HostApiError as e:
            logger.debug(f"Unable to fetch {path} from {repository.full_name}: {e}")
            return {}

        if document is None:
            logger.debug(f"{repository.full_name} has no {path}")
            return {}
        return document

    def metadata(
        self,
        repository: Repository,
        identity: PluginIdentity,
        supported: bool = False
    ) -> Dict[str, Any]:
        """
        Effective metadata document of a plugin repository.

        Computed fields come first; ``metadata.yml`` values win on any
        key collision. The merge is shallow.
        """
        result = {
            'name': identity.name,
            'type': identity.type,
            'supported': supported,
            'description': repository.description or NO_DESCRIPTION,
            'maintainer': repository.owner,
            'maintainer_url': repository.owner_url,
            'repo_name': repository.name,
            'repo_url': repository.html_url,
        }

        metadata = dict(self.overlay(repository, METADATA_FILE))

        if self.is_managed(repository) and identity.name not in self.badge_exempt:
            if metadata.get('badge') is None:
                metadata['badge'] = self.badge_template.format(
                    organization=self.organization, repo=repository.name
                )

        if metadata.get('name'):
            metadata['name'] = plugin_capitalize(metadata['name'])

        if self.client.list_releases(repository.full_name):
            metadata['github_release'] = f"{repository.html_url}/releases"
            metadata['downloads'] = [f"[release]({metadata['github_release']})"]

        if metadata.get('maintainer') == CORE_MAINTAINER:
            metadata['maintainer'] = self.organization

        result.update(metadata)
        return result

    def sync_config(self, repository: Repository) -> Dict[str, Any]:
        """
        Merged sync configuration of a repository.

        Organization repositories get the organization defaults deep-merged
        with their ``.sync.yml``. Any other owner gets an empty document.
        """
        if not self.is_managed(repository):
            logger.debug(f"{repository.full_name} is not owned by {self.organization}, no sync config")
            return {}
        return deep_merge(self.config_defaults(), self.overlay(repository, SYNC_FILE))

    def build_artifact_urls(
        self,
        repository: Repository,
        build_id: str,
        sync_config: Dict[str, Any]
    ) -> List[Dict[str, str]]:
        """
        Artifact URLs for every platform in the build matrix.

        Returns:
            One ``{"<os>/<arch>": url}`` entry per matrix entry, in order
        """
        matrix = deep_fetch(sync_config, *MATRIX_PATH)
        if not isinstance(matrix, list):
            return []

        urls = []
        for platform in matrix:
            os_name = platform.get('GOOS')
            arch = ARCH_ALIASES.get(platform.get('GOARCH'), platform.get('GOARCH'))
            url = self.artifact_url_template.format(
                repo=repository.name, build=build_id, os=os_name, arch=arch
            )
            urls.append({f"{os_name}/{arch}": url})
        return urls
