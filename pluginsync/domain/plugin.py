"""
Plugin identity for pluginsync.

Plugin repositories follow the naming convention ``<prefix>-<type>-<name>``,
e.g. ``snap-plugin-collector-cpu``. The identity (display name and type) is
derived from the repository name alone, with no network access.
"""

import re
from dataclasses import dataclass
from typing import Optional, Dict, Any

from ..exit_codes import ArgumentError

PLUGIN_KINDS = ('collector', 'processor', 'publisher')
PLUGIN_TYPES = PLUGIN_KINDS + ('unknown',)

# Optional "owner/" qualifier, non-empty prefix, kind, free-form name
PLUGIN_NAME_PATTERN = re.compile(
    r'^(?:[^/]+/)?(?P<prefix>[^/]+?)-(?P<type>collector|processor|publisher)-(?P<name>[^/]+)$'
)

# Words whose display form is not plain capitalization
ACRONYMS = {
    'api', 'cpu', 'dbi', 'ec2', 'gpu', 'hana', 'http', 'iis', 'ipmi', 'jmx',
    'kvm', 'mpi', 'nfs', 'os', 'pcm', 'psutil', 'rdt', 'sdk', 'smart', 'snmp',
    'ssh', 'tcp', 'udp', 'ui', 'url',
}
SPECIAL_NAMES = {
    'apache': 'Apache',
    'cassandra': 'Cassandra',
    'couchdb': 'CouchDB',
    'elasticsearch': 'Elasticsearch',
    'etcd': 'etcd',
    'ethtool': 'Ethtool',
    'facter': 'Facter',
    'graphite': 'Graphite',
    'haproxy': 'HAProxy',
    'influxdb': 'InfluxDB',
    'iostat': 'IOstat',
    'kafka': 'Kafka',
    'libvirt': 'libvirt',
    'mongodb': 'MongoDB',
    'mysql': 'MySQL',
    'nginx': 'NGINX',
    'opentsdb': 'OpenTSDB',
    'postgresql': 'PostgreSQL',
    'rabbitmq': 'RabbitMQ',
    'zfs': 'ZFS',
}


@dataclass(frozen=True)
class PluginIdentity:
    """Display name and type of a plugin repository."""
    name: str
    type: str

    def to_dict(self) -> Dict[str, Any]:
        return {'name': self.name, 'type': self.type}


def plugin_capitalize(name: Optional[str]) -> Optional[str]:
    """
    Normalize a plugin name for display.

    Words are split on dashes, underscores and spaces. Known acronyms are
    uppercased, known product names keep their canonical spelling, words
    that already carry inner capitals are kept and everything else is
    capitalized. Words are joined with a single space.

    Examples:
        plugin_capitalize("cpu")            -> "CPU"
        plugin_capitalize("intel-rdt")      -> "Intel RDT"
        plugin_capitalize("influxdb")       -> "InfluxDB"
    """
    if not name:
        return None

    words = []
    for word in re.split(r'[-_\s]+', str(name).strip()):
        if not word:
            continue
        lower = word.lower()
        if lower in ACRONYMS:
            words.append(lower.upper())
        elif lower in SPECIAL_NAMES:
            words.append(SPECIAL_NAMES[lower])
        elif word[1:] != word[1:].lower():
            words.append(word)
        else:
            words.append(word.capitalize())

    return ' '.join(words) or None


def plugin_type(repo_name: str) -> str:
    """
    Classify a repository name as a plugin type.

    Never raises: names mentioning no plugin kind are ``unknown``.
    """
    for kind in PLUGIN_KINDS:
        if kind in repo_name:
            return kind
    return 'unknown'


def parse_plugin_identity(repo_name: str) -> PluginIdentity:
    """
    Derive the plugin identity from a repository name.

    Args:
        repo_name: Repository name, optionally qualified as ``owner/name``

    Returns:
        PluginIdentity with the normalized display name and matched type

    Raises:
        ArgumentError: If the name does not follow ``<prefix>-<type>-<name>``
    """
    match = PLUGIN_NAME_PATTERN.match(repo_name or '')
    name = plugin_capitalize(match.group('name')) if match else None
    if not name:
        raise ArgumentError(f"Unable to parse plugin name from repo: {repo_name}")
    return PluginIdentity(name=name, type=match.group('type'))
