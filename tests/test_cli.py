"""
Tests for the pluginsync command line through CliRunner.
"""

import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from pluginsync.cli import cli
from pluginsync.exit_codes import (
    API_ERROR,
    CONFIG_ERROR,
    GENERAL_ERROR,
    INTERRUPTED,
    PARTIAL_SUCCESS,
    POLICY_ERROR,
    ConfigurationError,
    HostApiError,
)

from conftest import ORG

UPSTREAM = f"{ORG}/snap-plugin-collector-cpu"
FORK = "someone/snap-plugin-collector-cpu"


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def invoke(runner, client, config):
    """Invoke the CLI with the fake client and test configuration."""
    def _invoke(*args, **kwargs):
        with patch('pluginsync.cli.load_config', return_value=config), \
             patch('pluginsync.cli.GitHubClient.from_config', return_value=client):
            return runner.invoke(cli, list(args), **kwargs)
    return _invoke


def jsonl(output):
    return [json.loads(line) for line in output.splitlines() if line.startswith('{')]


class TestSyncCommand:
    """pluginsync sync"""

    def test_sync_creates_missing_branch(self, invoke, client):
        client.add_repo(FORK, fork=True, parent=UPSTREAM)
        client.set_ref(UPSTREAM, 'refs/heads/master', 'up1')

        result = invoke('sync', FORK)

        assert result.exit_code == 0, result.output
        rows = jsonl(result.stdout)
        assert rows[0]['state'] == 'missing'
        assert rows[0]['sha'] == 'up1'

    def test_sync_isolates_failures(self, invoke, client):
        client.add_repo(FORK, fork=True, parent=UPSTREAM)
        client.set_ref(UPSTREAM, 'refs/heads/master', 'up1')
        client.add_repo("someone/standalone")

        result = invoke('sync', "someone/standalone", FORK)

        assert result.exit_code == PARTIAL_SUCCESS
        assert [row['fork_repo'] for row in jsonl(result.stdout)] == [FORK]
        errors = jsonl(result.stderr)
        assert errors[0]['type'] == 'config_error'
        assert errors[0]['context'] == {'repo': "someone/standalone"}

    def test_sync_all_failed(self, invoke, client):
        result = invoke('sync', "nobody/missing")
        assert result.exit_code == CONFIG_ERROR

    def test_missing_credentials(self, runner, config):
        with patch('pluginsync.cli.load_config', return_value=config), \
             patch('pluginsync.cli.GitHubClient.from_config', side_effect=ConfigurationError("missing GitHub credentials")):
            result = runner.invoke(cli, ['sync', FORK])
        assert result.exit_code == CONFIG_ERROR
        assert 'missing GitHub credentials' in result.stderr


class TestUnexpectedErrors:
    """Exceptions outside the pluginsync taxonomy"""

    def test_timeout_maps_to_api_error(self, invoke, client):
        def timeout(name):
            raise TimeoutError("read timed out")

        client.get_repository = timeout
        result = invoke('metadata', UPSTREAM)

        assert result.exit_code == API_ERROR
        errors = jsonl(result.stderr)
        assert errors[0]['type'] == 'TimeoutError'
        assert 'read timed out' in errors[0]['error']

    def test_unknown_exception_is_general_error(self, invoke, client):
        def broken(name):
            raise RuntimeError("unexpected")

        client.get_repository = broken
        result = invoke('sync', FORK)

        assert result.exit_code == GENERAL_ERROR
        assert jsonl(result.stderr)[0]['type'] == 'RuntimeError'

    def test_interrupt(self, invoke, client):
        def interrupted(name):
            raise KeyboardInterrupt

        client.get_repository = interrupted
        result = invoke('metrics', UPSTREAM)

        assert result.exit_code == INTERRUPTED
        assert jsonl(result.stderr)[0]['type'] == 'interrupted'

    def test_bad_body_isolated_per_repo(self, invoke, client):
        client.add_repo(UPSTREAM)
        original = client.get_repository

        def flaky(name):
            if name == "someone/proxied":
                raise HostApiError("GitHub API returned invalid JSON for repos/someone/proxied", 200)
            return original(name)

        client.get_repository = flaky
        result = invoke('metadata', "someone/proxied", UPSTREAM)

        assert result.exit_code == PARTIAL_SUCCESS
        assert jsonl(result.stdout)[0]['name'] == 'CPU'
        assert jsonl(result.stderr)[0]['context'] == {'repo': "someone/proxied"}


class TestPublishCommand:
    """pluginsync publish"""

    def test_publish_from_stdin(self, invoke, client):
        client.add_repo(FORK, fork=True, parent=UPSTREAM)
        client.set_ref(FORK, 'refs/heads/pluginsync', 'head1')

        result = invoke('publish', FORK, '.travis.yml', '--branch', 'pluginsync', input='language: go\n')

        assert result.exit_code == 0, result.output
        assert jsonl(result.stdout)[0]['commit_sha'] == 'commit3'

    def test_publish_to_master_refused(self, invoke, client):
        client.add_repo(FORK, fork=True, parent=UPSTREAM)

        result = invoke('publish', FORK, '.travis.yml', '--branch', 'master', input='x')

        assert result.exit_code == POLICY_ERROR
        assert jsonl(result.stderr)[0]['type'] == 'policy_violation'
        assert client.writes == []


class TestOtherCommands:
    """metadata, artifacts, metrics and pull-request"""

    def test_metadata(self, invoke, client):
        client.add_repo(UPSTREAM)
        result = invoke('metadata', UPSTREAM, '--supported')
        assert result.exit_code == 0, result.output
        doc = jsonl(result.stdout)[0]
        assert doc['name'] == 'CPU'
        assert doc['supported'] is True
        assert 'badge' in doc

    def test_metadata_pretty(self, invoke, client):
        client.add_repo(UPSTREAM)
        result = invoke('metadata', UPSTREAM, '--pretty')
        assert result.exit_code == 0, result.output
        assert 'CPU' in result.stdout

    def test_artifacts(self, invoke, client):
        client.add_repo(UPSTREAM)
        client.files[(UPSTREAM, '.sync.yml')] = (
            b"global:\n  build:\n    matrix:\n      - GOOS: linux\n        GOARCH: amd64\n"
        )
        result = invoke('artifacts', UPSTREAM, 'v1')
        assert result.exit_code == 0, result.output
        rows = jsonl(result.stdout)
        assert rows == [{
            'platform': 'linux/x86_64',
            'url': 'https://s3-us-west-2.amazonaws.com/snap.ci.snap-telemetry.io/plugins/'
                   'snap-plugin-collector-cpu/v1/linux/x86_64/snap-plugin-collector-cpu',
        }]

    def test_metrics_without_access(self, invoke, client):
        client.add_repo(UPSTREAM)
        client.forbidden.add(UPSTREAM)
        result = invoke('metrics', UPSTREAM)
        assert result.exit_code == 0, result.output
        assert jsonl(result.stdout) == [{UPSTREAM: None}]

    def test_pull_request(self, invoke, client):
        client.add_repo(FORK, fork=True, parent=UPSTREAM)
        result = invoke('pull-request', FORK, 'pluginsync', '-m', 'Sync generated files')
        assert result.exit_code == 0, result.output
        assert jsonl(result.stdout)[0]['number'] == 7
