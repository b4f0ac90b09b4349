#!/usr/bin/env python3

import functools
import sys

import click
from typing import Any, Callable, Dict, Iterable, List

from pluginsync.config import load_config, configure_logging
from pluginsync.exit_codes import (
    PARTIAL_SUCCESS,
    SUCCESS,
    CommandError,
    PluginsyncError,
    get_exit_code_for_exception,
)
from pluginsync.infra import GitHubClient
from pluginsync.output import emit, emit_error
from pluginsync.services import PluginRepo


@click.group()
@click.version_option(package_name='pluginsync')
@click.option('--debug', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, debug):
    """pluginsync - Keep plugin forks, generated files and metadata in step.

    Every command accepts full repository names (owner/repo). Failures are
    reported per repository on stderr and do not stop the remaining ones.
    """
    config = load_config()
    configure_logging(config, debug=debug)
    ctx.obj = {'config': config}


def handle_errors(f):
    """
    Turn exceptions escaping a command into a JSON error on stderr and
    the exit code mapped for them.
    """
    @functools.wraps(f)
    def wrapper(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except (click.ClickException, click.exceptions.Exit, click.exceptions.Abort):
            raise
        except KeyboardInterrupt as e:
            emit_error("Interrupted by user", type="interrupted")
            sys.exit(get_exit_code_for_exception(e))
        except CommandError as e:
            emit_error(str(e), type=getattr(e, "error_type", "error"))
            sys.exit(e.exit_code)
        except Exception as e:
            emit_error(f"Command failed: {e}", type=type(e).__name__)
            sys.exit(get_exit_code_for_exception(e))

    return wrapper


def _client(ctx) -> GitHubClient:
    """Single client shared by every repository of the invocation."""
    if 'client' not in ctx.obj:
        ctx.obj['client'] = GitHubClient.from_config(ctx.obj['config'])
    return ctx.obj['client']


def _for_each_repo(ctx, names: Iterable[str], action: Callable[[PluginRepo], Any], **repo_kwargs) -> List[Any]:
    """
    Run ``action`` per repository, isolating failures.

    Errors are emitted to stderr as JSON; the exit code is the error's own
    when everything failed, or PARTIAL_SUCCESS when only some did.
    """
    results = []
    failures = []

    try:
        client = _client(ctx)
    except PluginsyncError as e:
        emit_error(str(e), type=e.error_type)
        ctx.exit(e.exit_code)

    for name in names:
        try:
            repo = PluginRepo(name, client, ctx.obj['config'], **repo_kwargs)
            results.append(action(repo))
        except PluginsyncError as e:
            emit_error(str(e), type=e.error_type, context={'repo': name})
            failures.append(e)

    ctx.obj['failures'] = failures
    return results


def _finish(ctx, results: List[Any], pretty: bool = False) -> None:
    emit(results, pretty=pretty)
    failures = ctx.obj.get('failures', [])
    if not failures:
        ctx.exit(SUCCESS)
    if results:
        ctx.exit(PARTIAL_SUCCESS)
    ctx.exit(failures[-1].exit_code)


@cli.command('sync')
@click.argument('repos', nargs=-1, required=True)
@click.option('--branch', default='master', show_default=True, help='Fork branch to update')
@click.option('--origin', help='Upstream repository (defaults to the fork parent)')
@click.option('--origin-branch', default='master', show_default=True, help='Upstream branch to follow')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@click.pass_context
@handle_errors
def sync_cmd(ctx, repos, branch, origin, origin_branch, pretty):
    """Point fork branches at their upstream branch head."""
    results = _for_each_repo(
        ctx, repos,
        lambda repo: repo.sync_branch(branch, origin=origin, origin_branch=origin_branch),
    )
    _finish(ctx, results, pretty)


@cli.command('publish')
@click.argument('repo')
@click.argument('path')
@click.option('--file', 'source', type=click.File('rb'), default='-', help='Content to commit (stdin by default)')
@click.option('--branch', required=True, help='Branch to commit to (never master)')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@click.pass_context
@handle_errors
def publish_cmd(ctx, repo, path, source, branch, pretty):
    """Commit a file to PATH on a fork branch."""
    content = source.read()
    results = _for_each_repo(ctx, [repo], lambda r: r.update_content(path, content, branch=branch))
    _finish(ctx, results, pretty)


@cli.command('pull-request')
@click.argument('repo')
@click.argument('branch')
@click.option('--message', '-m', required=True, help='Pull request title')
@click.option('--source', default='master', show_default=True, help='Upstream branch to merge into')
@click.pass_context
@handle_errors
def pull_request_cmd(ctx, repo, branch, message, source):
    """Open a pull request from a fork BRANCH into its upstream."""
    def action(r: PluginRepo) -> Dict[str, Any]:
        pr = r.create_pull_request(branch, message, source=source)
        return {'repo': r.name, 'number': pr.get('number'), 'url': pr.get('html_url')}

    results = _for_each_repo(ctx, [repo], action)
    _finish(ctx, results)


@cli.command('metadata')
@click.argument('repos', nargs=-1, required=True)
@click.option('--supported', is_flag=True, help='Mark the plugins as supported')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@click.pass_context
@handle_errors
def metadata_cmd(ctx, repos, supported, pretty):
    """Print the metadata document of plugin repositories."""
    results = _for_each_repo(ctx, repos, lambda repo: repo.metadata(), supported=supported)
    _finish(ctx, results, pretty)


@cli.command('artifacts')
@click.argument('repo')
@click.argument('build')
@click.option('--pretty', is_flag=True, help='Display as formatted table')
@click.pass_context
@handle_errors
def artifacts_cmd(ctx, repo, build, pretty):
    """Print artifact URLs of BUILD for every build matrix platform."""
    def action(r: PluginRepo) -> List[Dict[str, str]]:
        return [
            {'platform': platform, 'url': url}
            for entry in r.artifact_urls(build)
            for platform, url in entry.items()
        ]

    results = _for_each_repo(ctx, [repo], action)
    _finish(ctx, [row for rows in results for row in rows], pretty)


@cli.command('metrics')
@click.argument('repos', nargs=-1, required=True)
@click.pass_context
@handle_errors
def metrics_cmd(ctx, repos):
    """Print weekly traffic and release download counts."""
    results = _for_each_repo(ctx, repos, lambda repo: repo.metrics())
    _finish(ctx, results)


def main():
    cli()

if __name__ == "__main__":
    main()
