"""CLI for ghux."""

import asyncio
from collections.abc import Callable
from pathlib import Path

import click
import structlog
from pydantic import ValidationError

from ghux import __version__
from ghux.config.logging import configure_logging
from ghux.config.settings import Settings, get_settings
from ghux.core.exceptions import ConfigurationError, GhuxError
from ghux.core.models.download import DownloadReport, FileInfo
from ghux.download.http import HttpClient, create_async_client
from ghux.git.inspector import GitRepoInspector
from ghux.git.url_builder import URLBuilder
from ghux.git.url_parser import URLParser
from ghux.platforms.registry import PlatformRegistry
from ghux.services.download import DownloadOptions, DownloadService
from ghux.utils.files import format_file_size

logger = structlog.get_logger(__name__)


def run_async(coro):
    """Run an async function synchronously, reporting ghux errors."""
    try:
        return asyncio.run(coro)
    except GhuxError as exc:
        logger.debug("Command failed", error=exc.message, details=exc.details)
        click.echo(f"Error: {exc.message}", err=True)
        return None


def _load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc


def _parse_headers(ctx, param, values: tuple[str, ...]) -> dict[str, str]:
    headers = {}
    for value in values:
        name, sep, content = value.partition(":")
        if not sep or not name.strip():
            raise click.BadParameter(f"expected 'Name: value', got {value!r}")
        headers[name.strip()] = content.strip()
    return headers


def _confirmer(yes: bool) -> Callable[[str], bool]:
    if yes:
        return lambda message: True
    return lambda message: click.confirm(message, default=True)


async def _run_with_service(
    settings: Settings,
    action: Callable[[DownloadService], object],
    yes: bool = False,
    headers: dict[str, str] | None = None,
    user_agent: str | None = None,
    follow_redirects: bool = True,
):
    """Create the HTTP client and download service, run ``action``, then clean up."""
    registry = PlatformRegistry.from_settings(settings)
    client = create_async_client(settings)
    try:
        http = HttpClient(
            client,
            settings,
            registry,
            extra_headers=headers,
            user_agent=user_agent,
        )
        service = DownloadService(
            http,
            settings,
            registry,
            confirm=_confirmer(yes),
            follow_redirects=follow_redirects,
        )
        return await action(service)
    finally:
        await client.aclose()


def _print_file_info(info: FileInfo) -> None:
    click.echo("File information:")
    click.echo(f"  Name:          {info.filename}")
    click.echo(f"  Size:          {format_file_size(info.size)}")
    if info.content_type:
        click.echo(f"  Type:          {info.content_type}")
    if info.last_modified:
        click.echo(f"  Last modified: {info.last_modified}")


def _print_report(report: DownloadReport) -> None:
    root_failures = [failure for failure in report.listing_failures if failure.depth == 0]
    other_failures = [failure for failure in report.listing_failures if failure.depth > 0]

    for failure in root_failures:
        click.echo(f"Warning: could not list directory '{failure.path or '/'}': {failure.reason}", err=True)
    if other_failures:
        click.echo(f"Warning: {len(other_failures)} directories could not be listed:", err=True)
        for failure in other_failures:
            click.echo(f"  - {failure.path}: {failure.reason}", err=True)

    if report.cancelled:
        click.echo("Cancelled.")
        return
    if report.found == 0:
        if not root_failures:
            click.echo("No files found.")
        return
    if report.declined:
        click.echo("Cancelled.")
        return

    for result in report.results:
        if result.success:
            click.echo(f"  ✓ {result.file_path} ({format_file_size(result.size or 0)})")
        else:
            click.echo(f"  ✗ {result.url}: {result.error}", err=True)
    click.echo(f"Downloaded {report.successful} of {len(report.results)} files")


def _apply(func, decorators):
    for decorator in reversed(decorators):
        func = decorator(func)
    return func


def ref_options(func):
    """Branch, tag and commit overrides (commit wins over tag, tag over branch)."""
    return _apply(
        func,
        [
            click.option("--branch", "-b", help="Branch to download from"),
            click.option("--tag", "-t", help="Tag to download from"),
            click.option("--commit", "-c", help="Commit to download from"),
        ],
    )


def transfer_options(func):
    """Options shared by the download commands."""
    decorators = [
        click.option("--dir", "-d", "output_dir", help="Output directory"),
        click.option("--overwrite", is_flag=True, help="Overwrite existing files"),
        click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompts"),
        click.option("--user-agent", "-A", help="Custom User-Agent header"),
        click.option(
            "--header", "-H", "headers", multiple=True, callback=_parse_headers,
            help="Extra request header ('Name: value'), repeatable",
        ),
    ]
    return _apply(func, decorators)


@click.group()
@click.version_option(__version__, "--version", "-V", prog_name="ghux")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging")
def cli(verbose: bool) -> None:
    """ghux: download files and directories from Git hosting platforms."""
    try:
        log_level = "DEBUG" if verbose else _load_settings().log_level
    except ConfigurationError as exc:
        raise click.ClickException(exc.message) from exc
    configure_logging(log_level=log_level)


@cli.command()
@click.argument("urls", nargs=-1)
@click.option("--output", "-o", help="Output file name")
@click.option("--preserve-path", is_flag=True, help="Keep the repository directory structure")
@click.option("--file-list", "-f", type=click.Path(dir_okay=False), help="Text file with one URL per line")
@click.option("--pattern", help="Glob pattern of files to download, e.g. '**/*.md'")
@click.option("--exclude", help="Glob pattern of files to skip")
@click.option("--depth", type=click.IntRange(min=0), help="Maximum directory depth")
@click.option("--info", is_flag=True, help="Show file information before downloading")
@click.option("--no-redirect", is_flag=True, help="Do not follow redirects")
@ref_options
@transfer_options
def dl(
    urls: tuple[str, ...],
    output: str | None,
    preserve_path: bool,
    file_list: str | None,
    pattern: str | None,
    exclude: str | None,
    depth: int | None,
    info: bool,
    no_redirect: bool,
    output_dir: str | None,
    branch: str | None,
    tag: str | None,
    commit: str | None,
    overwrite: bool,
    yes: bool,
    user_agent: str | None,
    headers: dict[str, str],
) -> None:
    """Download files from GitHub, GitLab, Bitbucket, Gitea or any URL.

    Accepts web URLs, raw URLs and the short form owner/repo[:ref]/path.
    Directory URLs download the whole directory.
    """
    if not urls and not file_list:
        raise click.UsageError("Provide at least one URL or --file-list")
    if urls and file_list:
        raise click.UsageError("Pass URLs or --file-list, not both")
    if pattern and len(urls) != 1:
        raise click.UsageError("--pattern needs exactly one repository URL")
    if exclude and not pattern:
        raise click.UsageError("--exclude is only valid together with --pattern")

    options = DownloadOptions(
        output=output,
        output_dir=output_dir,
        preserve_path=preserve_path,
        branch=branch,
        tag=tag,
        commit=commit,
        depth=depth,
        overwrite=overwrite,
    )

    async def _dl(service: DownloadService) -> DownloadReport | None:
        if file_list:
            return await service.download_file_list(file_list, options)
        if pattern:
            click.echo(f"Searching for files matching: {pattern}")
            return await service.download_pattern(urls[0], pattern, exclude, options)
        if len(urls) > 1:
            return await service.download_urls(list(urls), options)
        if info:
            _print_file_info(await service.file_info(urls[0], options))
            if not yes and not click.confirm("Download this file?", default=True):
                click.echo("Cancelled.")
                return None
        return await service.download_url(urls[0], options)

    report = run_async(
        _run_with_service(
            _load_settings(),
            _dl,
            yes=yes,
            headers=headers,
            user_agent=user_agent,
            follow_redirects=not no_redirect,
        )
    )
    if report is not None:
        _print_report(report)


@cli.command("dl-dir")
@click.argument("url")
@click.option("--depth", type=click.IntRange(min=0), help="Maximum directory depth")
@ref_options
@transfer_options
def dl_dir(
    url: str,
    depth: int | None,
    output_dir: str | None,
    branch: str | None,
    tag: str | None,
    commit: str | None,
    overwrite: bool,
    yes: bool,
    user_agent: str | None,
    headers: dict[str, str],
) -> None:
    """Download every file below a repository directory."""
    options = DownloadOptions(
        output_dir=output_dir,
        branch=branch,
        tag=tag,
        commit=commit,
        depth=depth,
        overwrite=overwrite,
    )

    async def _dl_dir(service: DownloadService) -> DownloadReport:
        return await service.download_directory(url, options)

    report = run_async(
        _run_with_service(_load_settings(), _dl_dir, yes=yes, headers=headers, user_agent=user_agent)
    )
    if report is not None:
        _print_report(report)


@cli.command("dl-release")
@click.argument("url")
@click.option("--asset", help="Only assets whose name contains this text")
@click.option("--version", "release_version", help="Release tag (default: latest)")
@transfer_options
def dl_release(
    url: str,
    asset: str | None,
    release_version: str | None,
    output_dir: str | None,
    overwrite: bool,
    yes: bool,
    user_agent: str | None,
    headers: dict[str, str],
) -> None:
    """Download assets of a GitHub release."""
    options = DownloadOptions(output_dir=output_dir, overwrite=overwrite)
    async def _dl_release(service: DownloadService):
        return await service.download_release(url, asset, release_version, options)

    outcome = run_async(
        _run_with_service(_load_settings(), _dl_release, yes=yes, headers=headers, user_agent=user_agent)
    )
    if outcome is None:
        return
    release, report = outcome
    click.echo(f"Release: {release.name or release.tag_name} ({release.tag_name})")
    if report.found == 0:
        click.echo("No matching assets found.")
        return
    _print_report(report)


@cli.command()
@click.argument("url")
@click.option("--branch", "-b", help="Override the ref")
def parse(url: str, branch: str | None) -> None:
    """Show how a URL is interpreted and the URLs derived from it."""
    registry = PlatformRegistry.from_settings(_load_settings())
    reference = URLParser(registry).parse(url)
    if reference is None:
        click.echo(f"Error: not a recognized Git reference: {url}", err=True)
        return
    if branch:
        reference = reference.with_ref(branch)

    builder = URLBuilder(registry)
    click.echo(f"Platform:  {registry.display_name(reference.platform)}")
    click.echo(f"Domain:    {reference.domain}")
    click.echo(f"Owner:     {reference.owner}")
    click.echo(f"Repo:      {reference.repo}")
    click.echo(f"Ref:       {reference.ref}")
    click.echo(f"Path:      {reference.path or '-'}")
    click.echo(f"Type:      {'directory' if reference.is_directory else 'file'}")
    click.echo(f"Web URL:   {builder.web_url(reference)}")
    for label, derive in (("Raw URL:  ", builder.raw_url), ("API URL:  ", builder.api_url)):
        try:
            click.echo(f"{label} {derive(reference)}")
        except GhuxError as exc:
            click.echo(f"{label} n/a ({exc.message})")


@cli.command()
@click.argument("repo_path", default=".")
@click.option("--remote", "-r", default="origin", help="Remote to inspect")
def detect(repo_path: str, remote: str) -> None:
    """Detect the hosting platform of a local Git repository."""
    repo_path_obj = Path(repo_path).resolve()
    registry = PlatformRegistry.from_settings(_load_settings())
    inspector = GitRepoInspector(repo_path_obj, registry)
    if not inspector.is_git_repo():
        click.echo(f"Error: Not a git repository: {repo_path_obj}", err=True)
        return

    remote_url = inspector.get_remote_url(remote)
    config = inspector.detect_platform(remote)
    host = registry.ssh_host(config)
    steps = registry.instructions(config.kind, host)

    click.echo(f"Repository: {repo_path_obj}")
    click.echo(f"Branch:     {inspector.get_current_branch()}")
    click.echo(f"Remote:     {remote_url or '(none)'}")
    click.echo(f"Platform:   {registry.display_name(config.kind)} ({host})")
    api_support = "yes" if registry.supports_feature(config.kind, "api", domain=host) else "no"
    click.echo(f"API:        {api_support}")
    click.echo("\nSetup:")
    click.echo(f"  SSH keys:  {steps['ssh_key_url']}")
    click.echo(f"  Tokens:    {steps['token_url']}")
    click.echo(f"  Test SSH:  {steps['ssh_test_command']}")


if __name__ == "__main__":
    cli()
