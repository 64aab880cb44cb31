"""Git URL parsing, URL building and local repository inspection."""

from ghux.git.inspector import GitRepoInspector
from ghux.git.url_builder import URLBuilder
from ghux.git.url_parser import URLParser, parse_git_url

__all__ = ["GitRepoInspector", "URLBuilder", "URLParser", "parse_git_url"]
