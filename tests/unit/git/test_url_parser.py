"""Tests for the URL parser."""

import pytest

from ghux.core.exceptions import ParseFailure
from ghux.core.models.platform import PlatformKind
from ghux.git.url_parser import URLParser, parse_git_url


@pytest.fixture
def parser(registry) -> URLParser:
    return URLParser(registry)


@pytest.mark.unit
class TestShortForm:
    """Tests for owner/repo[:ref]/path inputs."""

    def test_default_ref(self, parser: URLParser) -> None:
        ref = parser.parse("octo/hello/src/main.py")
        assert ref.platform == PlatformKind.GITHUB
        assert ref.domain == "github.com"
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("octo", "hello", "main", "src/main.py")
        assert ref.precomputed_raw_url is None

    def test_explicit_ref(self, parser: URLParser) -> None:
        ref = parser.parse("octo/hello:v1.2/docs/README.md")
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("octo", "hello", "v1.2", "docs/README.md")

    def test_only_first_colon_separates_ref(self, parser: URLParser) -> None:
        ref = parser.parse("octo/hello:dev/a:b.txt")
        assert ref.ref == "dev"
        assert ref.path == "a:b.txt"

    def test_dotted_owner_stays_short_form(self, parser: URLParser) -> None:
        ref = parser.parse("acme.dev/widgets/README.md")
        assert ref.platform == PlatformKind.GITHUB
        assert ref.domain == "github.com"
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("acme.dev", "widgets", "main", "README.md")
        assert parser.looks_like_git_url("acme.dev/widgets/README.md") is True

    def test_platform_named_owner_stays_short_form(self, parser: URLParser) -> None:
        ref = parser.parse("gitlab-org/cli/README.md")
        assert ref.platform == PlatformKind.GITHUB
        assert ref.owner == "gitlab-org"

    @pytest.mark.parametrize("text", ["", "octo", "octo/hello", "octo/hello/", ":x/y", "octo/hello:/a"])
    def test_rejected(self, parser: URLParser, text: str) -> None:
        assert parser.parse(text) is None


@pytest.mark.unit
class TestGithub:
    """Tests for GitHub web and raw URLs."""

    def test_blob(self, parser: URLParser) -> None:
        ref = parser.parse("https://github.com/octo/hello/blob/dev/src/app.py")
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("octo", "hello", "dev", "src/app.py")
        assert ref.is_directory is False

    def test_tree_is_directory(self, parser: URLParser) -> None:
        ref = parser.parse("https://github.com/octo/hello/tree/main/docs")
        assert ref.is_directory is True
        assert ref.path == "docs"

    def test_tree_root(self, parser: URLParser) -> None:
        ref = parser.parse("https://github.com/octo/hello/tree/v2")
        assert ref.is_directory is True
        assert ref.path is None
        assert ref.ref == "v2"

    def test_bare_repository(self, parser: URLParser) -> None:
        ref = parser.parse("https://github.com/octo/hello.git")
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("octo", "hello", "main", None)

    def test_scheme_less_host(self, parser: URLParser) -> None:
        ref = parser.parse("github.com/octo/hello/blob/main/a.txt")
        assert ref.domain == "github.com"
        assert ref.path == "a.txt"

    def test_raw_host(self, parser: URLParser) -> None:
        url = "https://raw.githubusercontent.com/octo/hello/main/docs/a.md"
        ref = parser.parse(url)
        assert ref.domain == "github.com"
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("octo", "hello", "main", "docs/a.md")
        assert ref.precomputed_raw_url == url

    def test_raw_host_refs_heads(self, parser: URLParser) -> None:
        ref = parser.parse("https://raw.githubusercontent.com/octo/hello/refs/heads/dev/a.md")
        assert ref.ref == "dev"
        assert ref.path == "a.md"

    def test_enterprise_domain_keeps_port(self, parser: URLParser) -> None:
        ref = parser.parse("https://ghe.github.com:8443/team/tool/blob/main/x.py")
        assert ref.domain == "ghe.github.com:8443"

    def test_ssh_remote(self, parser: URLParser) -> None:
        ref = parser.parse("git@github.com:octo/hello.git")
        assert ref.platform == PlatformKind.GITHUB
        assert (ref.owner, ref.repo, ref.path) == ("octo", "hello", None)

    def test_owner_only_is_rejected(self, parser: URLParser) -> None:
        assert parser.parse("https://github.com/octo") is None


@pytest.mark.unit
class TestGitlab:
    """Tests for GitLab URLs."""

    def test_blob(self, parser: URLParser) -> None:
        ref = parser.parse("https://gitlab.com/group/proj/-/blob/main/README.md")
        assert ref.platform == PlatformKind.GITLAB
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("group", "proj", "main", "README.md")

    def test_nested_groups(self, parser: URLParser) -> None:
        ref = parser.parse("https://gitlab.com/a/b/c/proj/-/tree/dev/src")
        assert ref.owner == "a/b/c"
        assert ref.repo == "proj"
        assert ref.is_directory is True

    def test_raw_is_precomputed(self, parser: URLParser) -> None:
        url = "https://gitlab.example.com/group/proj/-/raw/main/a.txt"
        ref = parser.parse(url)
        assert ref.domain == "gitlab.example.com"
        assert ref.precomputed_raw_url == url


@pytest.mark.unit
class TestBitbucketAndGitea:
    """Tests for Bitbucket and Gitea URLs."""

    def test_bitbucket_src(self, parser: URLParser) -> None:
        ref = parser.parse("https://bitbucket.org/team/repo/src/main/lib/util.py")
        assert ref.platform == PlatformKind.BITBUCKET
        assert (ref.owner, ref.repo, ref.ref, ref.path) == ("team", "repo", "main", "lib/util.py")
        assert ref.is_directory is False

    def test_bitbucket_src_root_is_directory(self, parser: URLParser) -> None:
        ref = parser.parse("https://bitbucket.org/team/repo/src/main/")
        assert ref.is_directory is True
        assert ref.path is None

    def test_gitea_src_branch(self, parser: URLParser) -> None:
        ref = parser.parse("https://codeberg.org/user/proj/src/branch/main/docs/a.md")
        assert ref.platform == PlatformKind.GITEA
        assert (ref.ref, ref.path) == ("main", "docs/a.md")

    def test_gitea_raw_is_precomputed(self, parser: URLParser) -> None:
        url = "https://gitea.com/user/proj/raw/branch/main/a.md"
        ref = parser.parse(url)
        assert ref.precomputed_raw_url == url


@pytest.mark.unit
class TestGenericAndErrors:
    """Tests for unknown hosts and failures."""

    def test_other_host(self, parser: URLParser) -> None:
        ref = parser.parse("https://git.example.com/owner/repo/whatever/else")
        assert ref.platform == PlatformKind.OTHER
        assert (ref.owner, ref.repo, ref.path) == ("owner", "repo", None)

    @pytest.mark.parametrize(
        "text",
        ["ftp://github.com/octo/hello", "https://github.com:notaport/o/r", "https:///o/r"],
    )
    def test_unparseable(self, parser: URLParser, text: str) -> None:
        assert parser.parse(text) is None

    def test_parse_or_raise(self, parser: URLParser) -> None:
        with pytest.raises(ParseFailure):
            parser.parse_or_raise("nope")

    def test_module_function(self) -> None:
        assert parse_git_url("octo/hello/a.txt").path == "a.txt"


@pytest.mark.unit
class TestLooksLikeGitUrl:
    """Tests for routing between Git and generic downloads."""

    @pytest.mark.parametrize(
        "text",
        [
            "https://github.com/octo/hello/blob/main/a",
            "https://raw.githubusercontent.com/o/r/main/a",
            "gitlab.com/g/p",
            "git@github.com:o/r.git",
            "octo/hello/a.txt",
            "https://git.example.com/o/r/src/main/a",
        ],
    )
    def test_git_like(self, parser: URLParser, text: str) -> None:
        assert parser.looks_like_git_url(text) is True

    @pytest.mark.parametrize("text", ["https://example.com/file.zip", "octo/hello", "example.com/x.tar.gz"])
    def test_not_git_like(self, parser: URLParser, text: str) -> None:
        assert parser.looks_like_git_url(text) is False


@pytest.mark.unit
class TestDocumentedProperties:
    """Exact behaviours callers rely on."""

    def test_git_suffix_stripping(self, parser: URLParser) -> None:
        with_suffix = parser.parse("https://github.com/acme/widgets.git/blob/main/a.txt")
        without = parser.parse("https://github.com/acme/widgets/blob/main/a.txt")
        assert with_suffix.repo == without.repo == "widgets"

    def test_query_and_fragment_are_dropped(self, parser: URLParser) -> None:
        ref = parser.parse("https://github.com/acme/widgets/blob/main/docs/a.md?plain=1#L10")
        assert ref.path == "docs/a.md"

    def test_percent_encoded_path_is_decoded(self, parser: URLParser) -> None:
        ref = parser.parse("https://github.com/acme/widgets/tree/main/my%20dir")
        assert ref.path == "my dir"
        file_ref = parser.parse("https://github.com/acme/widgets/blob/main/docs/caf%C3%A9.md")
        assert file_ref.path == "docs/caf\u00e9.md"

    def test_unknown_shape_returns_none(self, parser: URLParser) -> None:
        assert parser.parse("https://example.com/not-a-repo-shape") is None
