"""Tests for manifest parsing and the manifest store."""

import pytest

from reconverge.domain.manifest import (
    DEFAULT_RELEASE_PATTERN,
    ManifestError,
    PackageItem,
    ReleaseItem,
    RepositoryItem,
    TargetKind,
    default_directory,
    is_significant,
    parse_line,
    parse_manifest,
    parse_release,
    parse_repository,
    significant_lines,
)
from reconverge.infra.manifest_store import ManifestStore


class TestSignificantLines:
    """Tests for comment and blank-line filtering."""

    def test_blank_and_comment_lines_are_ignored(self):
        lines = ["", "   ", "# comment", "   # indented comment", "vim", "\t"]
        assert significant_lines(lines) == ["vim"]

    def test_order_and_duplicates_preserved(self):
        lines = ["b\n", "a\n", "b\n"]
        assert significant_lines(lines) == ["b", "a", "b"]

    def test_surrounding_whitespace_is_stripped(self):
        assert significant_lines(["  htop  \n"]) == ["htop"]

    def test_hash_inside_line_is_significant(self):
        assert is_significant("pkg#1")
        assert not is_significant("#pkg")


class TestPackageLines:
    """Tests for package manifest lines."""

    def test_sandbox_line_with_options(self):
        item = parse_line(TargetKind.SANDBOX_PACKAGE, "code --classic")
        assert item == PackageItem(name="code", options="--classic")

    def test_sandbox_line_without_options(self):
        item = parse_line(TargetKind.SANDBOX_PACKAGE, "foo")
        assert item.name == "foo"
        assert item.options is None

    def test_sandbox_line_keeps_all_flags(self):
        item = parse_line(TargetKind.SANDBOX_PACKAGE, "nvim --classic --edge")
        assert item.options == "--classic --edge"

    def test_system_package_line_is_taken_verbatim(self):
        item = parse_line(TargetKind.SYSTEM_PACKAGE, "build-essential")
        assert item == PackageItem(name="build-essential")

    def test_language_package_line_is_taken_verbatim(self):
        item = parse_line(TargetKind.LANGUAGE_PACKAGE, "streamdeck_ui")
        assert item.name == "streamdeck_ui"
        assert item.options is None


class TestRepositoryLines:
    """Tests for repository manifest lines."""

    def test_url_only_derives_directory(self):
        item = parse_repository("https://github.com/acme/tool.git")
        assert item == RepositoryItem(url="https://github.com/acme/tool.git", directory="tool")
        assert item.command is None

    def test_all_fields(self):
        item = parse_repository("https://github.com/acme/tool.git|mytool|make install")
        assert item.directory == "mytool"
        assert item.command == "make install"

    def test_command_may_contain_separator(self):
        item = parse_repository("https://x/a.git|a|echo one | tr a-z A-Z")
        assert item.command == "echo one | tr a-z A-Z"

    def test_empty_directory_field_uses_default(self):
        item = parse_repository("https://github.com/acme/tool|| ./install.sh")
        assert item.directory == "tool"
        assert item.command == "./install.sh"

    @pytest.mark.parametrize("url,expected", [
        ("https://github.com/acme/tool.git", "tool"),
        ("https://github.com/acme/tool", "tool"),
        ("https://github.com/acme/tool/", "tool"),
        ("git@github.com:acme/tool.git", "tool"),
        ("git@host:tool.git", "tool"),
    ])
    def test_default_directory(self, url, expected):
        assert default_directory(url) == expected

    @pytest.mark.parametrize("line", ["|dir", "https://x/a.git|..", "https://x/a.git|a/b"])
    def test_invalid_lines_raise(self, line):
        with pytest.raises(ManifestError):
            parse_repository(line)


class TestReleaseLines:
    """Tests for release manifest lines."""

    def test_defaults(self):
        item = parse_release("acme/tool")
        assert item.repo_id == "acme/tool"
        assert item.pattern == DEFAULT_RELEASE_PATTERN
        assert item.label == "tool"
        assert item.owner == "acme"
        assert item.name == "tool"

    def test_all_fields(self):
        item = parse_release(r"acme/tool|.*amd64\.deb|Acme Tool")
        assert item == ReleaseItem(repo_id="acme/tool", pattern=r".*amd64\.deb", label="Acme Tool")

    def test_configured_default_pattern(self):
        item = parse_release("acme/tool", default_pattern=r".*\.AppImage")
        assert item.pattern == r".*\.AppImage"

    @pytest.mark.parametrize("line", ["tool", "acme/tool/extra", "/tool", "acme/"])
    def test_bad_repo_id(self, line):
        with pytest.raises(ManifestError):
            parse_release(line)

    def test_bad_pattern(self):
        with pytest.raises(ManifestError) as exc_info:
            parse_release("acme/tool|*.deb")
        assert "pattern" in exc_info.value.reason

    def test_match_is_anchored_at_end(self):
        item = parse_release(r"acme/tool|.*amd64\.deb")
        assert item.matches("https://example.com/acme_1.0_amd64.deb")
        assert not item.matches("https://example.com/acme_1.0_amd64.deb.sha256")
        assert not item.matches("https://example.com/acme_1.0_x86.deb")

    def test_match_is_a_search_not_full_match(self):
        item = parse_release(r"acme/tool|amd64\.deb")
        assert item.matches("https://example.com/acme_amd64.deb")


class TestParseManifest:
    """Tests for whole-manifest parsing."""

    def test_invalid_lines_are_collected_not_raised(self):
        parsed = parse_manifest(TargetKind.RELEASE, ["acme/tool", "broken", "acme/other"])
        assert [item.repo_id for item in parsed.items] == ["acme/tool", "acme/other"]
        assert parsed.invalid == [("broken", "repository must be owner/name")]

    def test_empty_manifest_is_falsy(self):
        assert not parse_manifest(TargetKind.SYSTEM_PACKAGE, [])


class TestManifestStore:
    """Tests for ManifestStore."""

    def test_missing_manifest_is_empty(self, tmp_path):
        store = ManifestStore(tmp_path)
        assert store.load(TargetKind.SYSTEM_PACKAGE) == []
        assert not store.any_exists()

    def test_comment_only_manifest_has_no_lines(self, tmp_path):
        (tmp_path / "packages.apt").write_text("# nothing yet\n\n")
        store = ManifestStore(tmp_path)
        assert store.exists(TargetKind.SYSTEM_PACKAGE)
        assert store.any_exists()
        assert store.load(TargetKind.SYSTEM_PACKAGE) == []

    def test_load_and_parse(self, tmp_path):
        (tmp_path / "packages.snap").write_text("# snaps\ncode --classic\nvlc\n")
        store = ManifestStore(tmp_path)
        parsed = store.parse(TargetKind.SANDBOX_PACKAGE)
        assert [i.name for i in parsed.items] == ["code", "vlc"]
        assert parsed.items[0].options == "--classic"

    def test_filenames_override_by_kind_value(self, tmp_path):
        store = ManifestStore(tmp_path, filenames={'system_package': 'apt.txt'})
        assert store.path(TargetKind.SYSTEM_PACKAGE) == tmp_path / "apt.txt"
        assert store.path(TargetKind.RELEASE) == tmp_path / "releases.github"

    def test_from_config(self, config, manifest_dir):
        config['releases']['default_pattern'] = r".*\.rpm"
        store = ManifestStore.from_config(config)
        assert store.directory == manifest_dir
        (manifest_dir / "releases.github").write_text("acme/tool\n")
        assert store.parse(TargetKind.RELEASE).items[0].pattern == r".*\.rpm"
