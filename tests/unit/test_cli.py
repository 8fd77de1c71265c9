"""Tests for command-line argument parsing."""

from pathlib import Path

import pytest

from dashsync.cli import parse_args


class TestParseArgs:
    """Tests for parse_args."""

    def test_providers_command(self) -> None:
        parsed = parse_args(["providers"])

        assert parsed.command == "providers"
        assert parsed.env_file is None
        assert parsed.log_level is None
        assert parsed.oauth_config is None

    def test_global_options(self) -> None:
        parsed = parse_args(
            [
                "--env-file",
                "prod.env",
                "--log-level",
                "DEBUG",
                "--oauth-config",
                "oauth.yaml",
                "providers",
            ]
        )

        assert parsed.env_file == Path("prod.env")
        assert parsed.log_level == "DEBUG"
        assert parsed.oauth_config == Path("oauth.yaml")

    def test_mirror_defaults(self) -> None:
        parsed = parse_args(["mirror", "ops.json", "--provider", "gitlab", "--org-id", "3"])

        assert parsed.command == "mirror"
        assert parsed.file == Path("ops.json")
        assert parsed.provider == "gitlab"
        assert parsed.org_id == 3
        assert parsed.folder is None
        assert parsed.action == "create"
        assert parsed.message == ""
        assert parsed.token is None

    def test_mirror_options(self) -> None:
        parsed = parse_args(
            [
                "mirror",
                "ops.json",
                "--provider",
                "gitlab",
                "--org-id",
                "1",
                "--folder",
                "Platform",
                "--action",
                "update",
                "--message",
                "tune alerts",
                "--token",
                "glpat-abc",
            ]
        )

        assert parsed.folder == "Platform"
        assert parsed.action == "update"
        assert parsed.message == "tune alerts"
        assert parsed.token == "glpat-abc"

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            parse_args([])

    def test_invalid_action(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(
                ["mirror", "a.json", "--provider", "gitlab", "--org-id", "1", "--action", "move"]
            )

    def test_mirror_requires_provider(self) -> None:
        with pytest.raises(SystemExit):
            parse_args(["mirror", "a.json", "--org-id", "1"])
