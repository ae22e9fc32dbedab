"""Tests for the CLI entry point."""

import subprocess
from unittest.mock import MagicMock

import yaml
from click.testing import CliRunner
from github import GithubException

from prtriage_cli.auth import resolve_github_token
from prtriage_cli.cli import main
from prtriage_core.config import TriageConfig
from prtriage_core.errors import ActionFailure, EmptyDiff
from prtriage_core.models import PullRequestRef


def _make_config(**overrides):
    values = {"openrouter_api_key": "key"}
    values.update(overrides)
    return TriageConfig(**values)


def _patch_common(mocker, config=None, token="tok"):
    """Patch load_config and resolve_github_token for most tests."""
    cfg = config or _make_config()
    load = mocker.patch("prtriage_core.config.load_config", return_value=cfg)
    mocker.patch("prtriage_cli.auth.resolve_github_token", return_value=token)
    return cfg, load


class TestCLIValidation:
    def test_missing_github_token(self, mocker):
        _patch_common(mocker, token=None)
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "GITHUB_TOKEN" in result.output

    def test_missing_openrouter_key(self, mocker):
        _patch_common(mocker, config=_make_config(openrouter_api_key=None))
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "OPENROUTER_API_KEY" in result.output

    def test_missing_anthropic_key(self, mocker):
        _patch_common(mocker, config=_make_config(provider="anthropic"))
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code != 0
        assert "ANTHROPIC_API_KEY" in result.output

    def test_malformed_repo_slug(self, mocker):
        _patch_common(mocker)
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review")
        result = CliRunner().invoke(main, ["review", "--repo", "just-a-name", "--pr", "1"])
        assert result.exit_code != 0
        assert "owner/name" in result.output
        mock_run.assert_not_called()

    def test_non_positive_pr_number(self, mocker):
        _patch_common(mocker)
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review")
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "0"])
        assert result.exit_code != 0
        mock_run.assert_not_called()


class TestCLIRunReview:
    def test_calls_run_review_with_correct_args(self, mocker):
        cfg, _ = _patch_common(mocker)
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review", return_value=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "42", "--yes"])

        assert result.exit_code == 0
        mock_run.assert_called_once()
        args, kwargs = mock_run.call_args
        assert args[0] == PullRequestRef("owner", "repo", 42)
        assert args[1] is cfg
        assert kwargs["auto_confirm"] is True
        assert kwargs["shadow"] is False
        assert cfg.github_token == "tok"

    def test_shadow_flag_passed_through(self, mocker):
        _patch_common(mocker)
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review", return_value=None)
        CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--shadow"])
        assert mock_run.call_args.kwargs["shadow"] is True

    def test_shadow_runs_without_token(self, mocker):
        _patch_common(mocker, token=None)
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review", return_value=None)
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--shadow"])
        assert result.exit_code == 0
        mock_run.assert_called_once()

    def test_overrides_forwarded_to_load_config(self, mocker):
        _, load = _patch_common(mocker)
        mocker.patch("prtriage_cli.commands.review.run_review", return_value=None)
        CliRunner().invoke(
            main,
            [
                "--config",
                "custom.yml",
                "review",
                "--repo",
                "owner/repo",
                "--pr",
                "1",
                "--model",
                "x/y",
                "--diff-source",
                "mcp",
                "--instructions",
                "Be strict.",
            ],
        )
        args, kwargs = load.call_args
        assert args[0] == "custom.yml"
        overrides = kwargs["cli_overrides"]
        assert overrides["model"] == "x/y"
        assert overrides["diff_source"] == "mcp"
        assert overrides["instructions"] == "Be strict."
        assert overrides["provider"] is None

    def test_fatal_error_exits_non_zero(self, mocker):
        _patch_common(mocker)
        mocker.patch("prtriage_cli.commands.review.run_review", side_effect=EmptyDiff("owner/repo#1"))
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--yes"])
        assert result.exit_code == 1
        assert "Error analyzing PR owner/repo#1" in result.output
        assert "no content" in result.output

    def test_comment_failure_exits_non_zero(self, mocker):
        _patch_common(mocker)
        mocker.patch(
            "prtriage_cli.commands.review.run_review",
            side_effect=ActionFailure("comment", "403 Resource not accessible"),
        )
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--yes"])
        assert result.exit_code == 1
        assert "comment failed" in result.output

    def test_missing_instructions_file_exits_non_zero(self, mocker):
        _patch_common(mocker, config=_make_config(instructions_file="nope.md"))
        get_source = mocker.patch("prtriage_core.reviewer.get_diff_source")
        mocker.patch("prtriage_core.reviewer.get_reviewer")
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1", "--yes"])
        assert result.exit_code == 1
        assert "Instructions file not found" in result.output
        get_source.return_value.fetch.assert_not_called()

    def test_non_numeric_config_value_is_usage_error(self, mocker):
        _patch_common(mocker, config=_make_config(temperature="warm"))
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review")
        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo", "--pr", "1"])
        assert result.exit_code == 2
        assert "temperature must be a number" in result.output
        mock_run.assert_not_called()


class TestCLIInteractive:
    def test_lists_open_prs(self, mocker):
        _patch_common(mocker)
        mocker.patch("prtriage_cli.commands.review.get_repo", return_value=MagicMock())
        mock_pr = MagicMock()
        mock_pr.number = 7
        mock_pr.title = "Fix login bug"
        mocker.patch("prtriage_cli.commands.review.get_pull_requests", return_value=[mock_pr])
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review", return_value=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo"], input="7\n")

        assert "#7" in result.output
        assert "Fix login bug" in result.output
        assert mock_run.call_args.args[0].number == 7

    def test_no_open_prs_exits_early(self, mocker):
        _patch_common(mocker)
        mocker.patch("prtriage_cli.commands.review.get_repo", return_value=MagicMock())
        mocker.patch("prtriage_cli.commands.review.get_pull_requests", return_value=[])
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review", return_value=None)

        result = CliRunner().invoke(main, ["review", "--repo", "owner/repo"])

        assert "No open pull requests" in result.output
        mock_run.assert_not_called()

    def test_listing_failure_exits_with_message(self, mocker):
        _patch_common(mocker)
        mocker.patch(
            "prtriage_cli.commands.review.get_repo",
            side_effect=GithubException(404, {"message": "Not Found"}, None),
        )
        mock_run = mocker.patch("prtriage_cli.commands.review.run_review")

        result = CliRunner().invoke(main, ["review", "--repo", "owner/missing"])

        assert result.exit_code == 1
        assert "Could not list pull requests for owner/missing: 404 Not Found" in result.output
        mock_run.assert_not_called()


class TestInit:
    def test_writes_config_and_workflow(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init", "--yes"])
            assert result.exit_code == 0
            config = yaml.safe_load(open(".prtriage.yml").read())
            assert config == {"provider": "openai", "label": "needs-review"}
            workflow = open(".github/workflows/prtriage.yml").read()
            assert "OPENROUTER_API_KEY: ${{ secrets.OPENROUTER_API_KEY }}" in workflow
            assert "--pr ${{ github.event.pull_request.number }}" in workflow
            assert "pip install \"prtriage==" in workflow

    def test_interactive_anthropic_without_workflow(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init"], input="anthropic\nclaude-x\nai-flagged\nn\n")
            assert result.exit_code == 0
            config = yaml.safe_load(open(".prtriage.yml").read())
            assert config == {"provider": "anthropic", "label": "ai-flagged", "model": "claude-x"}
            assert not __import__("os").path.exists(".github/workflows/prtriage.yml")

    def test_preserves_existing_keys(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            with open(".prtriage.yml", "w") as f:
                f.write("merge_method: rebase\n")
            runner.invoke(main, ["init", "--yes"])
            config = yaml.safe_load(open(".prtriage.yml").read())
            assert config["merge_method"] == "rebase"
            assert config["provider"] == "openai"


class TestResolveGithubToken:
    def test_env_var_first(self, monkeypatch, mocker):
        monkeypatch.setenv("GITHUB_TOKEN", "env-token")
        run = mocker.patch("prtriage_cli.auth.subprocess.run")
        assert resolve_github_token() == "env-token"
        run.assert_not_called()

    def test_personal_access_token_name(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.setenv("GITHUB_PERSONAL_ACCESS_TOKEN", "pat")
        assert resolve_github_token() == "pat"

    def test_gh_cli_fallback(self, monkeypatch, mocker):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN", raising=False)
        mocker.patch(
            "prtriage_cli.auth.subprocess.run",
            return_value=subprocess.CompletedProcess(args=[], returncode=0, stdout="gh-token\n", stderr=""),
        )
        assert resolve_github_token() == "gh-token"

    def test_none_when_gh_missing(self, monkeypatch, mocker):
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        monkeypatch.delenv("GITHUB_PERSONAL_ACCESS_TOKEN", raising=False)
        mocker.patch("prtriage_cli.auth.subprocess.run", side_effect=FileNotFoundError())
        assert resolve_github_token() is None
