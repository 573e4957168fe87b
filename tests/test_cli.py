"""Tests for the command-line interface."""

import json
from datetime import datetime

from typer.testing import CliRunner

from repo_digest import cli
from repo_digest.core.types import RepositoryChangeSet


runner = CliRunner()


def test_publish_rejects_malformed_repository(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = runner.invoke(cli.app, ["publish", "--repo", "not-a-url", "--github-token", "gh"])
    assert result.exit_code == 1
    assert "Invalid repository reference" in result.output


def test_publish_requires_github_token(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    result = runner.invoke(cli.app, ["publish", "--repo", "https://github.com/octo/widgets", "--preview"])
    assert result.exit_code == 1
    assert "GitHub token is not configured" in result.output


def test_preview_writes_article(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    def fake_collect(self, repo, since):
        return RepositoryChangeSet(repo=repo, since=since)

    monkeypatch.setattr(cli.PublishPipeline, "_collect", fake_collect)
    output = tmp_path / "out" / "article.html"
    result = runner.invoke(
        cli.app,
        [
            "publish",
            "--owner",
            "octo",
            "--name",
            "widgets",
            "--github-token",
            "gh",
            "--preview",
            "--output",
            str(output),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Preview only" in result.output
    assert "Recent updates to widgets" in output.read_text(encoding="utf-8")


def test_setup_writes_credentials_file(tmp_path):
    path = tmp_path / "creds.json"
    result = runner.invoke(
        cli.app,
        ["setup", "--path", str(path)],
        input="gh-token\nhttps://blog.test\neditor\napp-pass\n",
    )
    assert result.exit_code == 0, result.output
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["github_token"] == "gh-token"
    assert data["wordpress_url"] == "https://blog.test"


def test_since_without_offset_is_read_as_local_time(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    seen = []

    def fake_collect(self, repo, since):
        seen.append(since)
        return RepositoryChangeSet(repo=repo, since=since)

    monkeypatch.setattr(cli.PublishPipeline, "_collect", fake_collect)
    result = runner.invoke(
        cli.app,
        [
            "publish",
            "--repo",
            "https://github.com/octo/widgets",
            "--github-token",
            "gh",
            "--since",
            "2024-05-01",
            "--preview",
        ],
    )
    assert result.exit_code == 0, result.output
    assert seen == [datetime(2024, 5, 1).astimezone()]
    assert seen[0].tzinfo is not None
