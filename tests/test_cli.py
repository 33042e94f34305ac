"""Tests for CLI argument dispatch."""

import pytest

from repolens.presentation import cli


class TestMain:

    def test_no_arguments_prints_usage(self, monkeypatch, capsys):
        monkeypatch.setattr(cli.sys, "argv", ["repolens"])

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        assert "Usage: repolens" in capsys.readouterr().out

    def test_wrong_arguments(self, monkeypatch, capsys):
        monkeypatch.setattr(cli.sys, "argv", ["repolens", "index", "only-project"])
        monkeypatch.setattr(cli, "configure_container", lambda s: None)

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 1
        assert "Unknown command or wrong arguments" in capsys.readouterr().out

    def test_domain_errors_exit_with_code_2(self, monkeypatch):
        async def failing_index(project_id, repo_ref, replace=False):
            from repolens.exceptions import RepositoryFetchError
            raise RepositoryFetchError("not found")

        monkeypatch.setattr(cli.sys, "argv", ["repolens", "index", "proj", "octo/hello", "--replace"])
        monkeypatch.setattr(cli, "configure_container", lambda s: None)
        monkeypatch.setattr(cli, "cmd_index", failing_index)

        with pytest.raises(SystemExit) as exc_info:
            cli.main()

        assert exc_info.value.code == 2

    def test_commits_command(self, monkeypatch, capsys):
        from datetime import datetime, timezone

        from repolens.core.models.commit import Commit

        class StubCommitService:
            async def poll(self, project_id, repo_ref, credentials=None):
                return [
                    Commit(
                        hash="abcdef1234567890",
                        message="Fix login redirect\n\nbody",
                        author_name="Ada",
                        author_avatar="",
                        date=datetime(2024, 5, 2, tzinfo=timezone.utc),
                        summary="* Fixed the redirect after login [src/auth.ts]",
                    )
                ]

        monkeypatch.setattr(cli.sys, "argv", ["repolens", "commits", "proj", "octo/hello"])
        monkeypatch.setattr(cli, "configure_container", lambda s: None)
        monkeypatch.setattr(cli.container, "resolve", lambda interface: StubCommitService())

        cli.main()

        out = capsys.readouterr().out
        assert "abcdef1  2024-05-02  Ada: Fix login redirect" in out
        assert "* Fixed the redirect after login [src/auth.ts]" in out
