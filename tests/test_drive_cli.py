"""Tests for gog drive commands."""

import json

import pytest
from typer.testing import CliRunner

from gogcli.cli import app
from gogcli.commands.drive import build_list_query
from tests.fakes import http_error

runner = CliRunner()

ACCOUNT = ["-a", "me@example.com"]


@pytest.fixture
def drive(services):
    return services.service("drive")


class TestBuildListQuery:
    def test_parent_only(self):
        assert build_list_query("root", "") == "'root' in parents and trashed = false"

    def test_extra_query_is_grouped(self):
        assert build_list_query("abc", "name contains 'x' or starred") == (
            "'abc' in parents and trashed = false and (name contains 'x' or starred)"
        )

    def test_parent_quotes_escaped(self):
        assert build_list_query("it's", "").startswith("'it\\'s' in parents")


class TestLs:
    def test_json(self, adapters, drive):
        drive.files().list().execute.return_value = {
            "files": [{"id": "f1", "name": "Report", "size": "2048"}],
            "nextPageToken": "n",
        }

        result = runner.invoke(app, [*ACCOUNT, "--json", "drive", "ls", "--parent", "folder1"], obj=adapters)

        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["nextPageToken"] == "n"
        kwargs = drive.files().list.call_args.kwargs
        assert kwargs["q"] == "'folder1' in parents and trashed = false"
        assert "pageToken" not in kwargs

    def test_page_token_forwarded(self, adapters, drive):
        drive.files().list().execute.return_value = {"files": []}

        runner.invoke(app, [*ACCOUNT, "--json", "drive", "ls", "--page", "tok"], obj=adapters)

        assert drive.files().list.call_args.kwargs["pageToken"] == "tok"

    def test_plain_sizes(self, adapters, drive):
        drive.files().list().execute.return_value = {
            "files": [
                {"id": "d1", "name": "Folder", "mimeType": "application/vnd.google-apps.folder"},
                {"id": "f1", "name": "Report", "size": "2048", "modifiedTime": "2025-01-01T00:00:00Z"},
            ]
        }

        result = runner.invoke(app, [*ACCOUNT, "--plain", "drive", "ls"], obj=adapters)

        assert result.stdout.splitlines() == [
            "ID\tNAME\tSIZE\tMODIFIED",
            "d1\tFolder\t-\t",
            "f1\tReport\t2.0 KB\t2025-01-01T00:00:00Z",
        ]

    def test_select_projects_each_file(self, adapters, drive):
        drive.files().list().execute.return_value = {"files": [{"id": "f1", "name": "Report"}]}

        result = runner.invoke(
            app, [*ACCOUNT, "--json", "--results-only", "--select", "name", "drive", "ls"], obj=adapters
        )

        assert json.loads(result.stdout) == [{"name": "Report"}]

    def test_permission_denied(self, adapters, drive):
        drive.files().list().execute.side_effect = http_error(403, "insufficientPermissions", "forbidden")

        result = runner.invoke(app, [*ACCOUNT, "drive", "ls"], obj=adapters)

        assert result.exit_code == 6
        assert "Error:" in result.output


class TestDelete:
    def test_trash_by_default(self, adapters, drive):
        result = runner.invoke(app, [*ACCOUNT, "--json", "-y", "drive", "delete", "f1"], obj=adapters)

        assert json.loads(result.stdout) == {"deleted": True, "trashed": True, "id": "f1"}
        drive.files().update.assert_called_with(fileId="f1", body={"trashed": True}, supportsAllDrives=True)
        drive.files().delete.assert_not_called()

    def test_permanent(self, adapters, drive):
        result = runner.invoke(
            app, [*ACCOUNT, "--json", "-y", "drive", "delete", "f1", "--permanent"], obj=adapters
        )

        assert json.loads(result.stdout) == {"deleted": True, "trashed": False, "id": "f1"}
        drive.files().delete.assert_called_with(fileId="f1", supportsAllDrives=True)

    def test_missing_file(self, adapters, drive):
        drive.files().update().execute.side_effect = http_error(404)

        result = runner.invoke(app, [*ACCOUNT, "--json", "-y", "drive", "delete", "f1"], obj=adapters)

        assert result.exit_code == 0
        assert json.loads(result.stdout)["deleted"] is False

    def test_dry_run(self, adapters, services):
        result = runner.invoke(app, [*ACCOUNT, "--json", "-n", "drive", "delete", "f1", "--permanent"], obj=adapters)

        assert json.loads(result.stdout)["request"] == {"file_id": "f1", "permanent": True}
        assert services.builds == []
