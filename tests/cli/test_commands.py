"""Tests for the metrics-tree command line."""

import json

import pytest
from typer.testing import CliRunner

from metrics_tree.cli import app

runner = CliRunner()

FILES = {
    "billing/__init__.py": "",
    "billing/account.py": """
        class Account:
            def __init__(self):
                self.balance = 0

            def deposit(self, amount):
                if amount <= 0:
                    raise ValueError(amount)
                self.balance += amount
    """,
    "billing/invoice.py": """
        from billing.account import Account

        class Invoice:
            def charge(self, account: Account, total):
                account.deposit(-total)
    """,
}


@pytest.fixture
def project_root(make_project):
    return make_project(FILES)


class TestAnalyzeCommand:
    """Test ``metrics-tree analyze``."""

    def test_project_table(self, project_root):
        result = runner.invoke(app, ["analyze", str(project_root)])
        assert result.exit_code == 0
        assert "MHF" in result.output

    def test_class_tables(self, project_root):
        result = runner.invoke(app, ["analyze", str(project_root), "--level", "class"])
        assert result.exit_code == 0
        assert "Chidamber-Kemerer" in result.output
        assert "WMC" in result.output

    def test_json_snapshot(self, project_root):
        result = runner.invoke(app, ["analyze", str(project_root), "--level", "class", "--json", "-q"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert sorted(data) == ["billing.account.Account", "billing.invoice.Invoice"]
        account = data["billing.account.Account"]
        assert account["WMC"] == "3"
        assert "time" in account

    def test_json_package_level(self, project_root):
        result = runner.invoke(app, ["analyze", str(project_root), "-l", "package", "--json", "-q"])
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert list(data) == ["billing"]
        assert data["billing"]["I"] == "0.0"

    def test_missing_path(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "nowhere")])
        assert result.exit_code != 0

    def test_unknown_level(self, project_root):
        result = runner.invoke(app, ["analyze", str(project_root), "--level", "module"])
        assert result.exit_code != 0
        assert "module" in result.output
        assert "Invalid value" in result.output

    def test_configuration_error(self, project_root, tmp_path):
        config = tmp_path / "bad.toml"
        config.write_text('disabled_metrics = ["NOPE"]\n')
        result = runner.invoke(app, ["analyze", str(project_root), "--config", str(config)])
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_profiles(self, project_root, tmp_path):
        config = tmp_path / "profile.toml"
        config.write_text("[profiles.tiny]\nWMC = [0, 1]\n")
        result = runner.invoke(app, ["analyze", str(project_root), "--config", str(config)])
        assert result.exit_code == 0
        assert "Profile tiny" in result.output


class TestMetricsCommand:
    """Test ``metrics-tree metrics``."""

    def test_lists_catalogue(self):
        result = runner.invoke(app, ["metrics"])
        assert result.exit_code == 0
        assert "WMC" in result.output
        assert "QMOOD" in result.output

    def test_filter_by_level(self):
        result = runner.invoke(app, ["metrics", "--level", "package"])
        assert result.exit_code == 0
        assert "PAMI" in result.output
        assert "WMC" not in result.output
