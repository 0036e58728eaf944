"""
Tests for the command-line interface.
"""

import json

import pytest
from click.testing import CliRunner

from lotkeeper.cli import main


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def invoke(runner, tmp_path, monkeypatch):
    """Invoke the CLI against a temporary data directory."""
    monkeypatch.chdir(tmp_path)
    for name in ("LOTKEEPER_DATA_DIR", "LOTKEEPER_LOG_LEVEL", "LOTKEEPER_AUDIT_LOG"):
        monkeypatch.delenv(name, raising=False)
    data_dir = tmp_path / "data"

    def _invoke(*args: str):
        return runner.invoke(main, ["--data-dir", str(data_dir), *args])

    return _invoke


class TestPortfolioCommands:
    """Tests for the portfolios command group."""

    def test_default_portfolio_is_created_on_first_use(self, invoke):
        result = invoke("portfolios", "list")

        assert result.exit_code == 0
        assert "Default" in result.output

    def test_add_and_list(self, invoke):
        invoke("portfolios", "add", "Growth", "-D", "Long-term growth")

        result = invoke("portfolios", "list")

        assert "Growth" in result.output
        assert "Long-term growth" in result.output

    def test_duplicate_name_is_rejected(self, invoke):
        invoke("portfolios", "add", "Growth")

        result = invoke("portfolios", "add", "Growth")

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_cannot_delete_last_portfolio(self, invoke):
        result = invoke("portfolios", "delete", "Default")

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_delete_moves_lots_to_default(self, invoke, tmp_path):
        invoke("portfolios", "add", "Growth")
        invoke("lots", "add", "-t", "AAPL", "-s", "1", "-p", "100",
               "-d", "2023-01-01", "-P", "Growth")

        result = invoke("portfolios", "delete", "Growth")

        assert result.exit_code == 0
        assert "updated 1 lots" in result.output
        stored = json.loads((tmp_path / "data" / "lots.json").read_text())
        assert stored[0]["portfolios"] == ["Default"]

    def test_unknown_portfolio(self, invoke):
        result = invoke("portfolios", "delete", "Nope")

        assert result.exit_code == 1
        assert "No portfolio named" in result.output

    def test_corrupt_data_file(self, invoke, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "lots.json").write_text("{")

        result = invoke("portfolios", "list")

        assert result.exit_code == 1
        assert "Error: Failed to load" in result.output


class TestLotCommands:
    """Tests for the lots command group."""

    def test_add_and_summary(self, invoke):
        invoke("lots", "add", "-t", "AAPL", "-s", "10", "-p", "150", "-d", "2023-01-01")
        invoke("lots", "add", "-t", "AAPL", "-s", "5", "-p", "160", "-d", "2023-06-01")
        invoke("lots", "add", "-t", "MSFT", "-s", "4", "-p", "300", "-d", "2023-03-01")

        result = invoke("summary")

        assert result.exit_code == 0
        lines = result.output.splitlines()
        assert lines[1].startswith("AAPL")
        assert lines[2].startswith("MSFT")
        assert "Total cost basis: $3,500.00" in result.output

    def test_invalid_lot_is_rejected(self, invoke, tmp_path):
        result = invoke("lots", "add", "-t", "AAPL", "-s", "0", "-p", "150",
                        "-d", "2023-01-01")

        assert result.exit_code == 1
        assert "shares" in result.output
        assert not (tmp_path / "data" / "lots.json").exists()

    def test_list_filters_by_ticker(self, invoke):
        invoke("lots", "add", "-t", "AAPL", "-s", "10", "-p", "150", "-d", "2023-01-01")
        invoke("lots", "add", "-t", "MSFT", "-s", "4", "-p", "300", "-d", "2023-03-01")

        result = invoke("lots", "list", "--ticker", "MSFT")

        assert "MSFT" in result.output
        assert "AAPL" not in result.output

    def test_import_csv(self, invoke, tmp_path):
        csv_path = tmp_path / "lots.csv"
        csv_path.write_text(
            "ticker,shares,cost_per_share,purchase_date\n"
            "AAPL,10,150,2023-01-01\n"
            "JNJ,20,155,2022-11-30\n"
        )

        result = invoke("lots", "import", str(csv_path))

        assert result.exit_code == 0
        assert "Imported 2 lots" in result.output
        summary = invoke("summary")
        assert "JNJ" in summary.output

    def test_summary_output_file(self, invoke, tmp_path):
        invoke("lots", "add", "-t", "AAPL", "-s", "10", "-p", "150", "-d", "2023-01-01")
        output = tmp_path / "summary.csv"

        result = invoke("summary", "--output", str(output))

        assert result.exit_code == 0
        assert output.exists()

    def test_summary_when_empty(self, invoke):
        result = invoke("summary")

        assert "No lots found." in result.output


class TestMigrateCommand:
    """Tests for the migrate command."""

    def test_backfills_legacy_lots(self, invoke, tmp_path):
        data_dir = tmp_path / "data"
        data_dir.mkdir()
        (data_dir / "lots.json").write_text(json.dumps([
            {"id": "old", "ticker": "AAPL", "shares": "1", "costPerShare": "10",
             "purchaseDate": "2020-01-01", "totalCost": "10", "portfolio": "Growth"},
        ]))

        result = invoke("migrate")

        assert result.exit_code == 0
        assert "Created portfolio 'Default'" in result.output
        assert "Backfilled 1 lots" in result.output
        stored = json.loads((data_dir / "lots.json").read_text())
        assert stored[0]["portfolios"] == ["Growth"]

    def test_second_run_is_a_no_op(self, invoke):
        invoke("migrate")

        result = invoke("migrate")

        assert result.exit_code == 0
        assert "Nothing to migrate." in result.output
