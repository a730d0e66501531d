"""Tests for the command line interface."""

from unittest.mock import patch

from click.testing import CliRunner

from football_insights.cli.main import cli


class TestCLI:
    """Test CLI commands through click's runner."""

    def test_help_lists_commands(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("predict", "daily-picks", "longshot", "odds", "grade", "log-bet", "settle", "bankroll"):
            assert command in result.output

    def test_init_db(self):
        result = CliRunner().invoke(cli, ["init-db"])
        assert result.exit_code == 0
        assert "Database initialized" in result.output

    def test_grade_won(self):
        result = CliRunner().invoke(
            cli, ["grade", "1X2", "Arsenal Win", "2-1", "--home", "Arsenal", "--away", "Chelsea"]
        )
        assert result.exit_code == 0
        assert "WON" in result.output

    def test_grade_void(self):
        result = CliRunner().invoke(
            cli, ["grade", "No Bet (Draw No Bet)", "Arsenal", "1-1", "--home", "Arsenal", "--away", "Chelsea"]
        )
        assert "VOID" in result.output

    def test_grade_bad_score(self):
        result = CliRunner().invoke(
            cli, ["grade", "1X2", "Arsenal Win", "two-one", "--home", "Arsenal", "--away", "Chelsea"]
        )
        assert result.exit_code != 0
        assert "score must look like 2-1" in result.output

    def test_log_bet_then_bankroll(self):
        runner = CliRunner()
        logged = runner.invoke(cli, [
            "log-bet", "--match", "Arsenal vs Chelsea", "--market", "1X2",
            "--pick", "Arsenal Win", "--stake", "10", "--odds", "2.1",
        ])
        assert logged.exit_code == 0
        assert "Logged #1" in logged.output

        summary = runner.invoke(cli, ["bankroll"])
        assert summary.exit_code == 0
        assert "Bankroll" in summary.output
        assert "10.00 staked" in summary.output

    def test_log_bet_rejects_bad_odds(self):
        result = CliRunner().invoke(cli, [
            "log-bet", "--match", "Arsenal vs Chelsea", "--market", "1X2",
            "--pick", "Arsenal Win", "--odds", "0.5",
        ])
        assert result.exit_code != 0
        assert isinstance(result.exception, ValueError)

    def test_predict_without_predictions(self):
        with patch("football_insights.cli.main.PredictionPipeline") as pipeline_cls:
            pipeline_cls.return_value.get_predictions.return_value = []
            result = CliRunner().invoke(cli, ["predict"])

        assert result.exit_code == 0
        assert "No predictions available" in result.output

    def test_predict_table(self, make_prediction, monkeypatch):
        from football_insights.cli import main

        monkeypatch.setattr(main.console, "width", 200)
        with patch("football_insights.cli.main.PredictionPipeline") as pipeline_cls:
            pipeline_cls.return_value.get_predictions.return_value = [make_prediction(1, confidence=72)]
            result = CliRunner().invoke(cli, ["predict", "--date-from", "2026-03-02"])

        assert result.exit_code == 0
        assert "Home 1 vs Away 1" in result.output
        assert "72%" in result.output

    def test_longshot_empty(self):
        with patch("football_insights.cli.main.PredictionPipeline") as pipeline_cls:
            pipeline_cls.return_value.get_predictions.return_value = []
            result = CliRunner().invoke(cli, ["longshot"])

        assert "No eligible fixtures" in result.output

    def test_odds_unknown_match(self):
        with patch("football_insights.cli.main.PredictionPipeline") as pipeline_cls:
            pipeline_cls.return_value.get_prediction.return_value = None
            result = CliRunner().invoke(cli, ["odds", "123"])

        assert "No prediction for match 123" in result.output

    def test_settle_with_nothing_pending(self):
        result = CliRunner().invoke(cli, ["settle"])
        assert result.exit_code == 0
        assert "Checked 0" in result.output
