"""Tests for the command-line runner."""

import unittest
from unittest.mock import MagicMock, patch

from src.config.exceptions import ConfigError
from src.config.settings import ReminderSettings
from src.enums import RunMode
from src.runner.handler import ReminderProcessingError, ReminderStats
from src.runner.main import main, parse_args, run_loop, run_pass


class TestParseArgs(unittest.TestCase):
    """Tests for parse_args function."""

    def test_defaults(self) -> None:
        """Test a single pass against S3 is the default."""
        args = parse_args([])

        self.assertEqual(args.mode, RunMode.ONCE)
        self.assertIsNone(args.config)
        self.assertIsNone(args.state_path)

    def test_loop_with_local_paths(self) -> None:
        """Test loop mode and local paths are parsed."""
        args = parse_args(["--mode", "loop", "--config", "rules.toml", "--state-path", "s.json"])

        self.assertEqual(args.mode, RunMode.LOOP)
        self.assertEqual(args.config, "rules.toml")
        self.assertEqual(args.state_path, "s.json")

    def test_invalid_mode_exits(self) -> None:
        """Test an unknown mode is rejected."""
        with self.assertRaises(SystemExit):
            parse_args(["--mode", "lambda"])


class TestRunPass(unittest.TestCase):
    """Tests for run_pass function."""

    def test_success(self) -> None:
        """Test a clean pass returns True."""
        handler = MagicMock()
        handler.run.return_value = ReminderStats()

        self.assertTrue(run_pass(handler))

    def test_processing_error(self) -> None:
        """Test a pass with rule errors returns False."""
        handler = MagicMock()
        handler.run.side_effect = ReminderProcessingError(ReminderStats(errors=["boom"]))

        self.assertFalse(run_pass(handler))

    def test_config_error(self) -> None:
        """Test a config failure returns False."""
        handler = MagicMock()
        handler.run.side_effect = ConfigError("bad")

        self.assertFalse(run_pass(handler))


class TestRunLoop(unittest.TestCase):
    """Tests for run_loop function."""

    @patch("src.runner.main.time.sleep")
    def test_stops_on_failure(self, mock_sleep: MagicMock) -> None:
        """Test the loop sleeps between passes and exits 1 on the first failure."""
        handler = MagicMock()
        handler.run.side_effect = [
            ReminderStats(),
            ReminderStats(),
            ReminderProcessingError(ReminderStats(errors=["boom"])),
        ]

        exit_code = run_loop(handler, interval_seconds=60)

        self.assertEqual(exit_code, 1)
        self.assertEqual(handler.run.call_count, 3)
        self.assertEqual(mock_sleep.call_count, 2)
        for call in mock_sleep.call_args_list:
            self.assertLessEqual(call.args[0], 60)


class TestMain(unittest.TestCase):
    """Tests for main function."""

    def setUp(self) -> None:
        """Patch out environment and process-wide setup."""
        for target in ("load_dotenv", "configure_logging", "init_sentry"):
            patcher = patch(f"src.runner.main.{target}")
            patcher.start()
            self.addCleanup(patcher.stop)

        settings_patcher = patch(
            "src.runner.main.get_reminder_settings",
            return_value=ReminderSettings(loop_interval_seconds=5, _env_file=None),
        )
        settings_patcher.start()
        self.addCleanup(settings_patcher.stop)

    @patch("src.runner.main.build_handler")
    def test_once_success(self, mock_build: MagicMock) -> None:
        """Test a successful single pass exits 0."""
        mock_build.return_value.run.return_value = ReminderStats()

        exit_code = main(["--config", "rules.toml", "--state-path", "state.json"])

        self.assertEqual(exit_code, 0)
        kwargs = mock_build.call_args.kwargs
        self.assertEqual(kwargs["config_path"], "rules.toml")
        self.assertEqual(kwargs["state_path"], "state.json")

    @patch("src.runner.main.build_handler")
    def test_once_failure(self, mock_build: MagicMock) -> None:
        """Test a failed single pass exits 1."""
        mock_build.return_value.run.side_effect = ReminderProcessingError(
            ReminderStats(errors=["boom"])
        )

        self.assertEqual(main([]), 1)

    @patch("src.runner.main.run_loop", return_value=1)
    @patch("src.runner.main.build_handler")
    def test_loop_mode(self, mock_build: MagicMock, mock_run_loop: MagicMock) -> None:
        """Test loop mode uses the configured interval."""
        exit_code = main(["--mode", "loop"])

        self.assertEqual(exit_code, 1)
        mock_run_loop.assert_called_once_with(mock_build.return_value, 5)


if __name__ == "__main__":
    unittest.main()
