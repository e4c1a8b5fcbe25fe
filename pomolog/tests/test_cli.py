from __future__ import annotations

from contextlib import redirect_stderr, redirect_stdout
import io
import os
from pathlib import Path
import unittest
from unittest import mock

from pomolog import cli
from pomolog.clock import FakeClock
from pomolog.tests.test_helpers import local_tmp_dir, utc


def run_cli(args: list[str], clock: FakeClock) -> tuple[int, str, str]:
    out = io.StringIO()
    err = io.StringIO()
    with redirect_stdout(out), redirect_stderr(err):
        code = cli.main(args, clock=clock)
    return code, out.getvalue(), err.getvalue()


class TestCLI(unittest.TestCase):
    def test_session_lifecycle_and_stats(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(start=utc(2026, 1, 5, 9))
            base = ["--db", str(Path(tmp) / "pomolog.sqlite"), "--user", "user-1"]

            code, out, _ = run_cli(base + ["start", "--title", "Deep Work"], clock)
            self.assertEqual(code, 0)
            self.assertIn("Started: Deep Work [running] 25:00 left", out)

            clock.advance(30)
            _, out, _ = run_cli(base + ["status"], clock)
            self.assertIn("24:30 left", out)

            _, out, _ = run_cli(base + ["pause"], clock)
            self.assertIn("Paused: Deep Work [paused] 24:30 left", out)

            clock.advance(300)
            _, out, _ = run_cli(base + ["start"], clock)
            self.assertIn("Started: Deep Work [running] 24:30 left", out)

            code, out, _ = run_cli(base + ["complete"], clock)
            self.assertEqual(code, 0)
            self.assertIn("Completed: Deep Work", out)

            _, out, _ = run_cli(base + ["status"], clock)
            self.assertIn("No active session.", out)

            code, out, _ = run_cli(
                base + ["stats", "--range", "day", "--tz", "UTC", "--anchor", "2026-01-05", "--width", "5"],
                clock,
            )
            self.assertEqual(code, 0)
            self.assertIn("Completed in this day (UTC): 1", out)
            self.assertIn("09 | 1 #####", out)

    def test_watch_rejects_negative_tick_seconds(self) -> None:
        with local_tmp_dir() as tmp:
            args = ["--db", str(Path(tmp) / "pomolog.sqlite"), "--user", "user-1", "watch", "--tick-seconds", "-1"]

            with self.assertRaises(SystemExit) as exc, redirect_stderr(io.StringIO()):
                cli.main(args, clock=FakeClock())

            self.assertEqual(exc.exception.code, 2)

    def test_start_without_user_fails(self) -> None:
        with local_tmp_dir() as tmp, mock.patch.dict(os.environ, {"POMOLOG_USER": ""}):
            code, _, err = run_cli(["--db", str(Path(tmp) / "pomolog.sqlite"), "start"], FakeClock())

            self.assertEqual(code, 1)
            self.assertIn("You must be signed in to create a pomodoro.", err)

    def test_timezone_and_delete_account(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(start=utc(2026, 1, 5, 9))
            base = ["--db", str(Path(tmp) / "pomolog.sqlite"), "--user", "user-1"]

            code, out, _ = run_cli(base + ["timezone", "Asia/Tokyo"], clock)
            self.assertEqual(code, 0)
            self.assertIn("Timezone set to Asia/Tokyo", out)

            _, out, _ = run_cli(base + ["timezone"], clock)
            self.assertEqual(out.strip(), "Asia/Tokyo")

            code, _, err = run_cli(base + ["timezone", "Nowhere/Special"], clock)
            self.assertEqual(code, 1)
            self.assertIn("unknown timezone", err)

            code, out, _ = run_cli(base + ["delete-account"], clock)
            self.assertEqual(code, 1)
            self.assertIn("--yes", out)

            code, out, _ = run_cli(base + ["delete-account", "--yes"], clock)
            self.assertEqual(code, 0)
            self.assertIn("Account deleted", out)


if __name__ == "__main__":
    unittest.main()
