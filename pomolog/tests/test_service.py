from __future__ import annotations

import unittest
from unittest import mock
from zoneinfo import ZoneInfo

from pomolog.clock import FakeClock
from pomolog.db import PomologDB
from pomolog.errors import InvalidTransitionError, NotSignedInError, SessionNotFoundError, TimezoneError
from pomolog.service import PomodoroService
from pomolog.tests.test_helpers import local_tmp_dir, utc


class TestPomodoroService(unittest.TestCase):
    def _service(self, tmp, user_id: str | None = "user-1", clock: FakeClock | None = None) -> PomodoroService:
        return PomodoroService(
            db=PomologDB(tmp / "pomolog.sqlite"),
            clock=clock or FakeClock(start=utc(2026, 1, 5, 9)),
            user_id=user_id,
        )

    def test_create_requires_user(self) -> None:
        with local_tmp_dir() as tmp:
            service = self._service(tmp, user_id=None)

            with self.assertRaises(NotSignedInError) as exc:
                service.create_session("Deep Work")

            self.assertEqual(str(exc.exception), "You must be signed in to create a pomodoro.")

    def test_create_trims_title(self) -> None:
        with local_tmp_dir() as tmp:
            service = self._service(tmp)

            created = service.create_session("  Deep Work  ")
            fallback = service.create_session("   ")

            self.assertEqual(created.title, "Deep Work")
            self.assertEqual(created.user_id, "user-1")
            self.assertEqual(created.planned_duration_sec, 1500)
            self.assertEqual(fallback.title, "Focus Session")

    def test_pause_resume_complete_flow(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(start=utc(2026, 1, 5, 9))
            service = self._service(tmp, clock=clock)

            session = service.start_session(service.create_session("Write"))
            self.assertEqual(session.started_at, utc(2026, 1, 5, 9))

            clock.advance(120.4)
            session = service.pause_session(session)
            self.assertEqual(session.status, "paused")
            self.assertEqual(session.paused_total_sec, 120)

            clock.advance(600)
            self.assertEqual(service.remaining_seconds(session), 1380)

            session = service.start_session(session)
            self.assertEqual(session.started_at, utc(2026, 1, 5, 9))
            clock.advance(30)
            self.assertEqual(service.elapsed_seconds(session), 150)
            self.assertEqual(service.remaining_seconds(session), 1350)

            active = service.get_active_session()
            assert active is not None
            self.assertEqual(active.id, session.id)

            session = service.complete_session(session)
            self.assertEqual(session.status, "completed")
            self.assertEqual(session.paused_total_sec, 150)
            self.assertIsNone(service.get_active_session())

            with self.assertRaises(InvalidTransitionError):
                service.cancel_session(session)

    def test_pause_when_not_running_returns_same_snapshot(self) -> None:
        with local_tmp_dir() as tmp:
            service = self._service(tmp)
            created = service.create_session("x")
            self.assertIs(service.pause_session(created), created)

    def test_sessions_are_scoped_to_user(self) -> None:
        with local_tmp_dir() as tmp:
            mine = self._service(tmp, user_id="user-1")
            theirs = self._service(tmp, user_id="user-2")
            session = mine.create_session("private")

            with self.assertRaises(SessionNotFoundError):
                theirs.get_session(session.id)
            self.assertEqual(mine.get_session(session.id).id, session.id)

    def test_stats_use_profile_timezone(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(start=utc(2026, 1, 6, 7, 5))
            service = self._service(tmp, clock=clock)
            session = service.start_session(service.create_session("late night"))
            clock.advance(25 * 60)
            service.complete_session(session)

            self.assertEqual(service.get_stats("day", anchor=utc(2026, 1, 6, 12), tz="UTC").buckets[7].value, 1)

            service.update_timezone("America/Los_Angeles")
            result = service.get_stats("day", anchor=utc(2026, 1, 5, 20))

            self.assertEqual(result.total, 1)
            self.assertEqual(result.buckets[23].value, 1)

    def test_stats_ignore_other_users(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(start=utc(2026, 1, 5, 9))
            other = self._service(tmp, user_id="user-2", clock=clock)
            other.complete_session(other.create_session("theirs"))

            service = self._service(tmp, clock=clock)
            self.assertEqual(service.get_stats("week", tz="UTC").total, 0)

    def test_stats_fall_back_to_system_zone(self) -> None:
        with local_tmp_dir() as tmp:
            clock = FakeClock(start=utc(2026, 2, 1, 7, 30))
            service = self._service(tmp, clock=clock)
            service.complete_session(service.create_session("month end"))

            with mock.patch("pomolog.stats.get_localzone", return_value=ZoneInfo("America/Los_Angeles")):
                result = service.get_stats("year", anchor=utc(2026, 7, 15, 19))

            self.assertEqual(result.total, 1)
            self.assertEqual(result.buckets[0].value, 1)

    def test_update_timezone_rejects_unknown_zone(self) -> None:
        with local_tmp_dir() as tmp:
            service = self._service(tmp)
            with self.assertRaises(TimezoneError):
                service.update_timezone("Not/AZone")
            self.assertEqual(service.get_profile().timezone, "UTC")

    def test_delete_account(self) -> None:
        with local_tmp_dir() as tmp:
            service = self._service(tmp)
            service.create_session("a")
            service.update_timezone("Europe/Paris")

            self.assertEqual(service.delete_account(), 1)
            self.assertEqual(service.list_sessions(), [])
            self.assertEqual(service.get_profile().timezone, "UTC")


if __name__ == "__main__":
    unittest.main()
