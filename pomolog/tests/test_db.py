from __future__ import annotations

from datetime import timedelta
import sqlite3
import unittest

from pomolog.db import PomologDB, from_utc_text, to_utc_text
from pomolog.errors import SessionNotFoundError
from pomolog.models import Profile
from pomolog.tests.test_helpers import local_tmp_dir, utc


class TestDBSchema(unittest.TestCase):
    def test_schema_created(self) -> None:
        with local_tmp_dir() as tmp:
            db_path = tmp / "data" / "pomolog.sqlite"
            PomologDB(db_path)

            with sqlite3.connect(db_path) as conn:
                names = {
                    row[0]
                    for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
                }

            self.assertIn("pomodoro_sessions", names)
            self.assertIn("profiles", names)

    def test_utc_text_is_fixed_width(self) -> None:
        early = to_utc_text(utc(2026, 1, 5, 9, 0, 0))
        late = to_utc_text(utc(2026, 1, 5, 10, 0, 0, 500000))
        self.assertEqual(len(early), len(late))
        self.assertLess(early, late)
        self.assertEqual(from_utc_text(late), utc(2026, 1, 5, 10, 0, 0, 500000))

    def test_utc_text_pads_early_years(self) -> None:
        self.assertEqual(to_utc_text(utc(1, 1, 1)), "0001-01-01T00:00:00.000000Z")
        self.assertLess(to_utc_text(utc(1, 1, 1)), to_utc_text(utc(999, 1, 1)))
        self.assertEqual(from_utc_text("0001-01-01T00:00:00.000000Z"), utc(1, 1, 1))


class TestSessionRows(unittest.TestCase):
    def test_insert_and_update(self) -> None:
        with local_tmp_dir() as tmp:
            db = PomologDB(tmp / "pomolog.sqlite")
            created = db.insert_session("user-1", "Deep Work", 1500, created_at=utc(2026, 1, 5, 9))

            self.assertEqual(created.status, "created")
            self.assertEqual(created.paused_total_sec, 0)
            self.assertIsNone(created.started_at)

            started = db.update_session(
                created.id,
                {"status": "running", "started_at": utc(2026, 1, 5, 9, 1), "last_resumed_at": utc(2026, 1, 5, 9, 1)},
            )
            self.assertEqual(started.status, "running")
            self.assertEqual(started.last_resumed_at, utc(2026, 1, 5, 9, 1))

            paused = db.update_session(created.id, {"status": "paused", "last_resumed_at": None, "paused_total_sec": 42})
            self.assertIsNone(paused.last_resumed_at)
            self.assertEqual(paused.paused_total_sec, 42)
            self.assertEqual(paused.started_at, utc(2026, 1, 5, 9, 1))

    def test_update_errors(self) -> None:
        with local_tmp_dir() as tmp:
            db = PomologDB(tmp / "pomolog.sqlite")
            created = db.insert_session("user-1", "Deep Work")

            with self.assertRaises(ValueError):
                db.update_session(created.id, {"user_id": "someone-else"})
            with self.assertRaises(SessionNotFoundError):
                db.update_session("missing", {"status": "paused"})

    def test_active_session_is_newest_unfinished(self) -> None:
        with local_tmp_dir() as tmp:
            db = PomologDB(tmp / "pomolog.sqlite")
            older = db.insert_session("user-1", "Older", created_at=utc(2026, 1, 5, 8))
            newer = db.insert_session("user-1", "Newer", created_at=utc(2026, 1, 5, 9))
            db.insert_session("user-2", "Other user", created_at=utc(2026, 1, 5, 10))
            db.update_session(newer.id, {"status": "completed", "completed_at": utc(2026, 1, 5, 9, 30)})

            active = db.get_active_session("user-1")

            self.assertIsNotNone(active)
            assert active is not None
            self.assertEqual(active.id, older.id)
            self.assertIsNone(db.get_active_session("user-3"))

    def test_fetch_completed_timestamps_inclusive(self) -> None:
        with local_tmp_dir() as tmp:
            db = PomologDB(tmp / "pomolog.sqlite")
            start = utc(2026, 1, 5)
            end = utc(2026, 1, 6)
            cases = [
                ("user-1", "completed", start),
                ("user-1", "completed", end),
                ("user-1", "completed", end + timedelta(microseconds=1)),
                ("user-1", "canceled", start + timedelta(hours=1)),
                ("user-2", "completed", start + timedelta(hours=2)),
            ]
            for user_id, status, completed_at in cases:
                row = db.insert_session(user_id, "s")
                db.update_session(row.id, {"status": status, "completed_at": completed_at})
            db.insert_session("user-1", "never finished")

            mine = db.fetch_completed_timestamps(start, end, user_id="user-1")
            everyone = db.fetch_completed_timestamps(start, end)

            self.assertEqual(mine, [start, end])
            self.assertEqual(len(everyone), 3)


class TestProfiles(unittest.TestCase):
    def test_upsert_and_delete(self) -> None:
        with local_tmp_dir() as tmp:
            db = PomologDB(tmp / "pomolog.sqlite")
            self.assertIsNone(db.get_profile("user-1"))

            db.upsert_profile(Profile(id="user-1", display_name="Ada", timezone="Europe/London"))
            db.upsert_profile(Profile(id="user-1", display_name="Ada", timezone="Asia/Tokyo"))
            loaded = db.get_profile("user-1")
            self.assertEqual(loaded, Profile(id="user-1", display_name="Ada", timezone="Asia/Tokyo"))

            db.insert_session("user-1", "a")
            db.insert_session("user-1", "b")
            kept = db.insert_session("user-2", "c")

            self.assertEqual(db.delete_user_data("user-1"), 2)
            self.assertIsNone(db.get_profile("user-1"))
            self.assertEqual(db.list_sessions("user-1"), [])
            self.assertEqual([item.id for item in db.list_sessions("user-2")], [kept.id])


if __name__ == "__main__":
    unittest.main()
