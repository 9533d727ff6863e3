import unittest
from datetime import datetime, timedelta, timezone

from blog_auth.exceptions import EmailTaken
from blog_auth.security import utcnow
from blog_auth.stores.memory_store import MemorySessionStore, MemoryUserStore
from blog_auth.stores.sql_store import SQLSessionStore, SQLUserStore
from db.engine import create_db_engine, create_session_factory, init_db


class StoreContract:
    """Behaviour every user/session store pair must share."""

    def make_stores(self):
        raise NotImplementedError

    def setUp(self):
        self.users, self.sessions = self.make_stores()
        self.now = utcnow()
        self.later = self.now + timedelta(days=7)

    async def test_create_and_list_valid(self):
        created = await self.sessions.create("owner-1", "hash-1", self.later)
        await self.sessions.create("owner-2", "hash-2", self.later)

        rows = await self.sessions.list_valid("owner-1", self.now)
        self.assertEqual(len(rows), 1)
        row = rows[0]
        self.assertEqual(row.id, created.id)
        self.assertEqual(row.owner_id, "owner-1")
        self.assertEqual(row.secret_hash, "hash-1")
        self.assertEqual(row.expires_at, self.later)
        self.assertIsNotNone(row.created_at.tzinfo)

    async def test_list_valid_skips_expired_rows(self):
        await self.sessions.create("owner-1", "stale", self.now - timedelta(hours=1))
        fresh = await self.sessions.create("owner-1", "fresh", self.later)

        rows = await self.sessions.list_valid("owner-1", self.now)
        self.assertEqual([row.id for row in rows], [fresh.id])

    async def test_expiry_is_compared_below_one_second(self):
        noon = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        created = await self.sessions.create("owner-1", "hash-1", noon + timedelta(milliseconds=200))

        before = await self.sessions.list_valid("owner-1", noon + timedelta(milliseconds=100))
        self.assertEqual([row.id for row in before], [created.id])
        self.assertEqual(before[0].expires_at, noon + timedelta(milliseconds=200))

        after = noon + timedelta(milliseconds=800)
        self.assertEqual(await self.sessions.list_valid("owner-1", after), [])
        self.assertEqual(await self.sessions.delete_expired(after), 1)
        self.assertEqual(await self.sessions.count_for_owner("owner-1"), 0)

    async def test_count_for_owner_includes_expired_rows(self):
        await self.sessions.create("owner-1", "stale", self.now - timedelta(hours=1))
        await self.sessions.create("owner-1", "fresh", self.later)
        await self.sessions.create("owner-2", "other", self.later)

        self.assertEqual(await self.sessions.count_for_owner("owner-1"), 2)
        self.assertEqual(await self.sessions.count_for_owner("nobody"), 0)

    async def test_delete_by_id_reports_whether_it_deleted(self):
        created = await self.sessions.create("owner-1", "hash-1", self.later)
        self.assertTrue(await self.sessions.delete_by_id(created.id))
        self.assertFalse(await self.sessions.delete_by_id(created.id))
        self.assertEqual(await self.sessions.list_valid("owner-1", self.now), [])

    async def test_delete_all_for_owner(self):
        await self.sessions.create("owner-1", "a", self.later)
        await self.sessions.create("owner-1", "b", self.later)
        await self.sessions.create("owner-2", "c", self.later)

        self.assertEqual(await self.sessions.delete_all_for_owner("owner-1"), 2)
        self.assertEqual(await self.sessions.delete_all_for_owner("owner-1"), 0)
        self.assertEqual(len(await self.sessions.list_valid("owner-2", self.now)), 1)

    async def test_replace_swaps_rows(self):
        old = await self.sessions.create("owner-1", "old", self.later)

        new = await self.sessions.replace(old.id, "owner-1", "new", self.later)

        self.assertIsNotNone(new)
        self.assertNotEqual(new.id, old.id)
        rows = await self.sessions.list_valid("owner-1", self.now)
        self.assertEqual([(row.id, row.secret_hash) for row in rows], [(new.id, "new")])

    async def test_replace_of_consumed_row_inserts_nothing(self):
        old = await self.sessions.create("owner-1", "old", self.later)
        await self.sessions.replace(old.id, "owner-1", "first", self.later)

        second = await self.sessions.replace(old.id, "owner-1", "second", self.later)

        self.assertIsNone(second)
        rows = await self.sessions.list_valid("owner-1", self.now)
        self.assertEqual([row.secret_hash for row in rows], ["first"])

    async def test_delete_expired(self):
        await self.sessions.create("owner-1", "stale", self.now - timedelta(hours=1))
        await self.sessions.create("owner-2", "stale", self.now - timedelta(days=1))
        await self.sessions.create("owner-1", "fresh", self.later)

        self.assertEqual(await self.sessions.delete_expired(self.now), 2)
        self.assertEqual(len(await self.sessions.list_valid("owner-1", self.now)), 1)

    async def test_users_are_keyed_by_lowercase_email(self):
        user = await self.users.create_user(
            {"email": "Alice@Example.com", "name": "Alice", "hashed_password": "$2b$hash"}
        )
        self.assertEqual(user["email"], "alice@example.com")
        self.assertTrue(user["id"])

        by_email = await self.users.get_by_email("ALICE@example.com")
        by_id = await self.users.get_by_id(user["id"])
        self.assertEqual(by_email["id"], user["id"])
        self.assertEqual(by_id["name"], "Alice")
        self.assertEqual(by_id["hashed_password"], "$2b$hash")
        self.assertIsNone(await self.users.get_by_id("missing"))
        self.assertIsNone(await self.users.get_by_email("bob@example.com"))

    async def test_duplicate_email_is_rejected(self):
        await self.users.create_user({"email": "alice@example.com", "hashed_password": "h"})
        with self.assertRaises(EmailTaken):
            await self.users.create_user({"email": "ALICE@example.com", "hashed_password": "h"})

    async def test_delete_user(self):
        user = await self.users.create_user({"email": "alice@example.com", "hashed_password": "h"})
        await self.users.delete_user(user["id"])
        self.assertIsNone(await self.users.get_by_id(user["id"]))
        self.assertIsNone(await self.users.get_by_email("alice@example.com"))


class TestMemoryStores(StoreContract, unittest.IsolatedAsyncioTestCase):
    def make_stores(self):
        return MemoryUserStore(), MemorySessionStore()


class TestSQLStores(StoreContract, unittest.IsolatedAsyncioTestCase):
    def make_stores(self):
        engine = create_db_engine("sqlite://")
        init_db(engine)
        self.addCleanup(engine.dispose)
        session_factory = create_session_factory(engine)
        return SQLUserStore(session_factory), SQLSessionStore(session_factory)


if __name__ == "__main__":
    unittest.main()
