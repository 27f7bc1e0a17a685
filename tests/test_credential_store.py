# tests/test_credential_store.py
import json
import os
import sys
import tempfile
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from minicasino.infrastructure.storage.credential_store import CredentialStore


class TestCredentialStore(unittest.IsolatedAsyncioTestCase):

    async def asyncSetUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = os.path.join(self.tmpdir.name, "nested", "session.json")
        self.store = CredentialStore(self.path)

    async def asyncTearDown(self):
        self.tmpdir.cleanup()

    async def test_missing_file_reads_as_empty(self):
        self.assertIsNone(await self.store.get("token"))
        self.assertFalse(await self.store.remove("token"))

    async def test_set_survives_a_new_instance(self):
        await self.store.set("token", "abc")

        self.assertEqual(await CredentialStore(self.path).get("token"), "abc")
        self.assertFalse(os.path.exists(self.path + ".tmp"))

    async def test_remove_keeps_other_keys(self):
        await self.store.set("token", "abc")
        await self.store.set("theme", "dark")

        self.assertTrue(await self.store.remove("token"))

        self.assertIsNone(await self.store.get("token"))
        self.assertEqual(await self.store.get("theme"), "dark")

    async def test_corrupt_file_is_ignored(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            f.write("{not json")

        self.assertIsNone(await self.store.get("token"))
        await self.store.set("token", "abc")
        with open(self.path, encoding="utf-8") as f:
            self.assertEqual(json.load(f), {"token": "abc"})

    async def test_non_string_values_are_not_credentials(self):
        os.makedirs(os.path.dirname(self.path))
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump({"token": 42}, f)

        self.assertIsNone(await self.store.get("token"))


if __name__ == "__main__":
    unittest.main()
