#!/usr/bin/env python3
"""
Unit tests for the JSON-backed user directory.
"""

import json
import tempfile
import unittest
from unittest.mock import patch

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.constants import Ranks
from common.errors import NameTaken
from tests.fakes import make_directory


class TestUserDirectory(unittest.IsolatedAsyncioTestCase):
    """Test cases for UserDirectory."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.path = Path(self.tmpdir.name) / 'users.json'

    def tearDown(self):
        self.tmpdir.cleanup()

    def read_document(self):
        with open(self.path, 'r', encoding='utf-8') as f:
            return json.load(f)

    def test_missing_file_seeds_administrator(self):
        directory = make_directory(self.tmpdir.name)

        self.assertEqual(len(directory), 1)
        admin = directory.get('Architect')
        self.assertEqual(admin.rank, Ranks.ARCHITECT)
        self.assertFalse(admin.can_authenticate)
        self.assertEqual(self.read_document(), {'Architect': {'hash': None, 'rank': 'architect'}})

    def test_existing_file_is_loaded(self):
        self.path.write_text(json.dumps({
            'Architect': {'hash': None, 'rank': 'architect'},
            'alice': {'hash': 'x', 'rank': 'enforcer'},
        }), encoding='utf-8')

        directory = make_directory(self.tmpdir.name)

        self.assertEqual(len(directory), 2)
        self.assertEqual(directory.get('alice').rank, Ranks.ENFORCER)
        self.assertEqual(directory.get('alice').password_hash, 'x')

    def test_corrupt_file_is_logged_and_reseeded(self):
        self.path.write_text('{not json', encoding='utf-8')

        directory = make_directory(self.tmpdir.name)

        self.assertEqual([name for name, _ in directory.items()], ['Architect'])

    def test_unknown_rank_falls_back_to_default(self):
        self.path.write_text(json.dumps({'bob': {'hash': None, 'rank': 'emperor'}}), encoding='utf-8')

        directory = make_directory(self.tmpdir.name)

        self.assertEqual(directory.get('bob').rank, Ranks.DEFAULT)

    def test_insert_and_persist(self):
        directory = make_directory(self.tmpdir.name)
        directory.insert('alice', 'hash', Ranks.SOLDIER)

        self.assertTrue(directory.persist())
        self.assertEqual(self.read_document()['alice'], {'hash': 'hash', 'rank': 'soldier'})

    def test_insert_duplicate_raises(self):
        directory = make_directory(self.tmpdir.name)
        directory.insert('alice', 'first')

        with self.assertRaises(NameTaken):
            directory.insert('alice', 'second')
        self.assertEqual(directory.get('alice').password_hash, 'first')

    def test_names_are_case_sensitive(self):
        directory = make_directory(self.tmpdir.name)
        directory.insert('alice', None)
        directory.insert('Alice', None)

        self.assertTrue(directory.exists('alice'))
        self.assertTrue(directory.exists('Alice'))

    def test_reservation_blocks_second_claim(self):
        directory = make_directory(self.tmpdir.name)
        directory.reserve('alice')

        with self.assertRaises(NameTaken):
            directory.reserve('alice')

        directory.release('alice')
        directory.reserve('alice')
        self.assertTrue(directory.is_reserved('alice'))

    def test_reserve_existing_name_fails(self):
        directory = make_directory(self.tmpdir.name)

        with self.assertRaises(NameTaken):
            directory.reserve('Architect')

    def test_persist_failure_is_not_raised(self):
        directory = make_directory(self.tmpdir.name)
        directory.insert('alice', None)

        with patch('server.auth.directory.os.replace', side_effect=OSError('disk full')):
            self.assertFalse(directory.persist())

        # In-memory state stays authoritative
        self.assertTrue(directory.exists('alice'))
        self.assertNotIn('alice', self.read_document())
        self.assertEqual([p.name for p in Path(self.tmpdir.name).glob('.users-*')], [])

    async def test_hash_and_compare(self):
        directory = make_directory(self.tmpdir.name)

        password_hash = await directory.hash_secret('hunter2')

        self.assertNotEqual(password_hash, 'hunter2')
        self.assertTrue(await directory.compare_secret('hunter2', password_hash))
        self.assertFalse(await directory.compare_secret('hunter3', password_hash))

    async def test_hashes_are_salted(self):
        directory = make_directory(self.tmpdir.name)

        self.assertNotEqual(await directory.hash_secret('same'), await directory.hash_secret('same'))

    async def test_compare_without_hash_or_with_garbage(self):
        directory = make_directory(self.tmpdir.name)

        self.assertFalse(await directory.compare_secret('anything', None))
        self.assertFalse(await directory.compare_secret('anything', 'not-a-hash'))


if __name__ == '__main__':
    unittest.main()
