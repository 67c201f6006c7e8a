#!/usr/bin/env python3
"""
Unit tests for presence tracking and roster snapshots.
"""

import tempfile
import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.constants import Ranks
from server.chat.presence import PresenceTracker
from tests.fakes import make_directory


class TestPresenceTracker(unittest.TestCase):
    """Test cases for PresenceTracker."""

    def setUp(self):
        self.presence = PresenceTracker()

    def test_mark_online_and_offline(self):
        self.presence.mark_online('alice', Ranks.SOLDIER)
        self.assertTrue(self.presence.is_online('alice'))

        self.assertTrue(self.presence.mark_offline('alice'))
        self.assertFalse(self.presence.is_online('alice'))
        self.assertEqual(len(self.presence), 0)

    def test_mark_offline_unknown_is_noop(self):
        self.assertFalse(self.presence.mark_offline('ghost'))
        self.assertEqual(self.presence.online(), {})

    def test_multiple_sessions_keep_identity_online(self):
        self.presence.mark_online('alice', Ranks.SOLDIER)
        self.presence.mark_online('alice', Ranks.SOLDIER)
        self.assertEqual(self.presence.session_count('alice'), 2)
        self.assertEqual(len(self.presence), 1)

        self.assertFalse(self.presence.mark_offline('alice'))
        self.assertTrue(self.presence.is_online('alice'))

        self.assertTrue(self.presence.mark_offline('alice'))
        self.assertFalse(self.presence.is_online('alice'))

    def test_mark_online_overwrites_rank(self):
        self.presence.mark_online('alice', Ranks.SOLDIER)
        self.presence.mark_online('alice', Ranks.ENFORCER)

        self.assertEqual(self.presence.online(), {'alice': Ranks.ENFORCER})

    def test_snapshot_without_directory_lists_online_only(self):
        self.presence.mark_online('bob', Ranks.SOLDIER)
        self.presence.mark_online('Architect', Ranks.ARCHITECT)

        roster = self.presence.snapshot()

        self.assertEqual([entry.alias for entry in roster], ['Architect', 'bob'])
        self.assertTrue(all(entry.online for entry in roster))


class TestRosterSnapshot(unittest.TestCase):
    """Roster ordering and online flags against the user directory."""

    def setUp(self):
        self.tmpdir = tempfile.TemporaryDirectory()
        self.directory = make_directory(self.tmpdir.name)
        for name in ('alice', 'Zed', 'bob', 'Aaron'):
            self.directory.insert(name, None, Ranks.SOLDIER)
        self.presence = PresenceTracker()

    def tearDown(self):
        self.tmpdir.cleanup()

    def test_administrator_always_first(self):
        roster = self.presence.snapshot(self.directory)

        # Case-sensitive ordering puts uppercase names before lowercase
        self.assertEqual([entry.alias for entry in roster], ['Architect', 'Aaron', 'Zed', 'alice', 'bob'])

    def test_online_flags_follow_tracker(self):
        self.presence.mark_online('bob', Ranks.SOLDIER)

        roster = {entry.alias: entry for entry in self.presence.snapshot(self.directory)}

        self.assertTrue(roster['bob'].online)
        self.assertFalse(roster['alice'].online)
        self.assertFalse(roster['Architect'].online)
        self.assertEqual(roster['Architect'].rank, Ranks.ARCHITECT)


if __name__ == '__main__':
    unittest.main()
