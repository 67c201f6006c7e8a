#!/usr/bin/env python3
"""
Unit tests for typing indicators and the session registry.
"""

import unittest

import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent))

from common.protocol_definitions import TypingEntry, create_typing_broadcast_message
from server.chat.sessions import Identity, SessionRegistry
from server.chat.typing_tracker import TypingIndicatorTracker
from tests.fakes import FakeWriter


class TestTypingIndicatorTracker(unittest.TestCase):
    """Test cases for TypingIndicatorTracker."""

    def setUp(self):
        self.typing = TypingIndicatorTracker()

    def test_set_and_clear(self):
        self.typing.set_typing(1, 'alice', 'general')
        self.assertEqual(self.typing.snapshot(), {1: TypingEntry('alice', 'general')})

        self.assertTrue(self.typing.clear_typing(1))
        self.assertEqual(self.typing.snapshot(), {})

    def test_clear_missing_entry(self):
        self.assertFalse(self.typing.clear_typing(42))

    def test_new_channel_overwrites_entry(self):
        self.typing.set_typing(1, 'alice', 'general')
        self.typing.set_typing(1, 'alice', 'operations')

        self.assertEqual(len(self.typing), 1)
        self.assertEqual(self.typing.snapshot()[1].channel, 'operations')

    def test_broadcast_payload_is_raw_per_connection_map(self):
        self.typing.set_typing(1, 'alice', 'general')
        self.typing.set_typing(2, 'bob', 'general')

        payload = create_typing_broadcast_message(self.typing.snapshot())

        self.assertEqual(payload['typing'], {
            '1': {'name': 'alice', 'channel': 'general'},
            '2': {'name': 'bob', 'channel': 'general'},
        })


class TestSessionRegistry(unittest.TestCase):
    """Test cases for SessionRegistry."""

    def setUp(self):
        self.registry = SessionRegistry()

    def test_open_assigns_increasing_uids(self):
        first = self.registry.open(FakeWriter())
        second = self.registry.open(FakeWriter())

        self.assertEqual((first.uid, second.uid), (1, 2))
        self.assertFalse(first.authenticated)

    def test_identity_binds_once(self):
        session = self.registry.open(FakeWriter())
        self.registry.bind(session.uid, Identity('alice', 'soldier', 'hash'))

        self.assertEqual(session.name, 'alice')
        # Credential hashes never live on the session
        self.assertIsNone(session.identity.password_hash)

        with self.assertRaises(ValueError):
            self.registry.bind(session.uid, Identity('bob', 'soldier'))
        self.assertEqual(session.name, 'alice')

    def test_bind_closed_session_fails(self):
        session = self.registry.open(FakeWriter())
        self.registry.close(session.uid)

        with self.assertRaises(KeyError):
            self.registry.bind(session.uid, Identity('alice', 'soldier'))

    def test_targets_exclude(self):
        a = self.registry.open(FakeWriter())
        b = self.registry.open(FakeWriter())

        self.assertEqual([s.uid for s in self.registry.targets(exclude_uid=a.uid)], [b.uid])
        self.assertEqual(len(self.registry.targets()), 2)

    def test_close_is_idempotent(self):
        session = self.registry.open(FakeWriter())

        self.assertIs(self.registry.close(session.uid), session)
        self.assertTrue(session.closed)
        self.assertIsNone(self.registry.close(session.uid))
        self.assertFalse(self.registry.is_open(session.uid))


if __name__ == '__main__':
    unittest.main()
