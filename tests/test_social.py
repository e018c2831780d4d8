"""
Unit tests for the social graph store: friendships, groups, group posting.
"""

import os
import tempfile
import threading
import unittest

from pairchat.social import (
    SocialGraph,
    NOT_FOUND,
    NAME_COLLISION,
    NOT_MEMBER,
    INVALID_MEMBER,
    INVALID_NAME,
    NO_SUCH_GROUP,
    GROUP_TOO_LARGE,
)
from pairchat.config import MAX_GROUP_SIZE
from pairchat.storage import UserStore


class TestFriends(unittest.TestCase):

    def setUp(self):
        self.graph = SocialGraph()
        for name in ("alice", "bob", "carol", "dave"):
            self.graph.load_user(name)

    def test_add_friend_is_symmetric(self):
        resp = self.graph.add_friend("alice", "bob")

        self.assertTrue(resp["success"])
        self.assertIn("bob", self.graph.friends_of("alice"))
        self.assertIn("alice", self.graph.friends_of("bob"))

    def test_add_unknown_friend(self):
        self.assertEqual(self.graph.add_friend("alice", "zed"), {"error": NOT_FOUND})
        self.assertEqual(self.graph.friends_of("alice"), [])
        self.assertIsNone(self.graph.friends_of("zed"))

    def test_add_self_is_rejected(self):
        self.assertEqual(self.graph.add_friend("alice", "alice"), {"error": NOT_FOUND})

    def test_add_friend_twice(self):
        self.assertTrue(self.graph.add_friend("alice", "bob")["created"])
        self.assertFalse(self.graph.add_friend("bob", "alice")["created"])
        self.assertEqual(self.graph.friends_of("alice"), ["bob"])

    def test_common_friends_symmetric(self):
        self.graph.add_friend("alice", "carol")
        self.graph.add_friend("alice", "dave")
        self.graph.add_friend("bob", "carol")
        self.graph.add_friend("bob", "dave")
        self.graph.add_friend("alice", "bob")

        ab = self.graph.common_friends("alice", "bob")
        ba = self.graph.common_friends("bob", "alice")
        self.assertEqual(ab, {"success": True, "friends": ["carol", "dave"]})
        self.assertEqual(ab, ba)

    def test_common_friends_unknown_user(self):
        self.assertEqual(self.graph.common_friends("alice", "zed"), {"error": NOT_FOUND})

    def test_load_user_links_both_sides(self):
        self.graph.load_user("erin", friends=["alice", "frank"])

        self.assertIn("erin", self.graph.friends_of("alice"))
        self.assertIn("erin", self.graph.friends_of("frank"))
        self.assertTrue(self.graph.is_known("frank"))

    def test_concurrent_add_friend_stays_symmetric(self):
        names = [f"user{i}" for i in range(20)]
        for n in names:
            self.graph.load_user(n)

        def worker(me):
            for other in names:
                if other != me:
                    self.graph.add_friend(me, other)

        threads = [threading.Thread(target=worker, args=(n,)) for n in names]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        for a in names:
            for b in self.graph.friends_of(a):
                self.assertIn(a, self.graph.friends_of(b))
            self.assertEqual(len(self.graph.friends_of(a)), len(names) - 1)


class TestFriendsWithStore(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.store = UserStore(os.path.join(self.tmp.name, "users.json"))
        self.graph = SocialGraph(user_store=self.store)

    def tearDown(self):
        self.tmp.cleanup()

    def test_registered_offline_user_is_known(self):
        self.store.create_user("bob")
        self.graph.load_user("alice")

        self.assertTrue(self.graph.add_friend("alice", "bob")["success"])

    def test_friendship_is_persisted(self):
        self.store.create_user("bob")
        self.graph.load_user("alice")
        self.graph.add_friend("alice", "bob")

        self.assertEqual(self.store.find_by_username("alice")["friends"], ["bob"])
        self.assertEqual(self.store.find_by_username("bob")["friends"], ["alice"])

    def test_durable_friends_loaded_lazily(self):
        self.store.create_user("carol")
        self.store.persist_friend_update("carol", "dave")

        self.assertTrue(self.graph.is_known("carol"))
        self.assertEqual(self.graph.friends_of("carol"), ["dave"])
        self.assertEqual(self.graph.friends_of("dave"), ["carol"])

    def _seed_store(self):
        # alice:[bob]  bob:[alice, carol]  erin:[carol]
        self.store.persist_friend_update("alice", "bob")
        self.store.persist_friend_update("bob", "carol")
        self.store.persist_friend_update("erin", "carol")

    def test_friend_linked_from_another_record_is_fully_loaded(self):
        self._seed_store()
        self.graph.load_user("alice", self.store.find_by_username("alice")["friends"])

        self.assertEqual(self.graph.friends_of("bob"), ["alice", "carol"])

    def test_common_friends_with_offline_user(self):
        self._seed_store()
        self.graph.load_user("alice", self.store.find_by_username("alice")["friends"])
        self.graph.load_user("erin", self.store.find_by_username("erin")["friends"])

        self.assertEqual(self.graph.common_friends("erin", "bob"), {"success": True, "friends": ["carol"]})
        self.assertEqual(self.graph.common_friends("bob", "erin"), {"success": True, "friends": ["carol"]})


class TestGroups(unittest.TestCase):

    def setUp(self):
        self.graph = SocialGraph()
        for name in ("alice", "bob", "carol", "dave"):
            self.graph.load_user(name)

    def test_creator_is_always_member(self):
        resp = self.graph.create_group("alice", "g1", ["bob", "carol"])

        group = resp["group"]
        self.assertEqual(group.members, ("alice", "bob", "carol"))
        self.assertEqual(group.creator, "alice")

    def test_duplicates_and_creator_in_list(self):
        resp = self.graph.create_group("alice", "g1", ["bob", "alice", "bob"])
        self.assertEqual(resp["group"].members, ("alice", "bob"))

    def test_no_members_given(self):
        resp = self.graph.create_group("alice", "solo", None)
        self.assertEqual(resp["group"].members, ("alice",))

    def test_name_collision(self):
        self.graph.create_group("alice", "g1", ["bob"])
        resp = self.graph.create_group("carol", "g1", ["dave"])

        self.assertEqual(resp, {"error": NAME_COLLISION})
        self.assertEqual(self.graph.get_group("g1").creator, "alice")

    def test_unknown_member(self):
        resp = self.graph.create_group("alice", "g1", ["bob", "zed", "yan"])

        self.assertEqual(resp, {"error": INVALID_MEMBER, "members": ["zed", "yan"]})
        self.assertIsNone(self.graph.get_group("g1"))
        self.assertEqual(self.graph.groups_of("bob"), [])

    def test_non_string_member(self):
        resp = self.graph.create_group("alice", "g1", ["bob", 3])
        self.assertEqual(resp["error"], INVALID_MEMBER)

    def test_invalid_group_name(self):
        for name in ("", "bad name", "x" * 33, None):
            self.assertEqual(self.graph.create_group("alice", name, []), {"error": INVALID_NAME})

    def test_group_too_large(self):
        names = [f"m{i}" for i in range(MAX_GROUP_SIZE)]
        for n in names:
            self.graph.load_user(n)

        resp = self.graph.create_group("alice", "big", names)
        self.assertEqual(resp, {"error": GROUP_TOO_LARGE})

    def test_groups_of(self):
        self.graph.create_group("alice", "g2", ["bob"])
        self.graph.create_group("carol", "g1", ["bob"])

        self.assertEqual([g.name for g in self.graph.groups_of("bob")], ["g1", "g2"])
        self.assertEqual([g.name for g in self.graph.groups_of("dave")], [])
        self.assertEqual(self.graph.group_count(), 2)

    def test_group_membership_not_friendship(self):
        self.graph.create_group("alice", "g1", ["bob"])
        self.assertEqual(self.graph.friends_of("alice"), [])

    def test_group_message_recipients(self):
        self.graph.create_group("alice", "g1", ["bob", "carol"])
        resp = self.graph.group_message("alice", "g1", "hi")

        self.assertTrue(resp["success"])
        self.assertEqual(resp["recipients"], ["bob", "carol"])

    def test_group_message_errors(self):
        self.graph.create_group("alice", "g1", ["bob"])

        self.assertEqual(self.graph.group_message("dave", "g1", "hi"), {"error": NOT_MEMBER})
        self.assertEqual(self.graph.group_message("alice", "nope", "hi"), {"error": NO_SUCH_GROUP})

    def test_match_snapshot(self):
        self.graph.add_friend("alice", "dave")
        self.graph.create_group("alice", "g1", ["bob"])

        group, friends = self.graph.match_snapshot("g1")
        self.assertEqual(group.members, ("alice", "bob"))
        self.assertEqual(friends, {"alice": frozenset({"dave"}), "bob": frozenset()})
        self.assertIsNone(self.graph.match_snapshot("missing"))


if __name__ == "__main__":
    unittest.main()
