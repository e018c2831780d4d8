# ============================================
#     PairChat — Matchmaker
#     Random pairing inside a group + common friends
# ============================================

import random

from pairchat.social import NO_SUCH_GROUP
from pairchat.router import DELIVERED
from pairchat.logger import log_info


def pair_members(members, rng=None):
    """
    Shuffle `members` and cut them into pairing units.

    Units are consecutive pairs of the shuffled order; with an odd count the
    last member joins the final pair, which becomes a triple. Fewer than two
    members gives no units.

    `rng` is a random.Random (seed it for reproducible pairings).
    """
    rng = rng or random.Random()

    shuffled = list(members)
    rng.shuffle(shuffled)

    if len(shuffled) < 2:
        return []

    units = [
        [shuffled[i], shuffled[i + 1]]
        for i in range(0, len(shuffled) - 1, 2)
    ]
    if len(shuffled) % 2:
        units[-1].append(shuffled[-1])

    return [tuple(u) for u in units]


def match_notifications(units, friends):
    """
    Build the `matched` notifications for a list of units.

    Every member after the first is compared with the first one, so a triple
    (a, b, c) yields a<->b and a<->c. `friends` maps username -> friend set.

    Returns [(recipient, counterpart, common_friends_sorted), ...].
    """
    notes = []
    for unit in units:
        head = unit[0]
        for other in unit[1:]:
            common = sorted(friends.get(head, frozenset()) & friends.get(other, frozenset()))
            notes.append((head, other, common))
            notes.append((other, head, list(common)))
    return notes


def run_match(graph, router, group_name, rng=None, online_only=False):
    """
    One matchmaking pass over `group_name`.

    The roster and friend sets come from a single graph snapshot; deliveries
    go through the router afterwards, so a member leaving mid-pass only turns
    into an offline outcome.

    Returns:
        {"error": "no_such_group"}
        {"success": True, "units": [...], "deliveries": [(recipient, outcome), ...]}
    """
    snapshot = graph.match_snapshot(group_name)
    if snapshot is None:
        return {"error": NO_SUCH_GROUP}

    group, friends = snapshot
    members = list(group.members)

    if online_only:
        online = router.registry.online_usernames()
        members = [m for m in members if m in online]

    units = pair_members(members, rng)

    deliveries = []
    for recipient, counterpart, common in match_notifications(units, friends):
        outcome = router.deliver_to_user(recipient, "matched", counterpart, common)
        deliveries.append((recipient, outcome))

    delivered = sum(1 for _, o in deliveries if o == DELIVERED)
    log_info(
        "matchmaker",
        f"Group {group_name}: {len(members)} members -> {len(units)} units, "
        f"{delivered}/{len(deliveries)} matched events delivered"
    )

    return {"success": True, "units": units, "deliveries": deliveries}
