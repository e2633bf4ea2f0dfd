import unittest

import support  # noqa: F401

from modtiers.exceptions import InvariantViolationError
from modtiers.models import Dependency, DependencyType, ModRecord, Tier, TierName
from modtiers.records import apply_tier_update, apply_tier_updates
from modtiers.utils import UNKNOWN

FABRIC_JAR = "https://meta.fabricmc.net/v2/versions/loader/{gv}/0.16.14/1.0.3/server/jar"


def base_record():
    return ModRecord(
        id="fabric-api",
        loader="fabric",
        current=Tier("0.127.0+1.21.5", "1.21.5", "https://cdn.modrinth.com/data/P7dR8mSH/versions/a/fabric-api.jar"),
    )


class TestApplyTierUpdates(unittest.TestCase):
    def test_applies_all_tiers_and_dependencies_together(self):
        record = base_record()
        dep = Dependency("P7dR8mSH", DependencyType.REQUIRED)
        updated = apply_tier_updates(
            record,
            {
                TierName.NEXT: Tier("0.128.1", "1.21.6", "https://x/next.jar"),
                TierName.LATEST: Tier("0.130.0", "1.21.8", "https://x/latest.jar"),
            },
            latest_dependencies=[dep],
        )
        self.assertEqual(updated.next.game_version, "1.21.6")
        self.assertEqual(updated.latest.version, "0.130.0")
        self.assertEqual(updated.latest_dependencies, [dep])
        self.assertEqual(updated.current_dependencies, [])
        self.assertTrue(record.next.is_unknown)

    def test_next_must_be_patch_successor(self):
        for bad in ("1.21.5", "1.21.4", "1.21.7", "1.22"):
            with self.assertRaises(InvariantViolationError, msg=bad):
                apply_tier_update(base_record(), TierName.NEXT, Tier("1.0", bad, "https://x/a.jar"))

    def test_latest_cannot_trail_next(self):
        record = apply_tier_update(base_record(), TierName.NEXT, Tier("1.0", "1.21.6", "https://x/a.jar"))
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(record, TierName.LATEST, Tier("0.9", "1.21.5", "https://x/b.jar"))
        same = apply_tier_update(record, TierName.LATEST, Tier("1.0", "1.21.6", "https://x/a.jar"))
        self.assertEqual(same.latest.game_version, "1.21.6")

    def test_order_of_a_combined_update_does_not_matter(self):
        record = apply_tier_updates(
            base_record(),
            {
                TierName.NEXT: Tier("1.0", "1.21.6", "https://x/a.jar"),
                TierName.LATEST: Tier("1.0", "1.21.6", "https://x/a.jar"),
            },
        )
        moved = apply_tier_updates(
            record,
            {
                TierName.CURRENT: Tier("1.0", "1.21.6", "https://x/a.jar"),
                TierName.NEXT: Tier("1.1", "1.21.7", "https://x/b.jar"),
                TierName.LATEST: Tier("1.1", "1.21.7", "https://x/b.jar"),
            },
        )
        self.assertEqual(moved.current.game_version, "1.21.6")

    def test_url_game_version_must_match_tier(self):
        good = Tier("0.16.14", "1.21.6", FABRIC_JAR.format(gv="1.21.6"))
        self.assertEqual(apply_tier_update(base_record(), TierName.NEXT, good).next, good)
        drifted = Tier("0.16.14", "1.21.6", FABRIC_JAR.format(gv="1.21.5"))
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(base_record(), TierName.NEXT, drifted)
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(base_record(), TierName.CURRENT, Tier("0.16.14", "1.21.5", FABRIC_JAR.format(gv="1.21.4")))

    def test_unknown_sentinel(self):
        self.assertTrue(apply_tier_update(base_record(), TierName.NEXT, Tier.unknown()).next.is_unknown)
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(base_record(), TierName.LATEST, Tier(UNKNOWN, "1.21.5", "https://x/a.jar"))
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(base_record(), TierName.LATEST, Tier("1.0", UNKNOWN, UNKNOWN))

    def test_missing_url_is_a_half_unknown_tier(self):
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(base_record(), TierName.LATEST, Tier("0.130.0", "1.21.8", UNKNOWN))
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(base_record(), TierName.NEXT, Tier(UNKNOWN, UNKNOWN, "https://x/a.jar"))
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(base_record(), TierName.CURRENT, Tier("0.127.0+1.21.5", "1.21.5", UNKNOWN))

    def test_rejection_leaves_record_untouched(self):
        record = apply_tier_update(base_record(), TierName.NEXT, Tier("1.0", "1.21.6", "https://x/a.jar"))
        before = (record.current, record.next, record.latest)
        with self.assertRaises(InvariantViolationError) as ctx:
            apply_tier_updates(
                record,
                {TierName.LATEST: Tier("2.0", "1.21.9", "https://x/z.jar"), TierName.NEXT: Tier("1.0", "1.21.8", "https://x/a.jar")},
            )
        self.assertEqual((record.current, record.next, record.latest), before)
        self.assertIn("problems", ctx.exception.context)

    def test_next_requires_a_release_current(self):
        record = ModRecord(id="x", current=Tier("1.0", "25w14a", "https://x/a.jar"))
        with self.assertRaises(InvariantViolationError):
            apply_tier_update(record, TierName.NEXT, Tier("1.1", "1.21.6", "https://x/b.jar"))


if __name__ == '__main__':
    unittest.main()
