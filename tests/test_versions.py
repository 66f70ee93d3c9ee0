import unittest
from itertools import permutations

from galerie.domain.versions import compare_versions, is_stable_tag, tag_from_id


class TestCompareVersions(unittest.TestCase):
    def test_greater_major_wins(self) -> None:
        self.assertEqual(compare_versions("2.0.0", "1.9.9"), 1)
        self.assertEqual(compare_versions("1.9.9", "2.0.0"), -1)

    def test_missing_trailing_component_is_zero(self) -> None:
        self.assertEqual(compare_versions("1.0", "1.0.0"), 0)
        self.assertEqual(compare_versions("1.0", "1.0.1"), -1)

    def test_components_compare_numerically(self) -> None:
        self.assertEqual(compare_versions("1.10.0", "1.9.0"), 1)

    def test_prerelease_is_lower_than_release(self) -> None:
        self.assertEqual(compare_versions("1.2.0-beta", "1.2.0"), -1)
        self.assertEqual(compare_versions("1.2.0-beta", "1.2.0-alpha"), 1)
        self.assertEqual(compare_versions("2.0rc1", "2.0"), -1)

    def test_leading_v_is_ignored(self) -> None:
        self.assertEqual(compare_versions("v1.2.3", "1.2.3"), 0)

    def test_antisymmetric_and_transitive(self) -> None:
        tags = ["0.9", "1.0", "1.0.0", "1.0.1", "1.2.0-beta", "1.2.0", "1.10", "2.0rc1", "2.0.0"]

        for a, b in permutations(tags, 2):
            self.assertEqual(compare_versions(a, b), -compare_versions(b, a), (a, b))

        for a, b, c in permutations(tags, 3):
            if compare_versions(a, b) <= 0 and compare_versions(b, c) <= 0:
                self.assertLessEqual(compare_versions(a, c), 0, (a, b, c))


class TestTagHelpers(unittest.TestCase):
    def test_tag_from_id_takes_last_segment(self) -> None:
        self.assertEqual(
            tag_from_id("tag:github.com,2008:Repository/80042543/1.0.0"),
            "1.0.0",
        )
        self.assertEqual(tag_from_id(None), "")

    def test_stable_tags_are_numeric_without_dots(self) -> None:
        self.assertTrue(is_stable_tag("1.2.0"))
        self.assertTrue(is_stable_tag("20"))
        self.assertFalse(is_stable_tag("1.2.0-beta"))
        self.assertFalse(is_stable_tag("v1.2.0"))
        self.assertFalse(is_stable_tag(""))
