import unittest

from galerie.application.resolver import ReleaseResolver
from galerie.domain.exceptions import NoBaselineException
from galerie.domain.models import Feed, FeedEntry, InstalledPackage, UpdateDescriptor

URI = "https://github.com/imath/galerie"


def _feed(*tags, content=None) -> Feed:
    return Feed(entries=[
        FeedEntry(id=f"tag:github.com,2008:Repository/80042543/{tag}", content=content or [])
        for tag in tags
    ])


def _installed(version: str) -> InstalledPackage:
    return InstalledPackage(plugin_key="galerie/galerie.php", version=version, upstream_uri=URI)


class TestReleaseResolver(unittest.TestCase):
    def setUp(self) -> None:
        self.resolver = ReleaseResolver()

    def test_first_greater_stable_tag_is_an_update(self) -> None:
        descriptor = self.resolver.resolve(_feed("1.5.0", "0.9.0"), _installed("1.0.0"))

        self.assertTrue(descriptor.is_update)
        self.assertFalse(descriptor.is_install)
        self.assertEqual(descriptor.new_version, "1.5.0")
        self.assertEqual(descriptor.id, "github.com/imath/galerie")
        self.assertEqual(descriptor.identity.slug, "galerie")
        self.assertEqual(descriptor.identity.plugin_key, "galerie/galerie.php")
        self.assertEqual(
            descriptor.package,
            "https://github.com/imath/galerie/releases/download/1.5.0/galerie.zip",
        )

    def test_no_greater_tag_yields_sentinel(self) -> None:
        descriptor = self.resolver.resolve(_feed("1.5.0", "0.9.0"), _installed("2.0.0"))

        self.assertEqual(descriptor, UpdateDescriptor.no_update())

    def test_equal_tag_is_not_an_update(self) -> None:
        descriptor = self.resolver.resolve(_feed("1.0"), _installed("1.0.0"))

        self.assertFalse(descriptor.is_update)

    def test_prerelease_is_never_selected(self) -> None:
        descriptor = self.resolver.resolve(_feed("1.2.0-beta", "1.2.0"), _installed("1.0.0"))

        self.assertEqual(descriptor.new_version, "1.2.0")

    def test_empty_version_yields_sentinel(self) -> None:
        descriptor = self.resolver.resolve(_feed("9.0.0", "1.0.0"), _installed(""))

        self.assertEqual(descriptor, UpdateDescriptor.no_update())

    def test_latest_installs_first_valid_entry(self) -> None:
        descriptor = self.resolver.resolve(_feed("2.0.0", "1.0.0"), _installed("latest"))

        self.assertTrue(descriptor.is_install)
        self.assertFalse(descriptor.is_update)
        self.assertEqual(descriptor.new_version, "2.0.0")

        record = descriptor.to_response()
        self.assertEqual(record["download_link"], descriptor.package)
        self.assertEqual(record["version"], "2.0.0")
        self.assertEqual(record["name"], "galerie")

    def test_entries_without_id_are_skipped(self) -> None:
        feed = Feed(entries=[FeedEntry(content=["orphan"])] + _feed("1.1.0").entries)

        descriptor = self.resolver.resolve(feed, _installed("1.0.0"))

        self.assertEqual(descriptor.new_version, "1.1.0")

    def test_last_content_block_is_the_upgrade_notice(self) -> None:
        feed = _feed("1.1.0", content=["<h2>Changes</h2>", "<p>Upgrade notice</p>"])

        descriptor = self.resolver.resolve(feed, _installed("1.0.0"))

        self.assertEqual(descriptor.full_upgrade_notice, "<p>Upgrade notice</p>")
        self.assertEqual(descriptor.to_response()["full_upgrade_notice"], "<p>Upgrade notice</p>")

    def test_resolve_is_idempotent(self) -> None:
        feed = _feed("1.5.0", "0.9.0")
        installed = _installed("1.0.0")

        self.assertEqual(self.resolver.resolve(feed, installed), self.resolver.resolve(feed, installed))

    def test_response_record_has_host_fields(self) -> None:
        record = self.resolver.resolve(_feed("1.5.0"), _installed("1.0.0")).to_response()

        self.assertEqual(
            set(record),
            {"id", "slug", "plugin", "new_version", "url", "package"},
        )
        self.assertEqual(record["url"], URI)

    def test_require_baseline_raises_without_version(self) -> None:
        with self.assertRaises(NoBaselineException):
            ReleaseResolver.require_baseline(_installed(""))
