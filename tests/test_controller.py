import tempfile
import unittest
from pathlib import Path
from unittest import mock

from s3_navigator import controller as controller_module
from s3_navigator.controller import NavigatorController, NoProfileSelectedError
from s3_navigator.errors import AuthenticationError
from s3_navigator.models import Credential, RawContent
from s3_navigator.profiles import ConnectionProfile, ProfileStorage
from s3_navigator.transport import HttpResponse

BUCKETS_XML = b"""<ListAllMyBucketsResult>
  <Buckets><Bucket><Name>alpha</Name></Bucket></Buckets>
</ListAllMyBucketsResult>"""


class FakeKeychain:
    def __init__(self):
        self.secrets = {}

    def get_secret(self, profile_name: str) -> str:
        return self.secrets.get(profile_name, "")

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        self.secrets[profile_name] = secret_key

    def delete_secret(self, profile_name: str) -> None:
        self.secrets.pop(profile_name, None)


class FakeTransport:
    def __init__(self, routes):
        self.routes = routes
        self.calls = []
        self.closed = False

    def get(self, url, headers, exclude_from_cache_key=()):
        self.calls.append((url, dict(headers)))
        return self.routes[url]

    def close(self):
        self.closed = True


class NavigatorControllerTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.storage = ProfileStorage(Path(self._tmp.name) / "profiles.json", keychain=FakeKeychain())
        self.transport = FakeTransport(
            {
                "https://s3.amazonaws.com/": HttpResponse(200, BUCKETS_XML),
                "https://alpha.s3.amazonaws.com/readme.txt": HttpResponse(200, b"hi"),
            }
        )

    def build_controller(self):
        return NavigatorController(storage=self.storage, transport=self.transport)

    def test_open_requires_selected_profile(self):
        controller = self.build_controller()

        with self.assertRaises(NoProfileSelectedError):
            controller.open("https://s3.amazonaws.com/")

    def test_open_uses_start_url_of_selected_profile(self):
        controller = self.build_controller()
        controller.save_profile(ConnectionProfile(name="work", access_key="AKID", secret_key="secret"))

        controller.select_profile("work")
        table = controller.open()

        self.assertEqual(["alpha"], table.names())
        url, headers = self.transport.calls[0]
        self.assertEqual("https://s3.amazonaws.com/", url)
        self.assertIn("Credential=AKID/", headers["Authorization"])

    def test_open_explicit_url(self):
        controller = self.build_controller()
        controller.save_profile(ConnectionProfile(name="work", access_key="AKID", secret_key="secret"))
        controller.select_profile("work")

        content = controller.open("https://alpha.s3.amazonaws.com/readme.txt")

        self.assertEqual(RawContent(body=b"hi"), content)

    def test_open_with_session_credentials_uses_default_start_url(self):
        controller = self.build_controller()
        provider = mock.Mock(return_value=Credential(access_key_id="AKSESSION", secret_key="secret"))

        with mock.patch.object(controller_module, "SessionCredentialProvider", return_value=provider):
            controller.select_session_credentials()
        table = controller.open()

        self.assertEqual(["alpha"], table.names())
        self.assertIsNone(controller.selected_profile)
        url, headers = self.transport.calls[0]
        self.assertEqual("https://s3.amazonaws.com/", url)
        self.assertIn("Credential=AKSESSION/", headers["Authorization"])

    def test_owned_transport_is_shared_and_closed(self):
        built = []

        def build_transport(**kwargs):
            transport = FakeTransport(self.transport.routes)
            built.append(transport)
            return transport

        controller = NavigatorController(storage=self.storage)
        controller.save_profile(ConnectionProfile(name="a", access_key="A", secret_key="s"))
        controller.save_profile(ConnectionProfile(name="b", access_key="B", secret_key="s"))
        with mock.patch.object(controller_module, "HttpTransport", side_effect=build_transport):
            controller.select_profile("a")
            controller.select_profile("b")
            controller.open()

        self.assertEqual(1, len(built))
        self.assertEqual(1, len(built[0].calls))

        controller.close()

        self.assertTrue(built[0].closed)
        self.assertIsNone(controller.selected_profile)
        with self.assertRaises(NoProfileSelectedError):
            controller.open()

    def test_close_leaves_injected_transport_open(self):
        controller = self.build_controller()
        controller.save_profile(ConnectionProfile(name="work", access_key="AKID", secret_key="secret"))
        controller.select_profile("work")

        controller.close()

        self.assertFalse(self.transport.closed)

    def test_profile_without_secret_fails_authentication(self):
        controller = self.build_controller()
        controller.save_profile(ConnectionProfile(name="work", access_key="AKID", secret_key=""))
        controller.select_profile("work")

        with self.assertRaises(AuthenticationError):
            controller.open()
        self.assertEqual([], self.transport.calls)

    def test_save_profile_persists_and_replaces(self):
        controller = self.build_controller()
        controller.save_profile(ConnectionProfile(name="work", access_key="A", secret_key="s"))
        controller.save_profile(ConnectionProfile(name="work", access_key="B", secret_key="s"))

        self.assertEqual(["B"], [profile.access_key for profile in controller.list_profiles()])
        self.assertEqual("B", self.storage.get("work").access_key)

    def test_rename_profile_clears_selection(self):
        controller = self.build_controller()
        controller.save_profile(ConnectionProfile(name="old", access_key="A", secret_key="s"))
        controller.select_profile("old")

        controller.save_profile(
            ConnectionProfile(name="new", access_key="A", secret_key="s"),
            original_name="old",
        )

        self.assertIsNone(controller.selected_profile)
        self.assertEqual(["new"], [profile.name for profile in controller.list_profiles()])

    def test_delete_profile(self):
        controller = self.build_controller()
        controller.save_profile(ConnectionProfile(name="work", access_key="A", secret_key="s"))
        controller.select_profile("work")

        controller.delete_profile("work")

        self.assertEqual([], controller.list_profiles())
        self.assertIsNone(controller.selected_profile)
        with self.assertRaises(NoProfileSelectedError):
            controller.open()

    def test_delete_unknown_profile_raises(self):
        controller = self.build_controller()

        with self.assertRaises(ValueError):
            controller.delete_profile("missing")

    def test_select_unknown_profile_raises(self):
        controller = self.build_controller()

        with self.assertRaises(ValueError):
            controller.select_profile("missing")


if __name__ == "__main__":
    unittest.main()
