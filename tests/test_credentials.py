import tempfile
import unittest
from pathlib import Path

from botocore.credentials import Credentials
from botocore.exceptions import ProfileNotFound

from s3_navigator.credentials import (
    ProfileCredentialProvider,
    SessionCredentialProvider,
    StaticCredentialProvider,
)
from s3_navigator.errors import AuthenticationError
from s3_navigator.models import Credential
from s3_navigator.profiles import ConnectionProfile, ProfileStorage


class FakeKeychain:
    def __init__(self):
        self.secrets = {}

    def get_secret(self, profile_name: str) -> str:
        return self.secrets.get(profile_name, "")

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        self.secrets[profile_name] = secret_key

    def delete_secret(self, profile_name: str) -> None:
        self.secrets.pop(profile_name, None)


class FakeSession:
    def __init__(self, credentials=None, error=None):
        self.credentials = credentials
        self.error = error

    def get_credentials(self):
        if self.error:
            raise self.error
        return self.credentials


class StaticCredentialProviderTests(unittest.TestCase):
    def test_returns_configured_pair(self):
        provider = StaticCredentialProvider("AKID", "secret")

        self.assertEqual(Credential(access_key_id="AKID", secret_key="secret"), provider())

    def test_secret_is_hidden_from_repr(self):
        self.assertNotIn("secret", repr(StaticCredentialProvider("AKID", "secret")()))


class ProfileCredentialProviderTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.keychain = FakeKeychain()
        self.storage = ProfileStorage(Path(self._tmp.name) / "profiles.json", keychain=self.keychain)

    def test_reads_profile_fresh_each_call(self):
        self.storage.save([ConnectionProfile(name="work", access_key="AKID", secret_key="one")])
        provider = ProfileCredentialProvider(self.storage, "work")

        self.assertEqual(Credential(access_key_id="AKID", secret_key="one"), provider())

        self.keychain.secrets["work"] = "two"

        self.assertEqual("two", provider().secret_key)

    def test_missing_profile(self):
        provider = ProfileCredentialProvider(self.storage, "absent")

        with self.assertRaises(AuthenticationError):
            provider()

    def test_missing_secret(self):
        self.storage.save([ConnectionProfile(name="work", access_key="AKID", secret_key="")])
        provider = ProfileCredentialProvider(self.storage, "work")

        with self.assertRaises(AuthenticationError):
            provider()


class SessionCredentialProviderTests(unittest.TestCase):
    def test_returns_long_term_keys(self):
        sessions = []

        def factory(profile_name=None):
            sessions.append(profile_name)
            return FakeSession(Credentials("AKID", "secret"))

        provider = SessionCredentialProvider("dev", session_factory=factory)

        self.assertEqual(Credential(access_key_id="AKID", secret_key="secret"), provider())
        self.assertEqual(["dev"], sessions)

    def test_rejects_session_tokens(self):
        provider = SessionCredentialProvider(
            session_factory=lambda profile_name=None: FakeSession(Credentials("AKID", "secret", "token"))
        )

        with self.assertRaises(AuthenticationError):
            provider()

    def test_missing_credentials(self):
        provider = SessionCredentialProvider(session_factory=lambda profile_name=None: FakeSession(None))

        with self.assertRaises(AuthenticationError):
            provider()

    def test_botocore_errors_become_authentication_errors(self):
        def factory(profile_name=None):
            raise ProfileNotFound(profile=profile_name)

        provider = SessionCredentialProvider("missing", session_factory=factory)

        with self.assertRaises(AuthenticationError):
            provider()


if __name__ == "__main__":
    unittest.main()
