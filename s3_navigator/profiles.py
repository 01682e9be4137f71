from __future__ import annotations
"""Saved credential profiles and their persistence."""
from dataclasses import dataclass
import json
from pathlib import Path

import keyring
from keyring.errors import KeyringError

DEFAULT_START_URL = "https://s3.amazonaws.com/"


@dataclass
class ConnectionProfile:
    """A named access key pair plus the URL browsing starts from."""

    name: str
    access_key: str
    secret_key: str
    start_url: str = DEFAULT_START_URL


class KeychainStore:
    """Encapsulates OS keychain access for secrets."""

    def __init__(self, service_name: str = "pys3nav"):
        self._service_name = service_name

    def get_secret(self, profile_name: str) -> str:
        if not profile_name:
            return ""
        try:
            return keyring.get_password(self._service_name, profile_name) or ""
        except KeyringError:
            return ""

    def set_secret(self, profile_name: str, secret_key: str) -> None:
        if not profile_name:
            return
        if not secret_key:
            self.delete_secret(profile_name)
            return
        try:
            keyring.set_password(self._service_name, profile_name, secret_key)
        except KeyringError:
            return

    def delete_secret(self, profile_name: str) -> None:
        if not profile_name:
            return
        try:
            keyring.delete_password(self._service_name, profile_name)
        except KeyringError:
            return


class ProfileStorage:
    """JSON-backed store for profiles; secrets are kept in the keychain."""

    def __init__(self, storage_path: str | Path | None = None, keychain: KeychainStore | None = None):
        if storage_path is None:
            storage_path = Path.home() / ".pys3nav_profiles.json"
        self._path = Path(storage_path)
        self._keychain = keychain or KeychainStore()

    def load(self) -> list[ConnectionProfile]:
        data = self._read_data()
        profiles: list[ConnectionProfile] = []
        sanitized: list[dict[str, str]] = []
        saw_plaintext = False
        for entry in data:
            try:
                name = entry["name"]
                access_key = entry["access_key"]
            except (KeyError, TypeError):
                continue
            start_url = entry.get("start_url") or DEFAULT_START_URL
            secret_key = entry.get("secret_key", "")
            if secret_key:
                saw_plaintext = True
                self._keychain.set_secret(name, secret_key)
            else:
                secret_key = self._keychain.get_secret(name)
            profiles.append(
                ConnectionProfile(
                    name=name,
                    access_key=access_key,
                    secret_key=secret_key,
                    start_url=start_url,
                )
            )
            sanitized.append(self._serialize(profiles[-1]))
        if saw_plaintext:
            self._write_data(sanitized)
        return profiles

    def get(self, name: str) -> ConnectionProfile | None:
        for profile in self.load():
            if profile.name == name:
                return profile
        return None

    def save(self, profiles: list[ConnectionProfile]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        data = []
        for profile in profiles:
            self._keychain.set_secret(profile.name, profile.secret_key)
            data.append(self._serialize(profile))
        existing_names = self._load_profile_names()
        current_names = {profile.name for profile in profiles}
        for name in existing_names - current_names:
            self._keychain.delete_secret(name)
        self._write_data(data)

    def _load_profile_names(self) -> set[str]:
        names = set()
        for entry in self._read_data():
            name = entry.get("name") if isinstance(entry, dict) else None
            if isinstance(name, str) and name:
                names.add(name)
        return names

    def _read_data(self) -> list:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            return []
        return data if isinstance(data, list) else []

    @staticmethod
    def _serialize(profile: ConnectionProfile) -> dict[str, str]:
        return {
            "name": profile.name,
            "access_key": profile.access_key,
            "start_url": profile.start_url,
        }

    def _write_data(self, data: list[dict[str, str]]) -> None:
        self._path.write_text(json.dumps(data, indent=2), encoding="utf-8")
