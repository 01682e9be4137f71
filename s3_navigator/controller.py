from __future__ import annotations
"""Controller that ties saved profiles to a navigator service."""

import logging

from .credentials import ProfileCredentialProvider, SessionCredentialProvider
from .models import Resource
from .profiles import DEFAULT_START_URL, ConnectionProfile, ProfileStorage
from .services import S3NavigatorService
from .settings import AppSettings
from .transport import HttpTransport, Transport

LOGGER = logging.getLogger(__name__)


class NoProfileSelectedError(RuntimeError):
    """Raised when a fetch is attempted before a profile is selected."""


class NavigatorController:
    """Coordinates profile management with :class:`S3NavigatorService`.

    A transport passed in belongs to the caller. Otherwise the controller
    builds one from ``settings`` on first use, shares it between profile
    selections and closes it in :meth:`close`.
    """

    def __init__(
        self,
        storage: ProfileStorage | None = None,
        settings: AppSettings | None = None,
        transport: Transport | None = None,
    ):
        self._storage = storage or ProfileStorage()
        self._settings = settings or AppSettings()
        self._transport = transport
        self._owned_transport: HttpTransport | None = None
        self._profiles: list[ConnectionProfile] = self._storage.load()
        self._selected_profile: str | None = None
        self._service: S3NavigatorService | None = None

    @property
    def selected_profile(self) -> str | None:
        return self._selected_profile

    def list_profiles(self) -> list[ConnectionProfile]:
        return list(self._profiles)

    def save_profile(self, profile: ConnectionProfile, *, original_name: str | None = None) -> None:
        if original_name and original_name != profile.name:
            self._profiles = [p for p in self._profiles if p.name != original_name]
            if self._selected_profile == original_name:
                self._deselect()
        self._upsert_profile(profile)
        self._persist_profiles()

    def delete_profile(self, name: str) -> None:
        before = len(self._profiles)
        self._profiles = [p for p in self._profiles if p.name != name]
        if len(self._profiles) == before:
            raise ValueError(f"Profile '{name}' does not exist")
        if self._selected_profile == name:
            self._deselect()
        self._persist_profiles()

    def get_profile(self, name: str) -> ConnectionProfile:
        for profile in self._profiles:
            if profile.name == name:
                return profile
        raise ValueError(f"Profile '{name}' does not exist")

    def select_profile(self, name: str) -> ConnectionProfile:
        profile = self.get_profile(name)
        self._selected_profile = name
        self._service = S3NavigatorService(
            ProfileCredentialProvider(self._storage, name),
            transport=self._get_transport(),
        )
        LOGGER.debug("Selected profile '%s'", name)
        return profile

    def select_session_credentials(self, profile_name: str | None = None) -> None:
        """Sign with boto3's credential chain instead of a saved profile."""

        self._selected_profile = None
        self._service = S3NavigatorService(
            SessionCredentialProvider(profile_name),
            transport=self._get_transport(),
        )
        LOGGER.debug("Selected boto3 session credentials")

    def open(self, url: str | None = None) -> Resource:
        """Fetch ``url``, or the start URL of the current selection."""

        service = self._require_service()
        if url:
            target = url
        elif self._selected_profile:
            target = self.get_profile(self._selected_profile).start_url
        else:
            target = DEFAULT_START_URL
        return service.fetch_resource(target)

    def close(self) -> None:
        self._deselect()
        if self._owned_transport is not None:
            self._owned_transport.close()
            self._owned_transport = None

    def _get_transport(self) -> Transport:
        if self._transport is not None:
            return self._transport
        if self._owned_transport is None:
            self._owned_transport = HttpTransport(
                timeout=self._settings.connect_timeout,
                max_pool_connections=self._settings.max_pool_connections,
                cache=self._settings.cache_responses,
            )
        return self._owned_transport

    def _require_service(self) -> S3NavigatorService:
        if self._service is None:
            raise NoProfileSelectedError("No connection profile selected")
        return self._service

    def _deselect(self) -> None:
        self._selected_profile = None
        self._service = None

    def _upsert_profile(self, profile: ConnectionProfile) -> None:
        for idx, existing in enumerate(self._profiles):
            if existing.name == profile.name:
                self._profiles[idx] = profile
                break
        else:
            self._profiles.append(profile)

    def _persist_profiles(self) -> None:
        self._storage.save(self._profiles)
