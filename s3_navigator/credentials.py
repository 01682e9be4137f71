from __future__ import annotations
"""Credential providers handed to :class:`~s3_navigator.signing.RequestSigner`.

A provider is any zero-argument callable returning a :class:`Credential`.
Providers are invoked once per request so rotated secrets take effect
without rebuilding the service.
"""
import logging
from typing import Optional

import boto3
from botocore.exceptions import BotoCoreError

from .errors import AuthenticationError
from .models import Credential
from .profiles import ProfileStorage

LOGGER = logging.getLogger(__name__)


class StaticCredentialProvider:
    def __init__(self, access_key_id: str, secret_key: str):
        self._credential = Credential(access_key_id=access_key_id, secret_key=secret_key)

    def __call__(self) -> Credential:
        return self._credential


class ProfileCredentialProvider:
    """Reads a saved profile (secret from the keychain) on every call."""

    def __init__(self, storage: ProfileStorage, profile_name: str):
        self._storage = storage
        self._profile_name = profile_name

    def __call__(self) -> Credential:
        profile = self._storage.get(self._profile_name)
        if profile is None:
            raise AuthenticationError(f"Profile '{self._profile_name}' does not exist")
        if not profile.access_key or not profile.secret_key:
            raise AuthenticationError(f"Profile '{self._profile_name}' has no stored secret key")
        return Credential(access_key_id=profile.access_key, secret_key=profile.secret_key)


class SessionCredentialProvider:
    """Resolves keys through boto3's credential chain (env vars, shared files).

    Only long-term keys are accepted; temporary credentials that need a
    session token are rejected.
    """

    def __init__(self, profile_name: Optional[str] = None, session_factory=None):
        self._profile_name = profile_name
        self._session_factory = session_factory or boto3.Session

    def __call__(self) -> Credential:
        try:
            session = self._session_factory(profile_name=self._profile_name)
            credentials = session.get_credentials()
        except BotoCoreError as exc:
            raise AuthenticationError(f"Unable to resolve AWS credentials: {exc}") from exc
        if credentials is None:
            raise AuthenticationError("No AWS credentials found")

        frozen = credentials.get_frozen_credentials()
        if frozen.token:
            raise AuthenticationError("Temporary credentials with a session token are not supported")
        LOGGER.debug("Resolved credentials via %s", getattr(credentials, "method", "unknown"))
        return Credential(access_key_id=frozen.access_key, secret_key=frozen.secret_key)
