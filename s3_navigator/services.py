from __future__ import annotations
"""Signed fetching of S3 URLs into navigable resources."""
import logging
from typing import Optional

from .models import Resource
from .responses import shape_response
from .signing import Clock, CredentialProvider, RequestSigner
from .transport import HttpTransport, Transport

LOGGER = logging.getLogger(__name__)


class S3NavigatorService:
    """Fetches S3 URLs and shapes the responses.

    Every entry in a returned table carries a ``contents`` thunk that calls
    back into :meth:`fetch_resource` for the entry's own URL, so buckets and
    prefixes expand only when asked to.
    """

    def __init__(
        self,
        credential_provider: CredentialProvider,
        *,
        transport: Transport | None = None,
        clock: Optional[Clock] = None,
    ):
        self._signer = RequestSigner(credential_provider, clock=clock)
        self._transport = transport or HttpTransport()

    def fetch_resource(self, url: str) -> Resource:
        """Sign, send and classify a GET for ``url``.

        Returns a :class:`~s3_navigator.navigation.NavigationTable` for bucket
        and key listings, or :class:`~s3_navigator.models.RawContent` for a
        single object.

        Raises:
            UnrecognizedHostError | AuthenticationError | TransportError |
            ShapeMismatchError: the call is not retried.
        """
        signed = self._signer.sign(url)
        LOGGER.debug("Fetching %s", signed.url)
        response = self._transport.get(signed.url, signed.headers, signed.exclude_from_cache_key)
        return shape_response(
            response.body,
            descriptor=signed.descriptor,
            url=signed.url,
            fetch=self.fetch_resource,
            content_type=response.content_type,
        )


def fetch_resource(
    url: str,
    *,
    credential_provider: CredentialProvider,
    transport: Transport | None = None,
    clock: Optional[Clock] = None,
) -> Resource:
    """Fetch ``url`` with a one-off :class:`S3NavigatorService`."""

    service = S3NavigatorService(credential_provider, transport=transport, clock=clock)
    return service.fetch_resource(url)
