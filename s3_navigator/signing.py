from __future__ import annotations
"""AWS Signature Version 4 signing for bodiless S3 GET requests."""
from datetime import datetime, timezone
import hashlib
import hmac
import logging
from typing import Callable, Mapping, Optional
from urllib.parse import SplitResult, parse_qsl, quote, unquote, urlsplit, urlunsplit

from .errors import AuthenticationError, UnrecognizedHostError
from .models import SCOPE_CONSTANT, Credential, HostDescriptor, SignedRequest, SigningContext

LOGGER = logging.getLogger(__name__)

ALGORITHM = "AWS4-HMAC-SHA256"
SIGNED_HEADERS = "host;x-amz-date"
EMPTY_PAYLOAD_HASH = hashlib.sha256(b"").hexdigest()
DEFAULT_REGION = "us-east-1"
HTTPS_DEFAULT_PORT = 443
CACHE_KEY_EXCLUDED_HEADERS = ("x-amz-date", "Authorization")

CredentialProvider = Callable[[], Credential]
Clock = Callable[[], datetime]


def parse_host(hostname: str) -> HostDescriptor:
    """Decode an S3 hostname into its region and optional bucket.

    Accepts path-style hosts (``s3.amazonaws.com``,
    ``s3.eu-west-1.amazonaws.com``), legacy dashed hosts
    (``s3-eu-west-1.amazonaws.com``) and virtual-hosted hosts
    (``bucket.s3.amazonaws.com``).

    Raises:
        UnrecognizedHostError: when the host is not an S3 endpoint.
    """
    segments = hostname.split(".")
    bucket = None
    if not (segments[0] == "s3" or segments[0].startswith("s3-")):
        bucket = segments.pop(0)
        if not bucket:
            raise UnrecognizedHostError(hostname)

    if segments and segments[0].startswith("s3-"):
        segments = ["s3", segments[0][len("s3-"):]] + segments[1:]

    count = len(segments)
    if (
        count not in (3, 4)
        or segments[0] != "s3"
        or segments[count - 2] != "amazonaws"
        or segments[count - 1] != "com"
    ):
        raise UnrecognizedHostError(hostname)

    region = DEFAULT_REGION if count == 3 else segments[1]
    if not region:
        raise UnrecognizedHostError(hostname)
    return HostDescriptor(region=region, bucket=bucket)


def _hmac_sha256(key: bytes, message: str) -> bytes:
    return hmac.new(key, message.encode("utf-8"), hashlib.sha256).digest()


def derive_signing_key(
    secret_key: str,
    date_stamp: str,
    region: str,
    service: str,
    scope_constant: str = SCOPE_CONSTANT,
) -> bytes:
    """Derive the date/region/service scoped key from a secret key."""

    date_key = _hmac_sha256(("AWS4" + secret_key).encode("utf-8"), date_stamp)
    region_key = _hmac_sha256(date_key, region)
    service_key = _hmac_sha256(region_key, service)
    return _hmac_sha256(service_key, scope_constant)


def parse_query(query: str) -> dict[str, str]:
    """Split a raw query string into single-valued parameters.

    A name that appears more than once keeps its last value.
    """

    return dict(parse_qsl(query, keep_blank_values=True))


def canonical_query_string(params: Mapping[str, str]) -> str:
    """Sort parameters by name and percent-encode their values."""

    return "&".join(f"{name}={quote(str(params[name]), safe='')}" for name in sorted(params))


def canonical_path(path: str) -> str:
    """Encode a request path once, keeping ``/`` separators."""

    if not path:
        return "/"
    return quote(unquote(path), safe="/")


def build_canonical_request(
    *,
    path: str,
    params: Mapping[str, str],
    host: str,
    time_stamp: str,
    payload_hash: str = EMPTY_PAYLOAD_HASH,
) -> str:
    canonical_headers = f"host:{host}\nx-amz-date:{time_stamp}\n"
    return "\n".join(
        [
            "GET",
            canonical_path(path),
            canonical_query_string(params),
            canonical_headers,
            SIGNED_HEADERS,
            payload_hash,
        ]
    )


def build_string_to_sign(context: SigningContext, canonical_request: str) -> str:
    request_hash = hashlib.sha256(canonical_request.encode("utf-8")).hexdigest()
    return "\n".join([ALGORITHM, context.time_stamp, context.credential_scope, request_hash])


def compute_signature(signing_key: bytes, string_to_sign: str) -> str:
    return hmac.new(signing_key, string_to_sign.encode("utf-8"), hashlib.sha256).hexdigest()


def build_authorization_header(access_key_id: str, context: SigningContext, signature: str) -> str:
    return (
        f"{ALGORITHM} Credential={access_key_id}/{context.credential_scope}, "
        f"SignedHeaders={SIGNED_HEADERS}, Signature={signature}"
    )


def sign_get_request(
    *,
    credential: Credential,
    host: str,
    path: str,
    params: Mapping[str, str],
    context: SigningContext,
) -> dict[str, str]:
    """Return the headers that authenticate a GET for ``host`` + ``path``.

    Region and service come from ``context`` so that any SigV4 endpoint can
    be signed here; :class:`RequestSigner` restricts this to S3 URLs.
    """

    signing_key = derive_signing_key(
        credential.secret_key,
        context.date_stamp,
        context.region,
        context.service,
        context.scope_constant,
    )
    canonical_request = build_canonical_request(
        path=path,
        params=params,
        host=host,
        time_stamp=context.time_stamp,
    )
    string_to_sign = build_string_to_sign(context, canonical_request)
    signature = compute_signature(signing_key, string_to_sign)
    return {
        "x-amz-date": context.time_stamp,
        "Authorization": build_authorization_header(credential.access_key_id, context, signature),
        "x-amz-content-sha256": EMPTY_PAYLOAD_HASH,
    }


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _request_host(parts: SplitResult) -> str:
    """Return the Host header value an HTTP client sends for ``parts``.

    Userinfo is dropped and the port is kept only when it is not 443.
    """
    try:
        port = parts.port
    except ValueError as exc:
        raise UnrecognizedHostError(parts.netloc) from exc
    host = parts.hostname
    if port is not None and port != HTTPS_DEFAULT_PORT:
        host = f"{host}:{port}"
    return host


class RequestSigner:
    """Signs S3 GET URLs with credentials read fresh for every request."""

    def __init__(self, credential_provider: CredentialProvider, *, clock: Optional[Clock] = None):
        self._credential_provider = credential_provider
        self._clock = clock or _utc_now

    def sign(self, url: str) -> SignedRequest:
        """Sign ``url`` and return the request to send.

        Raises:
            UnrecognizedHostError: when ``url`` is not an HTTPS S3 URL.
            AuthenticationError: when no usable credential is available.
        """
        parts = urlsplit(url)
        if parts.scheme != "https" or not parts.hostname:
            raise UnrecognizedHostError(parts.hostname or url)
        descriptor = parse_host(parts.hostname)
        host = _request_host(parts)

        moment = self._clock()
        if moment.tzinfo is not None:
            moment = moment.astimezone(timezone.utc)
        context = SigningContext.from_datetime(moment, region=descriptor.region, service=descriptor.service)

        credential = self._credential_provider()
        if not credential.access_key_id or not credential.secret_key:
            raise AuthenticationError("Credential provider returned an incomplete access key pair")

        path = canonical_path(parts.path)
        params = parse_query(parts.query)
        headers = sign_get_request(
            credential=credential,
            host=host,
            path=path,
            params=params,
            context=context,
        )
        LOGGER.debug(
            "Signed GET %s%s (region=%s, bucket=%s, scope=%s)",
            host,
            path,
            descriptor.region,
            descriptor.bucket,
            context.credential_scope,
        )
        signed_url = urlunsplit((parts.scheme, host, path, canonical_query_string(params), ""))
        return SignedRequest(
            url=signed_url,
            headers=headers,
            descriptor=descriptor,
            path=path,
            exclude_from_cache_key=CACHE_KEY_EXCLUDED_HEADERS,
        )
