from __future__ import annotations
"""Data models used while signing requests and shaping S3 responses."""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional, Union

SCOPE_CONSTANT = "aws4_request"


@dataclass(frozen=True)
class HostDescriptor:
    """Service, region and optional bucket decoded from an S3 hostname."""

    region: str
    bucket: Optional[str] = None
    service: str = "s3"


@dataclass(frozen=True)
class Credential:
    """Long-term access key pair."""

    access_key_id: str
    secret_key: str = field(repr=False)


@dataclass(frozen=True)
class SigningContext:
    """Date, time and scope used for a single signed request."""

    date_stamp: str
    time_stamp: str
    region: str
    service: str
    scope_constant: str = SCOPE_CONSTANT

    @classmethod
    def from_datetime(cls, moment: datetime, *, region: str, service: str) -> SigningContext:
        return cls(
            date_stamp=moment.strftime("%Y%m%d"),
            time_stamp=moment.strftime("%Y%m%dT%H%M%SZ"),
            region=region,
            service=service,
        )

    @property
    def credential_scope(self) -> str:
        return f"{self.date_stamp}/{self.region}/{self.service}/{self.scope_constant}"


@dataclass(frozen=True)
class SignedRequest:
    """A GET request ready to hand to the transport."""

    url: str
    headers: dict[str, str]
    descriptor: HostDescriptor
    path: str = "/"
    exclude_from_cache_key: tuple[str, ...] = ()


@dataclass(frozen=True)
class RawContent:
    """Body of a single-object fetch, returned without shaping."""

    body: bytes
    content_type: Optional[str] = None

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding)


@dataclass
class S3Entry:
    """A bucket, object or common prefix with a deferred contents thunk."""

    name: str
    contents: Callable[[], "Resource"] = field(repr=False, compare=False)
    url: str = ""
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    size: Optional[int] = None
    storage_class: Optional[str] = None
    is_prefix: bool = False


@dataclass
class BucketListing:
    """Account-level listing of buckets."""

    entries: list[S3Entry] = field(default_factory=list)
    owner: Optional[str] = None


@dataclass
class ObjectListing:
    """Bucket-level listing of keys and common prefixes."""

    bucket: str
    entries: list[S3Entry] = field(default_factory=list)
    prefix: str = ""
    delimiter: str = ""
    is_truncated: bool = False
    next_marker: Optional[str] = None
    next_continuation_token: Optional[str] = None
    next_page: Optional[Callable[[], "Resource"]] = field(default=None, repr=False, compare=False)


ClassifiedResponse = Union[BucketListing, ObjectListing, RawContent]
# NavigationTable is defined in navigation.py, which imports this module.
Resource = Union["NavigationTable", RawContent]
