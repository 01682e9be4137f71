from __future__ import annotations
"""Classification of S3 responses into bucket lists, key listings or content."""
from enum import Enum
from functools import partial
import logging
from typing import Callable, Optional
from urllib.parse import quote, urlsplit, urlunsplit
from xml.etree import ElementTree

from botocore.utils import parse_timestamp

from .errors import ShapeMismatchError
from .models import (
    BucketListing,
    ClassifiedResponse,
    HostDescriptor,
    ObjectListing,
    RawContent,
    Resource,
    S3Entry,
)
from .navigation import NavigationTable, build_navigation_table
from .signing import canonical_query_string, parse_query

LOGGER = logging.getLogger(__name__)

FetchFn = Callable[[str], Resource]

# Query parameters that only make sense for the page they were sent with.
PAGING_PARAMS = ("marker", "continuation-token", "start-after")


class ResponseKind(Enum):
    OBJECT_LISTING = "object-listing"
    BUCKET_LISTING = "bucket-listing"
    RAW_CONTENT = "raw-content"


def path_bucket(path: str) -> Optional[str]:
    """Return the bucket named by a single-segment path-style path.

    ``/mybucket`` and ``/mybucket/`` name a bucket; ``/`` and
    ``/mybucket/key`` do not.
    """
    trimmed = path[1:] if path.startswith("/") else path
    if trimmed.endswith("/"):
        trimmed = trimmed[:-1]
    if not trimmed or "/" in trimmed:
        return None
    return trimmed


def resolve_kind(descriptor: HostDescriptor, path: str) -> ResponseKind:
    """Decide the response shape from the request target alone."""

    path = path or "/"
    if descriptor.bucket is not None and path == "/":
        return ResponseKind.OBJECT_LISTING
    if descriptor.bucket is None and path_bucket(path) is not None:
        return ResponseKind.OBJECT_LISTING
    if descriptor.bucket is None and path == "/":
        return ResponseKind.BUCKET_LISTING
    return ResponseKind.RAW_CONTENT


def classify(
    body: bytes,
    *,
    descriptor: HostDescriptor,
    url: str,
    fetch: FetchFn,
    content_type: Optional[str] = None,
) -> ClassifiedResponse:
    """Turn a response body into a :data:`ClassifiedResponse`.

    ``fetch`` is called with a child URL whenever an entry's contents are
    expanded.

    Raises:
        ShapeMismatchError: when a listing body does not have the expected
            XML structure.
    """
    parts = urlsplit(url)
    path = parts.path or "/"
    kind = resolve_kind(descriptor, path)
    LOGGER.debug("Classified %s as %s", url, kind.value)

    if kind is ResponseKind.RAW_CONTENT:
        return RawContent(body=body, content_type=content_type)

    root = _parse_xml(body)
    if kind is ResponseKind.BUCKET_LISTING:
        return _bucket_listing(root, parts.scheme, parts.netloc, fetch)
    return _object_listing(root, descriptor, parts.scheme, parts.netloc, path, parts.query, fetch)


def to_resource(classified: ClassifiedResponse) -> Resource:
    """Wrap listings in navigation tables; raw content passes through."""

    if isinstance(classified, RawContent):
        return classified
    if isinstance(classified, ObjectListing):
        return build_navigation_table(classified.entries, next_page=classified.next_page)
    return build_navigation_table(classified.entries)


def shape_response(
    body: bytes,
    *,
    descriptor: HostDescriptor,
    url: str,
    fetch: FetchFn,
    content_type: Optional[str] = None,
) -> Resource:
    classified = classify(body, descriptor=descriptor, url=url, fetch=fetch, content_type=content_type)
    resource = to_resource(classified)
    if isinstance(resource, NavigationTable):
        LOGGER.debug("Shaped %d entries from %s", len(resource), url)
    return resource


def _parse_xml(body: bytes) -> ElementTree.Element:
    try:
        return ElementTree.fromstring(body)
    except ElementTree.ParseError as exc:
        raise ShapeMismatchError(f"Response is not valid XML: {exc}") from exc


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(element: ElementTree.Element, name: str) -> list[ElementTree.Element]:
    return [child for child in element if _local_name(child.tag) == name]


def _child(element: ElementTree.Element, name: str) -> Optional[ElementTree.Element]:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _text(element: ElementTree.Element, name: str) -> Optional[str]:
    child = _child(element, name)
    if child is None:
        return None
    return child.text or ""


def _require_root(root: ElementTree.Element, expected: str) -> None:
    actual = _local_name(root.tag)
    if actual != expected:
        raise ShapeMismatchError(f"Expected <{expected}> response, got <{actual}>")


def _require_text(element: ElementTree.Element, name: str, context: str) -> str:
    value = _text(element, name)
    if not value:
        raise ShapeMismatchError(f"{context} entry is missing <{name}>")
    return value


def _timestamp(value: Optional[str]):
    if not value:
        return None
    try:
        return parse_timestamp(value)
    except ValueError as exc:
        raise ShapeMismatchError(f"Invalid timestamp {value!r}") from exc


def _integer(value: Optional[str]) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise ShapeMismatchError(f"Invalid size {value!r}") from exc


def _bucket_listing(
    root: ElementTree.Element,
    scheme: str,
    netloc: str,
    fetch: FetchFn,
) -> BucketListing:
    _require_root(root, "ListAllMyBucketsResult")
    buckets = _child(root, "Buckets")
    if buckets is None:
        raise ShapeMismatchError("Bucket listing is missing <Buckets>")

    entries = []
    for bucket in _children(buckets, "Bucket"):
        name = _require_text(bucket, "Name", "Bucket")
        bucket_url = urlunsplit((scheme, netloc, "/" + quote(name, safe=""), "", ""))
        entries.append(
            S3Entry(
                name=name,
                contents=partial(fetch, bucket_url),
                url=bucket_url,
                last_modified=_timestamp(_text(bucket, "CreationDate")),
            )
        )

    owner = _child(root, "Owner")
    owner_name = None
    if owner is not None:
        owner_name = _text(owner, "DisplayName") or _text(owner, "ID")
    return BucketListing(entries=entries, owner=owner_name)


def _object_listing(
    root: ElementTree.Element,
    descriptor: HostDescriptor,
    scheme: str,
    netloc: str,
    path: str,
    query: str,
    fetch: FetchFn,
) -> ObjectListing:
    _require_root(root, "ListBucketResult")

    if descriptor.bucket is not None:
        bucket = descriptor.bucket
        base_path = ""
    else:
        bucket = path_bucket(path) or ""
        base_path = "/" + quote(bucket, safe="")

    params = parse_query(query)
    prefix = _text(root, "Prefix") or params.get("prefix", "")
    delimiter = _text(root, "Delimiter") or params.get("delimiter", "")

    def listing_url(listing_params: dict[str, str]) -> str:
        return urlunsplit((scheme, netloc, base_path or "/", canonical_query_string(listing_params), ""))

    entries = []
    for content in _children(root, "Contents"):
        key = _require_text(content, "Key", "Contents")
        object_url = urlunsplit((scheme, netloc, f"{base_path}/{quote(key, safe='/')}", "", ""))
        entries.append(
            S3Entry(
                name=key,
                contents=partial(fetch, object_url),
                url=object_url,
                last_modified=_timestamp(_text(content, "LastModified")),
                etag=_text(content, "ETag"),
                size=_integer(_text(content, "Size")),
                storage_class=_text(content, "StorageClass"),
            )
        )

    base_params = {name: value for name, value in params.items() if name not in PAGING_PARAMS}
    for common in _children(root, "CommonPrefixes"):
        common_prefix = _require_text(common, "Prefix", "CommonPrefixes")
        prefix_params = dict(base_params, prefix=common_prefix)
        if delimiter:
            prefix_params["delimiter"] = delimiter
        prefix_url = listing_url(prefix_params)
        entries.append(
            S3Entry(
                name=common_prefix,
                contents=partial(fetch, prefix_url),
                url=prefix_url,
                is_prefix=True,
            )
        )

    is_truncated = (_text(root, "IsTruncated") or "").strip().lower() == "true"
    next_marker = _text(root, "NextMarker")
    next_token = _text(root, "NextContinuationToken")
    next_page = None
    if is_truncated:
        page_params = dict(base_params)
        if params.get("list-type") == "2":
            if next_token:
                page_params["continuation-token"] = next_token
        else:
            marker = next_marker
            if not marker:
                keys = [entry.name for entry in entries if not entry.is_prefix]
                marker = keys[-1] if keys else None
            if marker:
                page_params["marker"] = marker
        if page_params != base_params:
            next_page = partial(fetch, listing_url(page_params))

    return ObjectListing(
        bucket=_text(root, "Name") or bucket,
        entries=entries,
        prefix=prefix,
        delimiter=delimiter,
        is_truncated=is_truncated,
        next_marker=next_marker,
        next_continuation_token=next_token,
        next_page=next_page,
    )
