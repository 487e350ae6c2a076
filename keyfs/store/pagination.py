"""Follow continuation tokens so callers see one flat stream per listing."""

from __future__ import annotations

from collections.abc import Iterator

from keyfs.store.models import ListingPage, ListRequest, ObjectSummary
from keyfs.store.object_store import ObjectStore


def iter_pages(store: ObjectStore, bucket: str, request: ListRequest) -> Iterator[ListingPage]:
    """Yield listing pages lazily; the next page is requested only when needed."""

    token: str | None = None
    while True:
        page = store.list_page(bucket, request, token)
        yield page
        if not page.is_truncated:
            return
        if not page.next_continuation_token:
            raise RuntimeError(
                f"Truncated listing without continuation token: bucket={bucket} "
                f"prefix={request.prefix}"
            )
        token = page.next_continuation_token


def iter_object_summaries(
    store: ObjectStore, bucket: str, request: ListRequest
) -> Iterator[ObjectSummary]:
    for page in iter_pages(store, bucket, request):
        yield from page.object_summaries


def iter_entries(
    store: ObjectStore, bucket: str, request: ListRequest
) -> Iterator[ObjectSummary | str]:
    """Yield object summaries then common prefixes, page by page."""

    for page in iter_pages(store, bucket, request):
        yield from page.object_summaries
        yield from page.common_prefixes
