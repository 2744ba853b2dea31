"""Query coordinator: fans a multi-tag request out into per-tag range scans.

Two distinct paths:

* :func:`get_posts`: the ranged query. One scan per requested tag, in the
  order requested, results concatenated. An annotation matching two tags
  appears twice, each time showing only the tag that produced it.
* :func:`get_all_posts`: "all" mode. Every tag the store knows, looking
  back to the epoch.
"""

from __future__ import annotations

import time
from collections.abc import Iterable

from loguru import logger

from .models import Posts
from .storage.base import AnnotationStore, QueryError, TransactionError


def get_posts(
    store: AnnotationStore,
    tags: Iterable[str],
    range_seconds: int,
    until_seconds: int,
) -> Posts:
    """Merged posts for ``tags`` within ``[until - range, until]``.

    Raises:
        QueryError: on the first failing tag. ``partial`` holds what was
            collected before it and must not be treated as complete.
    """
    result = Posts()
    for tag in tags:
        try:
            result.extend(store.range_for_tag(tag, range_seconds, until_seconds))
        except TransactionError as e:
            logger.warning(f"Query aborted at tag {tag!r} after {len(result)} posts: {e}")
            raise QueryError(f"query for tag {tag!r} failed: {e}", partial=result, tag=tag) from e
    return result


def get_all_posts(store: AnnotationStore, now: int | None = None) -> Posts:
    """Every stored post across every tag, ignoring any time window.

    ``until`` and ``range`` are both ``now``, so the scan reaches back to the
    epoch. Tags are visited in sorted order.
    """
    if now is None:
        now = int(time.time())
    return get_posts(store, sorted(store.all_tags()), now, now)
