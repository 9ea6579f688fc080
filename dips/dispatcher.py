"""Background execution of storage queries.

Each submitted query runs on its own daemon thread and posts exactly one
``QueryCompleted`` or ``QueryFailed`` event. Workers never touch ``AppState``.
"""

from __future__ import annotations

import threading
from collections.abc import Callable

from .errors import DipsError
from .events import (
    AttachTag,
    CreateDip,
    DipCreated,
    DipRemoved,
    DipsLoaded,
    DipTagged,
    Event,
    FetchDips,
    FetchScopes,
    Query,
    QueryCompleted,
    QueryFailed,
    QueryResult,
    RemoveDip,
    ScopesLoaded,
)
from .log import get_logger
from .models import DipsFilter, ScopesFilter
from .store import Store

logger = get_logger(__name__)

UNEXPECTED_FAILURE_MESSAGE = "Unexpected storage failure; see the log for details."


def execute_query(store: Store, query: Query) -> QueryResult:
    """Run ``query`` synchronously against ``store``."""
    if isinstance(query, FetchDips):
        dips = store.list_dips(DipsFilter(scope_id=query.scope_id, search=query.search))
        return DipsLoaded(tuple(dips))
    if isinstance(query, FetchScopes):
        scopes = store.list_scopes(ScopesFilter(search=query.search))
        return ScopesLoaded(tuple(scopes))
    if isinstance(query, CreateDip):
        created = store.create_dip(query.value, context=query.context, scope_id=query.scope_id)
        return DipCreated(created)
    if isinstance(query, RemoveDip):
        return DipRemoved(dip_id=query.dip_id, deleted=store.delete_dip(query.dip_id))
    if isinstance(query, AttachTag):
        store.tag_dip(query.dip_id, query.name)
        return DipTagged(dip_id=query.dip_id, name=query.name.strip())
    raise TypeError(f"unknown query: {query!r}")


class QueryDispatcher:
    """Spawn one worker per query; results come back through ``post``."""

    def __init__(self, store: Store, post: Callable[[Event], None]) -> None:
        self._store = store
        self._post = post

    def _worker(self, query: Query) -> None:
        try:
            result = execute_query(self._store, query)
        except DipsError as exc:
            logger.warning("query %s failed: %s", type(query).__name__, exc)
            event: Event = QueryFailed(query, str(exc))
        except Exception:
            logger.exception("query %s crashed", type(query).__name__)
            event = QueryFailed(query, UNEXPECTED_FAILURE_MESSAGE)
        else:
            event = QueryCompleted(query, result)
        self._post(event)

    def submit(self, query: Query) -> None:
        worker = threading.Thread(
            target=self._worker,
            args=(query,),
            name=f"dips-query-{query.request_id}",
            daemon=True,
        )
        worker.start()
