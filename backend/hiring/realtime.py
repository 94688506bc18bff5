"""
Change notifications for candidate records.

Stores publish a ChangeEvent for every successful insert, status update and
delete. Each subscriber owns a queue; nothing else is shared between the
publishing side and the consumer. LiveRoster keeps one owner's snapshot and
reconciles it from its queue by record id.
"""
from __future__ import annotations

import logging
import queue
import threading
from typing import Dict, List, Optional, Tuple

from backend.hiring.models import (
    CHANGE_DELETED,
    CHANGE_INSERTED,
    CHANGE_UPDATED,
    Candidate,
    ChangeEvent,
    FilterCriteria,
)
from backend.hiring.search import apply_criteria

logger = logging.getLogger(__name__)


def reconcile(snapshot: Tuple[Candidate, ...], event: ChangeEvent) -> Tuple[Candidate, ...]:
    """Return a new snapshot with one change applied."""
    record = event.record
    if event.kind == CHANGE_INSERTED:
        rest = tuple(c for c in snapshot if c.id != record.id)
        return (record,) + rest
    if event.kind == CHANGE_UPDATED:
        return tuple(record if c.id == record.id else c for c in snapshot)
    if event.kind == CHANGE_DELETED:
        return tuple(c for c in snapshot if c.id != record.id)
    return snapshot


class Subscription:
    def __init__(self, feed: "ChangeFeed", owner_id: str):
        self.feed = feed
        self.owner_id = owner_id
        self.queue: "queue.Queue[ChangeEvent]" = queue.Queue()

    def get(self, timeout: Optional[float] = None) -> Optional[ChangeEvent]:
        """Next event, or None if nothing arrives within timeout."""
        try:
            return self.queue.get(timeout=timeout)
        except queue.Empty:
            return None

    def drain(self) -> List[ChangeEvent]:
        events = []
        while True:
            try:
                events.append(self.queue.get_nowait())
            except queue.Empty:
                return events

    def close(self):
        self.feed.unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class ChangeFeed:
    """Fan-out of change events, scoped by owner."""

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[str, List[Subscription]] = {}

    def subscribe(self, owner_id: str) -> Subscription:
        sub = Subscription(self, owner_id)
        with self._lock:
            self._subscribers.setdefault(owner_id, []).append(sub)
        return sub

    def unsubscribe(self, sub: Subscription):
        with self._lock:
            subs = self._subscribers.get(sub.owner_id, [])
            if sub in subs:
                subs.remove(sub)
            if not subs:
                self._subscribers.pop(sub.owner_id, None)

    def publish(self, kind: str, record: Candidate):
        event = ChangeEvent(kind=kind, record=record)
        with self._lock:
            subs = list(self._subscribers.get(record.user_id, []))
        for sub in subs:
            sub.queue.put(event)
        logger.debug("Published %s for candidate %s to %d subscriber(s)", kind, record.id, len(subs))


class LiveRoster:
    """One owner's candidate list, kept current from the change feed."""

    def __init__(self, store, owner_id: str):
        self.store = store
        self.owner_id = owner_id
        self.snapshot: Tuple[Candidate, ...] = ()
        self.subscription: Optional[Subscription] = None

    def start(self) -> "LiveRoster":
        # Subscribe before loading so nothing published in between is lost;
        # replaying an insert that the load already saw is harmless.
        self.subscription = self.store.feed.subscribe(self.owner_id)
        loaded = self.store.list_by_owner(self.owner_id)
        self.snapshot = tuple(sorted(loaded, key=lambda c: c.created_at, reverse=True))
        return self

    def apply(self, event: ChangeEvent):
        self.snapshot = reconcile(self.snapshot, event)

    def sync(self) -> int:
        """Apply all pending events; returns how many were applied."""
        if not self.subscription:
            return 0
        events = self.subscription.drain()
        for event in events:
            self.apply(event)
        return len(events)

    def view(self, criteria: Optional[FilterCriteria] = None) -> List[Candidate]:
        self.sync()
        return apply_criteria(self.snapshot, criteria)

    def stop(self):
        if self.subscription:
            self.subscription.close()
            self.subscription = None
