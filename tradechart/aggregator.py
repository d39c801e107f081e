from __future__ import annotations

from dataclasses import dataclass
import logging
import threading
from typing import Callable, Literal

from tradechart.errors import InvalidParameterError
from tradechart.ranges import Range


LOGGER = logging.getLogger(__name__)

OverflowPolicy = Literal["fixed", "dynamic"]
OVERFLOW_POLICIES: tuple[OverflowPolicy, ...] = ("fixed", "dynamic")


@dataclass(frozen=True)
class RangeUpdate:
    revision: int
    merged: Range


RangeListener = Callable[[RangeUpdate], None]


@dataclass
class _Contributor:
    range: Range | None
    policy: OverflowPolicy

    @property
    def participates(self) -> bool:
        return self.policy == "dynamic" and self.range is not None


class RangeAggregator:
    """Folds the ranges of every dynamic series into one shared visible range.

    The merged range is rebuilt from the full contributor set on every change
    so a narrowing contributor always shrinks the result. All mutations hold a
    single writer lock. Listeners run after that lock is released, one delivery
    at a time and in revision order.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._contributors: dict[str, _Contributor] = {}
        self._merged = Range.empty()
        self._revision = 0
        self._listeners: list[RangeListener] = []
        self._delivery_lock = threading.RLock()
        self._delivered_revision = 0

    @property
    def merged(self) -> Range:
        with self._lock:
            return self._merged.copy()

    @property
    def revision(self) -> int:
        return self._revision

    def series_ids(self) -> list[str]:
        with self._lock:
            return list(self._contributors)

    def contributor_range(self, series_id: str) -> Range | None:
        with self._lock:
            contributor = self._require(series_id)
            return None if contributor.range is None else contributor.range.copy()

    def policy(self, series_id: str) -> OverflowPolicy:
        with self._lock:
            return self._require(series_id).policy

    def add_listener(self, listener: RangeListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: RangeListener) -> None:
        self._listeners.remove(listener)

    def register(
        self,
        series_id: str,
        initial_range: Range | None = None,
        policy: OverflowPolicy = "dynamic",
    ) -> Range:
        validate_policy(policy)
        with self._lock:
            if series_id in self._contributors:
                raise InvalidParameterError(f"series already registered: {series_id}")
            self._contributors[series_id] = _Contributor(range=_copy(initial_range), policy=policy)
            update = self._recompute_locked()
        return self._publish(update)

    def unregister(self, series_id: str) -> Range:
        with self._lock:
            self._require(series_id)
            del self._contributors[series_id]
            update = self._recompute_locked()
        return self._publish(update)

    def update(self, series_id: str, new_range: Range | None) -> Range:
        with self._lock:
            self._require(series_id).range = _copy(new_range)
            update = self._recompute_locked()
        return self._publish(update)

    def set_policy(self, series_id: str, policy: OverflowPolicy) -> Range:
        validate_policy(policy)
        with self._lock:
            self._require(series_id).policy = policy
            update = self._recompute_locked()
        return self._publish(update)

    def recompute(self) -> Range:
        with self._lock:
            return _fold(self._contributors.values())

    def _require(self, series_id: str) -> _Contributor:
        contributor = self._contributors.get(series_id)
        if contributor is None:
            raise InvalidParameterError(f"unknown series: {series_id}")
        return contributor

    def _recompute_locked(self) -> RangeUpdate | None:
        merged = _fold(self._contributors.values())
        if merged == self._merged:
            return None
        self._merged = merged
        self._revision += 1
        LOGGER.debug(
            "merged range revision=%d upper=%s lower=%s contributors=%d",
            self._revision,
            merged.upper,
            merged.lower,
            len(self._contributors),
        )
        return RangeUpdate(revision=self._revision, merged=merged.copy())

    def _publish(self, update: RangeUpdate | None) -> Range:
        if update is None:
            return self.merged
        # Deliveries are serialised; a revision older than one already
        # delivered is dropped so listeners never end on stale bounds.
        with self._delivery_lock:
            if update.revision <= self._delivered_revision:
                LOGGER.debug("dropped stale range revision=%d", update.revision)
                return self.merged
            self._delivered_revision = update.revision
            for listener in list(self._listeners):
                listener(update)
        return update.merged.copy()


def _fold(contributors) -> Range:
    ranges = [c.range for c in contributors if c.participates]
    if not ranges:
        return Range.empty()
    return Range(upper=max(r.upper for r in ranges), lower=min(r.lower for r in ranges))


def _copy(value: Range | None) -> Range | None:
    return None if value is None else value.copy()


def validate_policy(policy: str) -> None:
    if policy not in OVERFLOW_POLICIES:
        raise InvalidParameterError(f"unsupported overflow policy: {policy}")
