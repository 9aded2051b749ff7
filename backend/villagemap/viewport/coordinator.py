from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable

from loguru import logger

from villagemap.errors import QueryFailure
from villagemap.geo.aoi import Viewport
from villagemap.layers.types import FeatureRecord
from villagemap.lod.policy import should_fetch_viewport
from villagemap.query.types import FeatureQuery, FilterSelection
from villagemap.render.layer_manager import UpdateTrigger

FeaturesCallback = Callable[[list[FeatureRecord], float, UpdateTrigger], None]


class CoordinatorState(str, Enum):
    idle = "idle"
    fetching = "fetching"


class FetchOutcome(str, Enum):
    applied = "applied"
    superseded = "superseded"
    failed = "failed"
    # No fetch was needed (zoomed out below the viewport threshold).
    skipped = "skipped"
    # The filter was cleared; the layer was emptied without a fetch.
    cleared = "cleared"


@dataclass(frozen=True)
class FetchResult:
    seq: int
    outcome: FetchOutcome
    trigger: UpdateTrigger
    zoom: float | None = None
    records: list[FeatureRecord] = field(default_factory=list)
    error: QueryFailure | None = None


class ViewportQueryCoordinator:
    """
    Decides when to query and which responses are still worth drawing.

    Every fetch gets the next sequence number, and currency is tracked per kind of fetch.
    A viewport response is applied only if it is the latest fetch issued and no filter
    response was applied after it was sent. A filter response is applied if it answers
    the latest filter change; only a newer filter change, `supersede()` or dispose makes
    it stale, since pans do not fetch the filtered set. Anything stale is dropped without
    side effects. Failures keep the previous render and wait for the next navigation event.

    With `debounce_s > 0`, a viewport fetch first waits that long and is abandoned if a
    newer navigation arrived meanwhile, so a burst of pans issues a single request.
    """

    def __init__(
        self,
        query: FeatureQuery,
        on_features: FeaturesCallback,
        *,
        debounce_s: float = 0.0,
    ):
        self._query = query
        self._on_features = on_features
        self._debounce_s = max(0.0, float(debounce_s))
        self._seq = 0
        # 0 means no fetch of that kind is current.
        self._viewport_seq = 0
        self._filter_seq = 0
        self._pending: set[int] = set()
        self.viewport: Viewport | None = None
        self.last_applied_seq = 0
        self.last_failure: QueryFailure | None = None

    @property
    def latest_seq(self) -> int:
        return self._seq

    @property
    def state(self) -> CoordinatorState:
        return CoordinatorState.fetching if self._pending else CoordinatorState.idle

    def is_current(self, seq: int, trigger: UpdateTrigger = "viewport") -> bool:
        if trigger == "filter":
            return seq == self._filter_seq
        return seq == self._seq and seq == self._viewport_seq

    def supersede(self) -> int:
        """
        Invalidate whatever is in flight without issuing a new fetch.
        """
        self._seq += 1
        self._viewport_seq = 0
        self._filter_seq = 0
        return self._seq

    async def on_viewport_changed(self, viewport: Viewport) -> FetchResult:
        self.viewport = viewport
        if not should_fetch_viewport(viewport.zoom):
            # Zoomed out: the filtered set covers the view. A viewport fetch still pending
            # for the closer view must not land on top of it; a filter fetch stays current.
            if self._viewport_seq in self._pending:
                logger.debug(f"Viewport fetch #{self._viewport_seq} dropped after zoom-out")
                self._viewport_seq = 0
            return FetchResult(
                seq=self._seq, outcome=FetchOutcome.skipped, trigger="viewport", zoom=viewport.zoom
            )

        seq = self._issue("viewport")
        if self._debounce_s > 0.0:
            try:
                await asyncio.sleep(self._debounce_s)
            except asyncio.CancelledError:
                self._pending.discard(seq)
                raise
            if not self.is_current(seq):
                self._pending.discard(seq)
                logger.debug(f"Viewport fetch #{seq} coalesced into #{self._seq}")
                return FetchResult(
                    seq=seq, outcome=FetchOutcome.superseded, trigger="viewport", zoom=viewport.zoom
                )

        b = viewport.bbox()
        return await self._run(
            seq,
            lambda: self._query.fetch_by_bounds(
                b.min_lat, b.max_lat, b.min_lon, b.max_lon, viewport.zoom
            ),
            zoom=viewport.zoom,
            trigger="viewport",
        )

    async def on_filter_changed(self, selection: FilterSelection, zoom: float) -> FetchResult:
        seq = self._issue("filter")
        return await self._run(
            seq,
            lambda: self._query.fetch_by_filter(
                selection.state or None,
                selection.district or None,
                selection.subdistrict or None,
            ),
            zoom=zoom,
            trigger="filter",
        )

    def _issue(self, trigger: UpdateTrigger) -> int:
        self._seq += 1
        if trigger == "filter":
            self._filter_seq = self._seq
        else:
            self._viewport_seq = self._seq
        self._pending.add(self._seq)
        return self._seq

    async def _run(
        self,
        seq: int,
        fetch: Callable[[], Awaitable[list[FeatureRecord]]],
        *,
        zoom: float,
        trigger: UpdateTrigger,
    ) -> FetchResult:
        logger.debug(f"Fetch #{seq} issued ({trigger}, zoom={zoom:g})")
        failure: QueryFailure | None = None
        records: list[FeatureRecord] = []
        try:
            records = await fetch()
        except QueryFailure as e:
            failure = e
        except Exception as e:
            failure = QueryFailure(e)
        finally:
            self._pending.discard(seq)

        if not self.is_current(seq, trigger):
            logger.debug(f"Fetch #{seq} ({trigger}) superseded by #{self._seq}; response dropped")
            return FetchResult(seq=seq, outcome=FetchOutcome.superseded, trigger=trigger, zoom=zoom)

        if failure is not None:
            self.last_failure = failure
            logger.warning(f"Village query #{seq} ({trigger}) failed, keeping previous render: {failure.cause}")
            return FetchResult(seq=seq, outcome=FetchOutcome.failed, trigger=trigger, zoom=zoom, error=failure)

        if trigger == "filter":
            # The re-fit moves the view; bounds fetches sent for the old view are stale.
            self._viewport_seq = 0
        self.last_applied_seq = seq
        self._on_features(records, zoom, trigger)
        logger.debug(f"Fetch #{seq} applied: {len(records)} villages")
        return FetchResult(seq=seq, outcome=FetchOutcome.applied, trigger=trigger, zoom=zoom, records=records)
