from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from villagemap.layers.types import FeatureRecord


@dataclass(frozen=True)
class FilterSelection:
    """
    Administrative filter (state > district > subdistrict). Empty string means unset.
    """

    state: str = ""
    district: str = ""
    subdistrict: str = ""

    @classmethod
    def of(
        cls,
        state: str | None = None,
        district: str | None = None,
        subdistrict: str | None = None,
    ) -> "FilterSelection":
        """
        Build a selection, dropping levels whose parent level is unset.
        """
        return cls().with_state(state).with_district(district).with_subdistrict(subdistrict)

    @property
    def is_empty(self) -> bool:
        return not self.state

    # Changing a level resets everything below it.
    def with_state(self, state: str | None) -> "FilterSelection":
        return FilterSelection(state=(state or "").strip())

    def with_district(self, district: str | None) -> "FilterSelection":
        if not self.state:
            return FilterSelection()
        return FilterSelection(state=self.state, district=(district or "").strip())

    def with_subdistrict(self, subdistrict: str | None) -> "FilterSelection":
        if not self.district:
            return FilterSelection(state=self.state)
        return FilterSelection(
            state=self.state,
            district=self.district,
            subdistrict=(subdistrict or "").strip(),
        )

    @staticmethod
    def cleared() -> "FilterSelection":
        return FilterSelection()


class FeatureQuery(Protocol):
    """
    Data source interface.

    Both calls raise `QueryFailure` on any transport/parse error or `success: false`.
    """

    async def fetch_by_filter(
        self,
        state: str | None = None,
        district: str | None = None,
        subdistrict: str | None = None,
    ) -> list[FeatureRecord]: ...

    async def fetch_by_bounds(
        self,
        min_lat: float,
        max_lat: float,
        min_lng: float,
        max_lng: float,
        zoom: float,
    ) -> list[FeatureRecord]: ...
