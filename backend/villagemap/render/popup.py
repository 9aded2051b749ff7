from __future__ import annotations

from dataclasses import dataclass
from html import escape

UNKNOWN_NAME = "Unknown Village"
NOT_AVAILABLE = "N/A"


def format_population(population: int | None) -> str:
    if population is None:
        return NOT_AVAILABLE
    return f"{population:,}"


@dataclass(frozen=True)
class Popup:
    """
    Informational payload attached to every drawn village.

    Filter context fields are only set when the corresponding filter is active.
    """

    title: str
    population: str
    state: str | None = None
    district: str | None = None
    subdistrict: str | None = None

    def context_rows(self) -> list[tuple[str, str]]:
        rows = [
            ("State", self.state),
            ("District", self.district),
            ("Subdistrict", self.subdistrict),
        ]
        return [(label, value) for label, value in rows if value]

    def to_html(self) -> str:
        parts = [
            '<div class="village-popup">',
            f"<h4>{escape(self.title)}</h4>",
            f"<p><strong>Population:</strong> {escape(self.population)}</p>",
        ]
        for label, value in self.context_rows():
            parts.append(f"<p><strong>{label}:</strong> {escape(value)}</p>")
        parts.append("</div>")
        return "".join(parts)

    def hover_text(self) -> str:
        # Plotly hover labels understand a small HTML subset (<b>, <br>).
        lines = [f"<b>{escape(self.title)}</b>", f"Population: {escape(self.population)}"]
        lines.extend(f"{label}: {escape(value)}" for label, value in self.context_rows())
        return "<br>".join(lines)
