"""Diagnostic statistics for the current highlight set."""

from dataclasses import dataclass
from typing import Any, Dict, List, Sequence

from tabulate import tabulate


@dataclass(frozen=True)
class HighlightStats:
    """Counts over the render data of one ``get_stats`` call.

    ``segment_count`` and ``visible_segment_count`` both count the segments
    that survived viewport culling; ``total_segment_count`` counts the merged
    segments before culling.
    """

    highlight_count: int = 0
    segment_count: int = 0
    visible_segment_count: int = 0
    overlapping_segment_count: int = 0
    average_overlaps: float = 0.0
    total_segment_count: int = 0

    @classmethod
    def from_segments(
        cls, highlight_count: int, total_segment_count: int, visible: Sequence[Any]
    ) -> "HighlightStats":
        """Summarise the visible render segments.

        ``average_overlaps`` is the mean number of highlights on segments
        shared by more than one highlight, rounded to two decimals.
        """
        overlapping = [s for s in visible if len(s.highlights) > 1]
        average = (
            sum(len(s.highlights) for s in overlapping) / len(overlapping)
            if overlapping
            else 0.0
        )
        return cls(
            highlight_count=highlight_count,
            segment_count=len(visible),
            visible_segment_count=len(visible),
            overlapping_segment_count=len(overlapping),
            average_overlaps=round(average, 2),
            total_segment_count=total_segment_count,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "highlightCount": self.highlight_count,
            "segmentCount": self.segment_count,
            "visibleSegmentCount": self.visible_segment_count,
            "overlappingSegmentCount": self.overlapping_segment_count,
            "averageOverlaps": self.average_overlaps,
            "totalSegmentCount": self.total_segment_count,
        }

    def rows(self) -> List[List[Any]]:
        return [
            ["Highlights", self.highlight_count],
            ["Segments (before culling)", self.total_segment_count],
            ["Visible segments", self.visible_segment_count],
            ["Overlapping segments", self.overlapping_segment_count],
            ["Average overlaps", f"{self.average_overlaps:.2f}"],
        ]

    def as_table(self, tablefmt: str = "grid") -> str:
        """Render the statistics as a two-column text table."""
        return tabulate(
            self.rows(),
            headers=["Metric", "Value"],
            tablefmt=tablefmt,
            colalign=("left", "right"),
        )
