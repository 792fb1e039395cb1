"""
Layout computation for the bar and pie charts.

Everything here is a pure function of the aggregate entries, the viewport and
a text-measuring callable; the matplotlib drawing code in
``visualization_handler`` only places artists where these functions say.
Bar coordinates are top-down pixels, pie coordinates are drawing units
with the origin at the donut center and y pointing up.
"""

import math
from dataclasses import dataclass
from typing import Callable, Sequence, Tuple

import numpy as np

from .aggregator import AggregateEntry
from .constants import (
    BAR_AXIS_MARGIN,
    BAR_MARGIN,
    BAR_PADDING_RATIO,
    BAR_PALETTE,
    BAR_THICKNESS_RATIO,
    BAR_VALUE_MARGIN,
    PIE_INNER_RADIUS,
    PIE_LABEL_ELLIPSIS,
    PIE_LABEL_MAX_LENGTH,
    PIE_OUTER_RADIUS,
    PIE_PALETTE,
)

TextMeasure = Callable[[str], float]


@dataclass(frozen=True)
class Viewport:
    """Pixel size of the area the bar chart fills."""
    width: int
    height: int


def quantize_color(index: int, count: int, palette: Sequence[str]) -> str:
    """
    Map a rank to a palette color by bucketing the domain ``[0, count]``.

    The domain is cut into ``len(palette)`` equal buckets, so up to
    ``len(palette)`` ranks get distinct colors and larger counts share them
    between neighbouring ranks.
    """
    if not palette:
        raise ValueError("palette must not be empty")
    if count <= 0:
        return palette[0]
    slot = math.floor(index * len(palette) / count)
    return palette[max(0, min(len(palette) - 1, slot))]


def truncate_label(label: str, max_length: int = PIE_LABEL_MAX_LENGTH) -> str:
    if len(label) > max_length:
        return label[:max_length] + PIE_LABEL_ELLIPSIS
    return label


@dataclass(frozen=True)
class BarLayout:
    entry: AggregateEntry
    index: int
    y_offset: float
    width: float
    color: str
    value_x: float


@dataclass(frozen=True)
class BarChartGeometry:
    viewport: Viewport
    label_width: int
    domain_max: float
    scale_range: float
    band_height: float
    bar_height: float
    bar_padding: float
    bars: Tuple[BarLayout, ...]

    @property
    def drawable_height(self) -> float:
        return self.viewport.height - BAR_AXIS_MARGIN - 2 * BAR_MARGIN

    @property
    def axis_y(self) -> float:
        """Top-down pixel row of the value axis."""
        return self.viewport.height - BAR_AXIS_MARGIN - BAR_MARGIN

    @property
    def bar_left(self) -> float:
        return BAR_MARGIN + self.label_width

    def scale(self, value: float) -> float:
        """Linear map from ``[0, domain_max]`` to ``[0, scale_range]``."""
        return value / self.domain_max * self.scale_range


def compute_bar_geometry(
    entries: Sequence[AggregateEntry],
    viewport: Viewport,
    measure_text: TextMeasure,
    palette: Sequence[str] = BAR_PALETTE,
) -> BarChartGeometry:
    """Lay out one horizontal bar per entry, ranked top to bottom in input order."""
    count = len(entries)
    drawable_height = viewport.height - BAR_AXIS_MARGIN - 2 * BAR_MARGIN
    if drawable_height <= 0:
        raise ValueError(f"Viewport height {viewport.height} leaves no room for bars")

    # Measure every label first, then lay out against the widest one
    label_width = int(math.ceil(max((measure_text(entry.label) for entry in entries), default=0)))
    scale_range = viewport.width - 2 * BAR_MARGIN - label_width
    if scale_range <= 0:
        raise ValueError(
            f"Viewport width {viewport.width} leaves no room for bars next to {label_width}px labels"
        )

    domain_max = max((entry.value for entry in entries), default=0) or 1
    band_height = drawable_height / count if count else 0.0
    bar_height = band_height * BAR_THICKNESS_RATIO
    bar_padding = band_height * BAR_PADDING_RATIO

    bars = []
    for i, entry in enumerate(entries):
        width = entry.value / domain_max * scale_range
        text_width = measure_text(str(entry.value))
        bars.append(BarLayout(
            entry=entry,
            index=i,
            y_offset=i * (bar_height + bar_padding) + bar_padding,
            width=width,
            color=quantize_color(i, count, palette),
            value_x=max(text_width + BAR_VALUE_MARGIN, width),
        ))

    return BarChartGeometry(
        viewport=viewport,
        label_width=label_width,
        domain_max=domain_max,
        scale_range=scale_range,
        band_height=band_height,
        bar_height=bar_height,
        bar_padding=bar_padding,
        bars=tuple(bars),
    )


@dataclass(frozen=True)
class PieSlice:
    entry: AggregateEntry
    index: int
    start_angle: float
    end_angle: float
    color: str
    text: str
    centroid: Tuple[float, float]

    @property
    def angle(self) -> float:
        return self.end_angle - self.start_angle


@dataclass(frozen=True)
class PieChartGeometry:
    outer_radius: float
    inner_radius: float
    slices: Tuple[PieSlice, ...]


def arc_centroid(start_angle: float, end_angle: float, inner_radius: float, outer_radius: float) -> Tuple[float, float]:
    """
    Midpoint of an annular sector.

    Angles run clockwise from 12 o'clock in radians. A sector covering the
    whole circle has its centroid at the center.
    """
    if math.isclose(end_angle - start_angle, 2 * math.pi):
        return (0.0, 0.0)
    radius = (inner_radius + outer_radius) / 2
    mid = (start_angle + end_angle) / 2
    return (radius * math.sin(mid), radius * math.cos(mid))


def compute_pie_geometry(
    entries: Sequence[AggregateEntry],
    palette: Sequence[str] = PIE_PALETTE,
    outer_radius: float = PIE_OUTER_RADIUS,
    inner_radius: float = PIE_INNER_RADIUS,
) -> PieChartGeometry:
    """Split the circle among entries in input order, proportionally to value."""
    count = len(entries)
    values = np.array([entry.value for entry in entries], dtype=float)
    total = values.sum()

    if count and total > 0:
        boundaries = np.concatenate(([0.0], np.cumsum(values) / total * 2 * math.pi))
        # Absorb rounding so the last slice closes the circle exactly
        boundaries[-1] = 2 * math.pi
    else:
        boundaries = np.zeros(count + 1)

    slices = []
    for i, entry in enumerate(entries):
        start, end = float(boundaries[i]), float(boundaries[i + 1])
        slices.append(PieSlice(
            entry=entry,
            index=i,
            start_angle=start,
            end_angle=end,
            color=quantize_color(i, count, palette),
            text=truncate_label(entry.label),
            centroid=arc_centroid(start, end, inner_radius, outer_radius),
        ))

    return PieChartGeometry(outer_radius=outer_radius, inner_radius=inner_radius, slices=tuple(slices))
