#!/usr/bin/env python3
"""
Visualization Handler - Draws the category bar and pie charts
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle, Wedge
from matplotlib.text import Annotation, Text
from matplotlib.ticker import MaxNLocator
import numpy as np

from .aggregator import AggregateEntry
from .base_component import BaseComponent
from .chart_geometry import (
    BarChartGeometry,
    BarLayout,
    PieChartGeometry,
    Viewport,
    compute_bar_geometry,
    compute_pie_geometry,
)
from .chart_registry import ChartRegistry
from .constants import (
    BAR_AXIS_MARGIN,
    BAR_CHART_FILE,
    BAR_MARGIN,
    BAR_PALETTE,
    BAR_VALUE_MARGIN,
    DEFAULT_DPI,
    DEFAULT_VIEWPORT_HEIGHT,
    DEFAULT_VIEWPORT_WIDTH,
    PIE_CHART_FILE,
    PIE_HEIGHT,
    PIE_PALETTE,
    PIE_WIDTH,
    TOOLTIP_OFFSET,
    ChartType,
)


class TextMeasurer:
    """Measures rendered text width in pixels on a figure's canvas."""

    def __init__(self, figure: Figure, fontsize: Optional[float] = None):
        self.figure = figure
        self.fontsize = fontsize

    def __call__(self, text: str) -> float:
        renderer = self.figure.canvas.get_renderer()
        artist = self.figure.text(0, 0, text, fontsize=self.fontsize, parse_math=False)
        try:
            return artist.get_window_extent(renderer=renderer).width
        finally:
            artist.remove()


@dataclass
class BarGroup:
    """Artists drawn for one aggregate entry."""
    layout: BarLayout
    rect: Rectangle
    label_text: Text
    value_text: Text

    @property
    def entry(self) -> AggregateEntry:
        return self.layout.entry

    def contains(self, event) -> bool:
        return any(artist.contains(event)[0] for artist in (self.rect, self.label_text, self.value_text))


class BarTooltip:
    """Floating label that follows the pointer while it hovers over a bar."""

    def __init__(self, ax: Axes, groups: Sequence[BarGroup], fontsize: Optional[float] = None):
        self.ax = ax
        self.groups = list(groups)
        self.active_entry: Optional[AggregateEntry] = None
        self._connections: List[int] = []

        # Offset is given in screen pixels (y down); display pixels grow upwards
        dx, dy = TOOLTIP_OFFSET
        self.annotation: Annotation = ax.annotate(
            '',
            xy=(0, 0),
            xycoords='figure pixels',
            xytext=(dx, -dy),
            textcoords='offset pixels',
            ha='left',
            va='top',
            fontsize=fontsize,
            bbox=dict(boxstyle='round,pad=0.5', facecolor='lightgray', alpha=0.8),
            zorder=10,
            parse_math=False,
        )
        self.annotation.set_visible(False)

    @property
    def visible(self) -> bool:
        return self.annotation.get_visible()

    def connect(self):
        canvas = self.ax.figure.canvas
        self._connections = [
            canvas.mpl_connect('motion_notify_event', self.on_move),
            canvas.mpl_connect('figure_leave_event', self.on_leave),
        ]

    def disconnect(self):
        for cid in self._connections:
            self.ax.figure.canvas.mpl_disconnect(cid)
        self._connections = []

    def group_at(self, event) -> Optional[BarGroup]:
        if event.x is None or event.y is None:
            return None
        for group in self.groups:
            if group.contains(event):
                return group
        return None

    def on_move(self, event):
        group = self.group_at(event)
        if group is None:
            self.hide()
        else:
            self.show(group.entry, event.x, event.y)

    def on_leave(self, event):
        self.hide()

    def show(self, entry: AggregateEntry, x: float, y: float):
        self.annotation.xy = (x, y)
        self.annotation.set_text(f"{entry.label}\n{entry.value}")
        self.annotation.set_visible(True)
        self.active_entry = entry
        self.ax.figure.canvas.draw_idle()

    def hide(self):
        if not self.visible:
            return
        self.annotation.set_visible(False)
        self.active_entry = None
        self.ax.figure.canvas.draw_idle()


@dataclass
class BarChart:
    figure: Figure
    frame_ax: Axes
    axis_ax: Axes
    geometry: BarChartGeometry
    groups: List[BarGroup]
    tooltip: BarTooltip
    output_file: Optional[Path] = None


@dataclass
class PieChart:
    figure: Figure
    ax: Axes
    geometry: PieChartGeometry
    wedges: List[Wedge] = field(default_factory=list)
    labels: List[Text] = field(default_factory=list)
    output_file: Optional[Path] = None


def render_bar_chart(
    entries: Sequence[AggregateEntry],
    figure: Figure,
    viewport: Viewport,
    palette: Sequence[str] = BAR_PALETTE,
    fontsize: Optional[float] = None,
) -> BarChart:
    """Draw one horizontal bar per entry into ``figure`` and wire the hover tooltip."""
    dpi = figure.get_dpi()
    figure.set_size_inches(viewport.width / dpi, viewport.height / dpi)

    geometry = compute_bar_geometry(entries, viewport, TextMeasurer(figure, fontsize), palette)
    width, height = viewport.width, viewport.height

    # Value axis goes in first so the bars are drawn over its gridlines
    axis_ax = figure.add_axes([
        geometry.bar_left / width,
        (BAR_AXIS_MARGIN + BAR_MARGIN) / height,
        geometry.scale_range / width,
        geometry.drawable_height / height,
    ])
    axis_ax.set_zorder(0)
    axis_ax.set_xlim(0, geometry.domain_max)
    axis_ax.set_ylim(0, 1)
    axis_ax.set_yticks([])
    axis_ax.xaxis.set_major_locator(MaxNLocator(integer=True))
    axis_ax.tick_params(axis='x', labelsize=fontsize)
    for side in ('top', 'right', 'left'):
        axis_ax.spines[side].set_visible(False)
    axis_ax.grid(True, axis='x', alpha=0.3)
    axis_ax.grid(False, axis='y')

    # Full-figure overlay in top-down pixel coordinates
    frame_ax = figure.add_axes([0, 0, 1, 1])
    frame_ax.set_zorder(1)
    frame_ax.set_xlim(0, width)
    frame_ax.set_ylim(height, 0)
    frame_ax.axis('off')

    groups = []
    for bar in geometry.bars:
        y_mid = bar.y_offset + geometry.bar_height / 2
        label_text = frame_ax.text(
            BAR_MARGIN, y_mid, bar.entry.label,
            ha='left', va='center', fontsize=fontsize, color=bar.color, parse_math=False,
        )
        rect = Rectangle(
            (geometry.bar_left, bar.y_offset), bar.width, geometry.bar_height,
            facecolor=bar.color,
        )
        frame_ax.add_patch(rect)
        pushed_out = bar.value_x > bar.width
        value_text = frame_ax.text(
            geometry.bar_left - BAR_VALUE_MARGIN + bar.value_x, y_mid, f'{bar.entry.value}',
            ha='right', va='center', fontsize=fontsize,
            color=bar.color if pushed_out else 'white',
        )
        groups.append(BarGroup(layout=bar, rect=rect, label_text=label_text, value_text=value_text))

    tooltip = BarTooltip(frame_ax, groups, fontsize=fontsize)
    tooltip.connect()

    return BarChart(
        figure=figure,
        frame_ax=frame_ax,
        axis_ax=axis_ax,
        geometry=geometry,
        groups=groups,
        tooltip=tooltip,
    )


def render_pie_chart(
    entries: Sequence[AggregateEntry],
    figure: Figure,
    palette: Sequence[str] = PIE_PALETTE,
    fontsize: Optional[float] = None,
) -> PieChart:
    """Draw the entries as a donut centered on a fixed 800x500 canvas."""
    dpi = figure.get_dpi()
    figure.set_size_inches(PIE_WIDTH / dpi, PIE_HEIGHT / dpi)

    geometry = compute_pie_geometry(entries, palette)

    ax = figure.add_axes([0, 0, 1, 1])
    ax.set_xlim(-PIE_WIDTH / 2, PIE_WIDTH / 2)
    ax.set_ylim(-PIE_HEIGHT / 2, PIE_HEIGHT / 2)
    ax.set_aspect('equal')
    ax.axis('off')

    chart = PieChart(figure=figure, ax=ax, geometry=geometry)
    ring_width = geometry.outer_radius - geometry.inner_radius
    for pie_slice in geometry.slices:
        # Slice angles run clockwise from 12 o'clock; Wedge wants degrees counter-clockwise from 3 o'clock
        wedge = Wedge(
            (0, 0),
            geometry.outer_radius,
            90 - np.degrees(pie_slice.end_angle),
            90 - np.degrees(pie_slice.start_angle),
            width=ring_width,
            facecolor=pie_slice.color,
        )
        ax.add_patch(wedge)
        chart.wedges.append(wedge)
        chart.labels.append(ax.text(
            pie_slice.centroid[0], pie_slice.centroid[1], pie_slice.text,
            ha='center', va='center', fontsize=fontsize, parse_math=False,
        ))

    return chart


class VisualizationHandler(BaseComponent):
    """Handles all visualization and plotting operations."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        output_directory: Optional[str] = None,
        context=None,
        config_override=None,
    ):
        super().__init__(config_file, output_directory, context=context, config_override=config_override)
        self._setup_plotting()
        self.chart_registry = ChartRegistry()
        self._register_default_charts()

    def _register_default_charts(self):
        """Register built-in chart renderers."""
        self.chart_registry.register(ChartType.BAR, self.create_bar_chart)
        self.chart_registry.register(ChartType.PIE, self.create_pie_chart)

    def render_chart(self, chart_type: ChartType, **kwargs):
        """Render a chart via the registry (extensible entry point)."""
        return self.chart_registry.render(chart_type, **kwargs)

    def render_all(self, entries: Sequence[AggregateEntry]) -> Dict[ChartType, Any]:
        """Render every registered chart type for one aggregate."""
        return {
            chart_type: self.render_chart(chart_type, entries=entries)
            for chart_type in self.chart_registry.registered_types()
        }

    def _setup_plotting(self):
        """Setup matplotlib fonts and resolution."""
        plt.rcParams['figure.dpi'] = self.dpi
        plt.rcParams['savefig.dpi'] = self.dpi
        plt.rcParams['font.family'] = self.get_visualization_setting('font_family', 'sans-serif')
        plt.rcParams['font.size'] = self.fontsize

    @property
    def dpi(self) -> int:
        return int(self.get_visualization_setting('dpi', DEFAULT_DPI))

    @property
    def fontsize(self) -> float:
        return float(self.get_visualization_setting('font_size', 10))

    @property
    def interactive(self) -> bool:
        return bool(self.get_visualization_setting('interactive', False))

    @property
    def viewport(self) -> Viewport:
        """Viewport the bar chart sizes itself to."""
        configured = self.get_visualization_setting('viewport', {}) or {}
        return Viewport(
            width=int(configured.get('width', DEFAULT_VIEWPORT_WIDTH)),
            height=int(configured.get('height', DEFAULT_VIEWPORT_HEIGHT)),
        )

    def _palette(self, key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
        palette = tuple(self.get_visualization_setting(key, default) or ())
        if not palette:
            raise ValueError(f"visualization.{key} must list at least one color")
        return palette

    def create_bar_chart(self, entries: Sequence[AggregateEntry], figure: Optional[Figure] = None) -> BarChart:
        """Create the horizontal bar chart with hover tooltips."""
        if len(entries) == 0:
            self.logger.warning("No categories to plot, drawing empty bar chart frame")

        figure = figure or plt.figure(dpi=self.dpi)
        chart = render_bar_chart(
            entries, figure, self.viewport,
            palette=self._palette('bar_palette', BAR_PALETTE),
            fontsize=self.fontsize,
        )
        chart.output_file = self._finish(figure, BAR_CHART_FILE, tooltip=chart.tooltip)
        self.logger.info(f"Bar chart drawn: {len(chart.groups)} bars, label column {chart.geometry.label_width}px")
        return chart

    def create_pie_chart(self, entries: Sequence[AggregateEntry], figure: Optional[Figure] = None) -> PieChart:
        """Create the donut chart of category proportions."""
        if len(entries) == 0:
            self.logger.warning("No categories to plot, drawing empty pie chart")

        figure = figure or plt.figure(dpi=self.dpi)
        chart = render_pie_chart(
            entries, figure,
            palette=self._palette('pie_palette', PIE_PALETTE),
            fontsize=self.fontsize,
        )
        chart.output_file = self._finish(figure, PIE_CHART_FILE)
        self.logger.info(f"Pie chart drawn: {len(chart.wedges)} slices")
        return chart

    def _finish(self, figure: Figure, filename: str, tooltip: Optional[BarTooltip] = None) -> Optional[Path]:
        """Save the figure when an output directory is set; keep it open only for interactive runs."""
        output_file = None
        if self.output_dir is not None:
            output_file = self.output_dir / f"{self.dataset_name}_{filename}"
            figure.savefig(output_file, dpi=figure.get_dpi(), facecolor='white')
            self.logger.info(f"Visualization saved: {output_file}")

        if not self.interactive:
            # Nothing will hover over a closed figure
            if tooltip is not None:
                tooltip.disconnect()
            plt.close(figure)
        return output_file
