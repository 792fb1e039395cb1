"""Tests for drawing the charts with matplotlib (Agg backend)."""

from __future__ import annotations

import math

import matplotlib.pyplot as plt
import pytest
from matplotlib.backend_bases import MouseEvent

from discharge_analysis.core.aggregator import AggregateEntry
from discharge_analysis.core.chart_geometry import Viewport
from discharge_analysis.core.constants import BAR_PALETTE, PIE_PALETTE, ChartType
from discharge_analysis.core.visualization_handler import (
    TextMeasurer,
    VisualizationHandler,
    render_bar_chart,
    render_pie_chart,
)

VIEWPORT = Viewport(width=960, height=500)


def _bar_center(chart, group):
    rect = group.rect
    center = (rect.get_x() + rect.get_width() / 2, rect.get_y() + rect.get_height() / 2)
    return chart.frame_ax.transData.transform(center)


def _move(figure, x, y):
    return MouseEvent("motion_notify_event", figure.canvas, x, y)


def test_text_measurer_grows_with_text():
    figure = plt.figure(dpi=100)
    measure = TextMeasurer(figure, fontsize=10)

    assert measure("Newborns and other neonates") > measure("Newborns") > 0
    assert len(figure.texts) == 0


def test_bar_chart_draws_one_group_per_entry(entries):
    chart = render_bar_chart(entries, plt.figure(dpi=100), VIEWPORT)

    assert len(chart.groups) == len(entries)
    tops = [group.rect.get_y() for group in chart.groups]
    assert tops == sorted(tops)
    assert [group.entry for group in chart.groups] == list(entries)


def test_bar_chart_figure_matches_viewport(entries):
    figure = plt.figure(dpi=100)

    render_bar_chart(entries, figure, VIEWPORT)

    width, height = figure.get_size_inches() * figure.get_dpi()
    assert (round(width), round(height)) == (960, 500)


def test_longest_bar_spans_scale_range(entries):
    chart = render_bar_chart(entries, plt.figure(dpi=100), VIEWPORT)

    widths = {group.entry.label: group.rect.get_width() for group in chart.groups}
    top = max(entries, key=lambda entry: entry.value)
    assert widths[top.label] == pytest.approx(chart.geometry.scale_range)


def test_bar_axis_spans_value_domain(entries):
    chart = render_bar_chart(entries, plt.figure(dpi=100), VIEWPORT)

    assert chart.axis_ax.get_xlim() == (0, 12)
    axis_box = chart.axis_ax.get_position()
    assert axis_box.x0 * 960 == pytest.approx(chart.geometry.bar_left)
    assert axis_box.width * 960 == pytest.approx(chart.geometry.scale_range)


def test_bar_colors_come_from_palette(entries):
    chart = render_bar_chart(entries, plt.figure(dpi=100), VIEWPORT)

    expected = [BAR_PALETTE[0], BAR_PALETTE[2], BAR_PALETTE[4]]
    assert [group.layout.color for group in chart.groups] == expected


def test_bar_chart_empty_data_draws_frame_only():
    chart = render_bar_chart((), plt.figure(dpi=100), VIEWPORT)

    assert chart.groups == []
    assert chart.axis_ax.get_xlim() == (0, 1)
    chart.figure.canvas.draw()


def test_tooltip_follows_pointer_over_bar(entries):
    chart = render_bar_chart(entries, plt.figure(dpi=100), VIEWPORT)
    group = chart.groups[1]
    x, y = _bar_center(chart, group)

    chart.figure.canvas.callbacks.process("motion_notify_event", _move(chart.figure, x, y))

    tooltip = chart.tooltip
    assert tooltip.visible
    assert tooltip.active_entry == group.entry
    assert tooltip.annotation.get_text() == f"{group.entry.label}\n{group.entry.value}"
    assert tuple(tooltip.annotation.xy) == pytest.approx((x, y))
    # 10px right, 25px up on screen
    assert tuple(tooltip.annotation.xyann) == (10, 25)


def test_tooltip_hides_off_bar_and_on_leave(entries):
    chart = render_bar_chart(entries, plt.figure(dpi=100), VIEWPORT)
    x, y = _bar_center(chart, chart.groups[0])
    canvas = chart.figure.canvas

    canvas.callbacks.process("motion_notify_event", _move(chart.figure, x, y))
    canvas.callbacks.process("motion_notify_event", _move(chart.figure, 955, 5))
    assert not chart.tooltip.visible
    assert chart.tooltip.active_entry is None

    chart.tooltip.on_move(_move(chart.figure, x, y))
    chart.tooltip.on_leave(None)
    chart.tooltip.on_leave(None)
    assert not chart.tooltip.visible


def test_pie_chart_slices_and_labels(entries):
    chart = render_pie_chart(entries, plt.figure(dpi=100))

    assert len(chart.wedges) == len(entries)
    assert [label.get_text() for label in chart.labels] == [s.text for s in chart.geometry.slices]
    spans = [wedge.theta2 - wedge.theta1 for wedge in chart.wedges]
    assert sum(spans) == pytest.approx(360)
    assert all(wedge.r == 200 and wedge.width == 170 for wedge in chart.wedges)


def test_pie_chart_starts_at_twelve_oclock_clockwise():
    data = (AggregateEntry("A", 2), AggregateEntry("B", 1))

    chart = render_pie_chart(data, plt.figure(dpi=100))

    first, second = chart.wedges
    assert first.theta2 == pytest.approx(90)
    assert first.theta1 == pytest.approx(90 - 240)
    assert (first.theta2 - first.theta1) / (second.theta2 - second.theta1) == pytest.approx(2)


def test_pie_chart_canvas_and_colors(entries):
    figure = plt.figure(dpi=100)

    chart = render_pie_chart(entries, figure)

    width, height = figure.get_size_inches() * figure.get_dpi()
    assert (round(width), round(height)) == (800, 500)
    assert [s.color for s in chart.geometry.slices] == [PIE_PALETTE[0], PIE_PALETTE[2], PIE_PALETTE[4]]


def test_pie_chart_empty_and_single():
    assert render_pie_chart((), plt.figure(dpi=100)).wedges == []

    chart = render_pie_chart((AggregateEntry("Only", 4),), plt.figure(dpi=100))
    (label,) = chart.labels
    assert label.get_position() == (0.0, 0.0)
    assert chart.geometry.slices[0].angle == pytest.approx(2 * math.pi)


def test_pie_labels_truncated_on_canvas():
    data = (AggregateEntry("D" * 35, 1), AggregateEntry("E" * 20, 1))

    chart = render_pie_chart(data, plt.figure(dpi=100))

    assert [label.get_text() for label in chart.labels] == ["D" * 30 + "...", "E" * 20]


def test_handler_renders_both_charts_via_registry(context, entries):
    handler = VisualizationHandler(context=context)

    charts = handler.render_all(entries)

    assert set(charts) == {ChartType.BAR, ChartType.PIE}
    assert len(charts[ChartType.BAR].groups) == 3
    assert len(charts[ChartType.PIE].wedges) == 3
    assert charts[ChartType.BAR].output_file is None


def test_handler_saves_figures_to_output_directory(tmp_path, entries):
    handler = VisualizationHandler(output_directory=str(tmp_path), config_override={"dataset_name": "sample"})

    bar = handler.create_bar_chart(entries)
    pie = handler.create_pie_chart(entries)

    assert bar.output_file == tmp_path / "sample_category_bar_chart.png"
    assert bar.output_file.exists()
    assert pie.output_file.exists()


def test_handler_uses_configured_viewport_and_palette(entries):
    palette = ["#111111", "#222222"]
    handler = VisualizationHandler(config_override={
        "visualization": {"viewport": {"width": 1200, "height": 700}, "bar_palette": palette},
    })

    chart = handler.create_bar_chart(entries)

    assert chart.geometry.viewport == Viewport(1200, 700)
    assert {group.layout.color for group in chart.groups} <= set(palette)


def test_handler_rejects_unknown_chart_type(context):
    handler = VisualizationHandler(context=context)

    with pytest.raises(ValueError):
        handler.render_chart("scatter", entries=())


def test_value_axis_gridlines_span_drawable_height(entries):
    chart = render_bar_chart(entries, plt.figure(dpi=100), VIEWPORT)
    chart.figure.canvas.draw()

    ticks = chart.axis_ax.xaxis.get_major_ticks()
    assert ticks
    assert all(tick.gridline.get_visible() for tick in ticks)
    assert all(tuple(tick.gridline.get_ydata()) == (0, 1) for tick in ticks)
    box = chart.axis_ax.get_position()
    assert box.height == pytest.approx(chart.geometry.drawable_height / VIEWPORT.height)
    assert box.y0 * VIEWPORT.height == pytest.approx(20 + 40)


def test_value_label_drawn_past_short_bar():
    data = (AggregateEntry("Big", 100000), AggregateEntry("Tiny", 1))

    chart = render_bar_chart(data, plt.figure(dpi=100), VIEWPORT)

    big, tiny = chart.groups
    geometry = chart.geometry
    assert tiny.value_text.get_position()[0] == pytest.approx(geometry.bar_left - 4 + tiny.layout.value_x)
    assert tiny.value_text.get_position()[0] > tiny.rect.get_x() + tiny.rect.get_width()
    assert big.value_text.get_position()[0] == pytest.approx(geometry.bar_left - 4 + big.rect.get_width())
    assert tiny.value_text.get_horizontalalignment() == "right"


def test_dollar_signs_in_labels_are_literal():
    label = r"Charges $\notacommand$ billed"
    data = (AggregateEntry(label, 2), AggregateEntry("Other", 1))

    bar = render_bar_chart(data, plt.figure(dpi=100), VIEWPORT)
    pie = render_pie_chart(data, plt.figure(dpi=100))
    bar.tooltip.show(data[0], 100, 100)
    bar.figure.canvas.draw()
    pie.figure.canvas.draw()

    assert bar.groups[0].label_text.get_text() == label
    assert pie.labels[0].get_text() == label
    assert bar.tooltip.annotation.get_text() == f"{label}\n2"


def test_handler_detaches_tooltip_from_closed_figure(context, entries):
    handler = VisualizationHandler(context=context)

    chart = handler.create_bar_chart(entries)
    x, y = _bar_center(chart, chart.groups[0])
    chart.figure.canvas.callbacks.process("motion_notify_event", _move(chart.figure, x, y))

    assert chart.tooltip._connections == []
    assert not chart.tooltip.visible


def test_interactive_handler_keeps_tooltip_connected(entries):
    handler = VisualizationHandler(config_override={"visualization": {"interactive": True}})

    chart = handler.create_bar_chart(entries)

    assert len(chart.tooltip._connections) == 2
    assert plt.fignum_exists(chart.figure.number)
