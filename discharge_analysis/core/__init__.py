#!/usr/bin/env python3
"""
Core module for the discharge chart pipeline.
Contains the modular components for record loading, aggregation and chart rendering.
"""

from .base_component import BaseComponent, PipelineContext
from .record_loader import RecordLoader
from .aggregator import AggregateEntry, CategoryAggregator, aggregate, field_extractor
from .chart_geometry import Viewport, compute_bar_geometry, compute_pie_geometry, quantize_color
from .visualization_handler import VisualizationHandler, render_bar_chart, render_pie_chart
from .chart_registry import ChartRegistry
from .constants import ChartType, MissingCategoryPolicy

__all__ = [
    'BaseComponent',
    'PipelineContext',
    'RecordLoader',
    'AggregateEntry',
    'CategoryAggregator',
    'aggregate',
    'field_extractor',
    'Viewport',
    'compute_bar_geometry',
    'compute_pie_geometry',
    'quantize_color',
    'VisualizationHandler',
    'render_bar_chart',
    'render_pie_chart',
    'ChartRegistry',
    'ChartType',
    'MissingCategoryPolicy',
]
