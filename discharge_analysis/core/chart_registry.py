"""
Simple chart registry to decouple chart selection from rendering logic.

The pipeline renders every registered chart type for one aggregate, so a new
encoding only needs a renderer registered here.
"""

from typing import Callable, Dict, Any, List

from .constants import ChartType


class ChartRegistry:
    """Registry mapping chart types to renderer callables."""

    def __init__(self):
        self._renderers: Dict[str, Callable[..., Any]] = {}

    def register(self, chart_type: ChartType, renderer: Callable[..., Any]) -> None:
        """Register a renderer for a chart type."""
        self._renderers[str(chart_type.value)] = renderer

    def registered_types(self) -> List[ChartType]:
        """Chart types in registration order."""
        return [ChartType(key) for key in self._renderers]

    def render(self, chart_type: ChartType, **kwargs):
        """Render a chart by delegating to the registered renderer."""
        key = str(ChartType(chart_type).value)
        if key not in self._renderers:
            raise ValueError(f"No renderer registered for chart type: {chart_type}")
        return self._renderers[key](**kwargs)
