"""
Discharge Analysis Module
Counts hospital discharge records per category and charts the result.
"""

__version__ = "1.0.0"

# Import main classes for easy access
from .discharge_analyzer import DischargeAnalysisFramework, PipelineResult, PipelineStageError
from .core.base_component import BaseComponent
from .core.record_loader import RecordLoader
from .core.aggregator import AggregateEntry, CategoryAggregator, aggregate
from .core.visualization_handler import VisualizationHandler

__all__ = [
    'DischargeAnalysisFramework',
    'PipelineResult',
    'PipelineStageError',
    'BaseComponent',
    'RecordLoader',
    'AggregateEntry',
    'CategoryAggregator',
    'aggregate',
    'VisualizationHandler',
]
