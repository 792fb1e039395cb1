#!/usr/bin/env python3
"""
Main Discharge Analysis Framework - Orchestrates the fetch, aggregate and render stages
"""

import sys
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt

from .core.aggregator import AggregateEntry, CategoryAggregator, RawRecord
from .core.base_component import PipelineContext
from .core.constants import (
    CONFIG_KEY_SOURCE,
    DEFAULT_FETCH_TIMEOUT,
    ChartType,
)
from .core.record_loader import RecordLoader
from .core.visualization_handler import BarChart, PieChart, VisualizationHandler

DEFAULT_CONFIG = Path(__file__).resolve().parent / "configs" / "ny_inpatient_discharges.yaml"

STAGE_LOAD_CAPABILITY = "load_capability"
STAGE_FETCH = "fetch"
STAGE_AGGREGATE = "aggregate"
STAGE_RENDER = "render"


class PipelineStageError(RuntimeError):
    """A pipeline stage failed; the original exception is chained as ``__cause__``."""

    def __init__(self, stage: str, cause: BaseException):
        super().__init__(f"Pipeline stage '{stage}' failed: {cause}")
        self.stage = stage
        self.cause = cause


@dataclass
class PipelineResult:
    entries: Tuple[AggregateEntry, ...]
    bar_chart: Optional[BarChart]
    pie_chart: Optional[PieChart]


class DischargeAnalysisFramework:
    """
    Main framework class that orchestrates all pipeline components.

    A run goes through four stages in order: select the plotting backend,
    fetch the record sample, aggregate it by category, and render both
    charts. Each stage's failure is raised as a ``PipelineStageError`` naming
    the stage instead of leaving the run half-finished.
    """

    def __init__(
        self,
        config_file: Optional[str] = None,
        output_directory: Optional[str] = None,
        config_override: Optional[Dict[str, Any]] = None,
        fetch_records: Optional[Callable[[], Sequence[RawRecord]]] = None,
    ):
        """
        Initialize the discharge analysis framework.

        Args:
            config_file: Path to the pipeline configuration (YAML or JSON)
            output_directory: Directory for saved figures and logs (default: none, nothing saved)
            config_override: Dict deep-merged over the loaded configuration
            fetch_records: Replaces the configured record source
        """
        # Initialize loader first to build shared context (config, logging, paths)
        self.record_loader = RecordLoader(config_file, output_directory, config_override=config_override)
        shared_ctx: PipelineContext = self.record_loader.context

        # Initialize dependent components with the shared context
        self.aggregator = CategoryAggregator(context=shared_ctx)
        self.visualization_handler = VisualizationHandler(context=shared_ctx)

        self.config = self.record_loader.config
        self.logger = self.record_loader.logger
        self.output_dir = self.record_loader.output_dir
        self.fetch_records = fetch_records or self.record_loader.load_records

        self.logger.info(f"Framework initialized for {self.record_loader.get_dataset_name()}")

    @property
    def fetch_timeout(self) -> Optional[float]:
        timeout = self.config.get(CONFIG_KEY_SOURCE, {}).get('timeout_seconds', DEFAULT_FETCH_TIMEOUT)
        return float(timeout) if timeout is not None else None

    def _run_stage(self, stage: str, action: Callable[[], Any]) -> Any:
        self.logger.info(f"Stage {stage} started")
        try:
            result = action()
        except PipelineStageError:
            raise
        except Exception as e:
            self.logger.error(f"Stage {stage} failed: {e}")
            raise PipelineStageError(stage, e) from e
        self.logger.info(f"Stage {stage} completed")
        return result

    def load_capability(self) -> str:
        """Select the matplotlib backend; non-interactive runs always draw off-screen."""
        handler = self.visualization_handler
        backend = handler.get_visualization_setting('backend') if handler.interactive else 'Agg'
        if backend:
            plt.switch_backend(backend)
        return plt.get_backend()

    def fetch(self) -> List[RawRecord]:
        """
        Fetch records on a daemon thread, bounded by the configured timeout.

        A fetch that outlives the timeout is abandoned; being a daemon, it
        cannot hold the interpreter open at exit.
        """
        outcome: Dict[str, Any] = {}

        def worker():
            try:
                outcome['records'] = list(self.fetch_records())
            except Exception as e:
                outcome['error'] = e

        thread = threading.Thread(target=worker, name="record-fetch", daemon=True)
        thread.start()
        thread.join(self.fetch_timeout)

        if thread.is_alive():
            raise TimeoutError(f"Record fetch did not finish within {self.fetch_timeout:g}s")
        if 'error' in outcome:
            raise outcome['error']
        return outcome['records']

    def aggregate(self, records: Sequence[RawRecord]) -> Tuple[AggregateEntry, ...]:
        return self.aggregator.aggregate_records(records)

    def render(self, entries: Sequence[AggregateEntry]) -> Dict[ChartType, Any]:
        return self.visualization_handler.render_all(entries)

    def run(self) -> PipelineResult:
        """Run every stage once and return the aggregate with both chart handles."""
        self._run_stage(STAGE_LOAD_CAPABILITY, self.load_capability)
        records = self._run_stage(STAGE_FETCH, self.fetch)
        entries = self._run_stage(STAGE_AGGREGATE, lambda: self.aggregate(records))
        charts = self._run_stage(STAGE_RENDER, lambda: self.render(entries))

        self.logger.info(f"Pipeline completed: {len(records):,} records, {len(entries)} categories")
        return PipelineResult(
            entries=entries,
            bar_chart=charts.get(ChartType.BAR),
            pie_chart=charts.get(ChartType.PIE),
        )


# Main execution function
def main(argv: Optional[List[str]] = None):
    """Main function for running the discharge chart pipeline."""
    args = sys.argv[1:] if argv is None else argv

    if args and args[0] in ('-h', '--help'):
        print("Usage: discharge-analysis [config_file] [output_directory]")
        return 0

    config_file = args[0] if len(args) > 0 else str(DEFAULT_CONFIG)
    output_directory = args[1] if len(args) > 1 else None

    framework = DischargeAnalysisFramework(config_file, output_directory)
    try:
        framework.run()
    except PipelineStageError as e:
        framework.logger.error(str(e))
        return 1

    if framework.visualization_handler.interactive:
        plt.show()
    return 0


if __name__ == "__main__":
    sys.exit(main())
