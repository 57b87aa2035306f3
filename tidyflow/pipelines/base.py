"""
Pipeline Base

Runs named stages in order with timing and logging, and hands tables,
figures and fitted objects to the OutputManager when output is enabled.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import logging
import time

import matplotlib.pyplot as plt
import pandas as pd
from matplotlib.figure import Figure
from pydantic import BaseModel

from tidyflow.core.logger import PipelineLogger
from tidyflow.io.output_manager import OutputManager


logger = logging.getLogger(__name__)


@dataclass
class StageRecord:
    """Timing and status of one pipeline stage."""

    name: str
    duration_seconds: float = 0.0
    status: str = "pending"
    error: Optional[str] = None

    def summary(self) -> str:
        text = f"{self.name}: {self.status} ({self.duration_seconds:.2f}s)"
        if self.error:
            text += f" - {self.error}"
        return text


@dataclass
class RunInfo:
    """Stage log and output location shared by the pipeline results."""

    stages: List[StageRecord] = field(default_factory=list)
    status: str = "pending"
    total_duration: float = 0.0
    run_dir: Optional[str] = None

    def summary(self) -> str:
        lines = [f"Pipeline {self.status} in {self.total_duration:.1f}s"]
        lines.extend(f"  {stage.summary()}" for stage in self.stages)
        if self.run_dir:
            lines.append(f"  Outputs: {self.run_dir}")
        return "\n".join(lines)


class BasePipeline:
    """Common stage runner for the analysis pipelines.

    Args:
        config: Frozen top-level configuration with an ``output`` section.
        pipeline_name: Name used for logging and the output run.
        output_manager: Existing OutputManager; one is created when output
            is enabled and none is given.
    """

    def __init__(
        self,
        config: BaseModel,
        pipeline_name: str,
        output_manager: Optional[OutputManager] = None,
    ):
        self.config = config
        self.pipeline_name = pipeline_name
        self.output_manager = output_manager
        if self.output_manager is None and config.output.enabled:
            self.output_manager = OutputManager(config, pipeline_name=pipeline_name)
        self.plog = PipelineLogger(pipeline_name)
        self.plog.set_context(pipeline=pipeline_name)
        if self.output_manager is not None:
            self.plog.set_context(run_id=self.output_manager.run_id)
        self.run_info = RunInfo()
        self._start: Optional[float] = None

    def _begin(self) -> None:
        self.run_info = RunInfo(
            run_dir=str(self.output_manager.run_dir) if self.output_manager else None
        )
        self._start = time.time()
        self.plog.info(f"PIPELINE | Starting {self.pipeline_name}")
        if self.output_manager is not None:
            self.output_manager.save_config_snapshot()

    def _stage(self, name: str, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run one stage; failures are logged and re-raised."""
        record = StageRecord(name=name, status="running")
        self.run_info.stages.append(record)
        self.plog.step_start(name)
        t0 = time.time()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            record.duration_seconds = time.time() - t0
            record.status = "failed"
            record.error = f"{type(e).__name__}: {e}"
            self.plog.exception(f"PIPELINE | Stage '{name}' failed")
            self._finish("failed")
            raise
        record.duration_seconds = time.time() - t0
        record.status = "success"
        self.plog.step_complete(name, record.duration_seconds)
        return result

    def _finish(self, status: str) -> None:
        self.run_info.status = status
        if self._start is not None:
            self.run_info.total_duration = time.time() - self._start
        self.plog.info(f"PIPELINE | {self.run_info.summary()}")
        if self.output_manager is not None:
            self.output_manager.mark_complete(status)
            self.output_manager.save_run_metadata(
                extra={"stages": [vars(s) for s in self.run_info.stages]}
            )

    def _save_tables(self, tables: Dict[str, pd.DataFrame]) -> None:
        if self.output_manager is not None:
            self.output_manager.save_tables(tables)

    def _save_json(self, name: str, obj: Any) -> None:
        if self.output_manager is not None:
            self.output_manager.save_json(name, obj)

    def _save_figures(self, figures: Dict[str, Figure]) -> None:
        """Save figures when output is enabled; close them unless they will be shown."""
        for name, fig in figures.items():
            if self.output_manager is not None:
                self.output_manager.save_figure(name, fig)
            elif not self.config.output.show_figures:
                plt.close(fig)

    def _save_model(self, name: str, obj: Any) -> None:
        if self.output_manager is not None:
            self.output_manager.save_model(name, obj)
