"""
Output Manager

Creates and manages the run directory structure, saves tables, figures,
fitted models and run metadata.
"""

from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence
import hashlib
import importlib.metadata
import json
import logging
import platform
import subprocess
import sys

import joblib
import matplotlib.pyplot as plt
import pandas as pd
import yaml
from matplotlib.figure import Figure
from pydantic import BaseModel

from tidyflow.core.exceptions import ArtifactError


logger = logging.getLogger(__name__)

RUN_SUBDIRS = ("config", "tables", "figures", "models", "logs")

TRACKED_PACKAGES = (
    "pandas",
    "numpy",
    "scipy",
    "statsmodels",
    "scikit-learn",
    "pydantic",
)


def _get_package_version(package: str) -> str:
    """Get the version string of an installed package.

    Args:
        package: Package name.

    Returns:
        Version string, or 'not installed' if unavailable.
    """
    try:
        return importlib.metadata.version(package)
    except importlib.metadata.PackageNotFoundError:
        return "not installed"


def _get_git_hash() -> str:
    """Get the current git commit hash.

    Returns:
        Short commit hash, with '-dirty' for uncommitted changes, or 'no-git'
        if not a repo.
    """
    try:
        result = subprocess.run(
            ["git", "rev-parse", "--short", "HEAD"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        if result.returncode != 0:
            return "no-git"
        commit = result.stdout.strip()

        dirty_check = subprocess.run(
            ["git", "diff", "--quiet"],
            capture_output=True,
            timeout=5,
        )
        if dirty_check.returncode != 0:
            return f"{commit}-dirty"
        return commit
    except (OSError, subprocess.SubprocessError):
        return "no-git"


def frame_hash(df: pd.DataFrame, n_rows: int = 1000) -> str:
    """MD5 of the CSV rendering of the first ``n_rows`` rows."""
    content = df.head(n_rows).to_csv(index=False).encode("utf-8")
    return hashlib.md5(content).hexdigest()


class OutputManager:
    """Manages the output directory structure and artifact saving for a pipeline run.

    Creates a unique run directory under the configured base_dir:
        {base_dir}/{run_id}/
            config/
            tables/
            figures/
            models/
            logs/

    The run_id format is {YYYYMMDD}_{HHMMSS}_{short_hash} where short_hash
    is derived from the config for uniqueness.

    Args:
        config: Top-level pipeline configuration (must have an ``output`` section).
        pipeline_name: Name recorded in the run metadata.
        run_start: Optional datetime for the run start. Defaults to now.
    """

    def __init__(
        self,
        config: BaseModel,
        pipeline_name: str = "pipeline",
        run_start: Optional[datetime] = None,
    ):
        self._config = config
        self._output_config = config.output
        self._pipeline_name = pipeline_name
        self._run_start = run_start or datetime.now()
        self._run_end: Optional[datetime] = None
        self._status = "running"
        self._input_hashes: Dict[str, str] = {}
        self._saved: List[str] = []

        config_json = config.model_dump_json()
        short_hash = hashlib.md5(config_json.encode()).hexdigest()[:6]
        timestamp = self._run_start.strftime("%Y%m%d_%H%M%S")
        self._run_id = f"{timestamp}_{short_hash}"

        self._base_dir = Path(self._output_config.base_dir)
        self._run_dir = self._base_dir / self._run_id
        self._create_directories()

        logger.info("Output directory: %s", self._run_dir)

    @property
    def run_id(self) -> str:
        """The unique identifier for this run."""
        return self._run_id

    @property
    def run_dir(self) -> Path:
        """Root directory for this run."""
        return self._run_dir

    @property
    def status(self) -> str:
        return self._status

    @property
    def saved_artifacts(self) -> List[str]:
        """Paths written so far, relative to the run directory."""
        return list(self._saved)

    def _create_directories(self) -> None:
        for sub in RUN_SUBDIRS:
            (self._run_dir / sub).mkdir(parents=True, exist_ok=True)

    def _record(self, path: Path) -> Path:
        self._saved.append(str(path.relative_to(self._run_dir)))
        logger.debug("Artifact saved: %s", path)
        return path

    def save_config_snapshot(self) -> Path:
        """Save the frozen config to ``config/pipeline_config.yaml``."""
        config_path = self._run_dir / "config" / "pipeline_config.yaml"
        config_dict = self._config.model_dump(mode="json")

        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump(config_dict, f, default_flow_style=False, sort_keys=False)

        return self._record(config_path)

    def save_table(self, name: str, df: pd.DataFrame) -> Optional[Path]:
        """Write a DataFrame to ``tables/<name>.csv``.

        Returns:
            Path to the file, or None when table saving is disabled.
        """
        if not self._output_config.save_tables:
            return None
        path = self._run_dir / "tables" / f"{name}.csv"
        try:
            df.to_csv(path, index=False)
        except OSError as e:
            raise ArtifactError(f"Failed to write table '{name}'", artifact_path=str(path), cause=e)
        return self._record(path)

    def save_tables(self, tables: Dict[str, pd.DataFrame]) -> List[Path]:
        """Write several tables; returns the written paths."""
        paths = [self.save_table(name, df) for name, df in tables.items()]
        return [p for p in paths if p is not None]

    def save_figure(self, name: str, fig: Figure, dpi: int = 150) -> Optional[Path]:
        """Save a figure to ``figures/<name>.png`` and close it.

        The figure is left open when ``show_figures`` is set so the caller
        can display it.
        """
        path = None
        if self._output_config.save_figures:
            path = self._run_dir / "figures" / f"{name}.png"
            try:
                fig.savefig(path, bbox_inches="tight", dpi=dpi)
            except OSError as e:
                raise ArtifactError(f"Failed to write figure '{name}'", artifact_path=str(path), cause=e)
            self._record(path)
        if not self._output_config.show_figures:
            plt.close(fig)
        return path

    def save_model(self, name: str, obj: Any) -> Path:
        """Persist a fitted object to ``models/<name>.joblib``."""
        path = self._run_dir / "models" / f"{name}.joblib"
        try:
            joblib.dump(obj, path)
        except (OSError, TypeError, AttributeError) as e:
            raise ArtifactError(f"Failed to save model '{name}'", artifact_path=str(path), cause=e)
        return self._record(path)

    def save_json(self, name: str, obj: Any, subdir: str = "tables") -> Path:
        path = self._run_dir / subdir / f"{name}.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(obj, f, indent=2, default=str)
        return self._record(path)

    def register_inputs(self, frames: Dict[str, pd.DataFrame]) -> None:
        """Remember a short hash of each input frame for the run metadata."""
        for name, df in frames.items():
            self._input_hashes[name] = frame_hash(df)

    def save_run_metadata(self, extra: Optional[Dict[str, Any]] = None) -> Path:
        """Collect and save run metadata to run_metadata.json.

        Includes git info, package versions, OS info, timing, input hashes
        and the list of saved artifacts.

        Returns:
            Path to the metadata file.
        """
        self._run_end = self._run_end or datetime.now()
        duration = (self._run_end - self._run_start).total_seconds()

        metadata = {
            "run_id": self._run_id,
            "pipeline": self._pipeline_name,
            "git_commit": _get_git_hash(),
            "python_version": sys.version,
            "package_versions": {p: _get_package_version(p) for p in TRACKED_PACKAGES},
            "os_info": {
                "system": platform.system(),
                "release": platform.release(),
                "machine": platform.machine(),
            },
            "run_start": self._run_start.isoformat(),
            "run_end": self._run_end.isoformat(),
            "duration_seconds": round(duration, 2),
            "status": self._status,
            "input_hashes": dict(self._input_hashes),
            "artifacts": list(self._saved),
        }
        if extra:
            metadata.update(extra)

        path = self._run_dir / "run_metadata.json"
        with open(path, "w", encoding="utf-8") as f:
            json.dump(metadata, f, indent=2, default=str)

        logger.info("Run metadata saved to %s", path)
        return path

    def get_log_path(self) -> Path:
        """Get the path for the run log file."""
        return self._run_dir / "logs" / f"{self._pipeline_name}.log"

    def mark_complete(self, status: str = "success") -> None:
        """Mark the run as complete.

        Args:
            status: Final status ('success' or 'failed').
        """
        self._status = status
        self._run_end = datetime.now()

    def mark_failed(self) -> None:
        """Mark the run as failed."""
        self.mark_complete(status="failed")


def list_runs(base_dir: str) -> Sequence[Path]:
    """Run directories under ``base_dir``, oldest first."""
    root = Path(base_dir)
    if not root.exists():
        return []
    return sorted(p for p in root.iterdir() if (p / "run_metadata.json").exists())
