"""
Base Classes for Pipeline Components

Abstract base classes shared by readers, splitters, models and evaluators.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional
from datetime import datetime
import logging

import pandas as pd


class PipelineComponent(ABC):
    """
    Abstract base class for all pipeline components.

    Provides common functionality:
    - Configuration access
    - Logging
    - Validation interface
    - Execution tracking
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, name: Optional[str] = None):
        """
        Initialize the pipeline component.

        Args:
            config: Configuration dictionary for this component
            name: Optional name for the component (defaults to class name)
        """
        self.config = config or {}
        self.name = name or self.__class__.__name__
        self.logger = logging.getLogger(self.name)
        self._execution_start: Optional[datetime] = None
        self._execution_end: Optional[datetime] = None

    @abstractmethod
    def run(self, *args, **kwargs) -> Any:
        """Execute the component's main logic."""
        pass

    @abstractmethod
    def validate(self) -> bool:
        """
        Validate the component's configuration and state.

        Returns:
            True if validation passes, False otherwise
        """
        pass

    def get_config(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value with dot notation support.

        Args:
            key: Configuration key (e.g., 'priors.df')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config
        for k in key.split('.'):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def _start_execution(self) -> None:
        self._execution_start = datetime.now()
        self.logger.debug(f"Starting {self.name}")

    def _end_execution(self) -> None:
        self._execution_end = datetime.now()
        if self._execution_start:
            duration = (self._execution_end - self._execution_start).total_seconds()
            self.logger.info(f"Completed {self.name} in {duration:.2f} seconds")

    @property
    def execution_duration(self) -> Optional[float]:
        """Get the execution duration in seconds."""
        if self._execution_start and self._execution_end:
            return (self._execution_end - self._execution_start).total_seconds()
        return None


class PandasComponent(PipelineComponent):
    """
    Base class for components operating on in-memory pandas record sets.
    """

    def validate(self) -> bool:
        """Default validation - always passes for Pandas components."""
        return True

    def check_memory_usage(self, df: pd.DataFrame) -> Dict[str, Any]:
        """
        Check memory usage of a Pandas DataFrame.

        Args:
            df: Pandas DataFrame

        Returns:
            Dictionary with memory usage information
        """
        memory_usage = df.memory_usage(deep=True)
        total_bytes = int(memory_usage.sum())

        return {
            'total_bytes': total_bytes,
            'total_mb': total_bytes / (1024 * 1024),
            'per_column': memory_usage.to_dict()
        }
