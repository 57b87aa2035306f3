"""
IO Module

Output management for pipeline runs.
"""

from tidyflow.io.output_manager import OutputManager, list_runs

__all__ = [
    "OutputManager",
    "list_runs",
]
