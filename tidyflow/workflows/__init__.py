"""
Workflows Module

Recipe plus model bundles.
"""

from tidyflow.workflows.workflow import Workflow, WorkflowFit

__all__ = ["Workflow", "WorkflowFit"]
