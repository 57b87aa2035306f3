"""
Tests for Base Classes

Tests PipelineComponent configuration access and execution timing.
"""

import pandas as pd
import pytest

from tidyflow.core.base import PipelineComponent, PandasComponent


class DummyComponent(PandasComponent):
    def run(self, value):
        self._start_execution()
        self._end_execution()
        return value * 2


class TestPipelineComponent:
    def test_abstract(self):
        with pytest.raises(TypeError):
            PipelineComponent()

    def test_default_name(self):
        assert DummyComponent().name == "DummyComponent"

    def test_dotted_config(self):
        component = DummyComponent(config={"priors": {"df": 1}})

        assert component.get_config("priors.df") == 1
        assert component.get_config("priors.scale", 2.5) == 2.5

    def test_execution_duration(self):
        component = DummyComponent()

        assert component.execution_duration is None
        assert component.run(3) == 6
        assert component.execution_duration >= 0.0


class TestPandasComponent:
    def test_validate(self):
        assert DummyComponent().validate() is True

    def test_memory_usage(self):
        info = DummyComponent().check_memory_usage(pd.DataFrame({"a": [1, 2, 3]}))

        assert info["total_bytes"] > 0
        assert "a" in info["per_column"]
