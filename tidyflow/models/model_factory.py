"""
Model Factory

Factory pattern for creating model specifications by mode and engine.
"""

from typing import Any, Dict, List, Optional, Tuple, Type

from tidyflow.config.schema import BayesConfig, LinearConfig, LogisticConfig
from tidyflow.core.exceptions import ConfigurationError
from tidyflow.models.base_model import ModelSpec
from tidyflow.models.bayes_model import BayesianLinearRegressionModel
from tidyflow.models.linear_model import LinearRegressionModel
from tidyflow.models.logistic_model import LogisticRegressionModel


class ModelFactory:
    """
    Factory for creating model specifications.

    Supports dynamic model registration and creation.
    """

    # Registry of available models, keyed by (mode, engine)
    _models: Dict[Tuple[str, str], Type[ModelSpec]] = {
        ("classification", "glm"): LogisticRegressionModel,
        ("regression", "lm"): LinearRegressionModel,
        ("regression", "stan"): BayesianLinearRegressionModel,
    }

    @classmethod
    def register(cls, mode: str, engine: str, model_class: Type[ModelSpec]) -> None:
        """
        Register a new model type.

        Args:
            mode: ``classification`` or ``regression``
            engine: Engine name for lookup
            model_class: Model specification class
        """
        if not issubclass(model_class, ModelSpec):
            raise TypeError(f"{model_class} must be a subclass of ModelSpec")
        cls._models[(mode, engine.lower())] = model_class

    @classmethod
    def create(
        cls,
        mode: str,
        engine: str,
        config: Optional[Any] = None,
        name: Optional[str] = None
    ) -> ModelSpec:
        """
        Create a model specification.

        Args:
            mode: ``classification`` or ``regression``
            engine: ``glm``, ``lm`` or ``stan``
            config: Engine configuration (pydantic model); defaults apply if None
            name: Optional instance name

        Returns:
            Model specification

        Raises:
            ConfigurationError: For an unknown (mode, engine) pair
        """
        key = (mode.lower(), engine.lower())
        if key not in cls._models:
            raise ConfigurationError(
                f"Unknown model: mode={mode}, engine={engine}. "
                f"Available: {cls.list_models()}"
            )
        return cls._models[key](config, name)

    @classmethod
    def list_models(cls) -> List[str]:
        """List all available (mode, engine) pairs as ``mode/engine``."""
        return [f"{mode}/{engine}" for mode, engine in cls._models]

    @classmethod
    def get_model_class(cls, mode: str, engine: str) -> Optional[Type[ModelSpec]]:
        return cls._models.get((mode.lower(), engine.lower()))


def logistic_reg(engine: str = "glm", config: Optional[LogisticConfig] = None) -> ModelSpec:
    """Logistic regression specification."""
    return ModelFactory.create("classification", engine, config)


def linear_reg(
    engine: str = "lm",
    config: Optional[Any] = None,
) -> ModelSpec:
    """Linear regression specification; ``engine="stan"`` gives the Bayesian model.

    Args:
        engine: ``lm`` (least squares) or ``stan`` (Bayesian).
        config: LinearConfig for ``lm``, BayesConfig for ``stan``.
    """
    expected = {"lm": LinearConfig, "stan": BayesConfig}.get(engine.lower())
    if config is not None and expected is not None and not isinstance(config, expected):
        raise ConfigurationError(
            f"linear_reg(engine='{engine}') expects {expected.__name__}, "
            f"got {type(config).__name__}"
        )
    return ModelFactory.create("regression", engine, config)
