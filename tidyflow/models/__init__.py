"""
Models Module

Model specifications (logistic GLM, least squares, Bayesian linear
regression) and the immutable fits they produce.
"""

from tidyflow.models.base_model import ModelFit, ModelSpec
from tidyflow.models.design import DesignSpec
from tidyflow.models.logistic_model import LogisticRegressionFit, LogisticRegressionModel
from tidyflow.models.linear_model import LinearRegressionFit, LinearRegressionModel
from tidyflow.models.bayes_model import BayesianLinearRegressionFit, BayesianLinearRegressionModel
from tidyflow.models.priors import normal, student_t
from tidyflow.models.model_factory import ModelFactory, linear_reg, logistic_reg

__all__ = [
    "ModelSpec",
    "ModelFit",
    "DesignSpec",
    "LogisticRegressionModel",
    "LogisticRegressionFit",
    "LinearRegressionModel",
    "LinearRegressionFit",
    "BayesianLinearRegressionModel",
    "BayesianLinearRegressionFit",
    "ModelFactory",
    "logistic_reg",
    "linear_reg",
    "student_t",
    "normal",
]
