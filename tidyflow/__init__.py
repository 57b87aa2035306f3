"""
tidyflow

Reproducible preprocess / fit / predict / evaluate pipelines for two
tutorial analyses: flight delay classification and urchin growth regression.
"""

__version__ = "0.1.0"
