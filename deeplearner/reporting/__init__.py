"""Reporting utilities for DeepLearner runs."""

from .artifacts import write_manifest
from .checkpoint import load_model, save_model
from .metrics import CsvSink, JsonlSink
from .plots import PlotAdapter
from .summary import write_summary

__all__ = [
    "CsvSink",
    "JsonlSink",
    "PlotAdapter",
    "load_model",
    "save_model",
    "write_manifest",
    "write_summary",
]
