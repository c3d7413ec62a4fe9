"""Reporting utilities for backpropnet."""

from .artifacts import write_manifest
from .metrics import ConsoleSink, CsvSink, JsonlSink

__all__ = ["write_manifest", "ConsoleSink", "CsvSink", "JsonlSink"]
