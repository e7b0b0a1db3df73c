"""Workflows that drive the engines: single scans and batch imports."""

from .scan import ScanService, normalise_opinion
from .batch import BatchImporter, BatchResult, parse_event

__all__ = ["ScanService", "normalise_opinion", "BatchImporter", "BatchResult", "parse_event"]
