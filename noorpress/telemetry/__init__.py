"""Telemetry and observability for export runs."""

from .logger import RunLogger

__all__ = ["RunLogger"]
