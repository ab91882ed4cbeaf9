"""Vitals Lab: pulse-oximeter telemetry ingest, emulator and dashboard."""

__version__ = "0.1.0"
