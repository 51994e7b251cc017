"""Logging and telemetry plumbing."""
