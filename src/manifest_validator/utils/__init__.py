"""Shared utilities."""

from manifest_validator.utils.concurrency import ConcurrencyGate, run_all

__all__ = ["ConcurrencyGate", "run_all"]
