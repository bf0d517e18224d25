"""Custom exceptions for run-state persistence."""


class StateStoreError(Exception):
    """Raised when the run-state document cannot be loaded or saved."""
