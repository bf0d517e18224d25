"""Persisted per-rule run-state and its storage backends."""

from src.state.exceptions import StateStoreError
from src.state.models import ReminderState, RuleState
from src.state.store import (
    STATE_FILE_NAME,
    LocalStateStore,
    S3StateStore,
    StateStore,
    build_state_store,
    state_object_key,
)

__all__ = [
    "STATE_FILE_NAME",
    "LocalStateStore",
    "ReminderState",
    "RuleState",
    "S3StateStore",
    "StateStore",
    "StateStoreError",
    "build_state_store",
    "state_object_key",
]
