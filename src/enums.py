"""Central enum definitions for the project."""

from enum import StrEnum


class RunMode(StrEnum):
    """How the reminder runner executes evaluation passes."""

    ONCE = "once"
    LOOP = "loop"
