"""Step/connection graph model."""

from .model import Connection, ConnectionType, Step, StepType
from .store import (
    DEFAULT_DEBOUNCE_SECONDS,
    ParentCycleError,
    StepStore,
    StoreError,
    UnknownParentError,
)
from .tree import QUALIFIED_NAME_SEPARATOR, StepTree

__all__ = [
    "Step",
    "StepType",
    "Connection",
    "ConnectionType",
    "StepStore",
    "StepTree",
    "StoreError",
    "UnknownParentError",
    "ParentCycleError",
    "DEFAULT_DEBOUNCE_SECONDS",
    "QUALIFIED_NAME_SEPARATOR",
]
