"""Configuration for state machine conversion."""

from dataclasses import dataclass


@dataclass
class StateMachineConfig:
    """Configuration for state machine conversion."""

    default_priority: int = 50  # Priority written on every generated row
    default_operation: str = ""  # Operation / edge effect, edited post-hoc
    rule_separator: str = " + "  # Joins collapsed rule names
    warn_on_branching: bool = True  # Log rule/behavior steps with out-degree > 1
