"""Test fixtures for stepflow.

Provides graph builders and test utilities.
"""

from .builders import (
    FakeClock,
    build_login_flow,
    counting_ids,
    login_flow_diagram,
    make_graph,
)

__all__ = [
    "FakeClock",
    "build_login_flow",
    "counting_ids",
    "login_flow_diagram",
    "make_graph",
]
