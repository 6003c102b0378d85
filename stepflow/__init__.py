"""stepflow: Compile hierarchical step diagrams into state machine tables.

This package provides tools for:
- Building a forest of steps connected by typed (success/failure) edges
- Classifying steps as states, rules or behaviors from naming conventions
- Mapping qualified step names to canonical export labels
- Collapsing rule/behavior chains into flat transition rows
- Writing the transition table as CSV for a downstream rule engine

Example usage:
    >>> from stepflow.core.graph import StepStore
    >>> from stepflow.core.document import FlowDocument
    >>>
    >>> doc = FlowDocument()
    >>> login = doc.store.add_step("Login")
    >>> check = doc.store.add_step("is valid?")
    >>> dash = doc.store.add_step("Dashboard")
    >>> doc.store.add_connection(login, check, "success")
    >>> doc.store.add_connection(check, dash, "success")
    >>> doc.auto_classify()
    >>> doc.regenerate_dictionaries()
    >>> rows = doc.generate_rows()
"""

__version__ = "0.1.0"
