"""Core modules for stepflow.

This package contains the conversion machinery:
- graph: Step/connection store and parent hierarchy
- classifier: State/rule/behavior role assignment
- dictionary: Qualified name to export label resolution
- state_machine: Rule-chain resolution, row generation, validation, CSV export
- document: Editing session bundling the store with its derived state
"""
