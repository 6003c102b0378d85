"""Test suite for stepflow.

Test organization:
- unit/: Unit tests for individual modules
- fixtures/: Graph builders and a fake clock
"""
