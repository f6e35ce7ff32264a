"""
Test Suite for the Bookkeeping Engine

Test Structure:
- fixtures/: Synthetic statements and mapping rules
- unit/: Unit tests mirroring the src/bookkeeping package structure
- integration/: Configuration, persistence and CLI workflow tests
"""
