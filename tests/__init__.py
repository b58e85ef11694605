"""
kvmodel Test Suite.

This package contains:
- unit/: Unit tests of types, change tracking, schema compiler, adapters
- integration/: Model lifecycle and collection tests against real adapters
"""
