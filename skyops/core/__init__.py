"""Core runtime: configuration-driven wiring, turn orchestration, observability.

This package re-exports nothing; import submodules directly to keep import
cycles out of the lower layers that use ``skyops.core.metrics``.
"""
