"""Stream reassembly, frame decoding and token accumulation.

Import submodules directly; this package re-exports nothing so that
``skyops.directives`` can depend on ``skyops.stream.session`` without cycles.
"""
