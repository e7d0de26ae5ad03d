"""
Label services package.

This package contains the shipping-label workflow: credential resolution,
the carrier proxy clients, upstream error classification and the label
orchestrator that drives print/book/persist.
"""
