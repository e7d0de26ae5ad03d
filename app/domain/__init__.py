"""
Domain layer for the label workflow.

Business entities and invariants for orders, shipments and carrier results.
"""
