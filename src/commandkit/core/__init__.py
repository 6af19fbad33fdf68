"""Core layer: Outcome ledger, Command pipeline, guarded inputs, telemetry.

Core modules may import from domain, config and exceptions.
They must never import from infrastructure.
"""
