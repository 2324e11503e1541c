"""
Session engine: connection state machine, permission gating, transaction
execution and typed events.
"""
