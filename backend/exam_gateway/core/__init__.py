"""Core Layer — pure exam logic, no IO, no async, no client handles.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or schemas/
    - All functions are pure and deterministic (time is always injected)
"""
