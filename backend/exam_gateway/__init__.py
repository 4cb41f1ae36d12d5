"""Exam Gateway Package — ECG exam ingestion service.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
