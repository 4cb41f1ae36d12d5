"""Infrastructure Layer — object store and message broker adapters, logging setup.

Invariants:
    - Infrastructure never imports from core/ exam logic (errors and types only)
    - Every backend exception is mapped to an ExamGatewayError subclass
"""
