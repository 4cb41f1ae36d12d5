"""Service Layer — imperative shell that drives the core against injected sinks.

Invariants:
    - Services depend on core/ and on boundary protocols, never on concrete clients
"""
