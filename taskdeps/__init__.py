"""
Task Dependency Engine

Directed-graph model over tasks: blocking relationships, cycle-safe
dependency validation, blocking chains and similarity-ranked dependency
suggestions. Every operation is a pure function over an in-memory snapshot
of tasks and dependency edges.
"""

__version__ = "0.1.0"
