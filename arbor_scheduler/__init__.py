"""Scheduling and crew allocation engine for a tree-service business.

Modules:
- config: load and validate configuration (YAML or JSON)
- errors: exception hierarchy
- domain: value types, SQLAlchemy models and repositories
- services: recurrence, duration prediction, conflict detection, crew scoring
- engine: orchestration over a database session
- io: CSV import helpers
- cli: command-line interface entrypoints
"""

__all__ = [
    "config",
    "errors",
    "logging_setup",
    "domain",
    "services",
    "engine",
    "io",
    "cli",
]
