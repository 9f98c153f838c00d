"""
axiom-engine — package root

File: src/axiom_engine/__init__.py

Purpose
- Turn a declarative agent IR into reproducible artifacts, verify them against
  policy checks, and synchronize them onto a filesystem or a git change set.

Functional requirements
- Must not have side effects at import time (no config loading, no logging init).
"""

__version__ = "1.0.0"

__all__ = ["__version__"]
