"""
ccvm - Provider profile manager for Claude-compatible CLIs

Stores named API provider profiles (endpoint, key, timeout) under
``~/.claude/ccvm`` and explains failures with localized, actionable messages.

Features:
- Add, edit, list and remove provider profiles
- Atomic, owner-only profile files
- Isolated test mode that never touches the real home directory
- Classified error reporting in English and Chinese

Quick Start:
    pip install -e .
    ccvm provider add acme --url https://api.acme.test --key sk-...
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
