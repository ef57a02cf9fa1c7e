"""FastAPI dev server for parsing, validating and executing HiveLang programs."""

from __future__ import annotations

from .factory import create_app

__all__ = ["create_app"]
