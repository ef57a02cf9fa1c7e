"""
Parser facade.

Public API is `parse`, `parse_source`, `Parser` and `ParseError`.
"""

from __future__ import annotations

from ..errors import ParseError
from .base import Parser, parse, parse_source

__all__ = ["parse", "parse_source", "ParseError", "Parser"]
