"""
Language tooling that works on parsed programs (non-executing).
"""

from .validator import Diagnostic, ValidationReport, validate_hivelang_program

__all__ = ["Diagnostic", "ValidationReport", "validate_hivelang_program"]
