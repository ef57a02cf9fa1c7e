"""
Redaction helpers and in-process metrics.
"""

from .logging_utils import redact_event, redact_metadata, redact_prompt
from .metrics import MetricsRegistry, default_metrics

__all__ = ["redact_event", "redact_metadata", "redact_prompt", "MetricsRegistry", "default_metrics"]
