import os

import pytest

from hivelang.observability.metrics import default_metrics
from hivelang.tools.observability import clear_tool_interceptors


@pytest.fixture(autouse=True)
def _clean_hivelang_env(monkeypatch):
    """Tests never see HIVELANG_* settings from the developer's shell."""
    for name in list(os.environ):
        if name.startswith("HIVELANG_"):
            monkeypatch.delenv(name, raising=False)
    clear_tool_interceptors()
    default_metrics.reset()
    yield
    clear_tool_interceptors()
