import subprocess
import sys

import pytest

ENTRY_MODULES = [
    "mindsculpt.runtime",
    "mindsculpt.cli",
    "mindsculpt.server.app",
    "mindsculpt.graph.store",
    "mindsculpt.storage",
    "mindsculpt.memory.pipeline",
    "mindsculpt.prompting.builder",
    "mindsculpt.personality.manager",
]


@pytest.mark.parametrize("module", ENTRY_MODULES)
def test_module_imports_in_fresh_interpreter(module):
    result = subprocess.run(
        [sys.executable, "-c", f"import {module}"],
        capture_output=True,
        text=True,
    )
    assert result.returncode == 0, result.stderr
