from __future__ import annotations

import sys
from pathlib import Path


# Markers are registered in pyproject.toml ([tool.pytest.ini_options]).
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
