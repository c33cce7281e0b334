from __future__ import annotations

import sys
from pathlib import Path

# Add src to path for imports when the package is not installed
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
sys.path.insert(0, str(Path(__file__).parent))
