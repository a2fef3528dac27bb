import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Ensure the project sources are importable as ``listkit`` without installing.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))
