import sys
from pathlib import Path

# Ensure local repo paths take precedence over any installed copy.
repo_root = Path(__file__).resolve().parents[1]
for path in (repo_root / "src", repo_root):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))
