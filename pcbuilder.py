#!/usr/bin/env python3
"""PC Builder CLI entry point.

Usage:
    python3 pcbuilder.py list gpu
    python3 pcbuilder.py check <parent_id> <candidate_id>
    python3 pcbuilder.py validate builds/example_atx.json
    python3 pcbuilder.py place builds/example_atx.json
    python3 pcbuilder.py anchors show components/part.json
"""

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that core/engines/cli imports work.
_PROJECT_ROOT = Path(__file__).resolve().parent
if str(_PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(_PROJECT_ROOT))

from cli.main import main

if __name__ == "__main__":
    main()
