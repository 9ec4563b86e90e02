#!/usr/bin/env python3
"""
Context Engine MCP - multi-tenant context, tools and similarity search.

Development entry point; the installed console script is ``context-engine``.
"""

import sys
from pathlib import Path

# Add src to path for development
src_path = Path(__file__).parent / "src"
if src_path.exists():
    sys.path.insert(0, str(src_path))

from context_engine.main import main


if __name__ == "__main__":
    sys.exit(main())
