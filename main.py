"""Run dualrun from a checkout: `python main.py --dry-run mkdir /srv/app`.

The packages live under `src/`, so they are put on `sys.path` first; an
editable install (`pip install -e .`) makes this file unnecessary.
"""

from __future__ import annotations

import sys
from pathlib import Path

SRC_DIR = Path(__file__).resolve().parent / "src"


def main() -> None:
    if str(SRC_DIR) not in sys.path:
        sys.path.insert(0, str(SRC_DIR))

    # Transcripts echo file contents verbatim; cp1252 consoles cannot print them.
    if sys.platform == "win32":
        sys.stdout.reconfigure(encoding="utf-8")
        sys.stderr.reconfigure(encoding="utf-8")

    from cli.main import run  # noqa: PLC0415

    run()


if __name__ == "__main__":
    main()
