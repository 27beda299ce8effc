from __future__ import annotations

from danmakarr.interfaces.cli.cli import start

if __name__ == "__main__":
    raise SystemExit(start())
