"""Thin runnable wrapper for ``python -m sidebar_app``."""

from sidebar_app.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
