"""Module entrypoint for running NoorPress as ``python -m noorpress``."""

from __future__ import annotations

from noorpress.cli import main


if __name__ == "__main__":
    main()
