"""Module entrypoint for running Bookreel as ``python -m bookreel``."""

from __future__ import annotations

from bookreel.cli import main


if __name__ == "__main__":
    main()
