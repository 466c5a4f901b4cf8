"""Allow running as ``python -m nightride``."""

from nightride.cli import main

main()
