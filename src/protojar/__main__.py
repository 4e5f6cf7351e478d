"""Allow running protojar as ``python -m protojar``."""

from protojar.cli import main

main()
