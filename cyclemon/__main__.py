"""Allow ``python -m cyclemon``."""

from cyclemon.cli import main

main()
