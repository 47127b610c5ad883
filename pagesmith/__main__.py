"""Allow ``python -m pagesmith``."""

import sys

from .cli import main

main(sys.argv[1:])
