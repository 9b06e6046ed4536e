"""CLI entry point for price-detector."""

import sys

from .cli import main

sys.exit(main())
