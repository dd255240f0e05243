"""Allow running rv as `python -m rv`."""
import sys

from .cli import main

sys.exit(main())
