"""Allow ``python -m oscope``."""

import sys

from .cli import main

sys.exit(main())
