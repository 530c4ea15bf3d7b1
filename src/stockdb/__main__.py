"""Allow ``python -m stockdb``."""

import sys

from stockdb.cli import main

sys.exit(main())
