"""Allow ``python -m cargo_scaffold``."""

import sys

from cargo_scaffold.pipeline import main

sys.exit(main())
