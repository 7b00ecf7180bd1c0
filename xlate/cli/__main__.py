"""Allow ``python -m xlate.cli`` execution."""

import sys

from xlate.cli.translate import main

sys.exit(main())
