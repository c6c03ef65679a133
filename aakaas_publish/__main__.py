"""Allow ``python -m aakaas_publish``."""

import sys

from aakaas_publish.cli import main

sys.exit(main())
