"""Allow ``python -m heapinspect``."""

import sys

from heapinspect.cli import main


sys.exit(main())
