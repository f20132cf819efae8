"""Allow ``python -m docdesk.cli`` execution."""

import sys

from docdesk.cli.ingest import main

sys.exit(main())
