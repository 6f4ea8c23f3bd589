import sys

from outage_tracker.cli import main

sys.exit(main())
