"""Allow running as: python -m asvp_relay"""

import sys

from asvp_relay.cli import main

if __name__ == "__main__":
    sys.exit(main())
