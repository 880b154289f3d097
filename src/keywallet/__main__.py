"""Allow `python -m keywallet`."""

import sys

from keywallet.frontend.cli.app import main

sys.exit(main())
