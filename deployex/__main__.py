import sys

from deployex.cli import main

sys.exit(main())
