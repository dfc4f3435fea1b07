import sys

from quote_toolkit.cli import main

sys.exit(main())
