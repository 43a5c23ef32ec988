import sys

from sshroster.tui import main

sys.exit(main())
