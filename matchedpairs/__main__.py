import sys

from matchedpairs.cli import main

sys.exit(main())
