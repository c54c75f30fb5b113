import sys

from stackgen.cli import main

sys.exit(main())
