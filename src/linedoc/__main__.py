import sys

from linedoc.cli import main

sys.exit(main())
