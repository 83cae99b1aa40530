import sys

from apiconfig.cli import main

sys.exit(main())
