import sys

from adminctl.cli.main import main

sys.exit(main())
