import sys

from aepctl.commands.cli_main import main

sys.exit(main())
