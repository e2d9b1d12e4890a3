import sys

from sitefoil.cli import main

sys.exit(main())
