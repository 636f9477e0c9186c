import sys

from clustershift.cli import main

sys.exit(main())
