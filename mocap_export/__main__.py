import sys

from mocap_export.cli import main

sys.exit(main())
