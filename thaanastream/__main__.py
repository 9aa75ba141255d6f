import sys

from thaanastream.cli import main

sys.exit(main())
