#!/usr/bin/env python

import sys

# This allows us to run the script from the root of the project
# while keeping the modular structure.
from stream_analyzer.main import main

if __name__ == "__main__":
    sys.exit(main())
