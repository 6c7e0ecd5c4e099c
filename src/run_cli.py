#!/usr/bin/env python3
"""Entry point for the IDPhotoShop command line without installing the package."""

import os
import sys

HERE = os.path.dirname(os.path.abspath(__file__))
if HERE not in sys.path:
    sys.path.insert(0, HERE)

from idphotoshop.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
