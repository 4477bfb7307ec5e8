#!/usr/bin/env python

import sys
from pathlib import Path

sys.path.append(Path(__file__).resolve().parents[1].as_posix())
from diamond_op.cli import main

if __name__ == '__main__':
    main()
