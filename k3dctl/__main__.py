"""Allow ``python -m k3dctl``."""

from __future__ import annotations

import sys

from k3dctl.cli import main

sys.exit(main())
