from __future__ import annotations

import sys
from datetime import timedelta

MAX_KEY_LENGTH = 256

DEFAULT_EXPIRATION = timedelta(hours=24)

INT_MIN = -sys.maxsize - 1
INT_MAX = sys.maxsize

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
