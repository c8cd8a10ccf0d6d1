from __future__ import annotations

OK = 0
ERR_FAILED = 1
ERR_CONFIG = 2
ERR_DISCOVERY = 3
ERR_INTERNAL = 99
