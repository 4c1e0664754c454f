from __future__ import annotations

import os


# The bundled defaults interpolate REDWIRE_PASSWORD without a fallback.
os.environ.setdefault("REDWIRE_PASSWORD", "unit-test-redis-password")
