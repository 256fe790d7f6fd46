"""Event identifier generation.

Identifiers are canonical hyphenated version-4 UUID strings, for example
``"3f0c2d7e-8a51-4b6e-9c1d-2f4a6b8c0e13"``.
"""

from __future__ import annotations

import random
import uuid


def generate_event_id() -> str:
    """Return a new random event identifier.

    ``uuid.uuid4`` draws from ``os.urandom``. On platforms without an OS
    entropy source that call raises ``NotImplementedError``; the identifier is
    then built from the ``random`` module's Mersenne Twister instead, with the
    same version-4 layout.
    """
    try:
        return str(uuid.uuid4())
    except NotImplementedError:
        return str(uuid.UUID(int=random.getrandbits(128), version=4))  # nosec B311
