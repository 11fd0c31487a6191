"""
Sentinel for fields a partial update leaves untouched.

``MISSING`` means the caller did not send the field; ``None`` means the caller
asked to clear it (e.g. wiping a patient's medical history).
"""

import enum


class MissingType(enum.Enum):
    MISSING = "MISSING"

    def __repr__(self) -> str:
        return self.value

    def __bool__(self) -> bool:
        return False


MISSING = MissingType.MISSING
