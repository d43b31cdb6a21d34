"""Platform detection utilities.

Use these helpers instead of direct checks like ``os.name == "nt"``.
"""

import os
from typing import Final


NAME_POSIX: Final = "posix"


def supports_posix_permissions() -> bool:
    """Whether chmod-style owner/group/other permission bits are meaningful."""
    return os.name == NAME_POSIX
