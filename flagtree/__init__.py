__title__ = 'flagtree'
__author__ = 'Flagtree Developers'
__license__ = 'MIT'
# Placeholder, modified by dynamic-versioning.
__version__ = "0.0.0"

from .commands import *
from .faults import *
from .flags import *
from .groups import MutexGroup, RequiredGroup
from .parser import *
from .registry import *
from .utils import Unset, KB, MB, GB, TB, PB, KIB, MIB, GIB, TIB, PIB

VersionInfo = __import__("collections").namedtuple("VersionInfo", (
    "major",
    "minor",
    "micro",
    "releaselevel",
    "serial",
    "metadata"
))

# Placeholder, modified by dynamic-versioning.
version_info = VersionInfo(0, 0, 0, "final", 0, "")

__all__ = (
    "__title__",
    "__author__",
    "__license__",
    "__version__",
    "version_info",
    "MutexGroup",
    "RequiredGroup",
    "Unset",
    "KB",
    "MB",
    "GB",
    "TB",
    "PB",
    "KIB",
    "MIB",
    "GIB",
    "TIB",
    "PIB",
)

# Load the exposed API of the commands
__all__ += commands.__all__  # type: ignore[attr-defined]
# Load the exposed API of the faults
__all__ += faults.__all__  # type: ignore[attr-defined]
# Load the exposed API of the flags
__all__ += flags.__all__  # type: ignore[attr-defined]
# Load the exposed API of the parser
__all__ += parser.__all__  # type: ignore[attr-defined]
# Load the exposed API of the registries
__all__ += registry.__all__  # type: ignore[attr-defined]
