"""
Flagtree utilities (internal helpers, carefully exposed)

Scope
- Small building blocks shared by flags, registries, the parser and the renderers.
- Public-but-internal leaning: stable enough for consumers, designed primarily
  to support the higher-level commands/flags layers.

Overview
- UnsetType / Unset
  • Singleton sentinel for “value not provided”, distinct from None.
  • Falsey, printable as "Unset", and non-subclassable.

- coalesce(value, default=None)
  • Materialize Unset into a concrete default; None/0/""/[] are preserved.

- rename(callable, name) / @rename("name")
  • Stable __name__/__qualname__ for generated wrappers.

- mirror("attr")
  • Read-only property over self._attr returning fresh container copies.

- envname(long, prefix="")
  • Derive the implicit environment variable name of a flag (UPPER_SNAKE).

- flagname(long, short) / displayname(long, short)
  • Help-facing ("-s, --long") and constraint-facing ("--long/-s") spellings.

- format_size(size)
  • Human-readable decimal byte sizes ("1.50MB").

Usage guidance
- Prefer Unset for API defaults when None is a meaningful user value.
- Use mirror() for every collection that leaves an object through a property.
"""
import builtins
import functools
import re
from collections.abc import Sequence, Mapping, Set
from typing import final


@final
class UnsetType:
    """
    Sentinel type for parameters that were not provided.

    Characteristics
    - Boolean-false, yet distinct from None and 0.
    - repr(Unset) -> "Unset".
    - Sealed and singleton: UnsetType() always yields the same instance.
    """

    def __or__(self, other, /):
        """
        Support PEP 604 unions in annotations and isinstance checks (str | Unset).
        """
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    def __ror__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")


def coalesce(object, default=None, /):
    """
    Return object unless it is Unset, in which case return default.

    Falsey values (None, 0, "", []) are legitimate and returned unchanged.

    Examples
    - coalesce("json", "yaml") -> "json"
    - coalesce(Unset, "yaml")  -> "yaml"
    - coalesce("", "yaml")     -> ""
    """
    return object if object is not Unset else default


def rename(*parameters):
    """
    Set __name__/__qualname__ on a callable, or build a decorator that will.

    Forms
    - rename(callable, name) -> callable (renamed in place)
    - rename(name)           -> decorator

    Raises
    - TypeError on a non-callable target, a non-string name, a read-only callable,
      or a wrong number of arguments.
    """
    match len(parameters):
        case 2:
            callable, name = parameters
            if not builtins.callable(callable):
                raise TypeError("rename() first argument must be callable")
            if not isinstance(name, str):
                raise TypeError("rename() second argument must be a string")
            try:
                callable.__qualname__ = name
                callable.__name__ = name
            except (AttributeError, TypeError):
                raise TypeError("rename() first argument must be a updatable callable") from None
            return callable
        case 1:
            name, = parameters
            if not isinstance(name, str):
                raise TypeError("@rename() argument must be a string")

            def wrapper(callable):
                if not builtins.callable(callable):
                    raise TypeError("@rename() must be applied to a callable")
                return rename(callable, name)

            return rename(wrapper, "rename")
        case _:
            raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))


def _immortalize(object):
    """
    Recursively copy containers so callers never alias internal state.

    - Sequence (non-string, non-tuple) -> new list
    - tuple                            -> tuple (element-wise copied, namedtuples kept)
    - Mapping                          -> new dict
    - Set                              -> new set
    - anything else                    -> as-is
    """
    if isinstance(object, tuple):
        if hasattr(object, "_fields"):
            return object  # snapshots are immutable already
        return tuple(map(_immortalize, object))
    elif isinstance(object, Sequence) and not isinstance(object, str):
        return list(map(_immortalize, object))
    elif isinstance(object, Mapping):
        return dict(zip(object.keys(), map(_immortalize, object.values())))
    elif isinstance(object, Set):
        return set(map(_immortalize, object))
    return object


def mirror(name, /):
    """
    Define a read-only property that mirrors the backing field "_{name}".

    Container values are copied on every read (see _immortalize), so mutating
    the returned object never reaches the owner.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _immortalize(getattr(self, "_" + name))

    return property(getter)


@functools.cache
def envname(long, prefix="", /):
    """
    Derive the implicit environment variable name for a long flag name.

    The long name is upper-cased and every run of non-alphanumeric characters
    becomes a single underscore; the prefix is prepended verbatim.

    Examples
    - envname("sub-option")        -> "SUB_OPTION"
    - envname("dry.run", "APP_")   -> "APP_DRY_RUN"
    """
    if not isinstance(long, str) or not isinstance(prefix, str):
        raise TypeError("envname() arguments must be strings")
    return prefix + re.sub(r"[^0-9A-Za-z]+", "_", long).strip("_").upper()


def flagname(long, short, /):
    """
    Help-facing spelling of a flag: "-s, --long", "--long" or "-s".
    """
    if long and short:
        return f"-{short}, --{long}"
    if long:
        return f"--{long}"
    return f"-{short}"


def displayname(long, short, /):
    """
    Constraint-facing spelling of a flag: "--long/-s", "--long" or "-s".
    """
    if long and short:
        return f"--{long}/-{short}"
    if long:
        return f"--{long}"
    return f"-{short}"


KB = 1000
MB = 1000 * KB
GB = 1000 * MB
TB = 1000 * GB
PB = 1000 * TB

KIB = 1024
MIB = 1024 * KIB
GIB = 1024 * MIB
TIB = 1024 * GIB
PIB = 1024 * TIB


def format_size(size, /):
    """
    Render a byte count with a decimal unit and two decimals ("999B", "1.50KB").

    Negative sizes render as "0B".
    """
    if size < 0:
        return "0B"
    if size < KB:
        return f"{size}B"
    for unit, scale in (("KB", KB), ("MB", MB), ("GB", GB), ("TB", TB)):
        if size < scale * 1000:
            return f"{size / scale:.2f}{unit}"
    return f"{size / PB:.2f}PB"


Unset = UnsetType()
"""
Sentinel for “not provided”; pair with coalesce() to materialize defaults.
"""


__all__ = (
    # Functions
    "coalesce",
    "rename",
    "mirror",
    "envname",
    "flagname",
    "displayname",
    "format_size",

    # Types
    "UnsetType",

    # Constants
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
