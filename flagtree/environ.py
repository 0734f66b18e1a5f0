"""
Flagtree environment fallback.

Behavior
- For every flag that is not set after command-line scanning:
  • variable = prefix + explicit binding (flag.bind_env), or prefix + UPPER_SNAKE(long name)
    when no binding exists; flags without a long name and without a binding are skipped.
  • when the variable is present and non-empty, its value goes through flag.set()
    exactly as a command-line token would.
- A flag already set is never overridden (command line > environment > default).
- A rejected value raises ValueParseError naming the variable (code ENVIRONMENT_VALUE).
"""
import logging
import os

from .faults import FaultCode, ValueParseError
from .utils import envname

logger = logging.getLogger(__name__)


def normalize_prefix(prefix, /):
    """
    Return the prefix with a trailing "_" appended when non-empty and missing one.
    """
    if not isinstance(prefix, str):
        raise TypeError("environment prefix must be a string")
    if (prefix := prefix.strip()) and not prefix.endswith("_"):
        prefix += "_"
    return prefix


def variable(flag, prefix="", /):
    """
    Name of the environment variable consulted for `flag`, or None.
    """
    if flag.envvar:
        return prefix + flag.envvar
    if flag.long:
        return envname(flag.long, prefix)
    return None


def resolve(flags, prefix="", /, environ=None):
    """
    Apply environment fallback to every unset flag of `flags`.

    Parameters
    - flags: iterable of flags (a node's registry listing).
    - prefix: normalized environment prefix of the node.
    - environ: mapping to read from (defaults to os.environ).

    Returns
    - list of (flag, variable) pairs that were applied, in flag order.
    """
    environ = os.environ if environ is None else environ
    applied = []
    for flag in flags:
        if flag.is_set or (name := variable(flag, prefix)) is None:
            continue
        if not (value := environ.get(name, "")):
            continue
        try:
            flag.set(value)
        except ValueParseError as error:
            raise ValueParseError(
                "invalid value %r from environment variable %s for flag %r" % (value, name, flag.display),
                title="invalid environment value",
                code=FaultCode.ENVIRONMENT_VALUE,
                flag=flag,
                variable=name,
                cause=error.cause,
                hint="fix or unset %s" % name,
            ) from error
        logger.debug("flag %s resolved from %s", flag.display, name)
        applied.append((flag, name))
    return applied


__all__ = (
    "normalize_prefix",
    "variable",
    "resolve",
)
