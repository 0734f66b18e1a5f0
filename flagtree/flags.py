r"""
Flagtree typed flags.

Overview
- Flag[_T]: the capability every command node understands:
  • identity: long/short names (at least one), description, kind tag.
  • set(raw): parse a raw string token, run the optional validator, store the value
    and mark the flag as set. Failures raise ValueParseError wrapping the cause.
  • is_set / reset() / describe().
  • bind_env(name): explicit environment variable (the command's prefix is applied
    at resolution time); otherwise the implicit UPPER_SNAKE(long) convention is used.
  • validator(callable) / clear_validator(): extra checks on converted values.

- Concrete kinds
  • StringFlag     : any string, empty included.
  • BoolFlag       : bare introducer or "" means true; otherwise 1/t/true/0/f/false.
  • IntFlag        : base-10 integers.
  • FloatFlag      : floating point numbers.
  • EnumFlag       : one of a fixed, non-empty set of strings.
  • DurationFlag   : "300ms", "1h30m", "-2.5s" → datetime.timedelta.
  • TimeFlag       : ISO-8601 and a handful of common layouts → datetime.datetime.
  • SizeFlag       : "512", "1.5MB", "4KiB" → int bytes (decimal and binary units).
  • StringListFlag : comma separated, trimmed, empty parts dropped.
  • IntListFlag    : like StringListFlag, each part converted to int.
  • MapFlag        : "k=v,k2=v2" → dict[str, str].

Metadata (sanitized on construction)
- long/short: Unset | str; at least one must be given. Names are written without
  dashes and must match r"[^\W_](?:[\w.-]*[^\W_])?".
- descr: Unset | str (trimmed, non-empty when provided).
- default: Unset | value of the flag's type (Unset → kind default).
- envvar: Unset | str (explicit environment binding, non-empty when provided).
- validator: Unset | Callable[[value], object] raising ValueError/TypeError to reject.

Construction-time misuse (bad names, empty enum choices, a default outside the
allowed values) raises TypeError/ValueError synchronously; nothing here is ever
process-fatal.

Quick example:
    >>> port = IntFlag("port", "p", default=8080, descr="listen port")
    >>> port.set("9000")
    >>> port.value, port.is_set
    (9000, True)
"""
import copy
import datetime
import decimal
import functools
import operator
import re
import threading
from enum import Enum

from .faults import FaultCode, ValueParseError
from .utils import *


class FlagKind(Enum):
    """
    type tag carried by every flag (used by the parser for bare-introducer handling
    and by the help renderer for metavars).
    """
    STRING = "string"
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    ENUM = "enum"
    DURATION = "duration"
    TIME = "time"
    SIZE = "size"
    STRING_LIST = "strings"
    INT_LIST = "ints"
    MAP = "map"


class FlagType(type):
    """
    Metaclass giving every flag class stable diagnostics.

    Responsibilities
    - __typename__ derived from the class name (camel-case split with hyphens).
    - Read-only properties (via mirror) for all names listed in __introspectable__.
    - __repr__/__rich_repr__ built from __displayable__ (or __introspectable__).
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate shared flag metadata in place.

    Raises
    - TypeError: wrong types for names/descr/envvar/validator.
    - ValueError: no names at all, malformed names, identical long and short
      names, empty descr or envvar after trimming.
    """
    for key in ("long", "short"):
        if not isinstance(name := metadata[key], str | Unset):
            raise TypeError(f"{cls.__typename__} '{key}' name must be a string")
        if isinstance(name, str):
            name = name.strip()
            if name and not re.fullmatch(r"[^\W_](?:[\w.-]*[^\W_])?", name):
                raise ValueError(f"{cls.__typename__} '{key}' name {name!r} is not a valid flag name")
        metadata[key] = coalesce(name, "")

    if not metadata["long"] and not metadata["short"]:
        raise ValueError(f"{cls.__typename__} must specify at least one name")
    if metadata["long"] == metadata["short"]:
        raise ValueError(f"{cls.__typename__} long and short names cannot be the same")

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr, "")

    if not isinstance(envvar := metadata["envvar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'envvar' must be a string")
    elif isinstance(envvar, str) and not (envvar := envvar.strip()):
        raise ValueError(f"{cls.__typename__} 'envvar' cannot be empty")
    metadata["envvar"] = coalesce(envvar)

    if (validator := metadata["validator"]) is not Unset and not callable(validator):
        raise TypeError(f"{cls.__typename__} 'validator' must be callable")
    metadata["validator"] = coalesce(validator)


class Flag[_T](metaclass=FlagType):
    """
    Base of every typed flag.

    Subclasses provide:
    - kind: FlagKind tag.
    - __default__: value used when no default is given.
    - _convert(raw) -> _T: raise ValueError/TypeError/OverflowError on bad input.
    - _format(value) -> str (optional): textual form used by describe().

    Thread-safety
    - set/reset/describe are serialized by a per-flag lock.
    """

    __introspectable__ = (
        "long",
        "short",
        "descr",
        "default",
        "envvar",
        "value",
        "is_set",
    )

    __displayable__ = (
        "long",
        "short",
        "default",
        "value",
        "is_set",
    )

    kind = FlagKind.STRING
    __default__ = None

    def __init__(self, long=Unset, short=Unset, /, *, default=Unset, descr=Unset, envvar=Unset, validator=Unset):
        metadata = {
            "long": long,
            "short": short,
            "descr": descr,
            "envvar": envvar,
            "validator": validator,
        }
        _sanitize_metadata(type(self), metadata)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self._lock = threading.RLock()
        self._default = self._check_default(coalesce(default, copy.deepcopy(type(self).__default__)))
        self._value = copy.deepcopy(self._default)
        self._is_set = False

    def _check_default(self, default, /):
        """
        Hook for kinds that constrain their default (see EnumFlag).
        """
        return default

    def _convert(self, raw, /) -> _T:
        return raw

    def _format(self, value, /):
        return "" if value is None else str(value)

    @property
    def name(self):
        """
        Display name: the long name when present, otherwise the short name.
        """
        return self._long or self._short

    @property
    def names(self):
        """
        Every non-empty name of the flag (long first).
        """
        return tuple(name for name in (self._long, self._short) if name)

    @property
    def display(self):
        return displayname(self._long, self._short)

    @property
    def usage(self):
        return flagname(self._long, self._short)

    @property
    def implicit(self):
        """
        Whether a bare introducer (no value token) is accepted.
        """
        return self.kind is FlagKind.BOOL

    def set(self, raw, /):
        """
        Parse and store a raw string value.

        Raises
        - TypeError: raw is not a string.
        - ValueParseError: the conversion or the validator rejected the input;
          the original exception is kept as the cause.
        """
        if not isinstance(raw, str):
            raise TypeError(f"{type(self).__typename__} value must be a string")
        with self._lock:
            try:
                value = self._convert(raw)
                if self._validator is not None:
                    self._validator(value)
            except (ValueError, TypeError, OverflowError) as error:
                raise ValueParseError(
                    "invalid value %r for flag %r" % (raw, self.display),
                    title="invalid flag value",
                    code=FaultCode.VALUE_PARSE,
                    flag=self,
                    input=raw,
                    cause=error,
                    hint="check the expected %s format of %s" % (self.kind.value, self.usage),
                ) from error
            self._value = value
            self._is_set = True

    def reset(self):
        """
        Restore the default value and clear the is-set mark.
        """
        with self._lock:
            self._value = copy.deepcopy(self._default)
            self._is_set = False

    def describe(self):
        """
        Textual form of the current value (what help and diagnostics show).
        """
        with self._lock:
            return self._format(self._value)

    def describe_default(self):
        return self._format(self._default)

    def bind_env(self, name, /):
        """
        Bind an explicit environment variable name (the command's prefix is
        prepended when the variable is looked up). Returns the flag for chaining.
        """
        if not isinstance(name, str):
            raise TypeError(f"{type(self).__typename__} environment name must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{type(self).__typename__} environment name cannot be empty")
        with self._lock:
            self._envvar = name
        return self

    def validator(self, validator, /):
        """
        Install a validator over converted values; usable as a decorator.

        The validator rejects a value by raising ValueError or TypeError.
        """
        if not callable(validator):
            raise TypeError(f"{type(self).__typename__} validator must be callable")
        with self._lock:
            self._validator = validator
        return validator

    def clear_validator(self):
        with self._lock:
            self._validator = None

    @property
    def has_validator(self):
        return self._validator is not None


class StringFlag(Flag[str]):
    kind = FlagKind.STRING
    __default__ = ""


_TRUTHS = {"1": True, "t": True, "T": True, "true": True, "TRUE": True, "True": True,
           "0": False, "f": False, "F": False, "false": False, "FALSE": False, "False": False}


class BoolFlag(Flag[bool]):
    """
    Presence-style switch. A bare introducer stores True; an explicit value must
    be one of 1, t, T, true, TRUE, True, 0, f, F, false, FALSE, False.
    """
    kind = FlagKind.BOOL
    __default__ = False

    def _convert(self, raw, /):
        if raw == "":
            return True
        try:
            return _TRUTHS[raw.strip()]
        except KeyError:
            raise ValueError(f"invalid boolean {raw!r}") from None

    def _format(self, value, /):
        return "true" if value else "false"


class IntFlag(Flag[int]):
    kind = FlagKind.INT
    __default__ = 0

    def _convert(self, raw, /):
        return int(raw.strip(), 10)


class FloatFlag(Flag[float]):
    kind = FlagKind.FLOAT
    __default__ = 0.0

    def _convert(self, raw, /):
        return float(raw.strip())


class EnumFlag(Flag[str]):
    """
    One of a fixed set of strings.

    Construction rules
    - choices must be a non-empty iterable of non-empty, distinct strings.
    - default, when given, must be one of the choices; otherwise the first choice
      is the default.
    - case_sensitive=False compares (and stores) values in lower case.

    Any violation raises ValueError/TypeError at construction time.
    """
    kind = FlagKind.ENUM

    def __init__(self, long=Unset, short=Unset, /, *, choices=(), case_sensitive=True, **options):
        if isinstance(choices, str):
            raise TypeError(f"{type(self).__typename__} 'choices' must be an iterable of strings")
        sanitized = []
        for choice in choices:
            if not isinstance(choice, str):
                raise TypeError(f"{type(self).__typename__} choices must be strings")
            elif not choice.strip():
                raise ValueError(f"{type(self).__typename__} choices cannot be empty strings")
            if not case_sensitive:
                choice = choice.lower()
            if choice in sanitized:
                raise ValueError(f"{type(self).__typename__} 'choices' cannot contain duplicates")
            sanitized.append(choice)
        if not sanitized:
            raise ValueError(f"{type(self).__typename__} 'choices' cannot be empty")
        self._choices = tuple(sanitized)
        self._case_sensitive = bool(case_sensitive)
        super().__init__(long, short, **options)

    @property
    def choices(self):
        return self._choices

    def _check_default(self, default, /):
        if default is None:
            return self._choices[0]
        if not isinstance(default, str):
            raise TypeError(f"{type(self).__typename__} 'default' must be a string")
        if not self._case_sensitive:
            default = default.lower()
        if default not in self._choices:
            raise ValueError(
                f"{type(self).__typename__} 'default' {default!r} is not one of {", ".join(self._choices)}"
            )
        return default

    def _convert(self, raw, /):
        if not raw:
            raise ValueError("empty value not allowed for enum flag")
        value = raw if self._case_sensitive else raw.lower()
        if value not in self._choices:
            raise ValueError(f"invalid enum value {raw!r}, allowed values are: {", ".join(self._choices)}")
        return value


# microseconds per unit; timedelta keeps microsecond resolution
_DURATION_UNITS = {
    "ns": decimal.Decimal("0.001"),
    "us": decimal.Decimal(1),
    "µs": decimal.Decimal(1),
    "μs": decimal.Decimal(1),
    "ms": decimal.Decimal(1_000),
    "s": decimal.Decimal(1_000_000),
    "m": decimal.Decimal(60_000_000),
    "h": decimal.Decimal(3_600_000_000),
}


def parse_duration(text, /):
    """
    Parse a duration string ("300ms", "1h30m", "-1.5h", "0") into a timedelta.

    Amounts are summed exactly; a total that is not a whole number of
    microseconds ("1ns", "1500ns") is rejected since timedelta cannot hold it.

    Raises ValueError on empty input, unknown units, a missing unit, or
    sub-microsecond precision.
    """
    if not (text := text.strip()):
        raise ValueError("duration value cannot be empty")
    sign, body = (-1, text[1:]) if text[0] == "-" else (1, text.lstrip("+"))
    if body == "0":
        return datetime.timedelta(0)
    pieces = re.findall(r"((?:\d+(?:\.\d*)?|\.\d+))(ns|us|µs|μs|ms|s|m|h)", body)
    if not pieces or "".join(number + unit for number, unit in pieces) != body:
        raise ValueError(f"invalid duration {text!r}")
    total = sum(_DURATION_UNITS[unit] * decimal.Decimal(number) for number, unit in pieces)
    if total != total.to_integral_value():
        raise ValueError(f"duration {text!r} is finer than one microsecond")
    try:
        return datetime.timedelta(microseconds=int(total) * sign)
    except OverflowError:
        raise ValueError(f"duration {text!r} is out of range") from None


def format_duration(value, /):
    """
    Compact textual form of a timedelta ("1h30m0s", "250ms", "0s").
    """
    if not value:
        return "0s"
    sign = "-" if value < datetime.timedelta(0) else ""
    value = abs(value)
    total = value.total_seconds()
    if total < 1:
        return f"{sign}{value / datetime.timedelta(milliseconds=1):g}ms"
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{seconds:g}s"
    if hours or minutes:
        text = f"{int(minutes)}m" + text
    if hours:
        text = f"{int(hours)}h" + text
    return sign + text


class DurationFlag(Flag[datetime.timedelta]):
    kind = FlagKind.DURATION
    __default__ = datetime.timedelta(0)

    def _convert(self, raw, /):
        return parse_duration(raw)

    def _format(self, value, /):
        return format_duration(value)


_TIME_LAYOUTS = (
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d %H:%M",
    "%Y/%m/%d %H:%M:%S",
    "%Y/%m/%d",
    "%d %b %Y",
    "%d %b %Y %H:%M",
    "%a, %d %b %Y %H:%M:%S %Z",
    "%H:%M:%S",
    "%H:%M",
)


class TimeFlag(Flag[datetime.datetime]):
    """
    Point in time. ISO-8601 (via datetime.fromisoformat) is tried first, then a
    few common layouts; describe() renders ISO-8601.
    """
    kind = FlagKind.TIME

    def _convert(self, raw, /):
        if not (raw := raw.strip()):
            raise ValueError("time value cannot be empty")
        try:
            return datetime.datetime.fromisoformat(raw)
        except ValueError:
            pass
        for layout in _TIME_LAYOUTS:
            try:
                return datetime.datetime.strptime(raw, layout)
            except ValueError:
                continue
        raise ValueError(f"unrecognized time {raw!r}")

    def _format(self, value, /):
        return "" if value is None else value.isoformat()


_SIZE_UNITS = {
    "": 1, "B": 1,
    "K": KB, "KB": KB, "M": MB, "MB": MB, "G": GB, "GB": GB, "T": TB, "TB": TB, "P": PB, "PB": PB,
    "KIB": KIB, "MIB": MIB, "GIB": GIB, "TIB": TIB, "PIB": PIB,
}


class SizeFlag(Flag[int]):
    """
    Byte size with an optional, case-insensitive unit: B, K/KB, M/MB, G/GB, T/TB,
    P/PB (powers of 1000) and KiB, MiB, GiB, TiB, PiB (powers of 1024).
    Fractions are allowed ("1.5MB"); negative values are not.
    """
    kind = FlagKind.SIZE
    __default__ = 0

    def _convert(self, raw, /):
        if not (raw := raw.strip()):
            raise ValueError("size value cannot be empty")
        if not (match := re.fullmatch(r"(?P<number>\d+(?:\.\d*)?|\.\d+)\s*(?P<unit>[A-Za-z]*)", raw)):
            raise ValueError(f"invalid size {raw!r}")
        try:
            scale = _SIZE_UNITS[match["unit"].upper()]
        except KeyError:
            raise ValueError(f"unknown size unit: {match["unit"]}") from None
        size = decimal.Decimal(match["number"]) * scale
        if size > (1 << 63) - 1:
            raise ValueError(f"size value too large: {raw}")
        return int(size)

    def _format(self, value, /):
        return format_size(value)


def _split(raw, /):
    return [part for part in map(str.strip, raw.split(",")) if part]


class StringListFlag(Flag[list[str]]):
    """
    Comma separated strings; parts are trimmed and empty parts are dropped.
    An empty value stores an empty list (and still marks the flag as set).
    """
    kind = FlagKind.STRING_LIST
    __default__ = []

    def _convert(self, raw, /):
        return _split(raw)

    def _format(self, value, /):
        return ",".join(value)


class IntListFlag(Flag[list[int]]):
    kind = FlagKind.INT_LIST
    __default__ = []

    def _convert(self, raw, /):
        return [int(part, 10) for part in _split(raw)]

    def _format(self, value, /):
        return ",".join(map(str, value))


class MapFlag(Flag[dict[str, str]]):
    """
    Comma separated key=value pairs. Keys and values are trimmed; an empty key
    or a pair without '=' is rejected. Later duplicates win.
    """
    kind = FlagKind.MAP
    __default__ = {}

    def _convert(self, raw, /):
        result = {}
        for pair in _split(raw):
            key, separator, value = pair.partition("=")
            if not separator:
                raise ValueError(f"invalid map format: {pair}")
            if not (key := key.strip()):
                raise ValueError(f"empty key in map format: {pair}")
            result[key] = value.strip()
        return result

    def _format(self, value, /):
        return ",".join(f"{key}={item}" for key, item in value.items())


__all__ = (
    "FlagKind",
    "Flag",
    "StringFlag",
    "BoolFlag",
    "IntFlag",
    "FloatFlag",
    "EnumFlag",
    "DurationFlag",
    "TimeFlag",
    "SizeFlag",
    "StringListFlag",
    "IntListFlag",
    "MapFlag",
    "parse_duration",
    "format_duration",
)
