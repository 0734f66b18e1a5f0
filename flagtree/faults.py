"""
Flagtree faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing error.
  Codes are grouped by domain so logs and searches stay predictable.
- ErrorPolicy: per-command delivery mechanism for parse-time faults
  (continue → raise to the caller, exit → render and terminate, panic → raise
  an unrecoverable CommandPanic).
- CommandException: base type that carries message + options and knows how to
  render itself in a friendly, lowercased, actionable way.
- CommandPanic: BaseException wrapper used by the panic policy; ordinary
  `except Exception` handlers never swallow it.
- trigger(): central entry point to surface any fault under a given policy.
- getdoc(): optional description lookup for a code from the host application.

Options understood by the renderer
- tool: the command that detected the fault (used for the program name).
- code: FaultCode.
- title: short, lowercased headline.
- hint: one actionable sentence.
- cause: the wrapped lower-level exception (also exposed as __cause__).
- policy: ErrorPolicy used by __trigger__.
- fancy/colorful: rich chrome toggles.

Integration
- Registration APIs raise faults directly (always CONTINUE semantics).
- The parser raises faults; the command gate caches them and delivers them via
  trigger(fault, policy=..., tool=...).
"""
import copy
import os.path
import sys
from collections import defaultdict
from enum import Enum, IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - registration (211xx)
      • INVALID_ARGUMENT, NAME_CONFLICT, EMPTY_GROUP, GROUP_EXISTS,
        GROUP_NOT_FOUND, FLAG_NOT_FOUND, ROOT_ONLY, MISUSE
    - parsing (212xx)
      • UNKNOWN_FLAG, MALFORMED_TOKEN, MISSING_VALUE, VALUE_PARSE, ENVIRONMENT_VALUE
    - constraints (213xx)
      • MUTEX_VIOLATION, MUTEX_GROUP_EMPTY, GROUP_UNSATISFIED
    - execution (214xx)
      • NOT_PARSED, NO_RUN

    rationale
    - spacing leaves room for additions without reshuffling existing codes.
    - normalize() lets hosts remap codes to their own labels.
    """
    # --- registration errors (211xx) ---
    INVALID_ARGUMENT            = 21101
    NAME_CONFLICT               = 21102
    EMPTY_GROUP                 = 21103
    GROUP_EXISTS                = 21104
    GROUP_NOT_FOUND             = 21105
    FLAG_NOT_FOUND              = 21106
    ROOT_ONLY                   = 21107
    MISUSE                      = 21112

    # --- parse errors (212xx) ---
    UNKNOWN_FLAG                = 21201
    MALFORMED_TOKEN             = 21202
    MISSING_VALUE               = 21203
    VALUE_PARSE                 = 21204
    ENVIRONMENT_VALUE           = 21205

    # --- constraint errors (213xx) ---
    MUTEX_VIOLATION             = 21301
    MUTEX_GROUP_EMPTY           = 21302
    GROUP_UNSATISFIED           = 21311

    # --- execution errors (214xx) ---
    NOT_PARSED                  = 21401
    NO_RUN                      = 21402

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ErrorPolicy(Enum):
    """
    how a command delivers a parse-time fault.

    - CONTINUE: raise the fault to the caller (ordinary exception).
    - EXIT: render the fault on stderr and terminate with status 1.
    - PANIC: raise CommandPanic carrying the fault (BaseException).
    """
    CONTINUE = "continue"
    EXIT = "exit"
    PANIC = "panic"


class CommandPanic(BaseException):
    """
    unrecoverable fault raised under ErrorPolicy.PANIC.

    derives from BaseException so that `except Exception` blocks in user code
    let it reach an enclosing supervisor (or terminate the interpreter).
    """

    def __init__(self, fault, /):
        super().__init__(str(fault))
        self.fault = fault


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(coalesce(message, ""))
        self.message = message
        self.options = MappingProxyType(options)
        if (cause := options.get("cause")) is not None:
            self.__cause__ = cause

    @property
    def code(self):
        return self.options.get("code")

    @property
    def cause(self):
        return self.options.get("cause")

    def __str__(self):
        message = coalesce(self.message, "")
        if self.cause is not None:
            return f"{message}: {self.cause}"
        return message

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        fancy = self.options.get("fancy", False)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        if (tool := self.options.get("tool")) is not None:
            prog = tool.path
        else:
            prog = os.path.basename(sys.argv[0]) or "flagtree"
        prog = text(getattr(main, "__prog__", prog), styler("prog-name"))

        code = self.code.normalize() if isinstance(self.code, FaultCode) else "?"
        title = self.options.get("title") or type(self).__name__

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code, styler("code")),
            " | ",
            text(title.title(), styler("error-title")),
            " ]"
        )
        message = text(str(self), styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        match self.options.get("policy", ErrorPolicy.CONTINUE):
            case ErrorPolicy.EXIT:
                console.print(self)
                sys.exit(1)
            case ErrorPolicy.PANIC:
                raise CommandPanic(self) from self
            case _:
                raise self

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


# registration-time
class InvalidArgumentError(CommandException): ...
class NameConflictError(CommandException): ...
class EmptyGroupError(CommandException): ...
class GroupExistsError(CommandException): ...
class GroupNotFoundError(CommandException): ...
class FlagNotFoundError(CommandException): ...
class RootOnlyError(CommandException): ...
class MisuseError(CommandException): ...

# parse-time
class UnknownFlagError(CommandException): ...
class MalformedTokenError(CommandException): ...
class MissingValueError(CommandException): ...
class ValueParseError(CommandException): ...

# constraints
class MutexViolationError(CommandException): ...
class MutexGroupEmptyError(CommandException): ...
class GroupUnsatisfiedError(CommandException): ...

# execution
class NotParsedError(CommandException): ...
class NoRunError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into a copy of the fault via copy.replace before triggering.
    - the default policy (CONTINUE) raises; EXIT renders and exits; PANIC raises CommandPanic.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ keyed by
    FaultCode; when nothing is registered, None is returned.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    return getattr(__import__("__main__"), "__docs__", {}).get(code)


__all__ = (
    "FaultCode",
    "ErrorPolicy",
    "CommandPanic",
    "CommandException",
    "InvalidArgumentError",
    "NameConflictError",
    "EmptyGroupError",
    "GroupExistsError",
    "GroupNotFoundError",
    "FlagNotFoundError",
    "RootOnlyError",
    "MisuseError",
    "UnknownFlagError",
    "MalformedTokenError",
    "MissingValueError",
    "ValueParseError",
    "MutexViolationError",
    "MutexGroupEmptyError",
    "GroupUnsatisfiedError",
    "NotParsedError",
    "NoRunError",
    "trigger",
    "getdoc",
)
