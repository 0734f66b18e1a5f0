r"""
Flagtree parser: token scanning, routing and post-scan resolution.

Overview
- ParseStatus: tri-state outcome recorded on every command node
  (UNPARSED → PARSED | FAILED).
- Parser: strategy interface injected into each command node. The node's gate
  calls exactly one of its three methods, at most once per node instance:
  • parse(command, tokens)           – scan, recurse into children (no run).
  • parse_and_route(command, tokens) – scan, recurse with the routing entry point.
  • parse_only(command, tokens)      – scan this node only; child names are
                                       ordinary positionals.
  Each returns the terminal node: the command itself, the deepest node a
  delegation reached, or None when the delegated child had been parsed before
  (nothing left to run). Faults are raised; the gate caches and delivers them.
- DefaultParser: the stock strategy.

Token grammar (DefaultParser)
- "--name", "-n": flag introducers; either dash form resolves either name.
- "--name=value", "-n=value": inline value (may be empty).
- without an inline value: bool flags receive "" (true), every other kind
  consumes the next token verbatim; no token left → MissingValueError.
- spelling checked with r"(?P<dashes>--?)(?P<name>[^\W_](?:[\w.-]*[^\W_])?)(?:=(?P<value>.*))?";
  anything else starting with "-" → MalformedTokenError.
- "-" and "--" are ordinary tokens (positionals).
- the first non-option token, when no positional has been collected yet and it
  names a registered child (long or short), hands every later token to that
  child and ends the scan of the current node. Built-in flags already set on
  the current node are honored before the hand-off.

After the scan (only when nothing was delegated)
1. built-in flags: --help renders help and exits 0; --version renders the
   version view and exits 0.
2. environment fallback for every flag still unset.
3. constraint validation (mutex groups, then required groups).
"""
import difflib
import functools
import logging
import re
import sys
from abc import ABC, abstractmethod
from collections import deque
from enum import Enum

from . import environ, groups
from .faults import *

logger = logging.getLogger(__name__)


class ParseStatus(Enum):
    UNPARSED = "unparsed"
    PARSED = "parsed"
    FAILED = "failed"


@functools.cache
def _ordinal(number):
    """
    Human-friendly ordinal for a 1-based token position ("first", ..., "11th", "22nd").
    """
    try:
        return {
            1: "first",
            2: "second",
            3: "third",
            4: "fourth",
            5: "fifth",
            6: "sixth",
            7: "seventh",
            8: "eighth",
            9: "ninth",
            10: "tenth",
        }[number]
    except KeyError:
        pass

    if 10 < number % 100 < 20:
        return f"{number}th"

    return f'{number}%s' % {1: "st", 2: "nd", 3: "rd"}.get(number % 10, "th")


class Parser(ABC):
    """
    Parsing strategy of a command node.

    Implementations receive the node and its raw tokens, mutate the node's flags
    and positionals (command.set_args) and return the terminal node. Delegation to a
    child goes through child.dispatch(tokens, mode=...) so the child's own gate,
    parser and policy apply.
    """

    @abstractmethod
    def parse(self, command, tokens, /):
        raise NotImplementedError

    @abstractmethod
    def parse_and_route(self, command, tokens, /):
        raise NotImplementedError

    @abstractmethod
    def parse_only(self, command, tokens, /):
        raise NotImplementedError


class DefaultParser(Parser):
    """
    Stock parser.

    Parameters
    - environ: Mapping[str, str] | None
      Source of environment fallback values (os.environ when None).
    """

    _token = re.compile(r"(?P<dashes>--?)(?P<name>[^\W_](?:[\w.-]*[^\W_])?)(?:=(?P<value>.*))?", re.DOTALL)

    def __init__(self, *, environ=None):
        self._environ = environ

    def __repr__(self):
        return f"{type(self).__name__}()"

    def parse(self, command, tokens, /):
        return self._parseargs(command, tokens, route="parse")

    def parse_and_route(self, command, tokens, /):
        return self._parseargs(command, tokens, route="parse_and_route")

    def parse_only(self, command, tokens, /):
        return self._parseargs(command, tokens, route=None)

    def _resolve_token(self, command, token, index, /):
        """
        Split an introducer token into (flag, inline value or None).
        """
        match = self._token.fullmatch(token)
        if not match:
            raise MalformedTokenError(
                "bad form of flag %r at %s position" % (token, _ordinal(index)),
                title="malformed flag",
                code=FaultCode.MALFORMED_TOKEN,
                token=token,
                index=index,
                hint="try '%s --help' to see valid spellings (e.g. --name=value)" % command.path,
                docs=getdoc(FaultCode.MALFORMED_TOKEN),
            )

        name = match["name"]
        if (flag := command.get_flag(name)) is None:
            names = [match["dashes"] + other for flag in command.flags() for other in flag.names]
            suggestions = difflib.get_close_matches(match["dashes"] + name, names, 5)
            try:
                hint = "did you mean %r? you can also run '%s --help' to see all flags" % (suggestions[0], command.path)
            except IndexError:
                hint = "try '%s --help' to see all available flags" % command.path
            raise UnknownFlagError(
                "unknown flag %r at %s position" % (match["dashes"] + name, _ordinal(index)),
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                input=name,
                index=index,
                suggestions=suggestions,
                hint=hint,
                docs=getdoc(FaultCode.UNKNOWN_FLAG),
            )
        return flag, match["value"]

    def _parseargs(self, command, tokens, /, *, route):
        tokens = deque(tokens)
        positionals = []
        index = 0

        while tokens:
            token = tokens.popleft()
            index += 1

            if token.startswith("-") and token not in ("-", "--"):
                flag, value = self._resolve_token(command, token, index)
                if value is None:
                    if flag.implicit:
                        value = ""
                    else:
                        try:
                            value = tokens.popleft()
                        except IndexError:
                            raise MissingValueError(
                                "flag %r at %s position needs a value" % (token, _ordinal(index)),
                                title="missing value",
                                code=FaultCode.MISSING_VALUE,
                                flag=flag,
                                index=index,
                                hint="pass it as %s=<value> or %s <value>" % (token, token),
                                docs=getdoc(FaultCode.MISSING_VALUE),
                            ) from None
                        index += 1
                flag.set(value)
            elif route and not positionals and (child := command.get_command(token)) is not None:
                command.set_args(positionals)
                self._handle_builtins(command)
                logger.debug("%s routes %d token(s) to %s", command.path, len(tokens), child.name)
                return child.dispatch(list(tokens), mode=route)
            else:
                positionals.append(token)

        command.set_args(positionals)
        self._handle_builtins(command)
        builtins = list(command.builtins.values())
        flags = [flag for flag in command.flags() if all(flag is not builtin for builtin in builtins)]
        environ.resolve(flags, command.env_prefix, self._environ)
        groups.validate(command.get_flag, command.mutex_groups(), command.required_groups())
        return command

    @staticmethod
    def _handle_builtins(command, /):
        builtins = command.builtins
        if (flag := builtins.get("help")) is not None and flag.is_set:
            command.print_help()
            sys.exit(0)
        if (flag := builtins.get("version")) is not None and flag.is_set:
            command.print_version()
            sys.exit(0)


__all__ = (
    "ParseStatus",
    "Parser",
    "DefaultParser",
)
