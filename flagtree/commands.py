"""
Flagtree command layer: command nodes, their one-shot parse gate and declarative construction.

What this module provides
- Command: one level of a command tree.
  • owns a flag registry and a subcommand registry (names unique across long/short).
  • holds mutex/required constraint groups, an environment prefix and help metadata.
  • parses exactly once: parse / parse_and_route / parse_only share a single gate;
    a repeat call never mutates anything and re-surfaces a first-call failure.
  • delivers parse faults through its ErrorPolicy (continue, exit, panic).

- Declarative helpers:
  • CommandOptions: bulk configuration applied through Command.apply().
  • CommandSpec: a whole tree described as data, built by command_from_spec().
  • invoke(command, prompt): run a root with argv, a shell-like string or a token list.

Core ideas
- Parent links are weak references used for path reconstruction only; parents own
  their children through the subcommand registry.
- Every node carries a reader/writer lock: accessors read, registration and parsing write.
- The parsing strategy is injected per node (a fresh DefaultParser when omitted).

Quick start
    from flagtree import Command, StringFlag, IntFlag

    root = Command("app", descr="demo application", version="1.0.0")
    serve = root.add_command(Command("serve", "s", descr="start the server"))
    serve.add_flag(StringFlag("host", default="127.0.0.1"))
    serve.add_flag(IntFlag("port", "p", default=8080))
    serve.set_run(lambda command: print(command.get_flag("port").value))

    root.parse_and_route(["serve", "--port", "9000"])   # prints 9000
"""
import logging
import re
import shlex
import sys
import weakref
from collections.abc import Iterable
from typing import NamedTuple

from .environ import normalize_prefix
from .faults import *
from .flags import BoolFlag, Flag
from .groups import MutexGroup, RequiredGroup, define_group
from .help import render_help, render_version
from .internals import ReadWriteLock
from .parser import DefaultParser, Parser, ParseStatus
from .registry import Registry
from .utils import *

logger = logging.getLogger(__name__)

_MODES = ("parse", "parse_and_route", "parse_only")


class Example(NamedTuple):
    descr: str
    usage: str


class CommandConfig(NamedTuple):
    """
    Immutable snapshot of a node's configuration (what help renderers consume).
    """
    version: str | None
    env_prefix: str
    usage: str | None
    logo: str | None
    examples: tuple[Example, ...]
    notes: tuple[str, ...]
    mutex_groups: tuple[MutexGroup, ...]
    required_groups: tuple[RequiredGroup, ...]


class CommandOptions(NamedTuple):
    """
    Bulk configuration for Command.apply(); Unset/empty fields are left untouched.

    - flags: Iterable[Flag]
    - mutex_groups: Iterable[(name, flags) | (name, flags, allow_none)]
    - required_groups: Iterable[(name, flags)]
    - examples: Iterable[(descr, usage)]
    - notes: Iterable[str]
    """
    descr: object = Unset
    version: object = Unset
    env_prefix: object = Unset
    usage: object = Unset
    logo: object = Unset
    run: object = Unset
    parser: object = Unset
    policy: object = Unset
    flags: tuple = ()
    mutex_groups: tuple = ()
    required_groups: tuple = ()
    examples: tuple = ()
    notes: tuple = ()


class CommandSpec(NamedTuple):
    """
    Declarative description of a command and its subtree.

    The policy comes from options.policy and defaults to ErrorPolicy.EXIT.
    """
    long: object
    short: object = Unset
    options: CommandOptions = CommandOptions()
    commands: tuple = ()


class CommandType(type):
    """
    Metaclass giving commands a stable typename, mirrored read-only properties
    and readable __repr__/__rich_repr__ implementations.
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
            return f"{type(self).__typename__}({", ".join("%s=%r" % pair for pair in self.__rich_repr__())})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


_NAME = re.compile(r"[^\W_](?:[\w.-]*[^\W_])?")


def _sanitize_names(cls, metadata, /):
    """
    Validate long/short names: strings (or Unset), valid spelling, at least one, distinct.
    """
    for name in ("long", "short"):
        if not isinstance(object := metadata[name], str | Unset):
            raise TypeError(f"{cls.__typename__} {name!r} name must be a string")
        elif isinstance(object, str) and (object := object.strip()) and not _NAME.fullmatch(object):
            raise ValueError(f"{cls.__typename__} {name!r} name {object!r} is not a valid command name")
        metadata[name] = coalesce(object, "")
    if not metadata["long"] and not metadata["short"]:
        raise ValueError(f"{cls.__typename__} requires a long or a short name")
    if metadata["long"] == metadata["short"]:
        raise ValueError(f"{cls.__typename__} long and short names must differ")


def _sanitize_text(cls, name, object, /, *, strip=True):
    """
    Normalize an optional text field: Unset/None stay None, strings are trimmed and
    an empty result becomes None.
    """
    if object is Unset or object is None:
        return None
    if not isinstance(object, str):
        raise TypeError(f"{cls.__typename__} {name!r} must be a string")
    object = object.strip() if strip else object.strip("\r\n")
    return object or None


def _sanitize_policy(cls, policy, /):
    if isinstance(policy, ErrorPolicy):
        return policy
    if isinstance(policy, str):
        try:
            return ErrorPolicy(policy.strip().lower())
        except ValueError:
            pass
    raise ValueError(f"{cls.__typename__} 'policy' must be one of {", ".join(repr(p.value) for p in ErrorPolicy)}")


def _sanitize_example(cls, example, /):
    if isinstance(example, Example):
        return example
    try:
        descr, usage = example
    except (TypeError, ValueError):
        raise TypeError(f"{cls.__typename__} example must be a (descr, usage) pair") from None
    if not isinstance(descr, str) or not isinstance(usage, str):
        raise TypeError(f"{cls.__typename__} example must be a pair of strings")
    return Example(descr.strip(), usage.strip())


def _tokenize(prompt, /):
    """
    Normalize a prompt into a token list.

    - Unset: sys.argv[1:].
    - str: shell-like string split with shlex.split.
    - Iterable[str]: taken as-is (each item must be a string).
    """
    if prompt is Unset:
        return sys.argv[1:]
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("command tokens must be strings")
        return tokens
    raise TypeError("command tokens must be a string or an iterable of strings")


class Command(metaclass=CommandType):
    """
    One node of a command tree.

    Parameters
    - long, short: str | Unset
      Identity; at least one is required. The display name is the long name when
      present, otherwise the short one.
    - descr, usage: str | Unset
      Help metadata (usage overrides the synthesized usage line).
    - policy: ErrorPolicy | str
      How parse faults are delivered (default CONTINUE).
    - parser: Parser | Unset
      Parsing strategy; a fresh DefaultParser when omitted.
    - version: str | Unset
      Root-only version string; enables the built-in --version flag.
    - env_prefix: str | Unset
      Prefix for environment fallback names ("APP" becomes "APP_").
    - logo: str | Unset
      Banner printed above the help text (kept verbatim apart from blank edges).
    - run: Callable[[Command], object] | Unset
      Invoked with the node after a routed parse that ended on this node.
    - examples: Iterable[(descr, usage)], notes: Iterable[str]
      Help sections.
    - fancy, colorful: bool
      Rich chrome for help and fault rendering.

    Raises
    - TypeError/ValueError on malformed configuration (never process-fatal).
    """

    __introspectable__ = (
        "long",
        "short",
        "descr",
        "version",
        "usage",
        "logo",
        "policy",
        "parser",
        "fancy",
        "colorful",
    )

    __displayable__ = (
        "long",
        "short",
        "descr",
        "version",
        "status",
    )

    def __init__(
            self,
            long=Unset,
            short=Unset,
            /,
            *,
            descr=Unset,
            policy=ErrorPolicy.CONTINUE,
            parser=Unset,
            version=Unset,
            env_prefix=Unset,
            usage=Unset,
            logo=Unset,
            run=Unset,
            examples=(),
            notes=(),
            fancy=False,
            colorful=True,
    ):
        metadata = {"long": long, "short": short}
        _sanitize_names(type(self), metadata)
        self._long = metadata["long"]
        self._short = metadata["short"]

        if not isinstance(parser, Parser | Unset):
            raise TypeError(f"{type(self).__typename__} 'parser' must be a parser")
        if run is not Unset and not callable(run):
            raise TypeError(f"{type(self).__typename__} 'run' must be callable")

        self._descr = _sanitize_text(type(self), "descr", descr)
        self._version = _sanitize_text(type(self), "version", version)
        self._usage = _sanitize_text(type(self), "usage", usage)
        self._logo = _sanitize_text(type(self), "logo", logo, strip=False)
        self._env_prefix = normalize_prefix(coalesce(env_prefix, ""))
        self._policy = _sanitize_policy(type(self), policy)
        self._parser = DefaultParser() if parser is Unset else parser
        self._run = coalesce(run)
        self._examples = [_sanitize_example(type(self), example) for example in examples]
        self._notes = [note.strip() for note in notes if isinstance(note, str) and note.strip()]
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)

        self._parent = None
        self._flags = Registry("flag", Flag)
        self._commands = Registry("command", Command)
        self._mutexes = []
        self._requireds = []
        self._builtins = {}
        self._lock = ReadWriteLock()

        self._status = ParseStatus.UNPARSED
        self._fault = None
        self._halt = None
        self._args = []

    # ── identity ───────────────────────────────────────────────────────────

    @property
    def name(self):
        return self._long or self._short

    @property
    def names(self):
        return tuple(name for name in (self._long, self._short) if name)

    @property
    def parent(self):
        """
        The enclosing command, or None for a root (or once the parent is gone).
        """
        return self._parent() if self._parent is not None else None

    @property
    def is_root(self):
        return self.parent is None

    @property
    def root(self):
        command = self
        while (parent := command.parent) is not None:
            command = parent
        return command

    @property
    def path(self):
        """
        Space separated route from the root to this node ("app serve").
        """
        if (parent := self.parent) is None:
            return self.name
        return f"{parent.path} {self.name}"

    @property
    def env_prefix(self):
        with self._lock.reading():
            return self._env_prefix

    # ── flags ──────────────────────────────────────────────────────────────

    def add_flag(self, flag, /):
        """
        Register a flag under every name it declares; returns the flag.

        Raises InvalidArgumentError (not a flag) or NameConflictError.
        """
        with self._lock.writing():
            return self._flags.register(flag)

    def add_flags(self, *flags):
        with self._lock.writing():
            for flag in flags:
                self._flags.register(flag)
        return list(flags)

    def flag(self, cls, long=Unset, short=Unset, /, **options):
        """
        Construct a flag of type `cls` and register it in one step.

            port = command.flag(IntFlag, "port", "p", default=8080)
        """
        if not isinstance(cls, type) or not issubclass(cls, Flag):
            raise InvalidArgumentError(
                "%r is not a flag type" % (cls,),
                title="invalid flag",
                code=FaultCode.INVALID_ARGUMENT,
                hint="pass one of the Flag subclasses (StringFlag, IntFlag, ...)",
            )
        return self.add_flag(cls(long, short, **options))

    def get_flag(self, name, /):
        with self._lock.reading():
            return self._flags.get(name)

    def flags(self):
        with self._lock.reading():
            return self._flags.list()

    def remove_flag(self, name, /):
        """
        Unregister the flag reachable by `name`; groups keep referencing it harmlessly.
        """
        with self._lock.writing():
            flag = self._flags.get(name)
            if removed := self._flags.unregister(name):
                self._builtins = {kind: builtin for kind, builtin in self._builtins.items() if builtin is not flag}
            return removed

    @property
    def builtins(self):
        """
        Installed built-in flags keyed by kind ("help", "version").
        """
        with self._lock.reading():
            return dict(self._builtins)

    def _install_builtins(self):
        if "help" not in self._builtins and not self._flags.has("help"):
            self._builtins["help"] = self._flags.register(BoolFlag(
                "help", Unset if self._flags.has("h") else "h", descr="show this help message and exit"
            ))
        if "version" not in self._builtins and self._version and self.is_root:
            if not self._flags.has("version"):
                self._builtins["version"] = self._flags.register(BoolFlag(
                    "version", Unset if self._flags.has("v") else "v", descr="show the version and exit"
                ))

    # ── subcommands ────────────────────────────────────────────────────────

    def add_command(self, command, /):
        """
        Attach `command` as a child; returns the child.

        Raises
        - InvalidArgumentError: not a command, already attached, or attaching would
          create a cycle.
        - NameConflictError: a child already uses one of its names.
        - RootOnlyError: the child carries a version (versions live on roots).
        """
        if isinstance(command, Command):
            if command.parent is not None:
                raise InvalidArgumentError(
                    "command %r is already attached to %r" % (command.name, command.parent.path),
                    title="invalid command",
                    code=FaultCode.INVALID_ARGUMENT,
                    hint="a command can only have one parent",
                )
            if command is self or any(command is ancestor for ancestor in self._ancestors()):
                raise InvalidArgumentError(
                    "command %r cannot be attached below itself" % command.name,
                    title="invalid command",
                    code=FaultCode.INVALID_ARGUMENT,
                    hint="command trees cannot contain cycles",
                )
            if command.version:
                raise RootOnlyError(
                    "subcommand %r cannot carry a version" % command.name,
                    title="root-only setting",
                    code=FaultCode.ROOT_ONLY,
                    hint="set the version on the root command",
                )
        with self._lock.writing():
            self._commands.register(command)
            command._parent = weakref.ref(self)
        logger.debug("attached %s", command.path)
        return command

    def add_commands(self, *commands):
        for command in commands:
            self.add_command(command)
        return list(commands)

    def get_command(self, name, /):
        with self._lock.reading():
            return self._commands.get(name)

    def has_command(self, name, /):
        with self._lock.reading():
            return self._commands.has(name)

    def commands(self):
        with self._lock.reading():
            return self._commands.list()

    def remove_command(self, name, /):
        with self._lock.writing():
            if (command := self._commands.get(name)) is None:
                return False
            self._commands.unregister(name)
            command._parent = None
            return True

    def _ancestors(self):
        parent = self.parent
        while parent is not None:
            yield parent
            parent = parent.parent

    # ── constraint groups ─────────────────────────────────────────────────

    def add_mutex_group(self, name, flags, /, *, allow_none=True):
        """
        Declare that at most one of `flags` may be set (exactly one when allow_none
        is False). Members must be registered already.
        """
        with self._lock.writing():
            name, members = define_group(
                "mutex", name, flags,
                existing=[group.name for group in self._mutexes],
                lookup=self._flags.get,
            )
            self._mutexes.append(group := MutexGroup(name, members, bool(allow_none)))
        logger.debug("%s: mutex group %r over %s", self.path, name, ", ".join(members))
        return group

    def remove_mutex_group(self, name, /):
        with self._lock.writing():
            self._mutexes.remove(self._find_group("mutex", self._mutexes, name))

    def get_mutex_group(self, name, /):
        with self._lock.reading():
            return next((group for group in self._mutexes if group.name == name), None)

    def mutex_groups(self):
        with self._lock.reading():
            return list(self._mutexes)

    def add_required_group(self, name, flags, /):
        """
        Declare that every flag of `flags` must be set (CLI or environment).
        """
        with self._lock.writing():
            name, members = define_group(
                "required", name, flags,
                existing=[group.name for group in self._requireds],
                lookup=self._flags.get,
            )
            self._requireds.append(group := RequiredGroup(name, members))
        logger.debug("%s: required group %r over %s", self.path, name, ", ".join(members))
        return group

    def remove_required_group(self, name, /):
        with self._lock.writing():
            self._requireds.remove(self._find_group("required", self._requireds, name))

    def get_required_group(self, name, /):
        with self._lock.reading():
            return next((group for group in self._requireds if group.name == name), None)

    def required_groups(self):
        with self._lock.reading():
            return list(self._requireds)

    def _find_group(self, kind, groups, name, /):
        for group in groups:
            if group.name == name:
                return group
        raise GroupNotFoundError(
            "%s group %r does not exist" % (kind, name),
            title="group not found",
            code=FaultCode.GROUP_NOT_FOUND,
            group=name,
            hint="list the existing groups with %s_groups()" % kind,
        )

    # ── configuration ─────────────────────────────────────────────────────

    def set_run(self, run, /):
        """
        Install (or clear with None) the callback run after a routed parse.
        Usable as a decorator.
        """
        if run is not None and not callable(run):
            raise InvalidArgumentError(
                "run callback must be callable",
                title="invalid callback",
                code=FaultCode.INVALID_ARGUMENT,
            )
        with self._lock.writing():
            self._run = run
        return run

    def set_descr(self, descr, /):
        with self._lock.writing():
            self._descr = _sanitize_text(type(self), "descr", descr)

    def set_version(self, version, /):
        if not self.is_root:
            raise RootOnlyError(
                "version can only be set on the root command, not on %r" % self.path,
                title="root-only setting",
                code=FaultCode.ROOT_ONLY,
                hint="call set_version() on %r" % self.root.name,
            )
        with self._lock.writing():
            self._version = _sanitize_text(type(self), "version", version)

    def set_env_prefix(self, prefix, /):
        with self._lock.writing():
            self._env_prefix = normalize_prefix(prefix)

    def set_usage(self, usage, /):
        with self._lock.writing():
            self._usage = _sanitize_text(type(self), "usage", usage)

    def set_logo(self, logo, /):
        with self._lock.writing():
            self._logo = _sanitize_text(type(self), "logo", logo, strip=False)

    def set_policy(self, policy, /):
        with self._lock.writing():
            self._policy = _sanitize_policy(type(self), policy)

    def set_parser(self, parser, /):
        if not isinstance(parser, Parser):
            raise InvalidArgumentError(
                "%r is not a parser" % (parser,),
                title="invalid parser",
                code=FaultCode.INVALID_ARGUMENT,
                hint="pass a Parser instance (for example DefaultParser())",
            )
        with self._lock.writing():
            self._parser = parser

    def add_example(self, descr, usage, /):
        example = _sanitize_example(type(self), (descr, usage))
        with self._lock.writing():
            self._examples.append(example)
        return example

    def add_examples(self, *examples):
        examples = [_sanitize_example(type(self), example) for example in examples]
        with self._lock.writing():
            self._examples.extend(examples)

    def add_note(self, note, /):
        """
        Append a help note; blank notes are ignored.
        """
        if not isinstance(note, str):
            raise TypeError(f"{type(self).__typename__} note must be a string")
        if note := note.strip():
            with self._lock.writing():
                self._notes.append(note)

    def add_notes(self, *notes):
        for note in notes:
            self.add_note(note)

    def config(self):
        with self._lock.reading():
            return CommandConfig(
                version=self._version,
                env_prefix=self._env_prefix,
                usage=self._usage,
                logo=self._logo,
                examples=tuple(self._examples),
                notes=tuple(self._notes),
                mutex_groups=tuple(self._mutexes),
                required_groups=tuple(self._requireds),
            )

    def apply(self, options, /):
        """
        Apply a CommandOptions bundle.

        Structured faults raised by the individual setters propagate unchanged;
        any other failure is captured as a MisuseError carrying the cause.
        """
        if not isinstance(options, CommandOptions):
            raise InvalidArgumentError(
                "options must be a CommandOptions, not %s" % type(options).__name__,
                title="invalid options",
                code=FaultCode.INVALID_ARGUMENT,
            )
        try:
            for name, setter in (
                    ("descr", self.set_descr),
                    ("version", self.set_version),
                    ("env_prefix", self.set_env_prefix),
                    ("usage", self.set_usage),
                    ("logo", self.set_logo),
                    ("run", self.set_run),
                    ("parser", self.set_parser),
                    ("policy", self.set_policy),
            ):
                if (value := getattr(options, name)) is not Unset:
                    setter(value)
            self.add_flags(*options.flags)
            for group in options.mutex_groups:
                name, flags, *rest = group
                self.add_mutex_group(name, flags, allow_none=rest[0] if rest else True)
            for name, flags in options.required_groups:
                self.add_required_group(name, flags)
            self.add_examples(*options.examples)
            self.add_notes(*options.notes)
        except CommandException:
            raise
        except Exception as error:
            raise MisuseError(
                "invalid configuration for command %r" % self.path,
                title="configuration misuse",
                code=FaultCode.MISUSE,
                cause=error,
                hint="check the values passed in CommandOptions",
            ) from error
        return self

    # ── parsing ───────────────────────────────────────────────────────────

    @property
    def status(self):
        with self._lock.reading():
            return self._status

    @property
    def parsed(self):
        return self.status is ParseStatus.PARSED

    @property
    def fault(self):
        """
        The fault recorded by a failed parse, or None.
        """
        with self._lock.reading():
            return self._fault

    def set_args(self, args, /):
        """
        Store the positional arguments collected by the parser.
        """
        args = list(args)
        if not all(isinstance(arg, str) for arg in args):
            raise TypeError(f"{type(self).__typename__} positional arguments must be strings")
        with self._lock.writing():
            self._args = args

    def args(self):
        with self._lock.reading():
            return list(self._args)

    def arg(self, index, /):
        """
        Positional argument at `index`, or "" when out of range.
        """
        with self._lock.reading():
            if 0 <= index < len(self._args):
                return self._args[index]
            return ""

    @property
    def narg(self):
        with self._lock.reading():
            return len(self._args)

    def dispatch(self, tokens=Unset, /, *, mode="parse"):
        """
        The single-execution gate shared by the three parse entry points.

        Returns the terminal node of a fresh parse (this node or the node a
        delegation ended on), or None when this node had been parsed before.
        A cached failure is delivered again through the policy. A parse that left
        through a panic or a process exit (help, version, a delegated EXIT policy)
        is recorded as failed and raises the same exception on every later call.
        """
        if mode not in _MODES:
            raise ValueError(f"{type(self).__typename__} dispatch mode must be one of {", ".join(_MODES)}")
        tokens = _tokenize(tokens)

        with self._lock.writing():
            match self._status:
                case ParseStatus.PARSED:
                    logger.debug("%s already parsed, ignoring %d token(s)", self.path, len(tokens))
                    return None
                case ParseStatus.FAILED:
                    fault, halt = self._fault, self._halt
                case _:
                    self._install_builtins()
                    try:
                        terminal = getattr(self._parser, mode)(self, tokens)
                    except CommandException as error:
                        self._status, self._fault = ParseStatus.FAILED, error
                        logger.debug("%s failed to parse: %s", self.path, error)
                        fault, halt = error, None
                    except CommandPanic as panic:
                        self._status, self._fault, self._halt = ParseStatus.FAILED, panic.fault, panic
                        logger.debug("%s panicked: %s", self.path, panic.fault)
                        raise
                    except BaseException as error:
                        # help/version exits and delegated EXIT policies
                        self._status, self._halt = ParseStatus.FAILED, error
                        logger.debug("%s halted: %r", self.path, error)
                        raise
                    else:
                        self._status = ParseStatus.PARSED
                        logger.debug("%s parsed", self.path)
                        return terminal

        if halt is not None:
            raise halt
        self._deliver(fault)

    def _deliver(self, fault, /):
        options = fault.options
        trigger(
            fault,
            policy=self._policy,
            tool=options.get("tool", self),
            fancy=options.get("fancy", self._fancy),
            colorful=options.get("colorful", self._colorful),
        )

    def parse(self, tokens=Unset, /):
        """
        Parse tokens on this node and recurse into a matching child (no run callback).
        """
        self.dispatch(tokens, mode="parse")

    def parse_and_route(self, tokens=Unset, /):
        """
        Parse tokens, recurse into a matching child and run the terminal node's callback.

        Returns the callback's result (None when nothing ran). Exceptions raised by
        the callback propagate unchanged and are not recorded as parse failures.
        """
        if (terminal := self.dispatch(tokens, mode="parse_and_route")) is None:
            return None
        with terminal._lock.reading():
            run = terminal._run
        if run is None:
            return None
        logger.debug("running %s", terminal.path)
        return run(terminal)

    def parse_only(self, tokens=Unset, /):
        """
        Parse tokens on this node only; child names are collected as positionals.
        """
        self.dispatch(tokens, mode="parse_only")

    def run(self):
        """
        Invoke the run callback of an already parsed node.

        Raises NotParsedError before a successful parse and NoRunError when no
        callback is installed.
        """
        with self._lock.reading():
            status, run = self._status, self._run
        if status is not ParseStatus.PARSED:
            raise NotParsedError(
                "command %r has not been parsed successfully" % self.path,
                title="not parsed",
                code=FaultCode.NOT_PARSED,
                status=status,
                hint="call parse() or parse_and_route() first",
            )
        if run is None:
            raise NoRunError(
                "command %r has no run callback" % self.path,
                title="nothing to run",
                code=FaultCode.NO_RUN,
                hint="install one with set_run()",
            )
        return run(self)

    # ── rendering ─────────────────────────────────────────────────────────

    def print_help(self, console=None):
        render_help(self, console)

    def print_version(self, console=None):
        render_version(self, console)

    def __invoke__(self, prompt=Unset):
        return self.parse_and_route(_tokenize(prompt))


def command_from_spec(spec, /):
    """
    Build a command tree from a CommandSpec.

    Structured faults (name conflicts, unknown group members, ...) propagate as-is;
    any other failure while building is captured as a MisuseError.
    """
    if not isinstance(spec, CommandSpec):
        raise InvalidArgumentError(
            "spec must be a CommandSpec, not %s" % type(spec).__name__,
            title="invalid spec",
            code=FaultCode.INVALID_ARGUMENT,
        )
    try:
        command = Command(spec.long, spec.short, policy=coalesce(spec.options.policy, ErrorPolicy.EXIT))
        command.apply(spec.options._replace(policy=Unset))
        for child in spec.commands:
            command.add_command(command_from_spec(child))
    except CommandException:
        raise
    except Exception as error:
        raise MisuseError(
            "invalid command spec %r" % (spec.long,),
            title="configuration misuse",
            code=FaultCode.MISUSE,
            cause=error,
            hint="check the names and options of the spec",
        ) from error
    return command


def invoke(command, prompt=Unset, /):
    """
    Run a command tree with routed execution.

    Parameters
    - command: an object implementing __invoke__ (a Command).
    - prompt: Unset (sys.argv[1:]), a shell-like string or an iterable of strings.
    """
    if hasattr(command, "__invoke__") and callable(command.__invoke__):
        return command.__invoke__(prompt)
    raise TypeError("invoke() first argument must implement __invoke__ method")


__all__ = (
    "Command",
    "CommandConfig",
    "CommandOptions",
    "CommandSpec",
    "Example",
    "command_from_spec",
    "invoke",
)

del CommandType
