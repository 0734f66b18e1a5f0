"""
Flagtree help and version renderers (rich).

Both renderers work on read-only snapshots of a command (config(), flags(),
commands()); they never touch parse state.

Palette
- Every style key below can be overridden through a mapping named __styles__
  defined in __main__. With colorful=False on the command, styles are dropped.
- help: logo, usage-label, program-name, usage-section, description-section,
  children-title, children-table, children, children-description,
  group-label, flag-name, metavar, choice, flag-description, default, envvar,
  groups-label, groups-dot, group, examples-label, examples-dot, example,
  example-usage, notes-label, notes-dot, note, panel-title, panel-subtitle
- version: program-name, program-version, panel-title

Layout (help)
- logo, usage line, description
- commands/subcommands table (ROUNDED box)
- "flags:" section with hanging-indent descriptions, defaults and variables
- "groups:", "examples:" and "notes:" bulleted sections
- wrapped in a Panel when the command is fancy
"""
from collections import defaultdict

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .environ import variable
from .flags import FlagKind

_HELP_STYLES = {
    # === Head sections ===
    "logo": "bold #FF4D94",
    "usage-label": "bold #00E6FF",
    "program-name": "bold #FF4D94",
    "usage-section": "bold #36C5F0",
    "description-section": "italic #A3A3A3",

    # === Children table ===
    "children-title": "bold #FFFFFF",
    "children-table": "#4B5563",
    "children": "bold #36C5F0",
    "children-description": "#9CA3AF",

    # === Flags ===
    "group-label": "bold #FFFFFF",
    "flag-name": "bold #22C55E",
    "metavar": "bold #FFD600",
    "choice": "bold #FF4D94",
    "flag-description": "#9CA3AF",
    "default": "#737373",
    "envvar": "italic #737373",

    # === Groups / Examples / Notes ===
    "groups-label": "bold #EF4444",
    "groups-dot": "#EF4444 dim",
    "group": "#D1D5DB",

    "examples-label": "bold #22C55E",
    "examples-dot": "#22C55E dim",
    "example": "#E5E7EB",
    "example-usage": "bold #36C5F0",

    "notes-label": "bold #00E6FF",
    "notes-dot": "#00E6FF dim",
    "note": "#D1D5DB",

    # === Fancy panel ===
    "panel-title": "bold #FF4D94",
    "panel-subtitle": "#9CA3AF",
}

_VERSION_STYLES = {
    "program-name": "bold #FF4D94",
    "program-version": "bold #00E6FF",
    "panel-title": "bold #FF4D94",
}


def _palette(defaults, colorful):
    styles = defaultdict(str, defaults | getattr(__import__("__main__"), "__styles__", {}))

    def styler(style):
        return styles[style] if colorful else ""

    def text(fragment, style=""):
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), style if colorful else "")

    return styler, text


def _metavar(flag, styler, text):
    if flag.kind is FlagKind.BOOL:
        return None
    if flag.kind is FlagKind.ENUM:
        return Text.assemble("{", Text(",").join(text(choice, styler("choice")) for choice in flag.choices), "}")
    return Text.assemble("<", text(flag.kind.value, styler("metavar")), ">")


def _bullets(label, items, console, width, styler, text):
    padding = len(dot := text(" • ", styler(f"{label}-dot")))
    section = Text()
    section.append(text(label, styler(f"{label}-label"))).append(":")
    section.append("\n")
    for item in items:
        for index, segment in enumerate(item.wrap(console, width - padding)):
            section.append(dot if index == 0 else " " * padding).append(segment).append("\n")
    return section


def render_help(command, console=None, /):
    """
    Print the help view of `command` (stdout unless a console is given).
    """
    console = console or Console()
    styler, text = _palette(_HELP_STYLES, command.colorful)
    config = command.config()
    flags = command.flags()
    children = command.commands()

    renders = []
    width = console.width - 4 * command.fancy

    if config.logo:
        renders.append(text(config.logo, styler("logo")).append("\n"))

    usage = Text()
    usage.append("usage", styler("usage-label")).append(":")
    usage.append(" ")
    if config.usage:
        usage.append(text(config.usage, styler("usage-section")))
    else:
        usage.append(text(command.path, styler("program-name")))
        if flags:
            usage.append(" [flags]")
        if children:
            usage.append(" <%scommand>" % ("sub" * (not command.is_root)))
        usage.append(" [args...]")
    renders.append(usage.append("\n"))

    if command.descr:
        renders.append(text(command.descr, styler("description-section")).append("\n"))

    if children:
        table = Table(
            "name", "help",
            title=text("subcommands" if not command.is_root else "commands", styler("children-title")),
            width=int(width * (2 / 3)),
            box=ROUNDED,
            style=styler("children-table"),
            header_style=styler("children-title"),
        )
        for child in children:
            if child.descr:
                help = text(child.descr, styler("children-description"))
            else:
                help = Text.assemble(
                    text("no description", styler("children-description")),
                    " — ",
                    text(f"run '{child.path} --help' for details", styler("examples-label")),
                )
            table.add_row(text(", ".join(child.names), styler("children")), help)
        renders.append(table)

    if flags:
        indent = 24
        section = Text("\n" if children else "")
        section.append(text("flags", styler("group-label"))).append(":")
        section.append("\n")
        for flag in flags:
            line = Text("  ").append(text(flag.usage, styler("flag-name")))
            if (metavar := _metavar(flag, styler, text)) is not None:
                line.append(" ").append(metavar)

            parts = [text(flag.descr, styler("flag-description"))] if flag.descr else []
            if flag.kind is not FlagKind.BOOL and (default := flag.describe_default()):
                parts.append(text(f"(default: {default})", styler("default")))
            if (name := variable(flag, config.env_prefix)) is not None:
                parts.append(text(f"[${name}]", styler("envvar")))
            descr = Text(" ").join(parts)

            wrapped = descr.wrap(console, max(width - indent, 20))
            if len(line) >= indent:
                line.append("\n").append(" " * indent)
            else:
                line.append(" " * (indent - len(line)))
            try:
                line.append(wrapped.pop(0))
            except IndexError:
                pass
            for segment in wrapped:
                line.append("\n").append(" " * indent).append(segment)
            section.append(line).append("\n")
        renders.append(section)

    groups = [
        text("mutex %s: %s%s" % (group.name, ", ".join(group.flags), "" if group.allow_none else " (one required)"),
             styler("group"))
        for group in config.mutex_groups
    ] + [
        text("required %s: %s" % (group.name, ", ".join(group.flags)), styler("group"))
        for group in config.required_groups
    ]
    if groups:
        renders.append(_bullets("groups", groups, console, width, styler, text))

    if config.examples:
        examples = []
        for example in config.examples:
            descr = text(example.descr, styler("example"))
            usage = text(example.usage, styler("example-usage"))
            if example.descr and example.usage:
                examples.append(Text.assemble(descr, "\n", usage))
            else:
                examples.append(descr if example.descr else usage)
        renders.append(_bullets("examples", examples, console, width, styler, text))

    if config.notes:
        renders.append(_bullets("notes", [text(note, styler("note")) for note in config.notes],
                                console, width, styler, text))

    if isinstance(renders[-1], Text):
        renders[-1].rstrip()
    renderable = Group(*renders)

    if command.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{command.name} HELP".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
            subtitle=text(command.root.version or "", styler("panel-subtitle")),
        )

    console.print(renderable)


def render_version(command, console=None, /):
    """
    Print "<name> — <version>" for the root of `command`'s tree.
    """
    console = console or Console()
    root = command.root
    styler, text = _palette(_VERSION_STYLES, root.colorful)

    renderable = Text(" — ").join((
        text(root.name, styler("program-name")),
        text(root.version or "unknown", styler("program-version")),
    ))
    if root.fancy:
        renderable = Panel(
            renderable,
            title=Text.assemble("[", " ", f"{root.name} VERSION".upper(), " ", "]", style=styler("panel-title")),
            title_align="left",
        )
    console.print(renderable)


__all__ = (
    "render_help",
    "render_version",
)
