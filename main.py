from rich.pretty import pprint

from flagtree import *

root = command_from_spec(CommandSpec(
    "app",
    options=CommandOptions(
        descr="demo application",
        version="1.0.0",
        env_prefix="APP",
        flags=(BoolFlag("verbose", "V", descr="verbose output"),),
        examples=(("start on port 9000", "app serve --port 9000"),),
    ),
    commands=(
        CommandSpec("serve", "s", options=CommandOptions(
            descr="start the server",
            flags=(
                StringFlag("host", default="127.0.0.1", descr="listen address"),
                IntFlag("port", "p", default=8080, descr="listen port"),
                StringFlag("format", default="json", descr="response format"),
                StringFlag("output", descr="write responses to a file"),
            ),
            mutex_groups=(("destination", ("format", "output")),),
        )),
    ),
))


@root.get_command("serve").set_run
def serve(command):
    pprint({flag.name: flag.value for flag in command.flags()})


if __name__ == '__main__':
    invoke(root)
