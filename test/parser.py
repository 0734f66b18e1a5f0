"""
Parser tests (token grammar, positionals, routing decisions, strategy injection).

Scope
- Long/short introducers, inline and spaced values, bare bool flags.
- Faults: unknown flags (with suggestions), malformed tokens, missing values,
  rejected values.
- Positional collection and the parse_only entry point.
- Custom Parser implementations injected per command.

Conventions
- Test method names follow CamelCase per project convention.
- Commands use DefaultParser(environ={}) so the host environment never leaks in.
"""
import unittest
from unittest import TestCase

from flagtree import (
    BoolFlag,
    Command,
    DefaultParser,
    FaultCode,
    IntFlag,
    InvalidArgumentError,
    MalformedTokenError,
    MissingValueError,
    ParseStatus,
    Parser,
    StringFlag,
    UnknownFlagError,
    ValueParseError,
)


def build():
    command = Command("tool", parser=DefaultParser(environ={}))
    command.add_flags(
        IntFlag("port", "p", default=8080),
        StringFlag("name", "n"),
        BoolFlag("verbose", "V"),
    )
    return command


class TestTokenGrammar(TestCase):

    def testSpacedAndInlineValues(self):
        for tokens in (["--port", "9000"], ["--port=9000"], ["-p", "9000"], ["-p=9000"]):
            with self.subTest(tokens=tokens):
                command = build()
                command.parse(tokens)
                self.assertEqual(command.get_flag("port").value, 9000)

    def testEitherDashFormResolvesEitherName(self):
        command = build()
        command.parse(["-port", "1", "--n", "x"])
        self.assertEqual(command.get_flag("port").value, 1)
        self.assertEqual(command.get_flag("name").value, "x")

    def testInlineEmptyValue(self):
        command = build()
        command.parse(["--name="])
        self.assertEqual(command.get_flag("name").value, "")
        self.assertTrue(command.get_flag("name").is_set)

    def testBareBoolAndExplicitBool(self):
        command = build()
        command.parse(["--verbose"])
        self.assertIs(command.get_flag("verbose").value, True)

        command = build()
        command.parse(["-V=false"])
        self.assertIs(command.get_flag("verbose").value, False)
        self.assertTrue(command.get_flag("verbose").is_set)

    def testValueTokenIsTakenVerbatim(self):
        command = build()
        command.parse(["--name", "--port"])
        self.assertEqual(command.get_flag("name").value, "--port")
        self.assertFalse(command.get_flag("port").is_set)

    def testMissingValue(self):
        command = build()
        with self.assertRaises(MissingValueError) as context:
            command.parse(["--port"])
        self.assertEqual(context.exception.code, FaultCode.MISSING_VALUE)

    def testMalformedTokens(self):
        for token in ("---port", "--=1", "-_x", "--port-"):
            with self.subTest(token=token):
                with self.assertRaises(MalformedTokenError) as context:
                    build().parse([token])
                self.assertEqual(context.exception.options["token"], token)

    def testUnknownFlagSuggestsCloseMatches(self):
        command = build()
        with self.assertRaises(UnknownFlagError) as context:
            command.parse(["x", "--prot", "1"])
        error = context.exception
        self.assertEqual(error.code, FaultCode.UNKNOWN_FLAG)
        self.assertIn("--port", error.options["suggestions"])
        self.assertIn("second position", str(error))
        self.assertIs(command.status, ParseStatus.FAILED)

    def testRejectedValue(self):
        with self.assertRaises(ValueParseError) as context:
            build().parse(["--port", "http"])
        self.assertEqual(context.exception.code, FaultCode.VALUE_PARSE)

    def testPartialAssignmentIsKept(self):
        command = build()
        with self.assertRaises(UnknownFlagError):
            command.parse(["--name", "kept", "--unknown"])
        self.assertEqual(command.get_flag("name").value, "kept")


class TestPositionals(TestCase):

    def testFlagsMayFollowPositionals(self):
        command = build()
        command.parse(["a", "--port", "1", "b", "--verbose"])
        self.assertEqual(command.args(), ["a", "b"])
        self.assertEqual(command.narg, 2)
        self.assertEqual(command.arg(1), "b")
        self.assertEqual(command.arg(2), "")
        self.assertEqual(command.arg(-1), "")

    def testDashesAreOrdinaryTokens(self):
        command = build()
        command.parse(["-", "--", "--port", "3"])
        self.assertEqual(command.args(), ["-", "--"])
        self.assertEqual(command.get_flag("port").value, 3)

    def testArgsAreCopies(self):
        command = build()
        command.parse(["a"])
        command.args().append("b")
        self.assertEqual(command.args(), ["a"])

    def testParseOnlyKeepsChildNamesAsPositionals(self):
        command = build()
        child = command.add_command(Command("sub", parser=DefaultParser(environ={})))
        command.parse_only(["sub", "--port", "2"])
        self.assertEqual(command.args(), ["sub"])
        self.assertEqual(command.get_flag("port").value, 2)
        self.assertIs(child.status, ParseStatus.UNPARSED)

    def testChildNameAfterPositionalIsNotRouted(self):
        command = build()
        child = command.add_command(Command("sub", parser=DefaultParser(environ={})))
        command.parse(["file", "sub"])
        self.assertEqual(command.args(), ["file", "sub"])
        self.assertIs(child.status, ParseStatus.UNPARSED)


class Recorder(Parser):
    """Parser double recording which entry point the gate used."""

    def __init__(self):
        self.calls = []

    def parse(self, command, tokens, /):
        self.calls.append(("parse", list(tokens)))
        command.set_args(tokens)
        return command

    def parse_and_route(self, command, tokens, /):
        self.calls.append(("parse_and_route", list(tokens)))
        return command

    def parse_only(self, command, tokens, /):
        self.calls.append(("parse_only", list(tokens)))
        return command


class TestParserInjection(TestCase):

    def testEachCommandGetsItsOwnDefaultParser(self):
        first, second = Command("a"), Command("b")
        self.assertIsInstance(first.parser, DefaultParser)
        self.assertIsNot(first.parser, second.parser)

    def testCustomParserIsCalledOnce(self):
        recorder = Recorder()
        command = Command("tool", parser=recorder)
        command.parse(["x", "y"])
        command.parse(["z"])
        self.assertEqual(recorder.calls, [("parse", ["x", "y"])])
        self.assertEqual(command.args(), ["x", "y"])

    def testSetParser(self):
        command = Command("tool")
        recorder = Recorder()
        command.set_parser(recorder)
        command.parse_only([])
        self.assertEqual(recorder.calls, [("parse_only", [])])
        with self.assertRaises(InvalidArgumentError):
            command.set_parser(object())

    def testConstructorRejectsNonParsers(self):
        with self.assertRaises(TypeError):
            Command("tool", parser="default")


if __name__ == "__main__":
    unittest.main()
