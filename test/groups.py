"""
Constraint group tests (registration rules and validation through parsing).

Scope
- Mutex groups with allow_none on and off.
- Required groups, including removal of a group.
- Registration faults: empty names/members, duplicates, unknown members.
- Groups referencing flags removed after registration.

Conventions
- Test method names follow CamelCase per project convention.
- Every command gets a parser reading from an empty environment.
"""
import unittest
from unittest import TestCase

from flagtree import (
    BoolFlag,
    Command,
    DefaultParser,
    EmptyGroupError,
    FaultCode,
    FlagNotFoundError,
    GroupExistsError,
    GroupNotFoundError,
    GroupUnsatisfiedError,
    MutexGroupEmptyError,
    MutexViolationError,
    StringFlag,
)


def build(**options):
    command = Command("app", parser=DefaultParser(environ={}), **options)
    command.add_flags(
        StringFlag("format", default="json"),
        StringFlag("output", default=""),
    )
    return command


class TestMutexGroups(TestCase):

    def testAllowNoneAcceptsNothingOrOne(self):
        for tokens in ([], ["--format", "json"], ["--output", "result.txt"]):
            with self.subTest(tokens=tokens):
                command = build()
                command.add_mutex_group("destination", ["format", "output"])
                command.parse(tokens)
                self.assertTrue(command.parsed)

    def testAllowNoneRejectsTwo(self):
        command = build()
        command.add_mutex_group("destination", ["format", "output"])
        with self.assertRaises(MutexViolationError) as context:
            command.parse(["--format", "json", "--output", "result.txt"])
        error = context.exception
        self.assertEqual(error.code, FaultCode.MUTEX_VIOLATION)
        self.assertEqual(error.options["group"], "destination")
        self.assertEqual(error.options["flags"], ("--format", "--output"))
        self.assertIn("destination", str(error))

    def testExactlyOneWhenNoneIsNotAllowed(self):
        command = build()
        command.add_mutex_group("destination", ["format", "output"], allow_none=False)
        with self.assertRaises(MutexGroupEmptyError) as context:
            command.parse([])
        self.assertEqual(context.exception.code, FaultCode.MUTEX_GROUP_EMPTY)

        command = build()
        command.add_mutex_group("destination", ["format", "output"], allow_none=False)
        command.parse(["--format", "json"])
        self.assertTrue(command.parsed)

    def testMembersResolvedByShortNameCountOnce(self):
        command = Command("app", parser=DefaultParser(environ={}))
        command.add_flags(BoolFlag("quiet", "q"), BoolFlag("verbose", "v"))
        group = command.add_mutex_group("noise", ["quiet", "--q", "v"])
        self.assertEqual(group.flags, ("quiet", "q", "v"))
        command.parse(["-q"])
        self.assertTrue(command.parsed)

    def testRemovedMembersAreSkipped(self):
        command = build()
        command.add_mutex_group("destination", ["format", "output"])
        command.add_required_group("both", ["format", "output"])
        command.remove_flag("output")
        command.parse(["--format", "yaml"])
        self.assertTrue(command.parsed)

    def testGroupAccessors(self):
        command = build()
        group = command.add_mutex_group("destination", ("format", "output"))
        self.assertEqual(command.get_mutex_group("destination"), group)
        self.assertIsNone(command.get_mutex_group("missing"))
        self.assertEqual(command.mutex_groups(), [group])
        command.remove_mutex_group("destination")
        self.assertEqual(command.mutex_groups(), [])
        with self.assertRaises(GroupNotFoundError):
            command.remove_mutex_group("destination")


class TestRequiredGroups(TestCase):

    def build(self):
        command = Command("server", parser=DefaultParser(environ={}))
        command.add_flags(StringFlag("host"), StringFlag("port"))
        command.add_required_group("address", ["host", "port"])
        return command

    def testMissingMemberFails(self):
        command = self.build()
        with self.assertRaises(GroupUnsatisfiedError) as context:
            command.parse(["--host", "localhost"])
        self.assertEqual(context.exception.options["group"], "address")
        self.assertEqual(context.exception.options["flag"], "port")

    def testAllMembersSucceed(self):
        command = self.build()
        command.parse(["--host", "localhost", "--port", "8080"])
        self.assertTrue(command.parsed)

    def testRemovingTheGroupLiftsTheConstraint(self):
        command = self.build()
        command.remove_required_group("address")
        command.parse(["--host", "localhost"])
        self.assertTrue(command.parsed)
        self.assertIsNone(command.get_required_group("address"))

    def testMutexCheckedBeforeRequired(self):
        command = self.build()
        command.add_flags(BoolFlag("tls"), BoolFlag("plain"))
        command.add_mutex_group("transport", ["tls", "plain"])
        with self.assertRaises(MutexViolationError):
            command.parse(["--tls", "--plain"])


class TestGroupRegistration(TestCase):

    def testEmptyName(self):
        with self.assertRaises(EmptyGroupError):
            build().add_mutex_group("  ", ["format"])

    def testEmptyMembers(self):
        with self.assertRaises(EmptyGroupError):
            build().add_required_group("nothing", [])

    def testDuplicateName(self):
        command = build()
        command.add_mutex_group("destination", ["format", "output"])
        with self.assertRaises(GroupExistsError):
            command.add_mutex_group("destination", ["format"])
        command.add_required_group("destination", ["format"])

    def testUnknownMember(self):
        with self.assertRaises(FlagNotFoundError) as context:
            build().add_required_group("address", ["format", "nope"])
        self.assertEqual(context.exception.options["flag"], "nope")

    def testSnapshotInConfig(self):
        command = build()
        mutex = command.add_mutex_group("destination", ["format", "output"])
        required = command.add_required_group("needs", ["format"])
        config = command.config()
        self.assertEqual(config.mutex_groups, (mutex,))
        self.assertEqual(config.required_groups, (required,))


if __name__ == "__main__":
    unittest.main()
