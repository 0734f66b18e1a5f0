"""
Tests for the utility layer and the reader/writer lock.

This module verifies:
- The Unset sentinel (singleton identity, falsy semantics, finality).
- coalesce/rename/mirror helpers.
- Environment and flag name derivation, size formatting.
- ReadWriteLock re-entrancy and writer exclusion.
"""
import copy
import threading
import time
import unittest
from unittest import TestCase

from flagtree.internals import ReadWriteLock
from flagtree.utils import *


class UnsetTest(TestCase):
    """
    The sentinel must behave as a unique, falsy, non-subclassable marker.
    """

    def testSingletonIdentity(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testFalsyButDistinct(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionChecks(self):
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("x", str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testCannotBeSubclassed(self):
        with self.assertRaises(TypeError):
            class Derived(UnsetType):  # NOQA: F-841
                pass


class HelpersTest(TestCase):

    def testCoalesceKeepsFalsyValues(self):
        self.assertEqual(coalesce(Unset, "yaml"), "yaml")
        self.assertEqual(coalesce("", "yaml"), "")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameForms(self):
        def function():
            pass

        self.assertIs(rename(function, "other"), function)
        self.assertEqual(function.__name__, "other")

        @rename("decorated")
        def another():
            pass

        self.assertEqual(another.__qualname__, "decorated")
        with self.assertRaises(TypeError):
            rename()

    def testMirrorReturnsCopies(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = [1, [2]]

        holder = Holder()
        holder.items.append(3)
        holder.items[1].append(4)
        self.assertEqual(holder.items, [1, [2]])
        with self.assertRaises(AttributeError):
            holder.items = []

    def testEnvname(self):
        self.assertEqual(envname("sub-option"), "SUB_OPTION")
        self.assertEqual(envname("dry.run", "APP_"), "APP_DRY_RUN")
        self.assertEqual(envname("log--level"), "LOG_LEVEL")

    def testFlagSpellings(self):
        self.assertEqual(flagname("output", "o"), "-o, --output")
        self.assertEqual(flagname("output", ""), "--output")
        self.assertEqual(displayname("output", "o"), "--output/-o")
        self.assertEqual(displayname("", "o"), "-o")

    def testFormatSize(self):
        self.assertEqual(format_size(999), "999B")
        self.assertEqual(format_size(1500), "1.50KB")
        self.assertEqual(format_size(2 * GB), "2.00GB")
        self.assertEqual(format_size(-5), "0B")
        self.assertEqual(KIB, 1024)


class ReadWriteLockTest(TestCase):

    def testWriterIsReentrant(self):
        lock = ReadWriteLock()
        with lock.writing():
            with lock.writing():
                self.assertTrue(lock.locked)
            self.assertTrue(lock.locked)
        self.assertFalse(lock.locked)

    def testReaderInsideWriterPassesThrough(self):
        lock = ReadWriteLock()
        with lock.writing():
            with lock.reading():
                self.assertTrue(lock.locked)

    def testWriterExcludesOtherThreads(self):
        lock = ReadWriteLock()
        events = []

        def reader():
            with lock.reading():
                events.append("read")

        with lock.writing():
            thread = threading.Thread(target=reader)
            thread.start()
            time.sleep(0.05)
            events.append("write")
        thread.join(timeout=5)
        self.assertEqual(events, ["write", "read"])

    def testConcurrentReaders(self):
        lock = ReadWriteLock()
        inside = threading.Barrier(2, timeout=5)

        def reader():
            with lock.reading():
                inside.wait()

        threads = [threading.Thread(target=reader) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)
        self.assertFalse(inside.broken)


if __name__ == "__main__":
    unittest.main()
