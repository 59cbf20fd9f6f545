#!/usr/bin/env python3
#
#   Derangement errors
#

class DerangementError(Exception):
    """
    Base class for everything the library raises on bad derangement data
    """

    def __eq__(self, other):
        return type(self) is type(other) and self.args == other.args

    def __hash__(self):
        return hash((type(self), self.args))

class SizeMismatch(DerangementError, ValueError):
    def __init__(self, source_len : int, dest_len : int, order : int):
        super().__init__(source_len, dest_len, order)
        self.source_len = source_len
        self.dest_len = dest_len
        self.order = order

    def __str__(self):
        return (f"source length {self.source_len} and destination length {self.dest_len} "
                f"must both equal the derangement order {self.order}")

class BadPermutation(DerangementError, ValueError):
    def __init__(self, value : int):
        super().__init__(value)
        # first value found out of place after sorting
        self.value = value

    def __str__(self):
        return f"not a permutation: unexpected value {self.value}"

class FixedPoint(DerangementError, ValueError):
    def __init__(self, index : int):
        super().__init__(index)
        self.index = index

    def __str__(self):
        return f"{self.index} maps to itself"

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestErrors(unittest.TestCase):

    def test_payloads(self):
        e = SizeMismatch(3, 4, 5)
        self.assertEqual((e.source_len, e.dest_len, e.order), (3, 4, 5))
        self.assertEqual(BadPermutation(7).value, 7)
        self.assertEqual(FixedPoint(0).index, 0)

    def test_equality(self):
        self.assertEqual(FixedPoint(2), FixedPoint(2))
        self.assertNotEqual(FixedPoint(2), FixedPoint(3))
        self.assertNotEqual(FixedPoint(2), BadPermutation(2))
        self.assertEqual(len({BadPermutation(1), BadPermutation(1)}), 1)

    def test_hierarchy(self):
        for e in (SizeMismatch(1, 2, 3), BadPermutation(1), FixedPoint(1)):
            self.assertIsInstance(e, DerangementError)
            self.assertIsInstance(e, ValueError)

    def test_messages(self):
        self.assertEqual(str(FixedPoint(4)), "4 maps to itself")
        self.assertIn("7", str(BadPermutation(7)))
        self.assertIn("order 5", str(SizeMismatch(3, 4, 5)))
