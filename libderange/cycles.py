#!/usr/bin/env python3
#
#   Cycle decomposition and cyclic notation
#

from re import findall
from typing import List, Optional, Sequence, Tuple

from libderange.errors import BadPermutation

CYCLE_SEPARATOR = " "

def cycle_for(mapping : Sequence[int], start : int) -> Tuple[int, ...]:
    """
    Get the cycle for which element `start` is first
    """
    cyc = [start]
    k = int(mapping[start])
    while k != start:
        cyc.append(k)
        k = int(mapping[k])
    return tuple(cyc)

def cycles(mapping : Sequence[int]) -> List[Tuple[int, ...]]:
    """
    Decompose a bijection into its disjoint cycles.

    Each cycle starts at the smallest element not yet visited and lists the
    elements in traversal order, so the cycles come out sorted by their first
    element. Terminates for any bijection on [0, len(mapping)).
    """
    n = len(mapping)
    visited = [False] * n
    result = []
    for start in range(n):
        if visited[start]:
            continue
        cyc = cycle_for(mapping, start)
        for e in cyc:
            visited[e] = True
        result.append(cyc)
    return result

def format_cycles(cycs : Sequence[Sequence[int]], sep : str = CYCLE_SEPARATOR) -> str:
    return "".join("(" + sep.join(f"{e}" for e in cyc) + ")" for cyc in cycs)

def cycle_str(mapping : Sequence[int], sep : str = CYCLE_SEPARATOR) -> str:
    """
    Produces canonical cycle notation, e.g. (0 9 5 7)(1 6 3)(2 8 4)
    """
    return format_cycles(cycles(mapping), sep)

def parse_cycles(text : str, sep : str = CYCLE_SEPARATOR) -> List[Tuple[int, ...]]:
    """
    Read the cycles out of a cycle notation string. Anything outside the
    parentheses is ignored.
    """
    result = []
    for cycle_text in findall(r'\(([^)]*)\)', text):
        elems = [e for e in cycle_text.strip().split(sep) if e != ""]
        if len(elems) == 0:
            raise ValueError("empty cycle in cycle notation")
        result.append(tuple(int(e) for e in elems))
    return result

def cycles_to_map(cycs : Sequence[Sequence[int]], size : Optional[int] = None) -> List[int]:
    """
    Convert cycles into a 1:1 mapping list where position i holds the image of i.

    The map has `size` entries, or one per element given when `size` is None.
    Elements not mentioned by any cycle map to themselves. An element outside
    [0, size) or repeated across the cycles raises BadPermutation before
    anything is allocated.
    """
    elems = [e for cyc in cycs for e in cyc]
    n = len(elems) if size is None else size
    seen = set()
    for e in elems:
        if e < 0 or e >= n or e in seen:
            raise BadPermutation(e)
        seen.add(e)
    mapping = list(range(n))
    for cyc in cycs:
        for i, e in enumerate(cyc):
            mapping[e] = cyc[(i + 1) % len(cyc)]
    return mapping

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestCycles(unittest.TestCase):

    MAP = [9, 6, 8, 1, 2, 7, 3, 0, 4, 5]

    def test_cycle_for(self):
        self.assertEqual(cycle_for(self.MAP, 0), (0, 9, 5, 7))
        self.assertEqual(cycle_for(self.MAP, 6), (6, 3, 1))

    def test_cycles(self):
        self.assertEqual(cycles(self.MAP), [(0, 9, 5, 7), (1, 6, 3), (2, 8, 4)])
        self.assertEqual(cycles([1, 0]), [(0, 1)])
        self.assertEqual(cycles([]), [])

    def test_cycle_str(self):
        self.assertEqual(cycle_str(self.MAP), "(0 9 5 7)(1 6 3)(2 8 4)")
        self.assertEqual(cycle_str([1, 2, 0]), "(0 1 2)")
        self.assertEqual(cycle_str([1, 0, 3, 2]), "(0 1)(2 3)")
        self.assertEqual(cycle_str([1, 0], sep=","), "(0,1)")

    def test_parse(self):
        self.assertEqual(parse_cycles("(0 9 5 7)(1 6 3)(2 8 4)"), [(0, 9, 5, 7), (1, 6, 3), (2, 8, 4)])
        self.assertEqual(parse_cycles(" ( 1  0 ) x (2 3)"), [(1, 0), (2, 3)])
        self.assertEqual(parse_cycles(""), [])
        with self.assertRaises(ValueError):
            parse_cycles("(0 1)()")
        with self.assertRaises(ValueError):
            parse_cycles("(0 a)")

    def test_cycles_to_map(self):
        self.assertEqual(cycles_to_map([(0, 9, 5, 7), (1, 6, 3), (2, 8, 4)]), self.MAP)
        self.assertEqual(cycles_to_map([(0, 1)], size=4), [1, 0, 2, 3])
        self.assertEqual(cycles_to_map([]), [])
        with self.assertRaises(BadPermutation):
            cycles_to_map([(0, -1)])

    def test_cycles_to_map_out_of_range(self):
        with self.assertRaises(BadPermutation) as cm:
            cycles_to_map([(0, 20000000)])
        self.assertEqual(cm.exception.value, 20000000)
        with self.assertRaises(BadPermutation) as cm:
            cycles_to_map([(0, 1000000000000000)])
        self.assertEqual(cm.exception.value, 1000000000000000)
        with self.assertRaises(BadPermutation) as cm:
            cycles_to_map([(0, 4)], size=4)
        self.assertEqual(cm.exception.value, 4)

    def test_cycles_to_map_repeated(self):
        with self.assertRaises(BadPermutation) as cm:
            cycles_to_map([(0, 1), (1, 0)])
        self.assertEqual(cm.exception.value, 1)
        with self.assertRaises(BadPermutation) as cm:
            cycles_to_map([(0, 1, 0)])
        self.assertEqual(cm.exception.value, 0)
