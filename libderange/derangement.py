#!/usr/bin/env python3
#
#   Derangement implementation
#

import logging
import random
from copy import deepcopy
from typing import List, Optional, Sequence, Union

import numpy as np

from libderange.cycles import cycle_str, cycles, cycles_to_map, parse_cycles
from libderange.errors import BadPermutation, DerangementError, FixedPoint, SizeMismatch

logger = logging.getLogger(__name__)

# No derangement of order 0 or 1 exists
MIN_ORDER = 2

Rng = Union[random.Random, np.random.Generator]

def _rand_between(rng : Rng, low : int, high : int) -> int:
    """
    Uniform integer in [low, high] (inclusive)
    """
    if isinstance(rng, np.random.Generator):
        return int(rng.integers(low, high, endpoint=True))
    return rng.randint(low, high)

def _is_int(x):
    return isinstance(x, (int, np.integer)) and not isinstance(x, (bool, np.bool_))

def validate(data) -> np.ndarray:
    """
    Check that `data` is a permutation of [0, n) without fixed points.

    The data is copied and sorted, then the sorted copy and the original are
    walked in lockstep. At each index the permutation check comes before the
    fixed point check, so the first problem found left to right wins.

    Returns a read-only copy of the original (unsorted) data.
    """
    arr = np.array(data)
    if arr.ndim != 1:
        raise ValueError(f"derangement data must be one-dimensional, got shape {arr.shape}")
    if arr.size != 0 and not np.issubdtype(arr.dtype, np.integer):
        raise TypeError(f"derangement data must be integers, got {arr.dtype}")

    srt = np.sort(arr)
    for i in range(len(arr)):
        if srt[i] != i:
            raise BadPermutation(int(srt[i]))
        if arr[i] == i:
            raise FixedPoint(i)

    if len(arr) < MIN_ORDER:
        raise ValueError(f"a derangement needs at least {MIN_ORDER} elements, got {len(arr)}")

    arr = arr.astype(np.intp)
    arr.setflags(write=False)
    return arr

class Derangement:
    """
    A permutation of [0, n) with no fixed points.

    Instances are immutable: the mapping is a read-only numpy array where
    position i holds the image of i.
    """

    def __init__(self, mapping):
        self._map = validate(mapping)

    @classmethod
    def _wrap(cls, arr : np.ndarray) -> "Derangement":
        # arr must already satisfy the invariants
        d = cls.__new__(cls)
        arr.setflags(write=False)
        d._map = arr
        return d

    @classmethod
    def random(cls, rng : Rng, size : int) -> "Derangement":
        """
        Generate a random derangement with an order of `size`.

        A shuffled permutation is cut into consecutive partitions of size at
        least 2 and every partition becomes one cycle. A partition size of
        remaining - 1 would leave a single element behind, so it is bumped up to
        take everything that remains.
        """
        if not _is_int(size):
            raise TypeError(f"size must be int, got {type(size).__name__}")
        if size < MIN_ORDER:
            raise ValueError(f"a derangement needs at least {MIN_ORDER} elements, got {size}")

        permutation = list(range(size))
        derangement = np.zeros(size, dtype=np.intp)

        rng.shuffle(permutation)

        sizes = []
        pos = 0
        while pos < size:
            remaining = size - pos

            if remaining == 2:
                partition_size = 2
            else:
                partition_size = _rand_between(rng, 2, remaining - 1)

            if partition_size == remaining - 1:
                partition_size = remaining

            partition = permutation[pos:pos + partition_size]
            for i, element in enumerate(partition):
                derangement[element] = partition[(i + 1) % partition_size]

            sizes.append(partition_size)
            pos += partition_size

        logger.debug("generated derangement of order %d with partitions %s", size, sizes)
        return cls._wrap(derangement)

    @classmethod
    def try_from(cls, data) -> "Derangement":
        """
        Interpret an integer sequence as a derangement.

        Raises BadPermutation if `data` is not a permutation of [0, len(data)),
        FixedPoint if some index maps to itself.
        """
        try:
            return cls(data)
        except DerangementError as e:
            logger.debug("rejected derangement data: %s", e)
            raise

    from_list = try_from

    @classmethod
    def from_cycles(cls, cycs : Sequence[Sequence[int]]) -> "Derangement":
        """
        Build a derangement from disjoint cycles covering [0, n).

        Elements out of range or repeated across cycles raise BadPermutation.
        """
        return cls.try_from(cycles_to_map(cycs))

    @classmethod
    def parse(cls, text : str) -> "Derangement":
        """
        Read cyclic notation as produced by str()
        """
        return cls.from_cycles(parse_cycles(text))

    def get(self, i : int) -> Optional[int]:
        """
        Return the value that `i` maps to, or None if `i` is out of range
        """
        if _is_int(i) and 0 <= i < len(self._map):
            return int(self._map[i])
        return None

    def __getitem__(self, i : int) -> int:
        v = self.get(i)
        if v is None:
            raise IndexError(f"index {i} out of range for derangement of order {len(self)}")
        return v

    def inverse(self) -> "Derangement":
        """
        Get the inverse of this derangement, which is itself also a derangement
        """
        inv = np.empty_like(self._map)
        inv[self._map] = np.arange(len(self._map), dtype=np.intp)
        return Derangement._wrap(inv)

    def map(self) -> np.ndarray:
        """
        The underlying map as a read-only array, position n holds the image of n
        """
        return self._map.view()

    def apply(self, source : Sequence, destination) -> None:
        """
        Write source[map[i]] into destination[i] for every i, copying each element.

        Both sequences must have the same length as the derangement, otherwise
        SizeMismatch is raised and destination is left as it was.
        """
        n = len(self._map)
        if len(source) != n or len(destination) != n:
            raise SizeMismatch(len(source), len(destination), n)
        values = [deepcopy(source[j]) for j in self._map]
        for i, v in enumerate(values):
            destination[i] = v

    def permute(self, source : Sequence) -> list:
        """
        Return a new list holding source[map[i]] at position i
        """
        result = [None] * len(self._map)
        self.apply(source, result)
        return result

    def __call__(self, source : Sequence) -> list:
        return self.permute(source)

    def cycles(self):
        """
        Get all cycles, each starting at its smallest element
        """
        return cycles(self._map)

    def to_list(self) -> List[int]:
        return [int(v) for v in self._map]

    def copy(self) -> "Derangement":
        return Derangement._wrap(self._map.copy())

    def __len__(self):
        return len(self._map)

    def __iter__(self):
        for v in self._map:
            yield int(v)

    def __eq__(self, other):
        if not isinstance(other, Derangement):
            return NotImplemented
        return bool(np.array_equal(self._map, other._map))

    def __hash__(self):
        return hash(tuple(self.to_list()))

    def __str__(self):
        return cycle_str(self._map)

    def __repr__(self):
        return f"Derangement({self.to_list()})"

########################################################################################################################
#   Unit Tests
########################################################################################################################

import unittest

class TestGeneration(unittest.TestCase):

    def check_invariants(self, d, n):
        m = d.to_list()
        self.assertEqual(len(m), n)
        self.assertEqual(sorted(m), list(range(n)))
        for i in range(n):
            self.assertNotEqual(m[i], i)

    def test_invariants(self):
        for seed in range(20):
            rng = random.Random(seed)
            for n in range(2, 40):
                self.check_invariants(Derangement.random(rng, n), n)

    def test_invariants_numpy(self):
        rng = np.random.default_rng(7)
        for n in range(2, 40):
            self.check_invariants(Derangement.random(rng, n), n)

    def test_small_orders(self):
        # only one derangement of order 2, and order 3 is always a single 3-cycle
        for seed in range(10):
            self.assertEqual(Derangement.random(random.Random(seed), 2).to_list(), [1, 0])
            d = Derangement.random(random.Random(seed), 3)
            self.assertIn(d.to_list(), ([1, 2, 0], [2, 0, 1]))
            self.assertEqual(len(d.cycles()), 1)

    def test_cycle_lengths(self):
        rng = random.Random(3)
        for _ in range(50):
            d = Derangement.random(rng, 17)
            for cyc in d.cycles():
                self.assertGreaterEqual(len(cyc), 2)

    def test_deterministic(self):
        for seed in (0, 1, 2, 3):
            a = Derangement.random(random.Random(seed), 16)
            b = Derangement.random(random.Random(seed), 16)
            self.assertEqual(a.to_list(), b.to_list())
            a = Derangement.random(np.random.default_rng(seed), 16)
            b = Derangement.random(np.random.default_rng(seed), 16)
            self.assertEqual(a.to_list(), b.to_list())

    def test_fixed_seed_random(self):
        self.assertEqual(Derangement.random(random.Random(0), 5).to_list(), [4, 0, 1, 2, 3])
        self.assertEqual(Derangement.random(random.Random(1), 16).to_list(),
                         [14, 12, 10, 8, 15, 3, 5, 11, 7, 4, 2, 0, 13, 9, 6, 1])
        self.assertEqual(Derangement.random(random.Random(3), 10).to_list(), [9, 5, 8, 1, 7, 6, 0, 2, 3, 4])

    def test_fixed_seed_numpy(self):
        self.assertEqual(Derangement.random(np.random.default_rng(0), 5).to_list(), [1, 3, 4, 0, 2])
        self.assertEqual(Derangement.random(np.random.default_rng(1), 16).to_list(),
                         [1, 12, 9, 15, 5, 8, 3, 10, 0, 2, 14, 13, 7, 11, 4, 6])
        self.assertEqual(Derangement.random(np.random.default_rng(2), 10).to_list(), [7, 2, 0, 4, 8, 3, 9, 6, 1, 5])

    def test_bad_order(self):
        for n in (0, 1, -3):
            with self.assertRaises(ValueError):
                Derangement.random(random.Random(0), n)
        with self.assertRaises(TypeError):
            Derangement.random(random.Random(0), 4.0)

class TestAccess(unittest.TestCase):

    def setUp(self):
        self.d = Derangement.try_from([2, 0, 1, 4, 3])

    def test_get(self):
        result = [2, 0, 1, 4, 3]
        for i in range(5):
            self.assertEqual(self.d.get(i), result[i])
            self.assertEqual(self.d[i], result[i])
        self.assertIsNone(self.d.get(5))
        self.assertIsNone(self.d.get(-1))

    def test_index_out_of_range(self):
        with self.assertRaises(IndexError):
            self.d[5]
        with self.assertRaises(IndexError):
            self.d[-1]

    def test_map_read_only(self):
        m = self.d.map()
        self.assertEqual(list(m), [2, 0, 1, 4, 3])
        with self.assertRaises(ValueError):
            m[0] = 1
        with self.assertRaises(ValueError):
            m.setflags(write=True)
        self.assertEqual(self.d[0], 2)
        self.assertEqual(self.d.to_list(), [2, 0, 1, 4, 3])

    def test_inverse(self):
        d = Derangement.random(random.Random(3), 10)
        inverse = d.inverse()
        for i in range(10):
            self.assertEqual(d[inverse[i]], i)
            self.assertEqual(inverse[d[i]], i)
        self.assertEqual(self.d.inverse().to_list(), [1, 2, 0, 4, 3])
        self.assertEqual(self.d.inverse().inverse(), self.d)

    def test_value_semantics(self):
        c = self.d.copy()
        self.assertEqual(c, self.d)
        self.assertIsNot(c.map(), self.d.map())
        self.assertEqual(hash(c), hash(self.d))
        self.assertNotEqual(self.d, self.d.inverse())
        self.assertEqual(len(self.d), 5)
        self.assertEqual(list(self.d), [2, 0, 1, 4, 3])
        self.assertEqual(repr(self.d), "Derangement([2, 0, 1, 4, 3])")

class TestApply(unittest.TestCase):

    def test_apply(self):
        d = Derangement.random(random.Random(11), 8)
        source = [f"item{i}" for i in range(8)]
        dest = [None] * 8
        d.apply(source, dest)
        for i in range(8):
            self.assertEqual(dest[i], source[d[i]])
            self.assertNotEqual(dest[i], source[i])
        self.assertEqual(source, [f"item{i}" for i in range(8)])

    def test_apply_copies(self):
        d = Derangement.try_from([1, 0])
        source = [[0], [1]]
        dest = [None, None]
        d.apply(source, dest)
        self.assertEqual(dest, [[1], [0]])
        self.assertIsNot(dest[0], source[1])

    def test_apply_numpy(self):
        d = Derangement.try_from([2, 3, 0, 1])
        dest = np.zeros(4)
        d.apply(np.arange(4) * 10.0, dest)
        self.assertEqual(list(dest), [20.0, 30.0, 0.0, 10.0])

    def test_size_mismatch(self):
        d = Derangement.try_from([2, 3, 0, 1])
        dest = ["x"] * 3
        with self.assertRaises(SizeMismatch) as cm:
            d.apply(["a", "b", "c", "d"], dest)
        self.assertEqual(cm.exception, SizeMismatch(4, 3, 4))
        self.assertEqual(dest, ["x"] * 3)

        dest = ["x"] * 4
        with self.assertRaises(SizeMismatch) as cm:
            d.apply(["a", "b"], dest)
        self.assertEqual((cm.exception.source_len, cm.exception.dest_len, cm.exception.order), (2, 4, 4))
        self.assertEqual(dest, ["x"] * 4)

    def test_permute(self):
        d = Derangement.try_from([2, 3, 0, 1])
        self.assertEqual(d.permute("abcd"), ["c", "d", "a", "b"])
        self.assertEqual(d("abcd"), ["c", "d", "a", "b"])
        with self.assertRaises(SizeMismatch) as cm:
            d.permute("abc")
        self.assertEqual(cm.exception, SizeMismatch(3, 4, 4))

    def test_apply_in_place(self):
        d = Derangement.try_from([2, 3, 0, 1])
        items = ["a", "b", "c", "d"]
        d.apply(items, items)
        self.assertEqual(items, ["c", "d", "a", "b"])

class TestTryFrom(unittest.TestCase):

    def test_fixed_point(self):
        with self.assertRaises(FixedPoint) as cm:
            Derangement.try_from([0, 3, 2, 1])
        self.assertEqual(cm.exception.index, 0)

    def test_bad_permutation(self):
        with self.assertRaises(BadPermutation) as cm:
            Derangement.try_from([2, 7, 1, 0])
        self.assertEqual(cm.exception.value, 7)
        with self.assertRaises(BadPermutation) as cm:
            Derangement.try_from([2, 0, 0])
        self.assertEqual(cm.exception.value, 0)
        with self.assertRaises(BadPermutation) as cm:
            Derangement.try_from([-1, 0])
        self.assertEqual(cm.exception.value, -1)

    def test_precedence(self):
        # sorted [0, 1, 1, 3]: index 1 is a fixed point before the duplicate at index 2 is seen
        self.assertEqual(self.raised([3, 1, 0, 1]), FixedPoint(1))
        # sorted [0, 2, 2, 3]: the bad value at index 1 wins over the fixed point at index 2
        self.assertEqual(self.raised([3, 2, 2, 0]), BadPermutation(2))

    def raised(self, data):
        try:
            Derangement.try_from(data)
        except DerangementError as e:
            return e
        self.fail()

    def test_success(self):
        d = Derangement.try_from([2, 3, 0, 1])
        self.assertEqual(list(d.map()), [2, 3, 0, 1])
        self.assertEqual(Derangement.try_from(np.array([1, 0])).to_list(), [1, 0])
        self.assertEqual(Derangement.try_from((1, 2, 0)).to_list(), [1, 2, 0])

    def test_caller_data_not_shared(self):
        data = [2, 3, 0, 1]
        d = Derangement.try_from(data)
        data[0] = 9
        self.assertEqual(d[0], 2)

    def test_bad_input(self):
        with self.assertRaises(ValueError):
            Derangement.try_from([])
        with self.assertRaises(FixedPoint):
            Derangement.try_from([0])
        with self.assertRaises(TypeError):
            Derangement.try_from([1.0, 0.0])
        with self.assertRaises(ValueError):
            Derangement.try_from([[1, 0], [0, 1]])

class TestDisplay(unittest.TestCase):

    def test_str(self):
        d = Derangement.try_from([9, 6, 8, 1, 2, 7, 3, 0, 4, 5])
        self.assertEqual(str(d), "(0 9 5 7)(1 6 3)(2 8 4)")
        self.assertEqual(d.cycles(), [(0, 9, 5, 7), (1, 6, 3), (2, 8, 4)])
        self.assertEqual(str(Derangement.try_from([1, 0])), "(0 1)")

    def test_from_cycles(self):
        d = Derangement.from_cycles([(0, 9, 5, 7), (1, 6, 3), (2, 8, 4)])
        self.assertEqual(d.to_list(), [9, 6, 8, 1, 2, 7, 3, 0, 4, 5])
        # cycles need not start at their smallest element
        self.assertEqual(Derangement.from_cycles([(3, 2), (1, 0)]).to_list(), [1, 0, 3, 2])
        with self.assertRaises(BadPermutation) as cm:
            Derangement.from_cycles([(1, 2)])
        self.assertEqual(cm.exception.value, 2)
        with self.assertRaises(BadPermutation) as cm:
            Derangement.from_cycles([(0, 1), (1, 0)])
        self.assertEqual(cm.exception.value, 1)
        with self.assertRaises(FixedPoint):
            Derangement.from_cycles([(0, 1), (2,)])

    def test_parse(self):
        rng = random.Random(5)
        for n in range(2, 30):
            d = Derangement.random(rng, n)
            self.assertEqual(Derangement.parse(str(d)), d)
        self.assertEqual(Derangement.parse("(1 0)(2 3)").to_list(), [1, 0, 3, 2])
        with self.assertRaises(BadPermutation) as cm:
            Derangement.parse("(0 20000000)")
        self.assertEqual(cm.exception.value, 20000000)
        with self.assertRaises(BadPermutation) as cm:
            Derangement.parse("(0 1)(1 0)(0 1)")
        self.assertEqual(cm.exception.value, 1)
