#!/usr/bin/env python3
#
#   Derangement (de)serialization
#
#   The stored form is exactly the integer array returned by Derangement.map(),
#   with no extra framing. Loading re-validates it.
#

import json

import numpy as np

from libderange.derangement import Derangement

def dumps(d : Derangement) -> str:
    return json.dumps(d.to_list())

def loads(text : str) -> Derangement:
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError(f"expected a JSON array, got {type(data).__name__}")
    return Derangement.try_from(data)

def save(d : Derangement, path) -> None:
    np.save(path, d.map(), allow_pickle=False)

def load(path) -> Derangement:
    return Derangement.try_from(np.load(path, allow_pickle=False))

########################################################################################################################
#   Unit Tests
########################################################################################################################

import os
import random
import tempfile
import unittest

from libderange.errors import BadPermutation, FixedPoint

class TestSerialization(unittest.TestCase):

    def test_json(self):
        d = Derangement.random(random.Random(4), 12)
        self.assertEqual(dumps(Derangement.try_from([2, 3, 0, 1])), "[2, 3, 0, 1]")
        self.assertEqual(loads(dumps(d)), d)

    def test_json_revalidates(self):
        with self.assertRaises(FixedPoint):
            loads("[0, 3, 2, 1]")
        with self.assertRaises(BadPermutation):
            loads("[2, 7, 1, 0]")
        with self.assertRaises(ValueError):
            loads('{"map": [1, 0]}')
        with self.assertRaises(TypeError):
            loads('[1.5, 0]')

    def test_npy(self):
        d = Derangement.random(random.Random(8), 20)
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "d.npy")
            save(d, path)
            self.assertEqual(load(path), d)
            np.save(path, np.array([1, 0, 2]))
            with self.assertRaises(FixedPoint):
                load(path)
