# Copyright 2017 Google Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Tests for results."""

import unittest

from pcmsim.errors import ResultShapeError
from pcmsim.linear_program import build_model
from pcmsim.linear_program import SolverSession
from pcmsim.results import get_2d_constraint_duals
from pcmsim.results import get_2d_variable_values
from pcmsim.results import get_results
from pcmsim.simulation import preprocess_case
from pcmsim.test.example_cases import NG_GENCOST
from pcmsim.test.example_cases import profile
from pcmsim.test.example_cases import two_bus_case

import numpy as np
import numpy.testing as npt


class ExtractorTest(unittest.TestCase):

  def setUp(self):
    self.session = SolverSession()
    # Gas at bus 1, wind at bus 2, two hours.
    self.case = preprocess_case(two_bus_case(
        num_hours=2,
        genid=[10, 11],
        genfuel=['ng', 'wind'],
        gen_bus=[1, 2],
        gen_pmax=[100.0, 100.0],
        gen_pmin=[0.0, 0.0],
        gen_ramp30=[np.inf, np.inf],
        gencost=[NG_GENCOST, [2, 0, 0, 3, 0, 0, 0]],
        wind=profile(2, {11: [10.0, 30.0]})))
    self.model = build_model(self.case, 1, 2, self.session)

  def tearDown(self):
    self.session.close()

  def testUnsolvedModelRejected(self):
    with self.assertRaises(ResultShapeError):
      get_2d_variable_values(self.model, 'pg')

    with self.assertRaises(ResultShapeError):
      get_results(self.model)

  def testUnknownGroup(self):
    self.model.solve()

    with self.assertRaises(ResultShapeError):
      get_2d_variable_values(self.model, 'powerbalance')

    with self.assertRaises(ResultShapeError):
      get_2d_constraint_duals(self.model, 'pg')

  def testPartialGroupScattered(self):
    """Entities outside a group read as 0."""

    self.model.solve()

    pg = get_2d_variable_values(self.model, 'pg')
    npt.assert_almost_equal(pg, [[30.0, 10.0], [10.0, 30.0]])

    # Wind has no gen_max constraint and gas isn't at its limit.
    gen_max = get_2d_constraint_duals(self.model, 'gen_max')
    self.assertEqual(gen_max.shape, (2, 2))
    npt.assert_almost_equal(gen_max, np.zeros((2, 2)))

    # The cheap wind is fully used, so its cap is worth the gas price.
    wind_max = get_2d_constraint_duals(self.model, 'wind_max')
    npt.assert_almost_equal(wind_max, [[0.0, 0.0], [-6.0, -6.0]])

  def testInconsistentHandles(self):
    self.model.solve()
    group = self.model.variables['pg']
    group.entity_index = group.entity_index[:1]

    with self.assertRaises(ResultShapeError):
      get_2d_variable_values(self.model, 'pg')

  def testEntityIndexOutOfRange(self):
    self.model.solve()
    self.model.constraints['wind_max'].entity_index[:] = 5

    with self.assertRaises(ResultShapeError):
      get_2d_constraint_duals(self.model, 'wind_max')

  def testResults(self):
    self.model.solve()
    results = get_results(self.model)

    self.assertEqual(results.pg.shape, (2, 2))
    self.assertEqual(results.pf.shape, (1, 2))
    self.assertEqual(results.lmp.shape, (2, 2))
    self.assertEqual(results.congl.shape, (1, 2))
    self.assertEqual(results.congu.shape, (1, 2))
    npt.assert_almost_equal(results.pf, [[30.0, 10.0]])
    self.assertAlmostEqual(results.f, 6.0 * 40.0)
    self.assertFalse(np.signbit(results.congu).any())


if __name__ == '__main__':
  unittest.main()
