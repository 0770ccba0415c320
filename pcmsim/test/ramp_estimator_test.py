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

"""Tests for ramp_estimator."""

import unittest

from pcmsim.ramp_estimator import estimate_ramp30
from pcmsim.ramp_estimator import ramp_fraction
from pcmsim.ramp_estimator import RAMP30_POINTS

import numpy as np
import numpy.testing as npt


class EstimateRamp30Test(unittest.TestCase):

  def testCoal(self):
    gen_pmax = [200.0, 1400.0, 800.0, 100.0, 2000.0]
    ramp30 = estimate_ramp30(['coal'] * 5, gen_pmax)
    npt.assert_almost_equal(ramp30, [80.0, 210.0, 220.0, 40.0, 300.0])

  def testGasAndOil(self):
    ramp30 = estimate_ramp30(['ng', 'ng', 'dfo', 'dfo'],
                             [400.0, 1000.0, 700.0, 100.0])
    npt.assert_almost_equal(ramp30, [140.0, 200.0, 245.0, 50.0])

  def testOtherFuelsUnlimited(self):
    ramp30 = estimate_ramp30(['nuclear', 'hydro', 'wind', 'solar', 'biomass'],
                             [1000.0, 50.0, 200.0, 100.0, 30.0])
    self.assertTrue(np.isinf(ramp30).all())

  def testCustomPoints(self):
    ramp30 = estimate_ramp30(['nuclear', 'coal'], [1000.0, 1000.0],
                             points={'nuclear': ((0.0, 1.0), (0.1, 0.1))})
    npt.assert_almost_equal(ramp30, [100.0, np.inf])

  def testRampFractionClamps(self):
    points = RAMP30_POINTS['coal']
    npt.assert_almost_equal(ramp_fraction([0.0, 200.0, 1400.0, 1e6], points),
                            [0.4, 0.4, 0.15, 0.15])


if __name__ == '__main__':
  unittest.main()
