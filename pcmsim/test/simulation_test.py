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

"""Tests for simulation."""

import os
import shutil
import tempfile
import unittest

from pcmsim.cost_linearizer import FixedCost
from pcmsim.cost_linearizer import PiecewiseCost
from pcmsim.errors import SolverFailure
from pcmsim.linear_program import SolverSession
from pcmsim.simulation import preprocess_case
from pcmsim.simulation import run_scenario
from pcmsim.simulation import simulate
from pcmsim.simulation import solve_interval
from pcmsim.simulation_example import three_bus_case
from pcmsim.test.example_cases import NG_GENCOST
from pcmsim.test.example_cases import two_bus_case
from pcmsim.test.example_cases import write_input_folder

import numpy as np
import numpy.testing as npt
import scipy.io


EXPENSIVE_GENCOST = [2, 0, 0, 3, 0.0, 20.0, 0.0]


def ramp_limited_case(demand):
  """Cheap gas limited to 10 MW per 30 minutes plus expensive backup."""

  case = preprocess_case(two_bus_case(
      num_hours=len(demand),
      demand=demand,
      genid=[10, 11],
      genfuel=['ng', 'ng'],
      gen_bus=[1, 1],
      gen_pmax=[100.0, 100.0],
      gen_pmin=[0.0, 0.0],
      gen_ramp30=[np.inf, np.inf],
      gencost=[NG_GENCOST, EXPENSIVE_GENCOST]))
  return case.replace(gen_ramp30=[10.0, np.inf])


class PreprocessCaseTest(unittest.TestCase):

  def setUp(self):
    self.case = two_bus_case(
        genid=[10, 11, 12],
        genfuel=['coal', 'nuclear', 'ng'],
        gen_bus=[1, 1, 1],
        gen_pmax=[800.0, 1000.0, 400.0],
        gen_pmin=[200.0, 100.0, 100.0],
        gen_ramp30=[1.0, 1.0, 1.0],
        gencost=[[2, 0, 0, 3, 0.001, 20.0, 100.0],
                 [2, 0, 0, 3, 0.0, 5.0, 0.0],
                 NG_GENCOST])

  def testPreprocess(self):
    case = preprocess_case(self.case)

    npt.assert_almost_equal(case.gen_pmin, [200.0, 950.0, 0.0])
    npt.assert_almost_equal(case.gen_ramp30, [220.0, np.inf, 140.0])
    npt.assert_array_equal(case.gencost_orig, self.case.gencost)
    npt.assert_array_equal(case.gencost[:, 0], [1, 1, 1])

    self.assertEqual(len(case.cost_curves), 3)
    for curve in case.cost_curves:
      self.assertIsInstance(curve, PiecewiseCost)
    npt.assert_almost_equal(case.cost_curves[1].power, [950.0, 1000.0])

  def testOriginalUnchanged(self):
    preprocess_case(self.case)

    npt.assert_almost_equal(self.case.gen_pmin, [200.0, 100.0, 100.0])
    npt.assert_almost_equal(self.case.gen_ramp30, [1.0, 1.0, 1.0])
    self.assertIsNone(self.case.cost_curves)
    self.assertIsNone(self.case.gencost_orig)

  def testFixedCost(self):
    case = preprocess_case(self.case.replace(gen_pmin=[800.0, 0.0, 0.0]))
    self.assertIsInstance(case.cost_curves[0], FixedCost)
    self.assertEqual(case.gencost[0, 0], 2)

  def testSegments(self):
    case = preprocess_case(self.case, num_segments=3)
    for curve in case.cost_curves:
      self.assertEqual(curve.num_segments, 3)


class SimulateTest(unittest.TestCase):

  def setUp(self):
    self.session = SolverSession()

  def tearDown(self):
    self.session.close()

  def testSolveIntervalReturnsFinalDispatch(self):
    case = ramp_limited_case([20.0, 60.0])
    results, pg_final = solve_interval(case, 1, 2, self.session)

    npt.assert_almost_equal(results.pg, [[20.0, 40.0], [0.0, 20.0]])
    npt.assert_almost_equal(pg_final, [40.0, 20.0])

  def testRampContinuityAcrossIntervals(self):
    case = ramp_limited_case([20.0, 20.0, 100.0, 100.0])
    all_results = simulate(case, 2, 2, 1, self.session)

    self.assertEqual(len(all_results), 2)
    first, second = all_results
    npt.assert_almost_equal(first.pg, [[20.0, 20.0], [0.0, 0.0]])

    # The first hour of the second interval ramps from the last hour of
    # the first.
    ramp_limited = np.isfinite(case.gen_ramp30)
    step = np.abs(second.pg[:, 0] - first.pg[:, -1])
    self.assertTrue(
        (step[ramp_limited] <= 2 * case.gen_ramp30[ramp_limited] + 1e-6).all())
    npt.assert_almost_equal(second.pg, [[40.0, 60.0], [60.0, 40.0]])

  def testResultHandler(self):
    case = preprocess_case(two_bus_case(num_hours=6))
    handled = []

    simulate(case, 2, 3, 1, self.session,
             result_handler=lambda i, results: handled.append((i, results.f)))

    self.assertEqual([i for i, _ in handled], [0, 1, 2])
    for _, f in handled:
      self.assertAlmostEqual(f, 2 * 240.0)

  def testFailureStopsSimulation(self):
    case = preprocess_case(two_bus_case(num_hours=4,
                                        demand=[40.0, 40.0, 150.0, 150.0]))
    handled = []

    with self.assertRaises(SolverFailure):
      simulate(case, 2, 2, 1, self.session,
               result_handler=lambda i, results: handled.append(i))
    self.assertEqual(handled, [0])

  def testLoadShedPassedThrough(self):
    case = preprocess_case(two_bus_case(num_hours=2, demand=150.0))
    all_results = simulate(case, 1, 2, 1, self.session,
                           load_shed_enabled=True)
    for results in all_results:
      self.assertAlmostEqual(results.lmp[1, 0], 9000.0)

  def testThreeBusExample(self):
    case = preprocess_case(three_bus_case(48))
    all_results = simulate(case, 24, 2, 1, self.session)

    for results in all_results:
      self.assertEqual(results.pg.shape, (4, 24))
      self.assertEqual(results.pf.shape, (3, 24))
      # Hydro follows its profile.
      npt.assert_almost_equal(results.pg[3], 30.0 * np.ones(24))
      self.assertTrue((results.congu >= -1e-6).all())
      self.assertTrue((results.congl >= -1e-6).all())


class RunScenarioTest(unittest.TestCase):

  def setUp(self):
    self.inputfolder = tempfile.mkdtemp()
    self.outputfolder = os.path.join(self.inputfolder, 'out')
    write_input_folder(self.inputfolder,
                       two_bus_case(num_hours=4, branch_rating=[50.0]))

  def tearDown(self):
    shutil.rmtree(self.inputfolder)

  def testRunScenario(self):
    all_results = run_scenario(2, 2, 1, self.inputfolder, self.outputfolder)

    self.assertEqual(len(all_results), 2)
    self.assertEqual(sorted(os.listdir(self.outputfolder)),
                     ['input.mat', 'result_0.mat', 'result_1.mat'])

    mdo_save = scipy.io.loadmat(
        os.path.join(self.outputfolder, 'result_1.mat'),
        squeeze_me=True, struct_as_record=False)['mdo_save']
    self.assertAlmostEqual(mdo_save.results.f, 2 * 240.0)
    self.assertEqual(mdo_save.demand_scaling, 1.0)
    npt.assert_almost_equal(mdo_save.flow.mpc.gen.PG, [40.0, 40.0])
    npt.assert_almost_equal(mdo_save.flow.mpc.branch.PF, [40.0, 40.0])
    npt.assert_almost_equal(mdo_save.flow.mpc.bus.LAM_P,
                            6.0 * np.ones((2, 2)))

  def testInputMat(self):
    run_scenario(1, 1, 1, self.inputfolder, self.outputfolder)

    mpc = scipy.io.loadmat(os.path.join(self.outputfolder, 'input.mat'),
                           squeeze_me=True, struct_as_record=False)['mdi'].mpc
    # ng pmax 100 ramps 50 MW in 30 minutes.
    self.assertAlmostEqual(mpc.gen[18], 50.0)
    self.assertAlmostEqual(mpc.gen[9], 0.0)
    npt.assert_almost_equal(mpc.gencost, [1, 0, 0, 2, 0.0, 0.0, 100.0, 600.0])
    npt.assert_almost_equal(mpc.gencost_orig, NG_GENCOST)

  def testInputMatKeepsIdColumns(self):
    write_input_folder(self.inputfolder, two_bus_case(
        num_hours=4,
        genid=[10, 11],
        genfuel=['ng', 'coal'],
        gen_bus=[1, 1],
        gen_pmax=[100.0, 100.0],
        gen_pmin=[0.0, 0.0],
        gen_ramp30=[np.inf, np.inf],
        gencost=[NG_GENCOST, EXPENSIVE_GENCOST]))
    run_scenario(1, 1, 1, self.inputfolder, self.outputfolder)

    mpc = scipy.io.loadmat(os.path.join(self.outputfolder, 'input.mat'),
                           struct_as_record=False)['mdi'][0, 0].mpc[0, 0]
    self.assertEqual(mpc.genid.shape, (2, 1))
    self.assertEqual(mpc.branchid.shape, (1, 1))
    self.assertEqual(mpc.genfuel.shape, (2, 1))
    npt.assert_almost_equal(mpc.genid, [[10.0], [11.0]])
    self.assertEqual([str(fuel[0]) for fuel in mpc.genfuel.ravel()],
                     ['ng', 'coal'])

  def testDefaultOutputFolder(self):
    run_scenario(1, 1, 1, self.inputfolder)
    self.assertTrue(os.path.isfile(
        os.path.join(self.inputfolder, 'output', 'result_0.mat')))


if __name__ == '__main__':
  unittest.main()
