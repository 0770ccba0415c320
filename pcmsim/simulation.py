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

"""Rolling-horizon simulation over consecutive intervals.

A long horizon is cut into n_interval windows of interval hours each.
Windows are solved one after the other; the last hour of dispatch of
each window becomes the ramp starting point of the next one.  That
vector is the only state carried between windows and it is passed
explicitly.
"""

import logging
import os
import time

from pcmsim.case import override_pmin
from pcmsim.case_io import read_case
from pcmsim.case_io import save_input_mat
from pcmsim.case_io import save_results
from pcmsim.cost_linearizer import curves_to_gencost
from pcmsim.cost_linearizer import linearize_gencost
from pcmsim.linear_program import DEFAULT_SOLVER
from pcmsim.linear_program import build_model
from pcmsim.linear_program import solver_session
from pcmsim.ramp_estimator import estimate_ramp30
from pcmsim.results import get_results


def preprocess_case(case, num_segments=1):
  """Returns the Case as it is simulated.

  - Non-coal generators may turn fully down; nuclear and geothermal
    must run at PMIN_FRACTION of pmax.
  - Quadratic costs are linearized into num_segments segments.  The
    polynomial costs are kept in gencost_orig.
  - Ramp limits are relaxed and re-estimated from fuel and pmax.

  Args:
    case: Case with polynomial gencost.
    num_segments: int number of linear cost segments per generator.

  Raises:
    UnsupportedCostShape: If any cost isn't a quadratic.
    ValueError: If num_segments < 1.

  Returns:
    A new Case.  The argument is not modified.
  """

  gen_pmin = override_pmin(case.genfuel, case.gen_pmin, case.gen_pmax)
  cost_curves = linearize_gencost(case.gencost, gen_pmin, case.gen_pmax,
                                  num_segments)

  return case.replace(
      gen_pmin=gen_pmin,
      gencost_orig=case.gencost,
      gencost=curves_to_gencost(case.gencost, cost_curves),
      cost_curves=cost_curves,
      gen_ramp30=estimate_ramp30(case.genfuel, case.gen_pmax))


def solve_interval(case, start_index, interval_length, session, pg0=None,
                   **model_kwargs):
  """Builds, solves and reads back one interval.

  Args:
    case: preprocessed Case.
    start_index: int first absolute hour.
    interval_length: int number of hours.
    session: SolverSession.
    pg0: Optional float array of generation per generator at the hour
      before start_index.  If given, the first hour is ramp limited
      against it.
    **model_kwargs: IntervalModel options such as load_shed_enabled.

  Raises:
    SolverFailure: If the interval has no optimal solution.

  Returns:
    (Results, pg_final) where pg_final is the dispatch of the last hour.
  """

  model = build_model(case, start_index, interval_length, session,
                      initial_ramp_enabled=pg0 is not None,
                      initial_ramp_g0=pg0, **model_kwargs)
  model.solve()
  results = get_results(model)
  return results, results.pg[:, -1].copy()


def simulate(case, interval, n_interval, start_index, session,
             result_handler=None, **model_kwargs):
  """Solves n_interval consecutive windows of interval hours.

  Args:
    case: preprocessed Case.
    interval: int hours per window.
    n_interval: int number of windows.
    start_index: int first absolute hour of the first window.
    session: SolverSession used for every window.
    result_handler: Optional callable(i, results) called after window i
      (0-based) is solved.
    **model_kwargs: IntervalModel options such as load_shed_enabled.

  Raises:
    ValueError: If n_interval < 1.
    SolverFailure: If a window has no optimal solution.  Later windows
      are not attempted.

  Returns:
    List of Results, one per window.
  """

  if n_interval < 1:
    raise ValueError('n_interval must be >= 1, got %r' % n_interval)

  all_results = []
  pg0 = None
  for i in range(n_interval):
    interval_start = start_index + i * interval
    logging.info('Solving interval %d of %d (hours %d-%d)', i + 1, n_interval,
                 interval_start, interval_start + interval - 1)
    start = time.time()
    results, pg0 = solve_interval(case, interval_start, interval, session,
                                  pg0=pg0, **model_kwargs)
    logging.info('Interval %d solved in %.1f s, objective %f', i + 1,
                 time.time() - start, results.f)

    if result_handler is not None:
      result_handler(i, results)
    all_results.append(results)

  return all_results


def run_scenario(interval,
                 n_interval,
                 start_index,
                 inputfolder,
                 outputfolder=None,
                 num_segments=1,
                 solver=DEFAULT_SOLVER,
                 solver_options=None,
                 **model_kwargs):
  """Runs a scenario from an input folder and writes .mat outputs.

  Writes outputfolder/input.mat with the simulated parameters and
  outputfolder/result_<i>.mat for every solved window.

  Args:
    interval: int hours per window.
    n_interval: int number of windows.
    start_index: int first absolute hour.
    inputfolder: folder with case.mat and the profile csv files.
    outputfolder: Optional output folder.  Defaults to
      inputfolder/output.  Created if missing.
    num_segments: int number of linear cost segments per generator.
    solver: pywraplp backend name.
    solver_options: Optional dict of solver tuning options.
    **model_kwargs: IntervalModel options such as load_shed_enabled.

  Returns:
    List of Results, one per window.
  """

  if outputfolder is None:
    outputfolder = os.path.join(inputfolder, 'output')
  if not os.path.isdir(outputfolder):
    os.makedirs(outputfolder)

  case = read_case(inputfolder)
  logging.info('Preprocessing case with %d cost segments', num_segments)
  case = preprocess_case(case, num_segments)
  save_input_mat(case, inputfolder, outputfolder)

  def write_results(i, results):
    save_results(results, os.path.join(outputfolder, 'result_%d.mat' % i))

  with solver_session(solver, solver_options) as session:
    all_results = simulate(case, interval, n_interval, start_index, session,
                           result_handler=write_results, **model_kwargs)

  logging.info('Wrote %d result files to %s', len(all_results), outputfolder)
  return all_results
