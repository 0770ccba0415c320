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


"""Example entry-point for running production-cost simulations.

Without arguments, simulates two days of a small built-in three bus
grid and prints dispatch and prices.  Given an input folder, runs the
scenario in that folder and writes .mat results.
"""

import argparse
import logging

import numpy as np
import pandas as pd

from pcmsim.case import Case
from pcmsim.linear_program import DEFAULT_SOLVER
from pcmsim.linear_program import solver_session
from pcmsim.simulation import preprocess_case
from pcmsim.simulation import run_scenario
from pcmsim.simulation import simulate


def three_bus_case(num_hours=48):
  """Builds a three bus, two zone Case with coal, gas, wind and hydro.

  Zone 1 holds buses 1 and 2, zone 2 holds bus 3.  The 2-3 branch is
  rated low enough to congest during the evening peak.

  Args:
    num_hours: int number of profile hours, starting at hour 1.

  Returns:
    Case with polynomial gencost.
  """

  hours = np.arange(1, num_hours + 1)
  daily = np.sin(2 * np.pi * (hours - 9) / 24.0)

  demand = pd.DataFrame({1: 275 + 75 * daily,
                         2: 150 + 50 * daily}, index=hours)
  # Wind blows harder at night.
  wind = pd.DataFrame({12: 100 - 60 * daily}, index=hours)
  hydro = pd.DataFrame({13: np.full(num_hours, 30.0)}, index=hours)
  solar = pd.DataFrame(index=hours)

  return Case(
      busid=[1, 2, 3],
      bus_demand=[100.0, 100.0, 100.0],
      bus_zone=[1, 1, 2],
      branchid=[101, 102, 103],
      branch_from=[1, 2, 1],
      branch_to=[2, 3, 3],
      branch_reactance=[0.1, 0.1, 0.2],
      branch_rating=[250.0, 120.0, 0.0],
      genid=[10, 11, 12, 13],
      genfuel=['coal', 'ng', 'wind', 'hydro'],
      gen_bus=[1, 2, 3, 2],
      gen_pmax=[400.0, 300.0, 200.0, 50.0],
      gen_pmin=[100.0, 50.0, 0.0, 0.0],
      gen_ramp30=[np.inf] * 4,
      # MATPOWER polynomial rows: model, startup, shutdown, n, a, b, c
      gencost=[[2, 0, 0, 3, 0.002, 20.0, 100.0],
               [2, 0, 0, 3, 0.01, 30.0, 50.0],
               [2, 0, 0, 3, 0.0, 0.0, 0.0],
               [2, 0, 0, 3, 0.0, 1.0, 0.0]],
      demand=demand,
      hydro=hydro,
      wind=wind,
      solar=solar)


def display_results(case, all_results, interval):
  """Prints cost, dispatch and prices per interval.

  Args:
    case: the simulated Case.
    all_results: list of Results from simulate().
    interval: int hours per interval.
  """

  for i, results in enumerate(all_results):
    print('INTERVAL %d: cost $%.2f' % (i, results.f))
    for g, genid in enumerate(case.genid):
      print('  Generator %d (%s): %.1f Megawatt-hours' % (
          genid, case.genfuel[g], results.pg[g].sum()))
    for b, busid in enumerate(case.busid):
      print('  Bus %d: mean price $%.2f / Megawatt-hour' % (
          busid, results.lmp[b].mean()))
    branch_ids = np.concatenate([case.branchid, case.dclineid])
    congested_hours = np.count_nonzero(results.congu + results.congl, axis=1)
    for br in np.flatnonzero(congested_hours):
      print('  Branch %d: congested %d hours' % (
          branch_ids[br], congested_hours[br]))

  print('TOTAL: $%.2f over %d hours' % (
      sum(r.f for r in all_results), interval * len(all_results)))


def main():
  parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
  parser.add_argument('--inputfolder',
                      help='Folder with case.mat and profile csv files.  '
                      'Runs the built-in three bus case if not given.')
  parser.add_argument('--outputfolder',
                      help='Folder for .mat results.  Defaults to '
                      'INPUTFOLDER/output.')
  parser.add_argument('--interval', type=int, default=24,
                      help='Hours per interval.')
  parser.add_argument('--n_interval', type=int, default=2,
                      help='Number of intervals.')
  parser.add_argument('--start_index', type=int, default=1,
                      help='First absolute hour.')
  parser.add_argument('--num_segments', type=int, default=1,
                      help='Linear cost segments per generator.')
  parser.add_argument('--solver', default=DEFAULT_SOLVER,
                      help='OR-tools linear solver backend.')
  parser.add_argument('--load_shed', action='store_true',
                      help='Allow unserved demand at a penalty.')
  parser.add_argument('--trans_viol', action='store_true',
                      help='Allow thermal limit violations at a penalty.')
  parser.add_argument('-v', '--verbose', action='store_true')
  args = parser.parse_args()

  logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

  model_kwargs = dict(load_shed_enabled=args.load_shed,
                      trans_viol_enabled=args.trans_viol)

  if args.inputfolder:
    run_scenario(args.interval, args.n_interval, args.start_index,
                 args.inputfolder, args.outputfolder,
                 num_segments=args.num_segments, solver=args.solver,
                 **model_kwargs)
    return

  case = preprocess_case(
      three_bus_case(args.start_index + args.interval * args.n_interval - 1),
      args.num_segments)
  with solver_session(args.solver) as session:
    all_results = simulate(case, args.interval, args.n_interval,
                           args.start_index, session, **model_kwargs)

  display_results(case, all_results, args.interval)


if __name__ == '__main__':
  main()
