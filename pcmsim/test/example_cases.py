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

"""Small in-memory cases shared by the tests."""

import os

import numpy as np
import pandas as pd
import scipy.io

from pcmsim.case import Case


# a = 0.01, b = 5, c = 0.  With pmin = 0 and pmax = 100 the single
# segment secant has slope 6 and no-load cost 0.
NG_GENCOST = [2, 0, 0, 3, 0.01, 5.0, 0.0]


def profile(num_hours, columns=None, start=1):
  """Builds an hour indexed profile.

  Args:
    num_hours: int number of hours.
    columns: Optional dict of column label to scalar or per-hour values.
    start: int first hour.
  """

  hours = np.arange(start, start + num_hours)
  data = dict((k, np.broadcast_to(np.asarray(v, dtype=float), (num_hours,)))
              for k, v in (columns or {}).items())
  return pd.DataFrame(data, index=hours)


def two_bus_case(num_hours=4, demand=40.0, **overrides):
  """Gas generator at bus 1 serving demand at bus 2 over one branch.

  Both buses are in zone 1 and bus 1 has no nominal demand, so the whole
  zonal demand lands on bus 2.

  Args:
    num_hours: int number of profile hours, starting at hour 1.
    demand: scalar or per-hour zone 1 demand, or a ready-made demand
      profile.
    **overrides: Case fields replacing the defaults.

  Returns:
    Case with polynomial gencost.
  """

  if not isinstance(demand, pd.DataFrame):
    demand = profile(num_hours, {1: demand})

  fields = dict(
      busid=[1, 2],
      bus_demand=[0.0, 100.0],
      bus_zone=[1, 1],
      branchid=[101],
      branch_from=[1],
      branch_to=[2],
      branch_reactance=[0.1],
      branch_rating=[0.0],
      genid=[10],
      genfuel=['ng'],
      gen_bus=[1],
      gen_pmax=[100.0],
      gen_pmin=[0.0],
      gen_ramp30=[np.inf],
      gencost=[NG_GENCOST],
      demand=demand,
      hydro=profile(num_hours),
      wind=profile(num_hours),
      solar=profile(num_hours))
  fields.update(overrides)
  return Case(**fields)


def write_input_folder(folder, case):
  """Writes case as case.mat plus profile csv files into folder."""

  bus = np.zeros((case.num_bus, 13))
  bus[:, 0] = case.busid
  bus[:, 2] = case.bus_demand
  bus[:, 6] = case.bus_zone

  branch = np.zeros((case.num_branch_ac, 13))
  branch[:, 0] = case.branch_from
  branch[:, 1] = case.branch_to
  branch[:, 3] = case.branch_reactance
  branch[:, 5] = case.branch_rating

  gen = np.zeros((case.num_gen, 21))
  gen[:, 0] = case.gen_bus
  gen[:, 8] = case.gen_pmax
  gen[:, 9] = case.gen_pmin
  gen[:, 18] = case.gen_ramp30

  mpc = {
      'bus': bus,
      'branch': branch,
      'gen': gen,
      'gencost': np.array(case.gencost),
      'branchid': np.array(case.branchid, dtype=float)[:, np.newaxis],
      'genid': np.array(case.genid, dtype=float)[:, np.newaxis],
      'genfuel': np.array(list(case.genfuel), dtype=object)[:, np.newaxis],
  }

  if len(case.dclineid):
    dcline = np.zeros((len(case.dclineid), 17))
    dcline[:, 0] = case.dcline_from
    dcline[:, 1] = case.dcline_to
    dcline[:, 10] = case.dcline_rating
    mpc['dcline'] = dcline
    mpc['dclineid'] = np.array(case.dclineid, dtype=float)[:, np.newaxis]

  scipy.io.savemat(os.path.join(folder, 'case.mat'), {'mpc': mpc})

  for name in ('demand', 'hydro', 'wind', 'solar'):
    getattr(case, name).to_csv(os.path.join(folder, '%s.csv' % name),
                               index_label='UTC')
