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

"""Sparse incidence matrices and zonal-to-nodal demand shares for a Case.

Every matrix has buses on one axis, ordered like case.busid.  Branch
columns are AC branches first (case.branchid order) followed by DC
lines (case.dclineid order).
"""

import logging

import numpy as np
import pandas as pd
import scipy.sparse as sp

from pcmsim.errors import DataIntegrityError


def make_gen_map(case):
  """Builds the bus x generator incidence matrix.

  Args:
    case: Case.

  Raises:
    DataIntegrityError: If a generator bus is unknown.

  Returns:
    scipy.sparse.csc_matrix with 1 at (generator bus, generator).
  """

  gen_bus_idx = case.bus_index(case.gen_bus)
  gen_idx = np.arange(case.num_gen)
  return sp.csc_matrix(
      (np.ones(case.num_gen), (gen_bus_idx, gen_idx)),
      shape=(case.num_bus, case.num_gen))


def branch_endpoints(case):
  """Returns (from_idx, to_idx) bus positions for AC branches then DC lines.

  Raises:
    DataIntegrityError: If an endpoint bus is unknown.
  """

  branch_from_idx = case.bus_index(
      np.concatenate([case.branch_from, case.dcline_from]))
  branch_to_idx = case.bus_index(
      np.concatenate([case.branch_to, case.dcline_to]))
  return branch_from_idx, branch_to_idx


def make_branch_map(case):
  """Builds the bus x branch incidence matrix for AC branches and DC lines.

  Positive flow leaves the from-bus and arrives at the to-bus, so the
  matrix times a flow vector gives net injection at every bus.

  Args:
    case: Case.

  Raises:
    DataIntegrityError: If an endpoint bus is unknown.

  Returns:
    scipy.sparse.csc_matrix with -1 at (from-bus, branch) and +1 at
    (to-bus, branch).
  """

  branch_from_idx, branch_to_idx = branch_endpoints(case)
  num_branch = case.num_branch
  branch_idx = np.arange(num_branch)

  branches_to = sp.csc_matrix(
      (np.ones(num_branch), (branch_to_idx, branch_idx)),
      shape=(case.num_bus, num_branch))
  branches_from = sp.csc_matrix(
      (-np.ones(num_branch), (branch_from_idx, branch_idx)),
      shape=(case.num_bus, num_branch))
  return (branches_to + branches_from).tocsc()


def make_zone_shares(case):
  """Builds the zone x bus matrix of each bus's share of its zone demand.

  share[zone, bus] = bus_demand[bus] / sum(bus_demand in zone)

  Zones whose buses sum to zero demand can't be split by share.  Their
  buses get a share of 0 and a warning is logged; bus_demand_profile()
  refuses to place any positive demand in such zones.

  Args:
    case: Case.

  Returns:
    scipy.sparse.csc_matrix of shape (len(case.zone_list), case.num_bus).
  """

  bus_df = pd.DataFrame({'load': case.bus_demand, 'zone': case.bus_zone})
  zone_demand = bus_df.groupby('zone')['load'].transform('sum').values

  empty_zone = zone_demand == 0
  if empty_zone.any():
    logging.warning('Zones %s have zero total bus demand; their buses get'
                    ' zero demand share.',
                    sorted(set(case.bus_zone[empty_zone])))

  bus_share = np.zeros(case.num_bus)
  bus_share[~empty_zone] = (case.bus_demand[~empty_zone] /
                            zone_demand[~empty_zone])

  zone_list = case.zone_list
  bus_zone_idx = np.searchsorted(zone_list, case.bus_zone)
  return sp.csc_matrix(
      (bus_share, (bus_zone_idx, np.arange(case.num_bus))),
      shape=(len(zone_list), case.num_bus))


def profile_window(profile, start_index, interval_length, columns):
  """Selects hours [start_index, start_index + interval_length) of profile.

  Args:
    profile: pandas DataFrame indexed by absolute hour.
    start_index: int first hour of the window.
    interval_length: int number of hours.
    columns: column labels to select, in order.

  Raises:
    DataIntegrityError: If the profile does not cover every hour.

  Returns:
    float np.array of shape (interval_length, len(columns)).
  """

  columns = list(columns)
  if not columns:
    return np.zeros((interval_length, 0))

  hours = np.arange(start_index, start_index + interval_length)
  missing = np.setdiff1d(hours, profile.index.values)
  if len(missing):
    raise DataIntegrityError('Profile has no data for hours %s' % (
        list(missing[:10])))

  return profile.loc[hours, columns].values.astype(float).reshape(
      interval_length, len(columns))


def bus_demand_profile(case, start_index, interval_length, zone_shares=None):
  """Disaggregates zonal demand for a window of hours onto buses.

  Args:
    case: Case.
    start_index: int first absolute hour.
    interval_length: int number of hours.
    zone_shares: Optional precomputed make_zone_shares(case).

  Raises:
    DataIntegrityError: If the window isn't covered by the demand
      profile, or a zero-share zone has positive demand in the window.

  Returns:
    float np.array of shape (case.num_bus, interval_length).
  """

  if zone_shares is None:
    zone_shares = make_zone_shares(case)

  zone_list = case.zone_list
  simulation_demand = profile_window(case.demand, start_index,
                                     interval_length, zone_list)

  share_sum = np.asarray(zone_shares.sum(axis=1)).ravel()
  stranded = (share_sum == 0) & (np.abs(simulation_demand) > 0).any(axis=0)
  if stranded.any():
    raise DataIntegrityError(
        'Zones %s have demand but no bus demand to share it by' %
        list(zone_list[stranded]))

  return np.asarray(zone_shares.T.dot(simulation_demand.T))
