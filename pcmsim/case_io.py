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

"""Reads scenario input folders and writes MATLAB result files.

An input folder holds:

  case.mat: MATPOWER style 'mpc' struct with bus, branch, gen and
    gencost matrices plus branchid, genid, genfuel and optionally
    dcline and dclineid.
  demand.csv: hourly demand per zone.
  hydro.csv, wind.csv, solar.csv: hourly output per generator.

The first csv column is the absolute hour.
"""

import logging
import os

import numpy as np
import pandas as pd
import scipy.io

from pcmsim.case import Case
from pcmsim.errors import DataIntegrityError


# MATPOWER columns (0-based) used by the simulation.
BUS_I = 0
PD = 2
BUS_AREA = 6

F_BUS = 0
T_BUS = 1
BR_X = 3
RATE_A = 5

DC_RATE = 10

GEN_BUS = 0
PMAX = 8
PMIN = 9
RAMP_30 = 18

_MATRIX_FIELDS = ('bus', 'branch', 'gen', 'gencost', 'dcline')
_PROFILES = ('demand', 'hydro', 'wind', 'solar')
_ID_FIELDS = ('branchid', 'genid', 'dclineid', 'genfuel')


def load_mpc(inputfolder):
  """Loads the 'mpc' struct of inputfolder/case.mat as a dict of arrays.

  Matrices are always 2-d and id vectors 1-d, even for single rows.

  Raises:
    DataIntegrityError: If case.mat has no mpc struct.
  """

  filename = os.path.join(inputfolder, 'case.mat')
  logging.info('Loading %s', filename)
  mat = scipy.io.loadmat(filename, squeeze_me=True, struct_as_record=False)
  if 'mpc' not in mat:
    raise DataIntegrityError('%s has no mpc struct' % filename)

  mpc_struct = mat['mpc']
  mpc = {}
  for name in mpc_struct._fieldnames:
    value = getattr(mpc_struct, name)
    if name in _MATRIX_FIELDS:
      value = np.atleast_2d(value)
    elif name in _ID_FIELDS:
      value = np.atleast_1d(value)
    mpc[name] = value

  return mpc


def _column(mpc, field, column):
  matrix = mpc[field]
  if matrix.size and matrix.shape[1] <= column:
    raise DataIntegrityError('mpc.%s has %d columns, need at least %d' % (
        field, matrix.shape[1], column + 1))
  if not matrix.size:
    return np.zeros(0)
  return matrix[:, column]


def read_case(inputfolder):
  """Reads a Case from an input folder.

  Args:
    inputfolder: folder with case.mat and the four profile csv files.

  Raises:
    DataIntegrityError: If fields are missing or inconsistent.

  Returns:
    Case.
  """

  logging.info('Reading from folder: %s', inputfolder)
  mpc = load_mpc(inputfolder)

  for name in ('bus', 'branch', 'gen', 'gencost', 'branchid', 'genid',
               'genfuel'):
    if name not in mpc:
      raise DataIntegrityError('case.mat mpc struct has no %s' % name)

  if 'dcline' in mpc:
    dcline = dict(dclineid=mpc['dclineid'],
                  dcline_from=_column(mpc, 'dcline', F_BUS),
                  dcline_to=_column(mpc, 'dcline', T_BUS),
                  dcline_rating=_column(mpc, 'dcline', DC_RATE))
  else:
    dcline = {}

  profiles = {}
  for name in _PROFILES:
    filename = os.path.join(inputfolder, '%s.csv' % name)
    logging.info('Loading %s', filename)
    profiles[name] = pd.read_csv(filename, index_col=0)

  return Case(busid=_column(mpc, 'bus', BUS_I),
              bus_demand=_column(mpc, 'bus', PD),
              bus_zone=_column(mpc, 'bus', BUS_AREA),
              branchid=mpc['branchid'],
              branch_from=_column(mpc, 'branch', F_BUS),
              branch_to=_column(mpc, 'branch', T_BUS),
              branch_reactance=_column(mpc, 'branch', BR_X),
              branch_rating=_column(mpc, 'branch', RATE_A),
              genid=mpc['genid'],
              genfuel=mpc['genfuel'],
              gen_bus=_column(mpc, 'gen', GEN_BUS),
              gen_pmax=_column(mpc, 'gen', PMAX),
              gen_pmin=_column(mpc, 'gen', PMIN),
              gen_ramp30=_column(mpc, 'gen', RAMP_30),
              gencost=mpc['gencost'],
              **dict(dcline, **profiles))


def save_input_mat(case, inputfolder, outputfolder):
  """Writes outputfolder/input.mat with the parameters as simulated.

  The original mpc struct is copied with adjusted pmin, estimated ramp30,
  linearized gencost and the original polynomial gencost_orig.

  Args:
    case: preprocessed Case.
    inputfolder: folder with the original case.mat.
    outputfolder: existing folder to write input.mat into.

  Returns:
    Path of the written file.
  """

  mpc = load_mpc(inputfolder)
  gen = np.array(mpc['gen'], dtype=float)
  gen[:, PMIN] = case.gen_pmin
  gen[:, RAMP_30] = case.gen_ramp30
  mpc['gen'] = gen
  mpc['gencost'] = np.array(case.gencost)
  if case.gencost_orig is not None:
    mpc['gencost_orig'] = np.array(case.gencost_orig)

  # Id vectors are n x 1 columns in case.mat; genfuel stays a cell array.
  for name in _ID_FIELDS:
    if name in mpc:
      dtype = object if name == 'genfuel' else None
      mpc[name] = np.array(list(mpc[name]), dtype=dtype)[:, np.newaxis]

  filename = os.path.join(outputfolder, 'input.mat')
  logging.info('Writing %s', filename)
  scipy.io.savemat(filename, {'mdi': {'mpc': mpc}}, do_compression=True)
  return filename


def save_results(results, filename):
  """Writes one interval's Results as an 'mdo_save' struct.

  Args:
    results: Results.
    filename: path of the .mat file to write.
  """

  mdo_save = {
      'results': {'f': results.f},
      'demand_scaling': 1.0,
      'flow': {'mpc': {
          'bus': {'LAM_P': results.lmp},
          'gen': {'PG': results.pg},
          'branch': {
              'PF': results.pf,
              'MU_SF': results.congu,
              'MU_ST': results.congl,
          },
      }},
  }
  logging.debug('Writing %s', filename)
  scipy.io.savemat(filename, {'mdo_save': mdo_save}, do_compression=True)
