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

"""Reads dispatch, flows and prices out of a solved IntervalModel.

Duals are reported by the solver as d(objective) / d(constraint bound).
With that convention:

  lmp = dual(powerbalance), the cost of serving one more Megawatt at a
    bus for one hour.
  congu = -dual(branch_max), rent of the upper thermal limit.
  congl = dual(branch_min), rent of the lower thermal limit.

Both congestion rents are non-negative and zero for uncongested or
unrated branches.
"""

import numpy as np

from pcmsim.errors import ResultShapeError
from pcmsim.linear_program import SOLVED


class Results(object):
  """Results of one interval.

  Attributes:
    pg: float np.array (generator x hour) of dispatch (Megawatt).
    pf: float np.array (branch x hour) of flows, AC branches then DC lines.
    lmp: float np.array (bus x hour) of nodal prices ($ / Megawatt-hour).
    congl: float np.array (branch x hour) of lower limit congestion rents.
    congu: float np.array (branch x hour) of upper limit congestion rents.
    f: (float) objective value ($).
  """

  def __init__(self, pg, pf, lmp, congl, congu, f):
    self.pg = pg
    self.pf = pf
    self.lmp = lmp
    self.congl = congl
    self.congu = congu
    self.f = f

  def __repr__(self):
    return 'Results(f=%r, pg.shape=%r)' % (self.f, self.pg.shape)


def _get_group(model, groups, name):
  if model.state != SOLVED:
    raise ResultShapeError('Cannot read %s from a %s model' % (
        name, model.state))

  if name not in groups:
    raise ResultShapeError('Model has no group %s' % name)

  group = groups[name]
  if group.handles.ndim != 2:
    raise ResultShapeError('Group %s has %d-d handles, expected 2-d' % (
        name, group.handles.ndim))

  if group.handles.shape[0] != len(group.entity_index):
    raise ResultShapeError('Group %s has %d rows for %d entities' % (
        name, group.handles.shape[0], len(group.entity_index)))

  if len(group.entity_index) and (
      group.entity_index.min() < 0 or
      group.entity_index.max() >= group.num_entities):
    raise ResultShapeError('Group %s indexes outside %d entities' % (
        name, group.num_entities))

  return group


def _scatter(group, read):
  values = np.zeros((group.num_entities, group.num_hours))
  for i, e in enumerate(group.entity_index):
    for h in range(group.num_hours):
      values[e, h] = read(group.handles[i, h])
  return values


def get_2d_variable_values(model, name):
  """Returns solution values of a variable group as (entity x hour).

  Entities the group does not cover get 0.

  Args:
    model: solved IntervalModel.
    name: variable group name, e.g. 'pg'.

  Raises:
    ResultShapeError: If the model isn't solved, the group is unknown or
      its handles don't match its entity index.
  """

  group = _get_group(model, model.variables, name)
  return _scatter(group, model.session.primal)


def get_2d_constraint_duals(model, name):
  """Returns duals of a constraint group as (entity x hour).

  Entities the group does not cover get 0.

  Args:
    model: solved IntervalModel.
    name: constraint group name, e.g. 'powerbalance'.

  Raises:
    ResultShapeError: If the model isn't solved, the group is unknown or
      its handles don't match its entity index.
  """

  group = _get_group(model, model.constraints, name)
  return _scatter(group, model.session.dual)


def get_results(model):
  """Extracts Results from a solved IntervalModel."""

  pg = get_2d_variable_values(model, 'pg')
  pf = get_2d_variable_values(model, 'pf')
  lmp = get_2d_constraint_duals(model, 'powerbalance')
  congl = get_2d_constraint_duals(model, 'branch_min')
  congu = -get_2d_constraint_duals(model, 'branch_max')
  # -0.0 reads badly in saved results.
  congu[congu == 0] = 0.0
  f = model.minimize_costs_objective.value()

  return Results(pg=pg, pf=pf, lmp=lmp, congl=congl, congu=congu, f=f)
