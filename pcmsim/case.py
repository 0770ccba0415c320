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

"""Validated, read-only grid case: topology, generators and profiles.

A Case holds struct-of-arrays data for buses, AC branches, DC lines and
generators plus four hour-indexed profile tables.  It is validated once
on construction and cannot be modified afterwards.  Preprocessing
(pmin overrides, cost linearization, ramp estimation) produces a new
Case via Case.replace().

Units:
  Power: Megawatts
  Time: Hours
  Cost: Dollars ($)
"""

import numpy as np
import pandas as pd

from pcmsim.errors import DataIntegrityError


COAL = 'coal'
NUCLEAR = 'nuclear'
GEOTHERMAL = 'geothermal'
HYDRO = 'hydro'
WIND = 'wind'
SOLAR = 'solar'
NATURAL_GAS = 'ng'
DISTILLATE_FUEL_OIL = 'dfo'

RENEWABLE_FUELS = (HYDRO, SOLAR, WIND)

# Fraction of pmax used as pmin for must-run baseload plants.
PMIN_FRACTION = 0.95

_INT_FIELDS = ('busid', 'bus_zone', 'branchid', 'branch_from', 'branch_to',
               'dclineid', 'dcline_from', 'dcline_to', 'genid', 'gen_bus')

_FLOAT_FIELDS = ('bus_demand', 'branch_reactance', 'branch_rating',
                 'dcline_rating', 'gen_pmax', 'gen_pmin', 'gen_ramp30')

_PROFILE_FIELDS = ('demand', 'hydro', 'wind', 'solar')

FIELDS = (_INT_FIELDS + _FLOAT_FIELDS + _PROFILE_FIELDS +
          ('genfuel', 'gencost', 'gencost_orig', 'cost_curves'))


class Case(object):
  """Grid snapshot and profiles for a production-cost simulation.

  Attributes:
    busid: int array of bus ids.
    bus_demand: float array of nominal bus demand (Megawatt).  Only used
      to split zonal demand profiles between buses.
    bus_zone: int array of zone ids, one per bus.

    branchid: int array of AC branch ids.
    branch_from: int array of AC branch from-bus ids.
    branch_to: int array of AC branch to-bus ids.
    branch_reactance: float array of AC branch reactances.
    branch_rating: float array of AC branch thermal ratings (Megawatt).
      0 means the branch is unconstrained.

    dclineid: int array of DC line ids.
    dcline_from: int array of DC line from-bus ids.
    dcline_to: int array of DC line to-bus ids.
    dcline_rating: float array of DC line ratings (Megawatt).  0 means
      unconstrained.

    genid: int array of generator ids.
    genfuel: object array of fuel type strings, e.g. 'coal' or 'ng'.
    gen_bus: int array of generator bus ids.
    gen_pmax: float array of maximum generator power (Megawatt).
    gen_pmin: float array of minimum generator power (Megawatt).
    gen_ramp30: float array of 30 minute ramp limits (Megawatt).  np.inf
      means the generator is not ramp limited.

    gencost: 2-d float array of MATPOWER gencost rows, one per generator.
      Before linearization these are polynomial costs.
    gencost_orig: 2-d float array of the polynomial costs kept after
      linearization for auditing, or None.
    cost_curves: tuple of FixedCost / PiecewiseCost objects, one per
      generator, or None before linearization.

    demand: pandas DataFrame indexed by absolute hour, one column per zone id.
    hydro: pandas DataFrame indexed by absolute hour, one column per
      hydro generator id.  Hydro generators are dispatched at exactly
      this value.
    wind: pandas DataFrame indexed by absolute hour, one column per
      wind generator id.  Maximum available output.
    solar: pandas DataFrame indexed by absolute hour, one column per
      solar generator id.  Maximum available output.
  """

  def __init__(self,
               busid,
               bus_demand,
               bus_zone,
               branchid,
               branch_from,
               branch_to,
               branch_reactance,
               branch_rating,
               genid,
               genfuel,
               gen_bus,
               gen_pmax,
               gen_pmin,
               gen_ramp30,
               gencost,
               demand,
               hydro,
               wind,
               solar,
               dclineid=(),
               dcline_from=(),
               dcline_to=(),
               dcline_rating=(),
               gencost_orig=None,
               cost_curves=None):
    """Builds and validates a Case.

    Raises:
      DataIntegrityError: If references don't resolve or dimensions
        don't match.  See _validate().
    """

    values = dict(locals())
    del values['self']

    for name in _INT_FIELDS:
      values[name] = _readonly(np.array(values[name], dtype=int).ravel())

    for name in _FLOAT_FIELDS:
      values[name] = _readonly(np.array(values[name], dtype=float).ravel())

    values['genfuel'] = _readonly(
        np.array([str(f).strip() for f in np.asarray(genfuel).ravel()],
                 dtype=object))

    values['gencost'] = _readonly(np.atleast_2d(
        np.array(gencost, dtype=float)))

    if gencost_orig is not None:
      values['gencost_orig'] = _readonly(np.atleast_2d(
          np.array(gencost_orig, dtype=float)))

    if cost_curves is not None:
      values['cost_curves'] = tuple(cost_curves)

    for name in _PROFILE_FIELDS:
      values[name] = _normalize_profile(name, values[name])

    for name in FIELDS:
      object.__setattr__(self, name, values[name])

    self._validate()
    object.__setattr__(self, '_frozen', True)

  def __setattr__(self, name, value):
    if getattr(self, '_frozen', False):
      raise AttributeError('Case is read-only; use Case.replace(%s=...)' % name)
    object.__setattr__(self, name, value)

  def replace(self, **changes):
    """Returns a new validated Case with some fields replaced.

    Args:
      **changes: field name to new value.

    Raises:
      KeyError: If a name is not a Case field.

    Returns:
      A new Case.
    """

    unknown = set(changes) - set(FIELDS)
    if unknown:
      raise KeyError('Unknown Case fields: %s' % ', '.join(sorted(unknown)))

    values = dict((name, getattr(self, name)) for name in FIELDS)
    values.update(changes)
    return Case(**values)

  @property
  def num_bus(self):
    return len(self.busid)

  @property
  def num_gen(self):
    return len(self.genid)

  @property
  def num_branch_ac(self):
    return len(self.branchid)

  @property
  def num_branch(self):
    """Number of AC branches plus DC lines."""
    return len(self.branchid) + len(self.dclineid)

  @property
  def branch_rating_all(self):
    """Ratings of AC branches then DC lines, with 0 replaced by np.inf."""
    rating = np.concatenate([self.branch_rating, self.dcline_rating])
    rating[rating == 0] = np.inf
    return rating

  @property
  def zone_list(self):
    """Sorted array of distinct zone ids."""
    return np.unique(self.bus_zone)

  def bus_index(self, bus_ids):
    """Maps bus ids to positions in self.busid.

    Args:
      bus_ids: iterable of bus ids.

    Raises:
      DataIntegrityError: If a bus id is unknown.

    Returns:
      int np.array of bus positions.
    """
    bus_id2idx = dict((b, i) for i, b in enumerate(self.busid))
    try:
      return np.array([bus_id2idx[b] for b in bus_ids], dtype=int)
    except KeyError as e:
      raise DataIntegrityError('Unknown bus id %s' % e.args[0])

  def fuel_index(self, *fuels):
    """Returns sorted int positions of generators using any of fuels."""
    return np.flatnonzero(np.isin(self.genfuel, fuels))

  def _validate(self):
    """Checks references and dimensions.

    Raises:
      DataIntegrityError: If any invariant does not hold.
    """

    _check_lengths('bus', busid=self.busid, bus_demand=self.bus_demand,
                   bus_zone=self.bus_zone)
    _check_lengths('branch', branchid=self.branchid,
                   branch_from=self.branch_from, branch_to=self.branch_to,
                   branch_reactance=self.branch_reactance,
                   branch_rating=self.branch_rating)
    _check_lengths('dcline', dclineid=self.dclineid,
                   dcline_from=self.dcline_from, dcline_to=self.dcline_to,
                   dcline_rating=self.dcline_rating)
    _check_lengths('gen', genid=self.genid, genfuel=self.genfuel,
                   gen_bus=self.gen_bus, gen_pmax=self.gen_pmax,
                   gen_pmin=self.gen_pmin, gen_ramp30=self.gen_ramp30,
                   gencost=self.gencost)

    if len(np.unique(self.busid)) != len(self.busid):
      raise DataIntegrityError('Bus ids are not unique.')

    known_buses = set(self.busid)
    for name in ('gen_bus', 'branch_from', 'branch_to',
                 'dcline_from', 'dcline_to'):
      unknown = set(getattr(self, name)) - known_buses
      if unknown:
        raise DataIntegrityError('%s refers to unknown buses %s' % (
            name, sorted(unknown)))

    if (self.gen_pmin > self.gen_pmax).any():
      bad = self.genid[self.gen_pmin > self.gen_pmax]
      raise DataIntegrityError('pmin > pmax for generators %s' % list(bad))

    if np.isnan(self.gen_ramp30).any() or (self.gen_ramp30 < 0).any():
      raise DataIntegrityError('ramp30 must be >= 0 or inf.')

    if ((self.branch_rating < 0).any() or (self.dcline_rating < 0).any()):
      raise DataIntegrityError('Branch ratings must be >= 0.')

    if self.gencost_orig is not None and (
        self.gencost_orig.shape[0] != self.num_gen):
      raise DataIntegrityError('gencost_orig has %d rows for %d generators' %(
          self.gencost_orig.shape[0], self.num_gen))

    if self.cost_curves is not None and (
        len(self.cost_curves) != self.num_gen):
      raise DataIntegrityError('%d cost curves for %d generators' % (
          len(self.cost_curves), self.num_gen))

    _check_profile_columns('demand', self.demand, self.zone_list)
    for fuel in RENEWABLE_FUELS:
      _check_profile_columns(fuel, getattr(self, fuel),
                             self.genid[self.fuel_index(fuel)])


def override_pmin(genfuel, gen_pmin, gen_pmax):
  """Returns adjusted minimum generation.

  Coal keeps its pmin.  Nuclear and geothermal must run at
  PMIN_FRACTION of pmax.  Everything else may turn fully down.

  Args:
    genfuel: array of fuel strings.
    gen_pmin: float array of minimum power.
    gen_pmax: float array of maximum power.

  Returns:
    New float np.array of minimum power.
  """

  genfuel = np.asarray(genfuel)
  gen_pmax = np.asarray(gen_pmax, dtype=float)
  pmin = np.array(gen_pmin, dtype=float)

  pmin[genfuel != COAL] = 0.0
  baseload = np.isin(genfuel, (NUCLEAR, GEOTHERMAL))
  pmin[baseload] = PMIN_FRACTION * gen_pmax[baseload]
  return pmin


def _readonly(array):
  array.setflags(write=False)
  return array


def _normalize_profile(name, profile):
  """Copies profile with int hour index and int column labels."""

  if profile is None:
    raise DataIntegrityError('No %s profile specified.' % name)

  profile = pd.DataFrame(profile).copy()
  try:
    profile.index = profile.index.astype(int)
    profile.columns = [int(c) for c in profile.columns]
  except (TypeError, ValueError):
    raise DataIntegrityError(
        '%s profile must have integer hour index and integer columns' % name)

  if not np.isfinite(profile.values.astype(float)).all():
    raise DataIntegrityError('%s profile values must be finite' % name)

  if not profile.index.is_monotonic_increasing:
    raise DataIntegrityError('%s profile hours must be increasing' % name)

  return profile


def _check_lengths(entity, **arrays):
  lengths = dict((k, len(v)) for k, v in arrays.items())
  if len(set(lengths.values())) > 1:
    raise DataIntegrityError('Mismatched %s dimensions: %s' % (
        entity, ', '.join('%s=%d' % kv for kv in sorted(lengths.items()))))


def _check_profile_columns(name, profile, required):
  missing = sorted(set(required) - set(profile.columns))
  if missing:
    raise DataIntegrityError('%s profile has no column for %s' % (
        name, missing))
