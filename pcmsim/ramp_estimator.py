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

"""Heuristic 30 minute ramp limits by fuel type and capacity.

This is an estimate, not measured data.  Bigger thermal plants ramp a
smaller fraction of their capacity in 30 minutes than small ones do.
For each fuel with a rating curve, the ramp fraction is interpolated
linearly between two (pmax, fraction) anchors and held at the nearer
anchor's fraction outside them.
"""

import numpy as np

from pcmsim.case import COAL
from pcmsim.case import DISTILLATE_FUEL_OIL
from pcmsim.case import NATURAL_GAS


# key: fuel, value: ((pmax_low, pmax_high), (fraction_low, fraction_high))
RAMP30_POINTS = {
    COAL: ((200.0, 1400.0), (0.4, 0.15)),
    DISTILLATE_FUEL_OIL: ((200.0, 1200.0), (0.5, 0.2)),
    NATURAL_GAS: ((200.0, 600.0), (0.5, 0.2)),
}


def ramp_fraction(pmax, points):
  """Fraction of pmax a generator can ramp in 30 minutes.

  Args:
    pmax: float or float array of generator capacity (Megawatt).
    points: ((x_low, x_high), (y_low, y_high)) rating curve anchors.

  Returns:
    Interpolated fraction, clamped to the anchor fractions.
  """

  xs, ys = points
  # np.interp holds the end values outside [xs[0], xs[1]].
  return np.interp(pmax, xs, ys)


def estimate_ramp30(genfuel, gen_pmax, points=None):
  """Relaxes every ramp limit, then estimates limits for rated fuels.

  Args:
    genfuel: array of fuel strings.
    gen_pmax: float array of generator capacity (Megawatt).
    points: Optional dict of fuel to rating curve anchors.  Defaults to
      RAMP30_POINTS.

  Returns:
    float np.array of ramp30 values (Megawatt), np.inf where the fuel
    has no rating curve.
  """

  if points is None:
    points = RAMP30_POINTS

  genfuel = np.asarray(genfuel)
  gen_pmax = np.asarray(gen_pmax, dtype=float)

  ramp30 = np.full(len(gen_pmax), np.inf)
  for fuel, fuel_points in points.items():
    fuel_idx = genfuel == fuel
    ramp30[fuel_idx] = (
        ramp_fraction(gen_pmax[fuel_idx], fuel_points) * gen_pmax[fuel_idx])

  return ramp30
