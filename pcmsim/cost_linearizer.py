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

"""Piecewise-linear approximation of quadratic generator costs.

Generator costs come in as MATPOWER gencost rows:

  [model, startup, shutdown, n, c(n-1), ..., c0]

Only polynomial (model == 2) quadratics (n == 3) are supported, so the
cost of producing x Megawatts for one hour is a * x^2 + b * x + c.

A quadratic can't go into a linear program directly.  Instead the curve
is sampled at num_segments + 1 evenly spaced points between pmin and
pmax and the secants between neighbouring points are used.  For a
convex curve each secant lies above the curve, so the approximation
never under-estimates cost inside [pmin, pmax].
"""

import numpy as np

from pcmsim.errors import UnsupportedCostShape


# MATPOWER gencost column layout (0-based).
MODEL = 0
STARTUP = 1
SHUTDOWN = 2
NCOST = 3
COST = 4

PW_LINEAR = 1
POLYNOMIAL = 2


class FixedCost(object):
  """Cost of a generator which can only run at one power level.

  Attributes:
    power: (float) The only feasible power (Megawatt).
    cost: (float) Cost per hour of running at power ($ / Hour).
  """

  def __init__(self, power, cost):
    self.power = float(power)
    self.cost = float(cost)

  def __repr__(self):
    return 'FixedCost(power=%r, cost=%r)' % (self.power, self.cost)


class PiecewiseCost(object):
  """Ordered (power, cost) breakpoints of a piecewise-linear cost curve.

  Attributes:
    power: float np.array of strictly increasing breakpoint powers.
    cost: float np.array of cost per hour at each breakpoint.
  """

  def __init__(self, power, cost):
    """Initializes PiecewiseCost.

    Args:
      power: sequence of breakpoint powers.
      cost: sequence of breakpoint costs, same length as power.

    Raises:
      ValueError: If there are fewer than two breakpoints, lengths
        differ, or power is not strictly increasing.
    """

    power = np.array(power, dtype=float)
    cost = np.array(cost, dtype=float)

    if len(power) < 2 or len(power) != len(cost):
      raise ValueError('Need >= 2 breakpoints of equal length, got %d, %d' % (
          len(power), len(cost)))

    if not (np.diff(power) > 0).all():
      raise ValueError('Breakpoint power must strictly increase: %s' % power)

    power.setflags(write=False)
    cost.setflags(write=False)
    self.power = power
    self.cost = cost

  @property
  def num_segments(self):
    return len(self.power) - 1

  def segments(self):
    """Returns (slopes, intercepts) of each segment.

    Segment s covers [power[s], power[s+1]] and costs
    slopes[s] * x + intercepts[s] there.
    """
    slopes = np.diff(self.cost) / np.diff(self.power)
    intercepts = self.cost[:-1] - slopes * self.power[:-1]
    return slopes, intercepts

  def __call__(self, x):
    """Evaluates the curve at x by interpolating between breakpoints."""
    return np.interp(x, self.power, self.cost)

  def __repr__(self):
    return 'PiecewiseCost(power=%r, cost=%r)' % (list(self.power),
                                                 list(self.cost))


def check_quadratic(gencost):
  """Verifies every gencost row is a polynomial quadratic.

  Args:
    gencost: 2-d array of MATPOWER gencost rows.

  Raises:
    UnsupportedCostShape: If any row is not model 2 with 3 coefficients.
  """

  gencost = np.atleast_2d(gencost)

  if gencost.shape[1] < COST + 3:
    raise UnsupportedCostShape(
        'gencost needs %d columns for quadratics, has %d' % (
            COST + 3, gencost.shape[1]))

  non_polynomial = gencost[:, MODEL] != POLYNOMIAL
  if non_polynomial.any():
    raise UnsupportedCostShape(
        'gencost currently limited to polynomial, rows %s are not' %
        list(np.flatnonzero(non_polynomial)))

  non_quadratic = gencost[:, NCOST] != 3
  if non_quadratic.any():
    raise UnsupportedCostShape(
        'gencost currently limited to quadratic, rows %s are not' %
        list(np.flatnonzero(non_quadratic)))


def linearize_gencost(gencost, gen_pmin, gen_pmax, num_segments=1):
  """Converts quadratic costs into piecewise-linear or fixed cost curves.

  Args:
    gencost: 2-d array of MATPOWER polynomial gencost rows.
    gen_pmin: float array of minimum power per generator.
    gen_pmax: float array of maximum power per generator.
    num_segments: int number of linear segments per generator.

  Raises:
    UnsupportedCostShape: If any cost isn't a quadratic.
    ValueError: If num_segments < 1.

  Returns:
    Tuple with one FixedCost (pmin == pmax) or PiecewiseCost
    (num_segments + 1 breakpoints) per generator.
  """

  if num_segments < 1:
    raise ValueError('num_segments must be >= 1, got %r' % num_segments)

  gencost = np.atleast_2d(np.asarray(gencost, dtype=float))
  check_quadratic(gencost)

  gen_pmin = np.asarray(gen_pmin, dtype=float)
  gen_pmax = np.asarray(gen_pmax, dtype=float)
  a = gencost[:, COST]
  b = gencost[:, COST + 1]
  c = gencost[:, COST + 2]

  curves = []
  for i in range(len(gencost)):
    if gen_pmin[i] == gen_pmax[i]:
      power = gen_pmax[i]
    else:
      power = np.linspace(gen_pmin[i], gen_pmax[i], num_segments + 1)

    cost = a[i] * power ** 2 + b[i] * power + c[i]

    if np.ndim(power) == 0:
      curves.append(FixedCost(power, cost))
    else:
      curves.append(PiecewiseCost(power, cost))

  return tuple(curves)


def curves_to_gencost(gencost_orig, curves):
  """Renders linearized curves as MATPOWER gencost rows.

  Piecewise rows become model 1 with n = num_segments + 1 and x, y
  breakpoint pairs.  Fixed rows keep the original model and n, with the
  quadratic and linear coefficients zeroed and the constant set to the
  fixed cost.

  Args:
    gencost_orig: 2-d array of the polynomial gencost rows.
    curves: sequence of FixedCost / PiecewiseCost, one per row.

  Returns:
    2-d float np.array.
  """

  gencost_orig = np.atleast_2d(np.asarray(gencost_orig, dtype=float))
  num_points = max([len(cv.power) for cv in curves
                    if isinstance(cv, PiecewiseCost)] or [0])
  width = max(gencost_orig.shape[1], COST + 2 * num_points)

  new_gencost = np.zeros((len(curves), width))
  new_gencost[:, STARTUP:NCOST] = gencost_orig[:, STARTUP:NCOST]

  for i, curve in enumerate(curves):
    if isinstance(curve, PiecewiseCost):
      new_gencost[i, MODEL] = PW_LINEAR
      new_gencost[i, NCOST] = len(curve.power)
      new_gencost[i, COST:COST + 2 * len(curve.power):2] = curve.power
      new_gencost[i, COST + 1:COST + 2 * len(curve.power):2] = curve.cost
    else:
      new_gencost[i, MODEL] = gencost_orig[i, MODEL]
      new_gencost[i, NCOST] = gencost_orig[i, NCOST]
      new_gencost[i, COST + 2] = curve.cost

  return new_gencost


def linear_cost_terms(curves):
  """Returns per generator (slope, no_load) for single segment costs.

  A FixedCost contributes its whole cost as no-load cost with zero slope.

  Args:
    curves: sequence of FixedCost / single segment PiecewiseCost.

  Raises:
    ValueError: If any PiecewiseCost has more than one segment.

  Returns:
    Tuple of float np.arrays (slope, no_load).
  """

  slope = np.zeros(len(curves))
  no_load = np.zeros(len(curves))

  for i, curve in enumerate(curves):
    if isinstance(curve, FixedCost):
      no_load[i] = curve.cost
    else:
      if curve.num_segments != 1:
        raise ValueError('Generator %d has %d cost segments' % (
            i, curve.num_segments))
      slopes, intercepts = curve.segments()
      slope[i] = slopes[0]
      no_load[i] = intercepts[0]

  return slope, no_load
