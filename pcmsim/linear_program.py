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

"""Linear program for one interval of a DC production-cost simulation.

An IntervalModel covers interval_length consecutive hours starting at
start_index.  It is built from a Case and contains:

  - An objective which is to minimize generation cost, plus penalties
    for load shedding and thermal limit violations when those are
    enabled.
  - Constraints:
    - powerbalance: generation + net branch inflow (+ load shed) equals
        nodal demand at every bus and hour.
    - rampup / rampdown: consecutive hour output of ramp limited
        generators differs by at most 2 * ramp30.
    - initial_rampup / initial_rampdown: the first hour is ramp limited
        against the final dispatch of the previous interval.
    - gen_min / gen_max: pmin <= generation <= pmax.  Wind, solar and
        hydro are capped by their profiles instead of pmax.
    - branch_min / branch_max: thermal limits of rated branches and DC
        lines.
    - branch_angle: reactance * flow == angle(to) - angle(from) for AC
        branches.  DC lines have no angle relation.
    - hydro_fixed, solar_max, wind_max: renewable profiles.
    - cost_segment: piecewise-linear cost epigraph when costs have more
        than one segment.

Every variable and constraint group is registered as a HandleGroup
indexed by (entity, hour) so results can be read back without parsing
names.  No bus is pinned as angle reference, so only angle differences
are meaningful.

The LP is handed to an OR-tools pywraplp solver through a SolverSession.
"""

import contextlib
import logging

import numpy as np

from ortools.linear_solver import pywraplp

from pcmsim.case import HYDRO
from pcmsim.case import RENEWABLE_FUELS
from pcmsim.case import SOLAR
from pcmsim.case import WIND
from pcmsim.cost_linearizer import FixedCost
from pcmsim.cost_linearizer import linear_cost_terms
from pcmsim.errors import DataIntegrityError
from pcmsim.errors import SolverFailure
from pcmsim.errors import UnsupportedCostShape
from pcmsim.topology import branch_endpoints
from pcmsim.topology import bus_demand_profile
from pcmsim.topology import make_branch_map
from pcmsim.topology import make_gen_map
from pcmsim.topology import profile_window


DEFAULT_SOLVER = 'GLOP'
DEFAULT_LOAD_SHED_PENALTY = 9000.0
DEFAULT_TRANS_VIOL_PENALTY = 100.0

BUILT = 'built'
SOLVED = 'solved'
FAILED = 'failed'

# Relative slack on decreasing segment slopes, for rounding in affine costs.
_CONVEXITY_RTOL = 1e-9

_PARAMS = pywraplp.MPSolverParameters

# key: option name, value: (parameter, {option value: parameter value})
# A None value map marks a double parameter.
_SOLVER_OPTIONS = {
    'relative_mip_gap': (_PARAMS.RELATIVE_MIP_GAP, None),
    'primal_tolerance': (_PARAMS.PRIMAL_TOLERANCE, None),
    'dual_tolerance': (_PARAMS.DUAL_TOLERANCE, None),
    'presolve': (_PARAMS.PRESOLVE, {'on': _PARAMS.PRESOLVE_ON,
                                    'off': _PARAMS.PRESOLVE_OFF}),
    'lp_algorithm': (_PARAMS.LP_ALGORITHM, {'dual': _PARAMS.DUAL,
                                            'primal': _PARAMS.PRIMAL,
                                            'barrier': _PARAMS.BARRIER}),
    'scaling': (_PARAMS.SCALING, {'on': _PARAMS.SCALING_ON,
                                  'off': _PARAMS.SCALING_OFF}),
}

_PROBLEM_OPTIONS = ('num_threads', 'solver_specific')

_STATUS_NAMES = dict(
    (getattr(pywraplp.Solver, name), name)
    for name in ('OPTIMAL', 'FEASIBLE', 'INFEASIBLE', 'UNBOUNDED',
                 'ABNORMAL', 'MODEL_INVALID', 'NOT_SOLVED'))


class Constraint(object):
  """Holds an LP Constraint object with extra debugging information.

  Attributes:
     constraint: underlying pywraplp.Constraint object
     name: name of constraint
     formula: hashtable that maps names of variables to coefficients

  pywraplp.Constraint doesn't surface a list of variables/coefficients, so
  we have to keep track ourselves.
  """

  def __init__(self, lp, lower_bound, upper_bound, name=None, debug=False):
    """Initializes Constraint.

    Args:
      lp: IntervalModel that wraps the LP solver which creates the
        constraint.
      lower_bound: (float) Lower bound on product between coeffs and variables.
      upper_bound: (float) Upper bound on product between coeffs and variables.
      name: Optional human readable string.
      debug: Boolean which if set, logs constraint info.
    """

    self.constraint = lp.solver.Constraint(float(lower_bound),
                                           float(upper_bound),
                                           name or '')
    self.name = name
    self.formula = {}
    self.debug = debug

    if self.debug:
      logging.debug('CONSTRAINT: %f <= %s <= %f',
                    lower_bound, name, upper_bound)

  def set_coefficient(self, variable, coefficient):
    """Adds variable * coefficient to LP Constraint.

    Wraps pywrap.SetCoefficient(variable, coefficient) method and
    saves variable, coefficient to formula dict.

    Args:
      variable: (Lp Variable) The Variable multiplicand.
      coefficient: (float) The coefficient multiplicand.
    """

    self.constraint.SetCoefficient(variable, float(coefficient))
    self.formula[variable.name()] = coefficient

    if self.debug:
      logging.debug('%s += %s * %f', self.name, variable.name(), coefficient)


class Objective(object):
  """Holds an LP Objective object with extra debugging information.

  Attributes:
    objective: Underlying pywraplp.Objective object.
    formula: hashtable that maps names of variables to coefficients.
  """

  def __init__(self, lp, minimize=True):
    """Initializes Objective.

    Args:
       lp: IntervalModel that wraps the LP solver which creates the
         Objective.
       minimize: boolean, True if objective should be minimized
         otherwise objective is maximizied.
    """
    self.objective = lp.solver.Objective()
    self.formula = {}
    if minimize:
      self.objective.SetMinimization()
    else:
      self.objective.SetMaximization()

  def set_coefficient(self, variable, coefficient):
    """Adds variable * coefficient to LP Objective.

    Args:
      variable: (Lp Variable) The Variable multiplicand.
      coefficient: (float) The coefficient multiplicand.
    """

    self.objective.SetCoefficient(variable, float(coefficient))
    self.formula[variable.name()] = coefficient

  def set_offset(self, offset):
    """Sets the constant term of the objective."""
    self.objective.SetOffset(float(offset))

  def offset(self):
    return self.objective.offset()

  def value(self):
    return self.objective.Value()


class HandleGroup(object):
  """LP variables or constraints of one kind, indexed by (entity, hour).

  Groups may cover only some entities of their kind, e.g. gen_max only
  covers generators with finite pmax.  entity_index maps rows of
  handles back to positions among all num_entities entities.

  Attributes:
    name: (str) group name, e.g. 'pg' or 'powerbalance'.
    entity_index: int np.array, row i of handles is entity entity_index[i].
    num_entities: (int) number of entities of this kind in the Case.
    handles: np.array of dtype object.  First axis matches
      entity_index, last axis is hour.  Entries are pywraplp Variables
      or Constraint objects, or None where a cell is unused.
  """

  def __init__(self, name, entity_index, num_entities, handles):
    self.name = name
    self.entity_index = np.asarray(entity_index, dtype=int)
    self.num_entities = num_entities
    self.handles = handles

  @property
  def num_hours(self):
    return self.handles.shape[-1]

  def __len__(self):
    return len(self.entity_index)

  def __getitem__(self, key):
    return self.handles[key]


class SolverSession(object):
  """Reusable access to an OR-tools linear solver backend.

  One session is opened per simulation run and closed exactly once when
  the run ends, whether or not it succeeded.  Use solver_session() to
  get that guarantee.

  Attributes:
    backend: (str) pywraplp backend name, e.g. 'GLOP' or 'CLP'.
    options: dict of named tuning options.
    parameters: pywraplp.MPSolverParameters built from options.
    is_open: Boolean, False once close() was called.
    problems_created: int count of problems created by the session.
  """

  def __init__(self, backend=DEFAULT_SOLVER, options=None):
    """Initializes SolverSession.

    Args:
      backend: (str) pywraplp backend name.
      options: Optional dict of tuning options.  Known names are the
        keys of _SOLVER_OPTIONS plus 'num_threads' and 'solver_specific'.

    Raises:
      ValueError: If an option name or value is not recognized.
    """

    self.backend = backend
    self.options = dict(options or {})
    self.parameters = _make_parameters(self.options)
    self.is_open = True
    self.problems_created = 0
    logging.info('Opened %s solver session.', backend)

  def new_problem(self, name):
    """Creates an empty pywraplp.Solver to load a problem into.

    Args:
      name: (str) name used in log messages.

    Raises:
      RuntimeError: If the session was closed.
      SolverFailure: If the backend is not available.

    Returns:
      pywraplp.Solver.
    """

    if not self.is_open:
      raise RuntimeError('new_problem(%s) called on a closed session.' % name)

    problem = pywraplp.Solver.CreateSolver(self.backend)
    if problem is None:
      raise SolverFailure('Solver backend %s is not available.' % self.backend)

    if 'num_threads' in self.options:
      problem.SetNumThreads(int(self.options['num_threads']))

    if 'solver_specific' in self.options:
      problem.SetSolverSpecificParametersAsString(
          str(self.options['solver_specific']))

    self.problems_created += 1
    logging.debug('Created problem %s.', name)
    return problem

  def solve(self, problem, name=''):
    """Solves problem.

    Args:
      problem: pywraplp.Solver from new_problem().
      name: (str) problem name used in error messages.

    Raises:
      SolverFailure: If the solution is not optimal.

    Returns:
      The pywraplp status, always OPTIMAL.
    """

    status = problem.Solve(self.parameters)
    if status != pywraplp.Solver.OPTIMAL:
      raise SolverFailure('%s did not solve, status %s' % (
          name, _STATUS_NAMES.get(status, status)))

    return status

  def primal(self, variable):
    return variable.solution_value()

  def dual(self, constraint):
    """Returns d(objective) / d(constraint bound) at the solution."""
    if isinstance(constraint, Constraint):
      constraint = constraint.constraint
    return constraint.dual_value()

  def close(self):
    if self.is_open:
      self.is_open = False
      logging.info('Closed %s solver session after %d problems.',
                   self.backend, self.problems_created)


@contextlib.contextmanager
def solver_session(backend=DEFAULT_SOLVER, options=None):
  """Yields a SolverSession and closes it on every exit path."""

  session = SolverSession(backend, options)
  try:
    yield session
  finally:
    session.close()


class IntervalModel(object):
  """Builds and solves the LP for one window of hours.

  Example Usage:
    with solver_session() as session:
      model = IntervalModel(case, start_index=1, interval_length=24,
                            session=session)
      model.build()
      model.solve()

  Attributes:
    case: The Case.  Never modified.
    start_index: int first absolute hour.
    interval_length: int number of hours.
    hours: int np.array of absolute hours in the window.
    session: SolverSession which creates and solves the LP.

    load_shed_enabled: Boolean.  If set, demand may go unserved at
      load_shed_penalty per Megawatt-hour.
    trans_viol_enabled: Boolean.  If set, thermal limits may be exceeded
      at trans_viol_penalty per Megawatt-hour.
    initial_ramp_enabled: Boolean.  If set, the first hour is ramp
      limited against initial_ramp_g0.
    initial_ramp_g0: float np.array of generation per generator at the
      hour before start_index, or None.

    bus_demand: float np.array (bus x hour) of nodal demand.
    variables: dict of group name to HandleGroup of pywraplp Variables.
    constraints: dict of group name to HandleGroup of Constraints.
    minimize_costs_objective: The LP Objective which is to minimize costs.

    solver: The wrapped pywraplp.Solver.
    state: None before build(), then BUILT, SOLVED or FAILED.
  """

  def __init__(self,
               case,
               start_index,
               interval_length,
               session,
               load_shed_enabled=False,
               load_shed_penalty=DEFAULT_LOAD_SHED_PENALTY,
               trans_viol_enabled=False,
               trans_viol_penalty=DEFAULT_TRANS_VIOL_PENALTY,
               initial_ramp_enabled=False,
               initial_ramp_g0=None):
    """Initializes IntervalModel.

    Raises:
      ValueError: If interval_length < 1.
      DataIntegrityError: If initial ramping is enabled without a
        generation vector matching the case generators.
    """

    if interval_length < 1:
      raise ValueError('interval_length must be >= 1, got %r' %
                       interval_length)

    self.case = case
    self.start_index = int(start_index)
    self.interval_length = int(interval_length)
    self.hours = np.arange(self.start_index,
                           self.start_index + self.interval_length)
    self.session = session

    self.load_shed_enabled = load_shed_enabled
    self.load_shed_penalty = load_shed_penalty
    self.trans_viol_enabled = trans_viol_enabled
    self.trans_viol_penalty = trans_viol_penalty
    self.initial_ramp_enabled = initial_ramp_enabled
    self.initial_ramp_g0 = None

    if initial_ramp_enabled:
      if initial_ramp_g0 is None:
        raise DataIntegrityError('initial_ramp_enabled without initial_ramp_g0')
      g0 = np.asarray(initial_ramp_g0, dtype=float).ravel()
      if len(g0) != case.num_gen:
        raise DataIntegrityError(
            'initial_ramp_g0 has %d values for %d generators' % (
                len(g0), case.num_gen))
      if not np.isfinite(g0[np.isfinite(case.gen_ramp30)]).all():
        raise DataIntegrityError(
            'initial_ramp_g0 must be finite for ramp limited generators')
      self.initial_ramp_g0 = g0

    self.bus_demand = None
    self.variables = {}
    self.constraints = {}
    self.minimize_costs_objective = None

    self.solver = None
    self.state = None

  @property
  def name(self):
    return 'interval h%d-h%d' % (self.hours[0], self.hours[-1])

  def constraint(self, lower, upper, name=None, debug=False):
    """Build a new Constraint which with valid range between lower and upper."""
    return Constraint(self, lower, upper, name, debug)

  def declare_variables(self, name, entity_index, num_entities, lower, upper):
    """Declares one variable per (entity, hour) and registers the group.

    Args:
      name: String group name, also used in variable names.
      entity_index: int positions of the entities which get variables.
      num_entities: int number of entities of this kind.
      lower: float or array (len(entity_index) x hours) of lower bounds.
      upper: float or array (len(entity_index) x hours) of upper bounds.

    Returns:
      HandleGroup of pywraplp Variables.
    """

    entity_index = np.asarray(entity_index, dtype=int)
    shape = (len(entity_index), self.interval_length)
    lower = np.broadcast_to(np.asarray(lower, dtype=float), shape)
    upper = np.broadcast_to(np.asarray(upper, dtype=float), shape)

    handles = np.empty(shape, dtype=object)
    for i, e in enumerate(entity_index):
      for h, hour in enumerate(self.hours):
        handles[i, h] = self.solver.NumVar(
            lower[i, h], upper[i, h], '%s[%d,%d]' % (name, e, hour))

    group = HandleGroup(name, entity_index, num_entities, handles)
    self.variables[name] = group
    return group

  def declare_constraints(self, name, entity_index, num_entities, lower,
                          upper, num_hours=None):
    """Declares one Constraint per (entity, hour) and registers the group.

    Coefficients are set by the caller.

    Args:
      name: String group name, also used in constraint names.
      entity_index: int positions of the constrained entities.
      num_entities: int number of entities of this kind.
      lower: float or array (len(entity_index) x num_hours) of lower bounds.
      upper: float or array (len(entity_index) x num_hours) of upper bounds.
      num_hours: Optional int number of hour columns.  Defaults to
        interval_length.

    Returns:
      HandleGroup of Constraints.
    """

    if num_hours is None:
      num_hours = self.interval_length

    entity_index = np.asarray(entity_index, dtype=int)
    shape = (len(entity_index), num_hours)
    lower = np.broadcast_to(np.asarray(lower, dtype=float), shape)
    upper = np.broadcast_to(np.asarray(upper, dtype=float), shape)

    handles = np.empty(shape, dtype=object)
    for i, e in enumerate(entity_index):
      for h in range(num_hours):
        handles[i, h] = self.constraint(
            lower[i, h], upper[i, h],
            '%s[%d,%d]' % (name, e, self.hours[h]))

    group = HandleGroup(name, entity_index, num_entities, handles)
    self.constraints[name] = group
    return group

  def build(self):
    """Declares variables, constraints and the objective.

    Raises:
      RuntimeError: If called twice.
      DataIntegrityError: If case costs were not linearized, bus
        references don't resolve, or profiles don't cover the window.
      UnsupportedCostShape: If a multi-segment cost isn't convex.
    """

    if self.state is not None:
      raise RuntimeError('build() called on a %s model' % self.state)

    case = self.case
    if case.cost_curves is None:
      raise DataIntegrityError(
          'Case costs are not linearized; run preprocess_case() first.')

    logging.debug('%s: parameters', self.name)
    gen_map = make_gen_map(case)
    branch_map = make_branch_map(case)
    self.bus_demand = bus_demand_profile(case, self.start_index,
                                         self.interval_length)

    renewables = {}
    for fuel in RENEWABLE_FUELS:
      gen_idx = case.fuel_index(fuel)
      renewables[fuel] = (gen_idx, profile_window(
          getattr(case, fuel), self.start_index, self.interval_length,
          case.genid[gen_idx]))

    self.solver = self.session.new_problem(self.name)
    self.minimize_costs_objective = Objective(self, minimize=True)

    logging.debug('%s: variables', self.name)
    self._declare_variables()

    logging.debug('%s: constraints', self.name)
    self._add_power_balance(gen_map, branch_map)
    self._add_ramp_constraints()
    self._add_capacity_constraints()
    self._add_branch_constraints()
    self._add_renewable_constraints(renewables)

    logging.debug('%s: objective', self.name)
    self._add_objective()

    self.state = BUILT
    logging.debug('%s: built %d variables, %d constraints', self.name,
                  self.solver.NumVariables(), self.solver.NumConstraints())

  def solve(self):
    """Runs the solver on a built model.

    Raises:
      RuntimeError: If the model isn't in the BUILT state.
      SolverFailure: If the solver does not find an optimal solution.
        The model moves to the FAILED state.
    """

    if self.state != BUILT:
      raise RuntimeError('solve() called on a %s model' % self.state)

    logging.info('Solving %s', self.name)
    try:
      self.session.solve(self.solver, self.name)
    except SolverFailure:
      self.state = FAILED
      raise

    self.state = SOLVED

  def _declare_variables(self):
    case = self.case
    inf = self.solver.infinity()

    self.declare_variables('pg', np.arange(case.num_gen), case.num_gen,
                           0.0, inf)
    self.declare_variables('pf', np.arange(case.num_branch), case.num_branch,
                           -inf, inf)
    self.declare_variables('theta', np.arange(case.num_bus), case.num_bus,
                           -inf, inf)

    if self.load_shed_enabled:
      self.declare_variables('load_shed', np.arange(case.num_bus),
                             case.num_bus, 0.0,
                             np.maximum(self.bus_demand, 0.0))

    if self.trans_viol_enabled:
      rated = np.flatnonzero(np.isfinite(case.branch_rating_all))
      self.declare_variables('trans_viol', rated, case.num_branch, 0.0, inf)

  def _add_power_balance(self, gen_map, branch_map):
    """gen_map * pg + branch_map * pf (+ load_shed) == bus_demand."""

    case = self.case
    powerbalance = self.declare_constraints(
        'powerbalance', np.arange(case.num_bus), case.num_bus,
        self.bus_demand, self.bus_demand)

    for matrix, group in ((gen_map, self.variables['pg']),
                          (branch_map, self.variables['pf'])):
      coo = matrix.tocoo()
      for bus, entity, coefficient in zip(coo.row, coo.col, coo.data):
        for h in range(self.interval_length):
          powerbalance[bus, h].set_coefficient(group[entity, h], coefficient)

    if self.load_shed_enabled:
      load_shed = self.variables['load_shed']
      for b in range(case.num_bus):
        for h in range(self.interval_length):
          powerbalance[b, h].set_coefficient(load_shed[b, h], 1.0)

  def _add_ramp_constraints(self):
    """|pg[h+1] - pg[h]| <= 2 * ramp30 for ramp limited generators."""

    case = self.case
    inf = self.solver.infinity()
    pg = self.variables['pg']
    ramp_idx = np.flatnonzero(np.isfinite(case.gen_ramp30))
    # ramp30 is a 30 minute limit and hours are 60 minutes.
    ramp = 2.0 * case.gen_ramp30[ramp_idx][:, np.newaxis]

    if self.initial_ramp_enabled:
      g0 = self.initial_ramp_g0[ramp_idx][:, np.newaxis]
      initial_rampup = self.declare_constraints(
          'initial_rampup', ramp_idx, case.num_gen, -inf, g0 + ramp,
          num_hours=1)
      initial_rampdown = self.declare_constraints(
          'initial_rampdown', ramp_idx, case.num_gen, g0 - ramp, inf,
          num_hours=1)
      for i, g in enumerate(ramp_idx):
        initial_rampup[i, 0].set_coefficient(pg[g, 0], 1.0)
        initial_rampdown[i, 0].set_coefficient(pg[g, 0], 1.0)

    if self.interval_length > 1:
      num_steps = self.interval_length - 1
      rampup = self.declare_constraints(
          'rampup', ramp_idx, case.num_gen, -inf, ramp, num_hours=num_steps)
      rampdown = self.declare_constraints(
          'rampdown', ramp_idx, case.num_gen, -ramp, inf, num_hours=num_steps)
      for i, g in enumerate(ramp_idx):
        for h in range(num_steps):
          for c in (rampup[i, h], rampdown[i, h]):
            c.set_coefficient(pg[g, h + 1], 1.0)
            c.set_coefficient(pg[g, h], -1.0)

  def _add_capacity_constraints(self):
    """pmin <= pg always, pg <= pmax for non-renewable generators."""

    case = self.case
    inf = self.solver.infinity()
    pg = self.variables['pg']

    gen_pmax = np.array(case.gen_pmax)
    gen_pmax[case.fuel_index(*RENEWABLE_FUELS)] = np.inf

    gen_idx = np.arange(case.num_gen)
    gen_min = self.declare_constraints(
        'gen_min', gen_idx, case.num_gen,
        case.gen_pmin[:, np.newaxis], inf)

    noninf_pmax = np.flatnonzero(np.isfinite(gen_pmax))
    gen_max = self.declare_constraints(
        'gen_max', noninf_pmax, case.num_gen,
        -inf, gen_pmax[noninf_pmax][:, np.newaxis])

    for h in range(self.interval_length):
      for g in gen_idx:
        gen_min[g, h].set_coefficient(pg[g, h], 1.0)
      for i, g in enumerate(noninf_pmax):
        gen_max[i, h].set_coefficient(pg[g, h], 1.0)

  def _add_branch_constraints(self):
    """Thermal limits for rated branches, angle relation for AC branches."""

    case = self.case
    inf = self.solver.infinity()
    pf = self.variables['pf']
    theta = self.variables['theta']

    branch_rating = case.branch_rating_all
    rated = np.flatnonzero(np.isfinite(branch_rating))
    rating = branch_rating[rated][:, np.newaxis]

    # -rating <= pf + trans_viol and pf - trans_viol <= rating
    branch_min = self.declare_constraints(
        'branch_min', rated, case.num_branch, -rating, inf)
    branch_max = self.declare_constraints(
        'branch_max', rated, case.num_branch, -inf, rating)

    for i, br in enumerate(rated):
      for h in range(self.interval_length):
        branch_min[i, h].set_coefficient(pf[br, h], 1.0)
        branch_max[i, h].set_coefficient(pf[br, h], 1.0)
        if self.trans_viol_enabled:
          trans_viol = self.variables['trans_viol']
          branch_min[i, h].set_coefficient(trans_viol[i, h], 1.0)
          branch_max[i, h].set_coefficient(trans_viol[i, h], -1.0)

    # Only the first num_branch_ac branches are AC.  DC lines are free
    # injections bounded by their rating.
    branch_from_idx, branch_to_idx = branch_endpoints(case)
    ac_idx = np.arange(case.num_branch_ac)
    branch_angle = self.declare_constraints(
        'branch_angle', ac_idx, case.num_branch, 0.0, 0.0)

    for br in ac_idx:
      for h in range(self.interval_length):
        c = branch_angle[br, h]
        c.set_coefficient(pf[br, h], case.branch_reactance[br])
        c.set_coefficient(theta[branch_to_idx[br], h], -1.0)
        c.set_coefficient(theta[branch_from_idx[br], h], 1.0)

  def _add_renewable_constraints(self, renewables):
    """Hydro follows its profile exactly, wind and solar are curtailable."""

    case = self.case
    inf = self.solver.infinity()
    pg = self.variables['pg']

    for fuel, name in ((HYDRO, 'hydro_fixed'),
                       (SOLAR, 'solar_max'),
                       (WIND, 'wind_max')):
      gen_idx, simulation_profile = renewables[fuel]
      upper = simulation_profile.T
      lower = upper if fuel == HYDRO else -inf

      group = self.declare_constraints(name, gen_idx, case.num_gen,
                                       lower, upper)
      for i, g in enumerate(gen_idx):
        for h in range(self.interval_length):
          group[i, h].set_coefficient(pg[g, h], 1.0)

  def _add_objective(self):
    """Generation cost, no-load cost and penalties.

    Single segment and fixed costs go straight into the objective as a
    coefficient on pg plus a constant.  Costs with more than one segment
    use an epigraph variable gen_cost[g, h] >= slope_s * pg[g, h] +
    intercept_s for every segment s.
    """

    case = self.case
    objective = self.minimize_costs_objective
    num_hour = self.interval_length
    pg = self.variables['pg']

    curves = case.cost_curves
    multi = np.array([not isinstance(cv, FixedCost) and cv.num_segments > 1
                      for cv in curves], dtype=bool)
    single = [curves[g] for g in np.flatnonzero(~multi)]
    slope, no_load = linear_cost_terms(single)

    # Start with generator variable O & M.
    for i, g in enumerate(np.flatnonzero(~multi)):
      if slope[i]:
        for h in range(num_hour):
          objective.set_coefficient(pg[g, h], slope[i])

    # Add no-load costs.
    objective.set_offset(num_hour * np.sum(no_load))

    if multi.any():
      self._add_cost_segments(np.flatnonzero(multi))

    if self.load_shed_enabled:
      for v in self.variables['load_shed'].handles.ravel():
        objective.set_coefficient(v, self.load_shed_penalty)

    if self.trans_viol_enabled:
      for v in self.variables['trans_viol'].handles.ravel():
        objective.set_coefficient(v, self.trans_viol_penalty)

  def _add_cost_segments(self, gen_idx):
    case = self.case
    inf = self.solver.infinity()
    pg = self.variables['pg']

    segments = []
    for g in gen_idx:
      slopes, intercepts = case.cost_curves[g].segments()
      tolerance = _CONVEXITY_RTOL * max(1.0, np.abs(slopes).max())
      if (np.diff(slopes) < -tolerance).any():
        raise UnsupportedCostShape(
            'Cost of generator %d is not convex; slopes %s' % (
                case.genid[g], slopes))
      segments.append((slopes, intercepts))

    gen_cost = self.declare_variables('gen_cost', gen_idx, case.num_gen,
                                      -inf, inf)
    for v in gen_cost.handles.ravel():
      self.minimize_costs_objective.set_coefficient(v, 1.0)

    # gen_cost - slope * pg >= intercept
    num_segments = max(len(s) for s, _ in segments)
    handles = np.empty((len(gen_idx), num_segments, self.interval_length),
                       dtype=object)
    for i, g in enumerate(gen_idx):
      slopes, intercepts = segments[i]
      for s in range(len(slopes)):
        for h, hour in enumerate(self.hours):
          c = self.constraint(intercepts[s], inf,
                              'cost_segment[%d,%d,%d]' % (g, s, hour))
          c.set_coefficient(gen_cost[i, h], 1.0)
          c.set_coefficient(pg[g, h], -slopes[s])
          handles[i, s, h] = c

    self.constraints['cost_segment'] = HandleGroup(
        'cost_segment', gen_idx, case.num_gen, handles)


def build_model(case, start_index, interval_length, session, **kwargs):
  """Builds the LP for hours [start_index, start_index + interval_length).

  Args:
    case: Case with linearized costs.
    start_index: int first absolute hour.
    interval_length: int number of hours.
    session: SolverSession.
    **kwargs: IntervalModel options, e.g. load_shed_enabled,
      trans_viol_enabled, initial_ramp_enabled, initial_ramp_g0.

  Returns:
    IntervalModel in the BUILT state.
  """

  model = IntervalModel(case, start_index, interval_length, session, **kwargs)
  model.build()
  return model


def _make_parameters(options):
  """Builds MPSolverParameters from named options.

  Raises:
    ValueError: If an option name or value is unknown.
  """

  parameters = pywraplp.MPSolverParameters()
  for name, value in sorted(options.items()):
    if name in _PROBLEM_OPTIONS:
      continue

    if name not in _SOLVER_OPTIONS:
      known = ', '.join(sorted(list(_SOLVER_OPTIONS) + list(_PROBLEM_OPTIONS)))
      raise ValueError('Unknown solver option %s. Known options are (%s).' % (
          name, known))

    parameter, values = _SOLVER_OPTIONS[name]
    if values is None:
      parameters.SetDoubleParam(parameter, float(value))
    else:
      try:
        parameters.SetIntegerParam(parameter, values[str(value).lower()])
      except KeyError:
        raise ValueError('Solver option %s must be one of %s, got %r' % (
            name, sorted(values), value))

  return parameters
