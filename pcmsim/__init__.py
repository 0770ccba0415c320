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

"""Rolling-horizon production-cost simulation of an electric grid.

Given a fixed grid (buses, AC branches, DC lines and generators) and
hourly profiles of zonal demand and renewable availability, this package
finds the least cost hourly dispatch of every generator which keeps the
lights on while respecting the physics of the network.

The network is modeled with the DC power flow approximation:

  - Real power is conserved at every bus.  Generation plus power flowing
      in equals demand plus power flowing out.
  - Flow on an AC branch is proportional to the difference in voltage
      angle between its ends, scaled by its reactance.
  - DC lines move power between their ends without an angle relation.
  - Every rated branch and DC line has a thermal limit in both
      directions.

Generators have minimum and maximum power and a 30 minute ramp limit.
Hydro is dispatched exactly at its profile, while wind and solar may be
curtailed below theirs.  Quadratic generator costs are approximated by
piecewise-linear secants so the whole problem is a linear program (LP).

A year long horizon is too big to solve at once, so it is cut into
consecutive intervals (e.g. 24 hours) which are solved one after the
other.  The dispatch in the last hour of an interval is the ramp
starting point of the next one.

Besides dispatch, each interval yields branch flows, nodal prices
(locational marginal prices, LMP) and congestion rents on thermal
limits, read from the duals of the LP.

Modules:

  case: validated, read-only grid snapshot and profiles.
  cost_linearizer: quadratic to piecewise-linear cost curves.
  ramp_estimator: fuel and capacity based 30 minute ramp limits.
  topology: sparse incidence matrices and nodal demand.
  linear_program: builds and solves the LP of one interval.
  results: reads dispatch, flows and prices from a solved LP.
  case_io: reads input folders and writes MATLAB result files.
  simulation: preprocessing and the rolling-horizon driver.
"""
