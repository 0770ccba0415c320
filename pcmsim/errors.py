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

"""Errors raised while building, solving and reading production-cost models.

None of these are retried.  Each one aborts the simulation run.
"""


class PcmSimError(RuntimeError):
  pass


class DataIntegrityError(PcmSimError):
  """Unresolved references or mismatched dimensions in case data."""
  pass


class UnsupportedCostShape(PcmSimError):
  """Generator cost is not a polynomial quadratic."""
  pass


class SolverFailure(PcmSimError):
  """Solver did not return an optimal solution."""
  pass


class ResultShapeError(PcmSimError):
  """Variable or constraint group can't be read as an entity x hour matrix."""
  pass
