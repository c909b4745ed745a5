# Copyright 2021 Google LLC
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
The numerical core of `viscous_ib`.

The modules are grouped by their role in a time step: the immersed boundary
coupling and the time integrator, the terms of the vorticity equation, and the
discrete field machinery they are built on. Typical use:
`from viscous_ib.base import grids`.
"""


import viscous_ib.base.IBM_Force

import viscous_ib.base.state

import viscous_ib.base.time_stepping



import viscous_ib.base.equations

import viscous_ib.base.poisson

import viscous_ib.base.advection

import viscous_ib.base.diffusion



import viscous_ib.base.grids

import viscous_ib.base.boundaries

import viscous_ib.base.convolution_functions

import viscous_ib.base.finite_differences

import viscous_ib.base.array_utils
