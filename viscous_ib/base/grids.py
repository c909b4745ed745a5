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
Cell-centred grids and the arrays that live on them.

Every field of the solver (vorticity, streamfunction, velocity components,
force densities) is stored at the cell centres of a uniform Cartesian grid.
A raw JAX array does not know that, so it is carried around together with its
placement:

- `Grid`: number of cells, cell size and physical extent of the domain.
- `GridArray`: data plus its offset within a cell and its `Grid`. Arithmetic
  between `GridArray`s refuses to mix offsets or grids.
- `GridVariable`: a `GridArray` plus the `BoundaryConditions` that fill its
  ghost cells; the finite difference operators take these.
"""
from __future__ import annotations

import dataclasses
import numbers
from typing import Callable, Optional, Sequence, Tuple, Union

import jax
import jax.numpy as jnp
from jax.tree_util import register_pytree_node_class
import numpy as np

Array = Union[np.ndarray, jax.Array]


class InconsistentOffsetError(Exception):
  """Two arrays that were combined sit at different offsets."""


class InconsistentGridError(Exception):
  """Two arrays that were combined live on different grids."""


@register_pytree_node_class
@dataclasses.dataclass
class GridArray(np.lib.mixins.NDArrayOperatorsMixin):
  """
  An array of values at a given offset on a grid.

  Only `data` is a pytree leaf; `offset` and `grid` travel as static
  metadata, so `jax.jit` and `jax.vmap` see through the wrapper. Python
  operators are dispatched to the `jax.numpy` ufunc of the same name.

  Attributes:
    data: the values.
    offset: position of the values inside a cell, in cell widths;
      `(0.5, 0.5)` is the cell centre.
    grid: the `Grid`.
  """
  data: Array
  offset: Tuple[float, ...]
  grid: Grid

  def tree_flatten(self):
    return (self.data,), (self.offset, self.grid)

  @classmethod
  def tree_unflatten(cls, aux_data, children):
    return cls(children[0], *aux_data)

  @property
  def dtype(self):
    return self.data.dtype

  @property
  def shape(self) -> Tuple[int, ...]:
    return self.data.shape

  # `jax.Array` covers tracers as well as concrete arrays.
  _OPERAND_TYPES = (numbers.Number, np.ndarray, jax.Array)

  def __array_ufunc__(self, ufunc, method, *inputs, **kwargs):
    if method != '__call__' or kwargs:
      return NotImplemented
    if not all(isinstance(x, (GridArray,) + self._OPERAND_TYPES)
               for x in inputs):
      return NotImplemented
    jnp_ufunc = getattr(jnp, ufunc.__name__, None)
    if jnp_ufunc is None:
      return NotImplemented
    placed = [x for x in inputs if isinstance(x, GridArray)]
    offset = consistent_offset(*placed)
    grid = consistent_grid(*placed)
    result = jnp_ufunc(*(x.data if isinstance(x, GridArray) else x
                         for x in inputs))
    if isinstance(result, tuple):
      return tuple(GridArray(r, offset, grid) for r in result)
    return GridArray(result, offset, grid)


GridArrayVector = Tuple[GridArray, ...]


class BoundaryConditions:
  """
  What a `GridVariable` needs from its boundary conditions.

  Attributes:
    types: `(lower, upper)` boundary type names for each axis.
  """
  types: Tuple[Tuple[str, str], ...]

  def shift(self, u: GridArray, offset: int, axis: int) -> GridArray:
    """`u` moved by `offset` cells along `axis`, ghost values from the BCs."""
    raise NotImplementedError

  def pad(self, u: GridArray, width: int, axis: int) -> GridArray:
    """`u` with `width` ghost cells added along `axis`."""
    raise NotImplementedError


@register_pytree_node_class
@dataclasses.dataclass
class GridVariable:
  """
  A `GridArray` together with its boundary conditions.

  Attributes:
    array: the values.
    bc: the boundary conditions, static pytree metadata.
  """
  array: GridArray
  bc: BoundaryConditions

  def __post_init__(self):
    if not isinstance(self.array, GridArray):
      raise ValueError(
          f'GridVariable needs a GridArray, got {type(self.array).__name__}')
    if len(self.bc.types) != self.grid.ndim:
      raise ValueError(
          f'boundary conditions for {len(self.bc.types)} axes on a '
          f'{self.grid.ndim}D grid')

  def tree_flatten(self):
    return (self.array,), (self.bc,)

  @classmethod
  def tree_unflatten(cls, aux_data, children):
    return cls(children[0], *aux_data)

  @property
  def dtype(self):
    return self.array.dtype

  @property
  def shape(self) -> Tuple[int, ...]:
    return self.array.shape

  @property
  def data(self) -> Array:
    return self.array.data

  @property
  def offset(self) -> Tuple[float, ...]:
    return self.array.offset

  @property
  def grid(self) -> Grid:
    return self.array.grid

  def shift(self, offset: int, axis: int) -> GridArray:
    """The values moved by `offset` cells along `axis`."""
    return self.bc.shift(self.array, offset, axis)


def where(condition, x, y) -> GridArray:
  """`jnp.where` for `GridArray` operands, which must share offset and grid."""
  operands = (condition, x, y)
  placed = [a for a in operands if isinstance(a, GridArray)]
  if any(isinstance(a, GridVariable) for a in operands):
    raise ValueError('where() takes GridArrays, not GridVariables')
  data = jnp.where(*(a.data if isinstance(a, GridArray) else a
                     for a in operands))
  return GridArray(data, consistent_offset(*placed), consistent_grid(*placed))


def averaged_offset(*arrays: Union[GridArray, GridVariable]) -> Tuple[float, ...]:
  """The mean offset of `arrays`, e.g. where a difference of them lives."""
  if not arrays:
    return ()
  return tuple(np.mean([a.offset for a in arrays], axis=0).tolist())


def consistent_offset(*arrays: Union[GridArray, GridVariable]) -> Tuple[float, ...]:
  """The offset shared by all `arrays`."""
  offsets = {a.offset for a in arrays}
  if len(offsets) > 1:
    raise InconsistentOffsetError(f'arrays sit at different offsets: {offsets}')
  return offsets.pop() if offsets else ()


def consistent_grid(*arrays: Union[GridArray, GridVariable]) -> Optional[Grid]:
  """The grid shared by all `arrays`."""
  found = {a.grid for a in arrays}
  if len(found) > 1:
    raise InconsistentGridError(f'arrays live on different grids: {found}')
  return found.pop() if found else None


@dataclasses.dataclass(init=False, frozen=True)
class Grid:
  """
  A uniform Cartesian grid.

  Frozen and hashable, since it is static metadata of every `GridArray`.

  Attributes:
    shape: number of cells along each axis.
    step: cell size along each axis.
    domain: `(lower, upper)` limits along each axis.
  """
  shape: Tuple[int, ...]
  step: Tuple[float, ...]
  domain: Tuple[Tuple[float, float], ...]

  def __init__(
      self,
      shape: Sequence[int],
      step: Optional[Union[float, Sequence[float]]] = None,
      domain: Optional[Sequence[Tuple[float, float]]] = None,
  ):
    """
    Builds the grid from `shape` and one of `step` (the domain then starts
    at the origin) or `domain`; a unit step if neither is given.
    """
    shape = tuple(int(n) for n in shape)
    if step is not None and domain is not None:
      raise TypeError('give either step or domain, not both')
    if domain is None:
      if step is None:
        step = 1.0
      if isinstance(step, numbers.Number):
        step = (step,) * len(shape)
      if len(step) != len(shape):
        raise ValueError(f'{len(step)} steps for a {len(shape)}D grid')
      domain = [(0.0, h * n) for h, n in zip(step, shape)]
    if len(domain) != len(shape) or any(len(b) != 2 for b in domain):
      raise ValueError(
          f'domain must hold one (lower, upper) pair per axis, got {domain}')
    domain = tuple((float(lo), float(hi)) for lo, hi in domain)
    object.__setattr__(self, 'shape', shape)
    object.__setattr__(self, 'domain', domain)
    object.__setattr__(self, 'step', tuple(
        (hi - lo) / n for (lo, hi), n in zip(domain, shape)))

  @property
  def ndim(self) -> int:
    return len(self.shape)

  @property
  def cell_center(self) -> Tuple[float, ...]:
    return (0.5,) * self.ndim

  @property
  def area(self) -> float:
    """Area of one cell."""
    return float(np.prod(self.step))

  def axes(self, offset: Optional[Sequence[float]] = None) -> Tuple[Array, ...]:
    """Coordinates along each axis of the points at `offset`."""
    if offset is None:
      offset = self.cell_center
    if len(offset) != self.ndim:
      raise ValueError(f'offset {offset} does not match a {self.ndim}D grid')
    return tuple(lo + (jnp.arange(n) + o) * h
                 for (lo, _), o, n, h in zip(self.domain, offset, self.shape,
                                             self.step))

  def mesh(self, offset: Optional[Sequence[float]] = None) -> Tuple[Array, ...]:
    """Coordinate arrays of the points at `offset`, `ij` indexed."""
    return tuple(jnp.meshgrid(*self.axes(offset), indexing='ij'))

  def eval_on_mesh(self, fn: Callable[..., Array],
                   offset: Optional[Sequence[float]] = None) -> GridArray:
    """`fn(x, y)` evaluated at the points at `offset`."""
    if offset is None:
      offset = self.cell_center
    return GridArray(fn(*self.mesh(offset)), tuple(offset), self)
