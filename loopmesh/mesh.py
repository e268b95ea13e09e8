# SPDX-FileCopyrightText: Copyright (c) 2023 - 2026 NVIDIA CORPORATION & AFFILIATES.
# SPDX-FileCopyrightText: All rights reserved.
# SPDX-License-Identifier: Apache-2.0
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

from typing import TYPE_CHECKING, Any, Literal, Self

import torch
from tensordict import TensorDict, tensorclass

from loopmesh.geometry.normals import (
    NormalWeighting,
    compute_cell_areas,
    compute_cell_normals,
    compute_point_normals,
)


@tensorclass(tensor_only=True)
class Mesh:
    r"""A PyTorch-based triangle mesh with attached field data.

    A ``Mesh`` is defined by two tensors:

    - ``points``: Vertex coordinates with shape :math:`(N_p, D_s)`. A vertex
      has no identity beyond its row index.
    - ``cells``: Cell connectivity with shape :math:`(N_c, D_m + 1)`. Each row
      lists point indices defining one simplex; for triangles the winding
      order ``(v1, v2, v3)`` defines the outward normal.

    Subdivision and normals require triangles (:math:`D_m = 2`) in 3D space
    (:math:`D_s = 3`). Other shapes are accepted by the container itself.

    Tensor data of any shape can be attached at three levels:

    - ``point_data``: Per-vertex quantities (temperature, normals, ...)
    - ``cell_data``: Per-cell quantities (material ID, pressure, ...)
    - ``global_data``: Mesh-level quantities

    All data is stored in ``TensorDict`` containers that move together with the
    mesh geometry under ``.to(device)`` calls.

    Parameters
    ----------
    points : torch.Tensor
        Vertex coordinates with shape :math:`(N_p, D_s)`. Must be floating-point.
    cells : torch.Tensor
        Cell connectivity with shape :math:`(N_c, D_m + 1)`. Must be integer dtype.
    point_data : TensorDict or dict[str, torch.Tensor], optional
        Per-vertex data. Dicts are automatically converted to TensorDict.
    cell_data : TensorDict or dict[str, torch.Tensor], optional
        Per-cell data. Dicts are automatically converted to TensorDict.
    global_data : TensorDict or dict[str, torch.Tensor], optional
        Mesh-level data. Dicts are automatically converted to TensorDict.

    Raises
    ------
    ValueError
        If ``points`` or ``cells`` is not 2D, if the manifold dimension exceeds
        the spatial dimension, or if the tensors live on different devices.
    TypeError
        If ``points`` is not floating-point or ``cells`` is floating-point.

    Examples
    --------
    >>> import torch
    >>> points = torch.tensor(
    ...     [[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0]]
    ... )
    >>> cells = torch.tensor([[0, 1, 2], [0, 2, 3]])
    >>> mesh = Mesh(points=points, cells=cells)
    >>> mesh.n_points, mesh.n_cells, mesh.n_edges
    (4, 2, 5)
    """

    points: torch.Tensor  # shape: (n_points, n_spatial_dimensions)
    cells: torch.Tensor  # shape: (n_cells, n_manifold_dimensions + 1)
    point_data: TensorDict
    cell_data: TensorDict
    global_data: TensorDict

    def __init__(
        self,
        points: torch.Tensor,
        cells: torch.Tensor,
        point_data: TensorDict | dict[str, torch.Tensor] | None = None,
        cell_data: TensorDict | dict[str, torch.Tensor] | None = None,
        global_data: TensorDict | dict[str, torch.Tensor] | None = None,
    ) -> None:
        ### Validate shapes and dtypes before anything reads them
        if points.ndim != 2:
            raise ValueError(
                f"`points` must have shape (n_points, n_spatial_dimensions), but got {points.shape=}."
            )
        if cells.ndim != 2:
            raise ValueError(
                f"`cells` must have shape (n_cells, n_manifold_dimensions + 1), but got {cells.shape=}."
            )
        if not torch.is_floating_point(points):
            raise TypeError(
                f"`points` must have a floating-point dtype, but got {points.dtype=}."
            )
        if torch.is_floating_point(cells):
            raise TypeError(
                f"`cells` must have an int-like dtype, but got {cells.dtype=}."
            )
        if cells.shape[-1] - 1 > points.shape[-1]:
            raise ValueError(
                f"`n_manifold_dims` must be <= `n_spatial_dims`, but got "
                f"{cells.shape[-1] - 1} > {points.shape[-1]}."
            )
        if points.device != cells.device:
            raise ValueError(
                f"`points` and `cells` must be on the same device, "
                f"but got {points.device=} and {cells.device=}."
            )

        ### Assign tensorclass fields
        self.points = points
        self.cells = cells

        # For data fields, convert inputs to TensorDicts if needed
        self.point_data = _as_tensordict(point_data, self.n_points, points.device)
        self.cell_data = _as_tensordict(cell_data, self.n_cells, points.device)
        self.global_data = _as_tensordict(global_data, None, points.device)

    if TYPE_CHECKING:
        # Type stubs for methods dynamically added by @tensorclass.
        def to(self, *args: Any, **kwargs: Any) -> Self:
            """Move mesh and all attached data to a device and/or dtype."""
            ...

        def clone(self) -> Self:
            """Return a clone of this Mesh."""
            ...

    @property
    def n_points(self) -> int:
        return self.points.shape[0]

    @property
    def n_spatial_dims(self) -> int:
        return self.points.shape[-1]

    @property
    def n_cells(self) -> int:
        return self.cells.shape[0]

    @property
    def n_manifold_dims(self) -> int:
        return self.cells.shape[-1] - 1

    @property
    def codimension(self) -> int:
        """Difference between the spatial and the manifold dimension.

        Triangles in 3D have codimension 1, the only case where point and cell
        normals are uniquely defined (up to orientation).
        """
        return self.n_spatial_dims - self.n_manifold_dims

    @property
    def edges(self) -> torch.Tensor:
        """Unique undirected edges, shape (n_edges, 2), endpoints ascending.

        Only defined for triangle meshes.
        """
        from loopmesh.subdivision._topology import extract_unique_edges

        self._require_triangles("edges")
        unique_edges, _ = extract_unique_edges(self.cells)
        return unique_edges

    @property
    def n_edges(self) -> int:
        return self.edges.shape[0]

    @property
    def boundary_edges(self) -> torch.Tensor:
        """Edges that belong to exactly one cell, shape (n_boundary_edges, 2)."""
        from loopmesh.subdivision._topology import extract_unique_edges

        self._require_triangles("boundary_edges")
        unique_edges, counts = extract_unique_edges(self.cells)
        return unique_edges[counts == 1]

    def is_watertight(self) -> bool:
        """Check whether every edge is shared by exactly two cells.

        Returns
        -------
        bool
            True for a closed manifold surface, False if the mesh has boundary
            or non-manifold edges. An empty mesh is not watertight.
        """
        from loopmesh.subdivision._topology import extract_unique_edges

        self._require_triangles("is_watertight")
        _, counts = extract_unique_edges(self.cells)
        return len(counts) > 0 and bool(torch.all(counts == 2))

    @property
    def cell_areas(self) -> torch.Tensor:
        """Triangle areas, shape (n_cells,)."""
        self._require_surface("cell_areas")
        return compute_cell_areas(self.points, self.cells)

    @property
    def cell_normals(self) -> torch.Tensor:
        """Unit triangle normals oriented by winding order, shape (n_cells, 3).

        Degenerate triangles get a zero normal.
        """
        self._require_surface("cell_normals")
        return compute_cell_normals(self.points, self.cells)

    @property
    def point_normals(self) -> torch.Tensor:
        """Angle-weighted unit normals at the mesh vertices, shape (n_points, 3).

        This is the normal the Loop subdivision step stores in
        ``point_data["normals"]``. For other weighting schemes use
        :meth:`compute_point_normals`.
        """
        return self.compute_point_normals(weighting="angle")

    def compute_point_normals(self, weighting: NormalWeighting = "angle") -> torch.Tensor:
        """Compute normal vectors at mesh vertices with the given weighting.

        Parameters
        ----------
        weighting : {"angle", "area", "unweighted", "angle_area"}
            Weighting scheme for averaging incident cell normals, see
            :func:`loopmesh.geometry.compute_point_normals`.

        Returns
        -------
        torch.Tensor
            Shape (n_points, 3). Unit vectors, or zero for points without a
            defined normal (isolated points, degenerate fans).

        Raises
        ------
        ValueError
            If the mesh is not a triangle mesh in 3D, or ``weighting`` is
            invalid.
        """
        self._require_surface("compute_point_normals")
        return compute_point_normals(self.points, self.cells, weighting=weighting)

    def validate(self, raise_on_error: bool = False, **checks: bool):
        """Validate the Loop subdivision preconditions of this mesh.

        Thin wrapper around :func:`loopmesh.validation.validate_mesh`.
        """
        from loopmesh.validation import validate_mesh

        return validate_mesh(self, raise_on_error=raise_on_error, **checks)

    def subdivide(
        self,
        boundary_rule: Literal["uniform", "crease"] = "uniform",
        normal_weighting: NormalWeighting = "angle",
        non_manifold: Literal["first_two", "raise"] = "first_two",
    ) -> "Mesh":
        """Apply one step of Loop subdivision.

        Repeated refinement is a matter of calling this method again on the
        result. See :func:`loopmesh.subdivision.subdivide_loop` for the
        parameters.

        Returns
        -------
        Mesh
            Refined mesh with ``4 * n_cells`` cells, ``n_points + n_edges``
            points and recomputed ``point_data["normals"]``.

        Examples
        --------
        >>> from loopmesh.primitives.surfaces import tetrahedron_surface
        >>> mesh = tetrahedron_surface.load()
        >>> twice = mesh.subdivide().subdivide()
        >>> twice.n_cells
        64
        """
        from loopmesh.subdivision import subdivide_loop

        return subdivide_loop(
            self,
            boundary_rule=boundary_rule,
            normal_weighting=normal_weighting,
            non_manifold=non_manifold,
        )

    def _require_triangles(self, name: str) -> None:
        if self.n_manifold_dims != 2:
            raise ValueError(
                f"`{name}` is only defined for triangle meshes, but got {self.n_manifold_dims=}."
            )

    def _require_surface(self, name: str) -> None:
        if self.n_manifold_dims != 2 or self.n_spatial_dims != 3:
            raise ValueError(
                f"`{name}` is only defined for triangle meshes in 3D space.\n"
                f"Got {self.n_manifold_dims=} and {self.n_spatial_dims=}."
            )


def _as_tensordict(
    data: TensorDict | dict[str, torch.Tensor] | None,
    n_rows: int | None,
    device: torch.device,
) -> TensorDict:
    """Convert a data argument to a TensorDict with a shape-compatible batch size."""
    batch_size = torch.Size([] if n_rows is None else [n_rows])
    if isinstance(data, TensorDict):
        data.batch_size = batch_size
        return data
    return TensorDict(
        {} if data is None else dict(data),
        batch_size=batch_size,
        device=device,
    )
