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

"""Loop subdivision for triangle meshes.

Loop subdivision is an approximating scheme: one step splits every triangle
into four and moves both the new edge vertices and the original vertices
towards a smooth limit surface (Loop 1987).

A step runs three passes over the data:

1. Triangulation. Faces are visited in order; each edge gets one new vertex,
   created by the first face that touches it and reused by the second. The
   edge vertex of an interior edge is ``3/8 (p0 + p1) + 1/8 (o0 + o1)`` where
   ``o0, o1`` are the apexes of the two triangles sharing the edge; on a
   boundary edge it is the plain midpoint ``1/2 (p0 + p1)``.
2. Smoothing of the original vertices. With ``N`` the number of triangles
   incident to ``v`` and ``S`` the sum, over those triangles, of their two
   other vertices: ``v' = 5/8 v + 3 / (16 N) S``. Boundary vertices use the
   same stencil unless ``boundary_rule="crease"`` is requested.
3. Angle-weighted point normals over the refined mesh.
"""

import logging
import warnings
from typing import TYPE_CHECKING, Literal

import torch

from loopmesh.geometry.normals import (
    VALID_WEIGHTINGS,
    NormalWeighting,
    compute_point_normals,
)
from loopmesh.subdivision._data import (
    interpolate_point_data_to_edges,
    propagate_cell_data_to_children,
)
from loopmesh.subdivision._edge_registry import EdgeRegistry
from loopmesh.subdivision._topology import (
    EdgeAdjacency,
    build_edge_adjacency,
    split_triangle,
)
from loopmesh.utilities._scatter_ops import (
    accumulate_point_values,
    count_point_occurrences,
)
from loopmesh.validation import validate_mesh

if TYPE_CHECKING:
    from loopmesh.mesh import Mesh

logger = logging.getLogger(__name__)

BoundaryRule = Literal["uniform", "crease"]
NonManifoldPolicy = Literal["first_two", "raise"]

VALID_BOUNDARY_RULES: tuple[str, ...] = ("uniform", "crease")
VALID_NON_MANIFOLD_POLICIES: tuple[str, ...] = ("first_two", "raise")


def get_new_vertex(
    edge: tuple[int, int],
    vertices: list[torch.Tensor],
    adjacency: EdgeAdjacency,
    registry: EdgeRegistry,
) -> int:
    """Return the index of the new vertex on ``edge``, creating it if needed.

    The first call for an edge computes the Loop edge vertex, appends it to
    ``vertices`` and registers it; every later call for the same edge (in
    either orientation) returns the registered index without creating
    anything.

    Parameters
    ----------
    edge : tuple[int, int]
        The two original-mesh vertex indices of the edge.
    vertices : list[torch.Tensor]
        Growing list of vertex positions. The first rows are the original
        (not yet smoothed) vertices; new edge vertices are appended.
    adjacency : EdgeAdjacency
        Opposite-vertex lookup built from the original cells.
    registry : EdgeRegistry
        Edge -> new vertex index map for the current step.

    Returns
    -------
    int
        Index of the edge vertex in ``vertices``.

    Raises
    ------
    KeyError
        If ``edge`` is not an edge of the original mesh.
    """
    if registry.contains(edge):
        return registry.get_index(edge)

    v0, v1 = edge
    opposite = adjacency.opposite_vertices(edge)

    if len(opposite) == 2:
        ### Interior edge: weight the endpoints 3/8 and the two apexes 1/8
        o0, o1 = opposite
        new_vertex = (3.0 / 8.0) * (vertices[v0] + vertices[v1]) + (1.0 / 8.0) * (
            vertices[o0] + vertices[o1]
        )
    else:
        ### Boundary edge: plain midpoint
        new_vertex = 0.5 * (vertices[v0] + vertices[v1])

    new_index = len(vertices)
    vertices.append(new_vertex)
    registry.add(edge, new_index)
    return new_index


def compute_edge_vertex_positions(
    points: torch.Tensor,
    edges: torch.Tensor,
    adjacency: EdgeAdjacency,
) -> torch.Tensor:
    """Compute the Loop edge vertices of many edges at once.

    Same weights as :func:`get_new_vertex`, evaluated in one batched pass.

    Parameters
    ----------
    points : torch.Tensor
        Original vertex positions, shape (n_points, n_spatial_dims).
    edges : torch.Tensor
        Edges of the original mesh, shape (n_edges, 2).
    adjacency : EdgeAdjacency
        Opposite-vertex lookup built from the original cells.

    Returns
    -------
    torch.Tensor
        Edge vertex positions, shape (n_edges, n_spatial_dims), in the order
        of ``edges``.

    Raises
    ------
    KeyError
        If an edge is not an edge of the original mesh.
    """
    edges = edges.to(points.device)
    opposite = adjacency.opposite[adjacency.find_rows(edges)]  # (n_edges, 2)
    is_interior = (opposite[:, 1] >= 0).unsqueeze(-1)

    endpoint_sums = points[edges[:, 0]] + points[edges[:, 1]]
    apex_sums = points[opposite[:, 0]] + points[opposite[:, 1].clamp(min=0)]

    interior = (3.0 / 8.0) * endpoint_sums + (1.0 / 8.0) * apex_sums
    boundary = 0.5 * endpoint_sums
    return torch.where(is_interior, interior, boundary)


def _resolve_edge_index(
    edge: tuple[int, int], registry: EdgeRegistry, n_original_points: int
) -> int:
    """Index of the edge vertex of ``edge``, registering the next free one if new."""
    if not registry.contains(edge):
        registry.add(edge, n_original_points + len(registry))
    return registry.get_index(edge)


def compute_loop_vertex_positions(
    points: torch.Tensor,
    cells: torch.Tensor,
    boundary_rule: BoundaryRule = "uniform",
    adjacency: EdgeAdjacency | None = None,
) -> torch.Tensor:
    """Compute the smoothed positions of the original vertices.

    Every cell adds, to each of its three corners, the sum of its other two
    vertices. The per-point sums ``S`` and the per-point cell counts ``N`` are
    then combined as ``5/8 p + 3 / (16 N) S``. All reads use ``points``; the
    result is a new tensor, so no vertex sees another vertex's updated value.

    Parameters
    ----------
    points : torch.Tensor
        Original vertex positions, shape (n_points, n_spatial_dims).
    cells : torch.Tensor
        Original triangles, shape (n_cells, 3).
    boundary_rule : {"uniform", "crease"}
        ``"uniform"`` applies the stencil above to every vertex, boundary
        vertices included. ``"crease"`` moves a vertex with exactly two
        boundary edges to ``3/4 p + 1/8 (b0 + b1)`` (``b0, b1`` its neighbours
        along the boundary) and leaves vertices with any other non-zero number
        of boundary edges in place.
    adjacency : EdgeAdjacency, optional
        Precomputed adjacency, only used by the crease rule. Built from
        ``cells`` when omitted.

    Returns
    -------
    torch.Tensor
        New positions, same shape and dtype as ``points``.

    Raises
    ------
    ValueError
        If some point belongs to no cell (its valence is zero), or if
        ``boundary_rule`` is unknown.
    """
    if boundary_rule not in VALID_BOUNDARY_RULES:
        raise ValueError(
            f"Invalid {boundary_rule=}. Must be one of {VALID_BOUNDARY_RULES}."
        )

    n_points = points.shape[0]
    cells = cells.long()
    corner_indices = cells.flatten()

    ### Valence: one occurrence per incident triangle
    valence = count_point_occurrences(corner_indices, n_points)
    if torch.any(valence == 0):
        isolated = torch.where(valence == 0)[0]
        raise ValueError(
            f"Loop smoothing needs every point to belong to a cell, but "
            f"{len(isolated)} points have no incident cell "
            f"(first: {isolated[:10].tolist()})."
        )

    ### Accumulate: each corner receives the sum of the other two corners
    corner_points = points[cells]  # (n_cells, 3, n_spatial_dims)
    other_two = torch.roll(corner_points, shifts=1, dims=1) + torch.roll(
        corner_points, shifts=-1, dims=1
    )
    neighbor_sums = accumulate_point_values(
        corner_indices,
        other_two.reshape(-1, points.shape[-1]),
        n_points=n_points,
    )

    ### Finalize
    scale = (3.0 / (16.0 * valence.to(points.dtype))).unsqueeze(-1)
    new_points = (5.0 / 8.0) * points + neighbor_sums * scale

    if boundary_rule == "crease":
        if adjacency is None:
            adjacency = build_edge_adjacency(cells)
        boundary_edges = adjacency.edges[adjacency.boundary_mask]

        if len(boundary_edges) > 0:
            ### Each boundary edge adds the far endpoint to both of its endpoints
            endpoints = boundary_edges.flatten()
            far_endpoints = boundary_edges.flip(dims=[1]).flatten()
            boundary_sums = accumulate_point_values(
                endpoints, points[far_endpoints], n_points=n_points
            )
            boundary_counts = count_point_occurrences(endpoints, n_points)

            is_crease = boundary_counts == 2
            is_corner = (boundary_counts > 0) & ~is_crease
            new_points[is_crease] = (3.0 / 4.0) * points[is_crease] + (
                1.0 / 8.0
            ) * boundary_sums[is_crease]
            new_points[is_corner] = points[is_corner]

    return new_points


def _check_options(
    boundary_rule: str, normal_weighting: str, non_manifold: str
) -> None:
    if boundary_rule not in VALID_BOUNDARY_RULES:
        raise ValueError(
            f"Invalid {boundary_rule=}. Must be one of {VALID_BOUNDARY_RULES}."
        )
    if normal_weighting not in VALID_WEIGHTINGS:
        raise ValueError(
            f"Invalid {normal_weighting=}. Must be one of {VALID_WEIGHTINGS}."
        )
    if non_manifold not in VALID_NON_MANIFOLD_POLICIES:
        raise ValueError(
            f"Invalid {non_manifold=}. Must be one of {VALID_NON_MANIFOLD_POLICIES}."
        )


def _apply_non_manifold_policy(
    adjacency: EdgeAdjacency, non_manifold: NonManifoldPolicy
) -> None:
    n_non_manifold = int(adjacency.non_manifold_mask.sum())
    if n_non_manifold == 0:
        return

    first_edges = adjacency.edges[adjacency.non_manifold_mask][:10].tolist()
    if non_manifold == "raise":
        raise ValueError(
            f"Found {n_non_manifold} edges shared by more than two cells "
            f"(first: {first_edges}). Loop subdivision needs a manifold mesh."
        )
    warnings.warn(
        f"Found {n_non_manifold} edges shared by more than two cells "
        f"(first: {first_edges}). Their edge vertices use the apexes of the "
        f"first two incident cells only.",
        stacklevel=3,
    )


def loop_subdivision(
    points: torch.Tensor,
    cells: torch.Tensor,
    boundary_rule: BoundaryRule = "uniform",
    normal_weighting: NormalWeighting = "angle",
    non_manifold: NonManifoldPolicy = "first_two",
) -> tuple[torch.Tensor, torch.Tensor, torch.Tensor]:
    """Perform one Loop subdivision step on raw point and cell tensors.

    Parameters
    ----------
    points : torch.Tensor
        Vertex positions, shape (n_points, 3).
    cells : torch.Tensor
        Triangles, shape (n_cells, 3), integer dtype.
    boundary_rule : {"uniform", "crease"}
        Smoothing rule for original vertices on the mesh boundary, see
        :func:`compute_loop_vertex_positions`.
    normal_weighting : {"angle", "area", "unweighted", "angle_area"}
        Weighting of face normals when recomputing point normals.
    non_manifold : {"first_two", "raise"}
        What to do with edges shared by more than two cells: warn and use the
        first two cells in cell order, or raise.

    Returns
    -------
    new_points : torch.Tensor
        Shape (n_points + n_edges, 3). Smoothed original vertices followed by
        the edge vertices in creation order.
    new_cells : torch.Tensor
        Shape (4 * n_cells, 3). Rows ``4i .. 4i + 3`` are the children of cell
        ``i``.
    normals : torch.Tensor
        Unit point normals of the refined mesh, shape (n_points + n_edges, 3).
        Points without a defined normal get a zero vector.

    Examples
    --------
    >>> import torch
    >>> points = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    >>> cells = torch.tensor([[0, 1, 2]])
    >>> new_points, new_cells, normals = loop_subdivision(points, cells)
    >>> new_points.shape, new_cells.shape
    (torch.Size([6, 3]), torch.Size([4, 3]))
    """
    from loopmesh.mesh import Mesh

    refined = subdivide_loop(
        Mesh(points=points, cells=cells),
        boundary_rule=boundary_rule,
        normal_weighting=normal_weighting,
        non_manifold=non_manifold,
    )
    return refined.points, refined.cells, refined.point_data["normals"]


def subdivide_loop(
    mesh: "Mesh",
    boundary_rule: BoundaryRule = "uniform",
    normal_weighting: NormalWeighting = "angle",
    non_manifold: NonManifoldPolicy = "first_two",
) -> "Mesh":
    """Perform one level of Loop subdivision on a triangle mesh.

    Properties:
    - Approximating: original vertices move, edge vertices are weighted
    - n_points grows by the number of unique edges, n_cells is multiplied by 4
    - Children keep the winding order of their parent
    - Point data is interpolated to edge vertices (endpoint average)
    - Cell data is propagated to children
    - Global data is preserved unchanged
    - ``point_data["normals"]`` holds the recomputed point normals

    Only one step is performed; apply the function again for further levels.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh in 3D space.
    boundary_rule : {"uniform", "crease"}
        Smoothing rule for original vertices on the mesh boundary.
        ``"uniform"`` (default) uses the interior stencil everywhere.
    normal_weighting : {"angle", "area", "unweighted", "angle_area"}
        Weighting of face normals when recomputing point normals.
    non_manifold : {"first_two", "raise"}
        Policy for edges shared by more than two cells.

    Returns
    -------
    Mesh
        Refined mesh.

    Raises
    ------
    ValueError
        If the mesh is not a triangle mesh in 3D, has invalid or repeated cell
        indices, has points that belong to no cell, or if an option is
        invalid.

    Examples
    --------
    >>> from loopmesh.primitives.surfaces import icosahedron_surface
    >>> mesh = icosahedron_surface.load()
    >>> refined = subdivide_loop(mesh)
    >>> refined.n_points, refined.n_cells  # 12 + 30 edges, 20 * 4
    (42, 80)
    """
    from loopmesh.mesh import Mesh

    _check_options(boundary_rule, normal_weighting, non_manifold)

    if mesh.n_manifold_dims != 2 or mesh.n_spatial_dims != 3:
        raise ValueError(
            f"Loop subdivision needs a triangle mesh in 3D space, but got "
            f"{mesh.n_manifold_dims=} and {mesh.n_spatial_dims=}."
        )

    ### Handle empty mesh
    if mesh.n_cells == 0 and mesh.n_points == 0:
        empty_point_data = mesh.point_data.exclude("normals")
        empty_point_data["normals"] = torch.zeros_like(mesh.points)
        return Mesh(
            points=mesh.points,
            cells=mesh.cells,
            point_data=empty_point_data,
            cell_data=mesh.cell_data,
            global_data=mesh.global_data,
        )

    validate_mesh(mesh, check_manifold_edges=False, raise_on_error=True)

    points = mesh.points
    cells = mesh.cells.long()
    n_original_points = mesh.n_points

    adjacency = build_edge_adjacency(cells)
    _apply_non_manifold_policy(adjacency, non_manifold)

    ### Pass 1: edge vertex indices and the 1-to-4 split, face by face
    registry = EdgeRegistry()
    child_cells: list[tuple[int, int, int]] = []

    for v1, v2, v3 in cells.tolist():
        a = _resolve_edge_index((v1, v2), registry, n_original_points)
        b = _resolve_edge_index((v2, v3), registry, n_original_points)
        c = _resolve_edge_index((v3, v1), registry, n_original_points)
        child_cells.extend(split_triangle(v1, v2, v3, a, b, c))

    ### Edge vertex positions in registry order, from the original points
    registered_edges = registry.edges(device=points.device)
    edge_points = compute_edge_vertex_positions(points, registered_edges, adjacency)

    ### Pass 2: smooth the original vertices from the untouched originals
    smoothed_points = compute_loop_vertex_positions(
        points, cells, boundary_rule=boundary_rule, adjacency=adjacency
    )

    new_points = torch.cat([smoothed_points, edge_points], dim=0)
    new_cells = torch.tensor(child_cells, dtype=mesh.cells.dtype, device=points.device)

    ### Pass 3: point normals of the refined mesh
    normals = compute_point_normals(new_points, new_cells, weighting=normal_weighting)

    ### Carry attached data over to the refined mesh
    new_point_data = interpolate_point_data_to_edges(
        point_data=mesh.point_data.exclude("normals"),
        edges=registered_edges,
        n_original_points=n_original_points,
    )
    new_point_data["normals"] = normals

    parent_indices = torch.arange(
        mesh.n_cells, device=points.device
    ).repeat_interleave(4)
    new_cell_data = propagate_cell_data_to_children(
        cell_data=mesh.cell_data,
        parent_indices=parent_indices,
    )

    logger.debug(
        "Loop step: %d -> %d points, %d -> %d cells (%d boundary edges)",
        n_original_points,
        len(new_points),
        mesh.n_cells,
        len(new_cells),
        int(adjacency.boundary_mask.sum()),
    )

    return Mesh(
        points=new_points,
        cells=new_cells,
        point_data=new_point_data,
        cell_data=new_cell_data,
        global_data=mesh.global_data,
    )
