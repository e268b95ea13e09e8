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

"""Face and point normals for triangle surfaces in 3D.

Point normals are an accumulate-then-normalize reduction: every face adds its
weighted unit normal to each of its three vertices, and the per-point sums are
normalized once all faces have been visited. Points whose sum is exactly zero
(isolated points, or points touched only by degenerate faces) keep a zero
normal.
"""

from typing import Literal

import torch

from loopmesh.geometry._angles import compute_triangle_angles
from loopmesh.utilities._scatter_ops import accumulate_point_values

NormalWeighting = Literal["angle", "area", "unweighted", "angle_area"]
VALID_WEIGHTINGS: tuple[str, ...] = ("angle", "area", "unweighted", "angle_area")


def _face_cross_products(points: torch.Tensor, cells: torch.Tensor) -> torch.Tensor:
    """Un-normalized face normals ``(p1 - p0) x (p2 - p0)``, shape (n_cells, 3)."""
    p0 = points[cells[:, 0]]
    p1 = points[cells[:, 1]]
    p2 = points[cells[:, 2]]
    return torch.linalg.cross(p1 - p0, p2 - p0, dim=-1)


def _normalize_or_zero(vectors: torch.Tensor) -> torch.Tensor:
    """Scale rows to unit length; rows that are exactly zero stay zero.

    No epsilon clamp on the divisor, so arbitrarily small non-zero rows still
    come out unit length.
    """
    norms = vectors.norm(dim=-1, keepdim=True)
    return vectors / torch.where(norms > 0, norms, torch.ones_like(norms))


def compute_cell_normals(points: torch.Tensor, cells: torch.Tensor) -> torch.Tensor:
    """Compute unit face normals oriented by the winding order of each cell.

    Parameters
    ----------
    points : torch.Tensor
        Vertex coordinates, shape (n_points, 3).
    cells : torch.Tensor
        Triangle connectivity, shape (n_cells, 3).

    Returns
    -------
    torch.Tensor
        Unit normals, shape (n_cells, 3). Degenerate (zero-area) cells get a
        zero vector.
    """
    return _normalize_or_zero(_face_cross_products(points, cells))


def compute_cell_areas(points: torch.Tensor, cells: torch.Tensor) -> torch.Tensor:
    """Compute triangle areas, shape (n_cells,)."""
    return 0.5 * _face_cross_products(points, cells).norm(dim=-1)


def compute_point_normals(
    points: torch.Tensor,
    cells: torch.Tensor,
    weighting: NormalWeighting = "angle",
) -> torch.Tensor:
    """Compute per-point normals as a weighted average of incident face normals.

    Weighting schemes:

    - **"angle"** (default): each face contributes its unit normal scaled by
      the interior angle it subtends at the point. Faces that are thin at a
      vertex contribute proportionally less.
    - **"area"**: each face contributes its unit normal scaled by its area.
    - **"unweighted"**: each incident face contributes its unit normal once.
    - **"angle_area"**: product of the angle and area weights.

    Parameters
    ----------
    points : torch.Tensor
        Vertex coordinates, shape (n_points, 3).
    cells : torch.Tensor
        Triangle connectivity, shape (n_cells, 3).
    weighting : {"angle", "area", "unweighted", "angle_area"}
        Weighting scheme for the face contributions.

    Returns
    -------
    torch.Tensor
        Shape (n_points, 3). Unit vectors, except for points whose accumulated
        normal is exactly zero, which stay zero.

    Raises
    ------
    ValueError
        If ``weighting`` is not a supported scheme, or if the inputs are not a
        triangle mesh in 3D.
    """
    if weighting not in VALID_WEIGHTINGS:
        raise ValueError(f"Invalid {weighting=}. Must be one of {VALID_WEIGHTINGS}.")
    if points.ndim != 2 or points.shape[-1] != 3:
        raise ValueError(
            f"Point normals need points in 3D space, but got {points.shape=}."
        )
    if cells.ndim != 2 or cells.shape[-1] != 3:
        raise ValueError(f"Point normals need triangle cells, but got {cells.shape=}.")

    n_points = points.shape[0]
    cell_normals = compute_cell_normals(points, cells)  # (n_cells, 3)

    ### Per-corner weights, shape (n_cells, 3)
    if weighting == "unweighted":
        weights = torch.ones(cells.shape, dtype=points.dtype, device=points.device)
    elif weighting == "area":
        weights = compute_cell_areas(points, cells).unsqueeze(1).expand(-1, 3)
    else:
        weights = compute_triangle_angles(points, cells)
        if weighting == "angle_area":
            weights = weights * compute_cell_areas(points, cells).unsqueeze(1)

    ### Accumulate weighted face normals into every corner's point slot
    contributions = weights.unsqueeze(-1) * cell_normals.unsqueeze(1)  # (n_cells, 3, 3)
    accumulated = accumulate_point_values(
        cells.flatten(),
        contributions.reshape(-1, 3),
        n_points=n_points,
    )

    ### Finalize
    return _normalize_or_zero(accumulated)
