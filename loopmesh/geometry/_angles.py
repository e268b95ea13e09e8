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

"""Interior angles of triangles.

The angle at corner ``k`` of a triangle is the angle between the two edges
leaving that corner. It is evaluated as

    theta = atan2(|e1 x e2|, e1 . e2)

which stays accurate for angles close to 0 or pi (where ``acos`` of a
normalized dot product loses precision) and returns 0 for zero-length edges
instead of NaN.
"""

import torch


def compute_triangle_angles(points: torch.Tensor, cells: torch.Tensor) -> torch.Tensor:
    """Compute the interior angle at every corner of every triangle.

    Parameters
    ----------
    points : torch.Tensor
        Vertex coordinates, shape (n_points, 3).
    cells : torch.Tensor
        Triangle connectivity, shape (n_cells, 3).

    Returns
    -------
    torch.Tensor
        Angles in radians, shape (n_cells, 3), same dtype as ``points``.
        Column ``k`` is the angle at vertex ``cells[:, k]``.

    Examples
    --------
    >>> import torch
    >>> pts = torch.tensor([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    >>> cells = torch.tensor([[0, 1, 2]])
    >>> angles = compute_triangle_angles(pts, cells)
    >>> torch.allclose(angles[0, 0], torch.tensor(torch.pi / 2))
    True
    """
    ### Upcast so that nearly flat corners keep their precision
    corners = points[cells].double()  # (n_cells, 3, 3)

    ### Edge vectors leaving each corner towards the next and previous corner
    to_next = torch.roll(corners, shifts=-1, dims=1) - corners
    to_prev = torch.roll(corners, shifts=1, dims=1) - corners

    sin_term = torch.linalg.cross(to_next, to_prev, dim=-1).norm(dim=-1)
    cos_term = (to_next * to_prev).sum(dim=-1)

    return torch.atan2(sin_term, cos_term).to(points.dtype)
