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

"""Flat plane in 3D space.

Dimensional: 2D manifold in 3D space (has boundary).
"""

import torch

from loopmesh.mesh import Mesh


def load(
    size: float = 2.0,
    subdivisions: int = 4,
    dtype: torch.dtype = torch.float32,
    device: torch.device | str = "cpu",
) -> Mesh:
    """Create a flat triangulated square in the xy-plane, centered at the origin.

    Parameters
    ----------
    size : float
        Length of each side.
    subdivisions : int
        Number of grid intervals per side. Creates (subdivisions+1)^2 vertices
        and 2*subdivisions^2 triangles.
    dtype : torch.dtype
        Floating-point dtype of the points.
    device : torch.device or str
        Compute device ('cpu' or 'cuda').

    Returns
    -------
    Mesh
        Mesh with all cells facing +z.
    """
    if subdivisions < 1:
        raise ValueError(f"subdivisions must be at least 1, got {subdivisions=}")

    n = subdivisions + 1

    ### Grid of points; point i * n + j sits at (x_i, y_j)
    x = torch.linspace(-size / 2, size / 2, n, dtype=dtype, device=device)
    y = torch.linspace(-size / 2, size / 2, n, dtype=dtype, device=device)
    xx, yy = torch.meshgrid(x, y, indexing="ij")
    points = torch.stack(
        [xx.flatten(), yy.flatten(), torch.zeros_like(xx.flatten())], dim=1
    )

    ### Two counter-clockwise triangles per grid quad
    cells = []
    for i in range(subdivisions):
        for j in range(subdivisions):
            idx = i * n + j
            cells.append([idx, idx + n, idx + 1])
            cells.append([idx + 1, idx + n, idx + n + 1])

    cells = torch.tensor(cells, dtype=torch.int64, device=device)
    return Mesh(points=points, cells=cells)
