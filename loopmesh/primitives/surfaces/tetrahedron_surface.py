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

"""Surface of a regular tetrahedron.

Dimensional: 2D manifold in 3D space (closed, no boundary).
"""

import torch

from loopmesh.mesh import Mesh


def load(
    radius: float = 1.0,
    dtype: torch.dtype = torch.float32,
    device: torch.device | str = "cpu",
) -> Mesh:
    """Create a regular tetrahedron inscribed in a sphere of ``radius``.

    Parameters
    ----------
    radius : float
        Distance from the center to each vertex.
    dtype : torch.dtype
        Floating-point dtype of the points.
    device : torch.device or str
        Compute device ('cpu' or 'cuda').

    Returns
    -------
    Mesh
        Mesh with 4 points and 4 outward-facing cells.
    """
    if radius <= 0:
        raise ValueError(f"radius must be positive, got {radius=}")

    points = torch.tensor(
        [
            [1.0, 1.0, 1.0],
            [1.0, -1.0, -1.0],
            [-1.0, 1.0, -1.0],
            [-1.0, -1.0, 1.0],
        ],
        dtype=dtype,
        device=device,
    ) * (radius / 3**0.5)
    cells = torch.tensor(
        [[0, 1, 2], [0, 3, 1], [0, 2, 3], [1, 3, 2]],
        dtype=torch.int64,
        device=device,
    )
    return Mesh(points=points, cells=cells)
