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

"""Unit square in the xy-plane split into two triangles along a diagonal.

Dimensional: 2D manifold in 3D space (four boundary edges, one interior edge).
"""

import torch

from loopmesh.mesh import Mesh


def load(
    dtype: torch.dtype = torch.float32,
    device: torch.device | str = "cpu",
) -> Mesh:
    """Create two triangles sharing the diagonal (0, 2) of the unit square.

    Parameters
    ----------
    dtype : torch.dtype
        Floating-point dtype of the points.
    device : torch.device or str
        Compute device ('cpu' or 'cuda').

    Returns
    -------
    Mesh
        Mesh with 4 points, 2 cells and 5 edges, both cells facing +z.
    """
    points = torch.tensor(
        [
            [0.0, 0.0, 0.0],
            [1.0, 0.0, 0.0],
            [1.0, 1.0, 0.0],
            [0.0, 1.0, 0.0],
        ],
        dtype=dtype,
        device=device,
    )
    cells = torch.tensor([[0, 1, 2], [0, 2, 3]], dtype=torch.int64, device=device)
    return Mesh(points=points, cells=cells)
