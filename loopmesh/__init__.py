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

"""Loop subdivision for triangle meshes, built on PyTorch.

The package exposes a :class:`Mesh` container and a single-step Loop
subdivision engine that inserts edge vertices, splits each triangle into four,
smooths the original vertices and recomputes angle-weighted point normals.

Example:
    >>> from loopmesh import subdivide_loop
    >>> from loopmesh.primitives.surfaces import tetrahedron_surface
    >>> mesh = tetrahedron_surface.load()
    >>> refined = subdivide_loop(mesh)
    >>> refined.n_cells
    16
"""

from loopmesh.mesh import Mesh
from loopmesh.subdivision import loop_subdivision, subdivide_loop
from loopmesh.validation import validate_mesh

__version__ = "0.1.0"

__all__ = [
    "Mesh",
    "loop_subdivision",
    "subdivide_loop",
    "validate_mesh",
]
