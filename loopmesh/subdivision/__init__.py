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

"""Loop subdivision of triangle meshes.

One step of the scheme:
1. Builds the edge -> opposite-vertex adjacency of the input mesh
2. Creates one weighted vertex per edge, shared by the faces of that edge
3. Splits each triangle into 4 children with the parent's winding
4. Smooths the original vertices with the Loop stencil
5. Recomputes angle-weighted point normals

Example:
    >>> from loopmesh.subdivision import subdivide_loop
    >>> from loopmesh.primitives.basic import two_triangles
    >>> mesh = two_triangles.load()
    >>> refined = subdivide_loop(mesh)
    >>> refined.n_cells == mesh.n_cells * 4
    True
"""

from loopmesh.subdivision._edge_registry import EdgeRegistry, canonical_edge
from loopmesh.subdivision._topology import EdgeAdjacency, build_edge_adjacency
from loopmesh.subdivision.loop import (
    compute_edge_vertex_positions,
    compute_loop_vertex_positions,
    get_new_vertex,
    loop_subdivision,
    subdivide_loop,
)
