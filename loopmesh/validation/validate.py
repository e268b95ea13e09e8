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

"""Mesh validation for the Loop subdivision preconditions.

A Loop step has no meaningful output for malformed topology: cells pointing
outside the point array, cells that repeat a vertex, or points that no cell
uses (their valence is zero and the smoothing stencil divides by it). Edges
shared by more than two cells are reported separately since the subdivision
engine can still process them under an explicit policy.
"""

from collections.abc import Mapping
from typing import TYPE_CHECKING

import torch

from loopmesh.subdivision._topology import extract_unique_edges
from loopmesh.utilities._scatter_ops import count_point_occurrences

if TYPE_CHECKING:
    from loopmesh.mesh import Mesh

# Cap on how many offending indices are quoted in an error message
_MAX_REPORTED = 10


def _format_indices(indices: torch.Tensor) -> str:
    shown = ", ".join(str(i) for i in indices[:_MAX_REPORTED].tolist())
    if len(indices) > _MAX_REPORTED:
        shown += ", ..."
    return f"[{shown}]"


def validate_mesh(
    mesh: "Mesh",
    check_out_of_bounds: bool = True,
    check_repeated_indices: bool = True,
    check_isolated_points: bool = True,
    check_manifold_edges: bool = True,
    raise_on_error: bool = False,
) -> Mapping[str, bool | int | torch.Tensor]:
    """Validate that a mesh satisfies the Loop subdivision preconditions.

    Parameters
    ----------
    mesh : Mesh
        Triangle mesh to validate.
    check_out_of_bounds : bool
        Check that every cell index addresses an existing point.
    check_repeated_indices : bool
        Check that no cell uses the same point twice.
    check_isolated_points : bool
        Check that every point belongs to at least one cell.
    check_manifold_edges : bool
        Count edges shared by more than two cells. These do not make the mesh
        invalid; they are reported so callers can apply their own policy.
    raise_on_error : bool
        If True, raise ``ValueError`` on the first failing check (non-manifold
        edges never raise here). If False, return all findings.

    Returns
    -------
    Mapping[str, bool | int | torch.Tensor]
        Dictionary with validation results:
            - "valid": bool, True if all enabled checks passed
            - "n_out_of_bounds_cells": int
            - "out_of_bounds_cell_indices": Tensor (if any found)
            - "n_repeated_index_cells": int
            - "repeated_index_cell_indices": Tensor (if any found)
            - "n_isolated_points": int
            - "isolated_point_indices": Tensor (if any found)
            - "n_non_manifold_edges": int
            - "non_manifold_edges": Tensor of shape (n, 2) (if any found)

    Raises
    ------
    ValueError
        If ``raise_on_error=True`` and a check fails.

    Examples
    --------
    >>> from loopmesh.primitives.basic import two_triangles
    >>> report = validate_mesh(two_triangles.load())
    >>> report["valid"]
    True
    """
    results: dict[str, bool | int | torch.Tensor] = {"valid": True}

    ### Out-of-bounds indices first; every later check indexes with the cells
    if check_out_of_bounds:
        out_of_bounds = torch.any(
            (mesh.cells < 0) | (mesh.cells >= mesh.n_points), dim=1
        )
        bad_cells = torch.where(out_of_bounds)[0]
        results["n_out_of_bounds_cells"] = len(bad_cells)

        if len(bad_cells) > 0:
            results["valid"] = False
            results["out_of_bounds_cell_indices"] = bad_cells
            if raise_on_error:
                raise ValueError(
                    f"Found {len(bad_cells)} cells with indices outside "
                    f"[0, {mesh.n_points}). Cell indices: {_format_indices(bad_cells)}"
                )
            # Remaining checks are meaningless with invalid indices
            return results

    if check_repeated_indices:
        sorted_cells, _ = torch.sort(mesh.cells, dim=1)
        repeated = torch.any(sorted_cells[:, 1:] == sorted_cells[:, :-1], dim=1)
        bad_cells = torch.where(repeated)[0]
        results["n_repeated_index_cells"] = len(bad_cells)

        if len(bad_cells) > 0:
            results["valid"] = False
            results["repeated_index_cell_indices"] = bad_cells
            if raise_on_error:
                raise ValueError(
                    f"Found {len(bad_cells)} cells that use the same point more "
                    f"than once. Cell indices: {_format_indices(bad_cells)}"
                )

    if check_isolated_points:
        valence = count_point_occurrences(mesh.cells.flatten().long(), mesh.n_points)
        isolated = torch.where(valence == 0)[0]
        results["n_isolated_points"] = len(isolated)

        if len(isolated) > 0:
            results["valid"] = False
            results["isolated_point_indices"] = isolated
            if raise_on_error:
                raise ValueError(
                    f"Found {len(isolated)} points that belong to no cell; every "
                    f"point needs at least one incident cell. "
                    f"Point indices: {_format_indices(isolated)}"
                )

    if check_manifold_edges:
        edges, counts = extract_unique_edges(mesh.cells)
        non_manifold = edges[counts > 2]
        results["n_non_manifold_edges"] = len(non_manifold)
        if len(non_manifold) > 0:
            results["non_manifold_edges"] = non_manifold

    return results
