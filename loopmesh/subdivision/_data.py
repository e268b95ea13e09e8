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

"""Carry point and cell data through a subdivision step.

Point fields are extended to the new edge vertices by averaging the two edge
endpoints; cell fields are copied from each parent cell to its four children.
"""

import torch
from tensordict import TensorDict


def interpolate_point_data_to_edges(
    point_data: TensorDict,
    edges: torch.Tensor,
    n_original_points: int,
) -> TensorDict:
    """Append one interpolated row per edge to every point field.

    Parameters
    ----------
    point_data : TensorDict
        Original point data, batch_size=(n_original_points,).
    edges : torch.Tensor
        Edges in the order their new vertices were appended, shape (n_edges, 2).
    n_original_points : int
        Number of points before subdivision.

    Returns
    -------
    TensorDict
        Point data with batch_size=(n_original_points + n_edges,). Floating and
        complex fields hold the endpoint average on the new rows; other dtypes
        (ids, flags) cannot be averaged and are zero-filled.

    Examples
    --------
        >>> import torch
        >>> from tensordict import TensorDict
        >>> point_data = TensorDict({"t": torch.tensor([1.0, 3.0, 5.0])}, batch_size=[3])
        >>> edges = torch.tensor([[0, 1], [1, 2]])
        >>> interpolate_point_data_to_edges(point_data, edges, 3)["t"]
        tensor([1., 3., 5., 2., 4.])
    """
    n_total_points = n_original_points + len(edges)

    if len(point_data.keys()) == 0:
        return TensorDict(
            {},
            batch_size=torch.Size([n_total_points]),
            device=point_data.device,
        )

    def interpolate_tensor(tensor: torch.Tensor) -> torch.Tensor:
        if tensor.dtype.is_floating_point or tensor.dtype.is_complex:
            edge_values = tensor[edges].mean(dim=1)
        else:
            edge_values = torch.zeros(
                (len(edges), *tensor.shape[1:]),
                dtype=tensor.dtype,
                device=tensor.device,
            )
        return torch.cat([tensor, edge_values], dim=0)

    return point_data.apply(
        interpolate_tensor,
        batch_size=torch.Size([n_total_points]),
    )


def propagate_cell_data_to_children(
    cell_data: TensorDict,
    parent_indices: torch.Tensor,
) -> TensorDict:
    """Copy each parent cell's data to its children.

    Parameters
    ----------
    cell_data : TensorDict
        Original cell data, batch_size=(n_parent_cells,).
    parent_indices : torch.Tensor
        Parent cell index of every child, shape (n_children,).

    Returns
    -------
    TensorDict
        Cell data with batch_size=(n_children,).
    """
    n_children = len(parent_indices)

    if len(cell_data.keys()) == 0:
        return TensorDict(
            {},
            batch_size=torch.Size([n_children]),
            device=cell_data.device,
        )

    return cell_data.apply(
        lambda tensor: tensor[parent_indices],
        batch_size=torch.Size([n_children]),
    )
