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

"""Accumulator buffers for per-point reductions over cell corners.

Several passes of the subdivision step have the same two-phase shape: every
cell writes a contribution into the slots of its vertices, and a single
finalize pass then turns the accumulated sums into the result (divide by the
valence, normalize to unit length, ...). The helpers here implement the
accumulate half of that contract.
"""

import torch


def accumulate_point_values(
    point_indices: torch.Tensor,
    values: torch.Tensor,
    n_points: int,
) -> torch.Tensor:
    """Sum per-corner values into a zero-initialized per-point buffer.

    Parameters
    ----------
    point_indices : torch.Tensor
        Destination point index for each contribution, shape (n_contributions,).
        Typically ``cells.flatten()``.
    values : torch.Tensor
        Contribution for each entry of ``point_indices``, shape
        (n_contributions, *value_shape).
    n_points : int
        Number of slots in the returned buffer.

    Returns
    -------
    torch.Tensor
        Buffer of shape (n_points, *value_shape) where slot ``i`` holds the sum
        of all contributions addressed to point ``i``. Points that receive no
        contribution keep a zero value.

    Examples
    --------
    >>> import torch
    >>> idx = torch.tensor([0, 2, 2])
    >>> vals = torch.tensor([[1.0, 0.0], [0.0, 1.0], [2.0, 2.0]])
    >>> accumulate_point_values(idx, vals, n_points=3)
    tensor([[1., 0.],
            [0., 0.],
            [2., 3.]])
    """
    if point_indices.shape[0] != values.shape[0]:
        raise ValueError(
            f"Every contribution needs a destination index, but got "
            f"{point_indices.shape=} and {values.shape=}."
        )

    buffer = torch.zeros(
        (n_points, *values.shape[1:]),
        dtype=values.dtype,
        device=values.device,
    )
    buffer.index_add_(0, point_indices, values)
    return buffer


def count_point_occurrences(point_indices: torch.Tensor, n_points: int) -> torch.Tensor:
    """Count how many times each point index appears.

    For ``point_indices = cells.flatten()`` this is the number of cells
    incident to each point (its valence in the Loop sense).

    Parameters
    ----------
    point_indices : torch.Tensor
        Flat integer tensor of point indices.
    n_points : int
        Length of the returned tensor.

    Returns
    -------
    torch.Tensor
        Integer tensor of shape (n_points,).
    """
    return torch.bincount(point_indices, minlength=n_points)
