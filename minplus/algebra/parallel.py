#!/usr/bin/python3
#
# This file is part of minplus
# Copyright (c) 2024 The minplus authors
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, version 3.
#
# This program is distributed in the hope that it will be useful, but
# WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the GNU
# General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program. If not, see <http://www.gnu.org/licenses/>.

"""
Fork-join helpers. Work is split in contiguous chunks and the partial results
are gathered in chunk order, so the output never depends on the scheduling.
"""

import heapq
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Iterable, List, Sequence

from minplus.algebra.settings import ComputationSettings

lg = logging.getLogger("PAR")


def _chunk_bounds(length: int, chunk_count: int) -> List[range]:
    size, extra = divmod(length, chunk_count)
    bounds = []
    start = 0
    for i in range(chunk_count):
        stop = start + size + (1 if i < extra else 0)
        if stop > start:
            bounds.append(range(start, stop))
        start = stop
    return bounds


def _workers(settings: ComputationSettings) -> int:
    if settings.max_workers is not None:
        return max(1, settings.max_workers)
    return min(32, (os.cpu_count() or 1) + 4)


def flat_map(func: Callable, items: Sequence, settings: ComputationSettings = None, threshold: int = None) -> List:
    """ Applies func to each item and concatenates the returned lists, in item order

    Arguments:
        func {Callable} -- item -> list of results
        items {Sequence} -- the work items
        settings {ComputationSettings} -- decides whether to go parallel (default: process-wide settings)
        threshold {int} -- number of items above which the work is split
                           (default: settings.convolution_parallelization_threshold)

    Returns:
        List -- the concatenated results
    """
    settings = ComputationSettings.resolve(settings)
    if threshold is None:
        threshold = settings.convolution_parallelization_threshold
    workers = _workers(settings)
    if not settings.use_parallelism or len(items) <= threshold or workers == 1:
        return [r for item in items for r in func(item)]

    def run(indices):
        return [r for i in indices for r in func(items[i])]

    chunks = _chunk_bounds(len(items), workers)
    lg.debug("splitting %d items in %d chunks", len(items), len(chunks))
    result = []
    with ThreadPoolExecutor(max_workers=workers) as executor:
        for partial in executor.map(run, chunks):
            result.extend(partial)
    return result


def sort(items: Iterable, key: Callable, settings: ComputationSettings = None) -> List:
    """ Stable sort, by chunks merged in order when the input is large """
    items = list(items)
    settings = ComputationSettings.resolve(settings)
    workers = _workers(settings)
    if not settings.use_parallelism or len(items) <= settings.sort_parallelization_threshold or workers == 1:
        return sorted(items, key=key)
    chunks = _chunk_bounds(len(items), workers)
    with ThreadPoolExecutor(max_workers=workers) as executor:
        parts = list(executor.map(lambda r: sorted(items[r.start:r.stop], key=key), chunks))
    return list(heapq.merge(*parts, key=key))
