"""Local-maximum extraction for fitted transmission curves."""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray


def find_local_maxima(x: ArrayLike,
                      y: ArrayLike,
                      min_prominence: float = 0.0) -> NDArray:
    """Positions of strict interior local maxima of y(x).

    A point i (0 < i < len - 1) is a peak when y[i] > y[i-1] and
    y[i] > y[i+1].  Its prominence is estimated as the height above the
    lower of its two neighbours, which is a ranking proxy and not the
    topographic prominence.  Boundary points and flat plateaus are never
    reported.

    Parameters
    ----------
    x, y : array
        Sampled curve.
    min_prominence : float
        Peaks must exceed this prominence.

    Returns
    -------
    positions : ndarray
        x positions ordered by descending prominence.
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    if len(y) < 3:
        return np.empty(0)

    left, mid, right = y[:-2], y[1:-1], y[2:]
    is_peak = (mid > left) & (mid > right)
    prominence = mid - np.minimum(left, right)
    keep = is_peak & (prominence > min_prominence)

    positions = x[1:-1][keep]
    order = np.argsort(-prominence[keep], kind='stable')
    return positions[order]
