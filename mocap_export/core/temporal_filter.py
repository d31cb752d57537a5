"""
Temporal filtering and smoothing for landmark data.

Pose estimates jitter from frame to frame. Before export the raw landmark
sequence is passed through a recursive exponential low-pass filter:

    s[t] = alpha * x[t] + (1 - alpha) * s[t - 1],    s[0] = x[0]

Each output depends on the filter's own previous output, so the pass is
strictly sequential across frames.
"""

import logging
from typing import List, Sequence

import numpy as np
from scipy.signal import lfilter

from mocap_export.core.exceptions import InputError
from mocap_export.core.types import Frame, frames_to_array

logger = logging.getLogger(__name__)


class ExponentialFilter:
    """
    Recursive exponential smoothing filter.

    Attributes:
        alpha: Weight of the new sample, in (0, 1]. Lower values smooth
            more; 1.0 passes input through unchanged.
    """

    def __init__(self, alpha: float = 0.5):
        if not 0.0 < alpha <= 1.0:
            raise InputError(f"Smoothing alpha must be in (0, 1], got {alpha}")
        self.alpha = float(alpha)

    def filter_batch(self, values: np.ndarray) -> np.ndarray:
        """
        Apply the recursion to a whole sequence along axis 0.

        The first sample is emitted unchanged and seeds the filter state,
        so frame 1 is exactly alpha * x[1] + (1 - alpha) * x[0].

        Args:
            values: Input values with shape (num_frames, ...)

        Returns:
            Filtered values with same shape as input
        """
        values = np.asarray(values, dtype=np.float64)
        result = np.empty_like(values)
        if len(values) == 0:
            return result

        result[0] = values[0]
        if len(values) > 1:
            a = self.alpha
            zi = ((1 - a) * values[0])[np.newaxis]
            result[1:], _ = lfilter([a], [1.0, a - 1.0], values[1:], axis=0, zi=zi)

        return result


def smooth_frames(frames: Sequence[Frame], alpha: float = 0.5) -> List[Frame]:
    """
    Smooth landmark positions across a frame sequence.

    Timestamps and landmark counts are preserved and visibility is copied
    from the raw sample. The first output frame equals the first input
    frame by value.

    Args:
        frames: Raw frames in capture order
        alpha: Smoothing factor in (0, 1]

    Returns:
        New list of smoothed frames (empty for empty input)

    Raises:
        InputError: If alpha is out of range or landmark counts differ
    """
    smoother = ExponentialFilter(alpha)
    if not frames:
        return []

    count = frames[0].num_landmarks
    for i, frame in enumerate(frames):
        if frame.num_landmarks != count:
            raise InputError(
                f"Frame {i} has {frame.num_landmarks} landmarks, expected {count}"
            )

    smoothed = smoother.filter_batch(frames_to_array(frames))
    logger.debug(f"Smoothed {len(frames)} frames with alpha={alpha}")

    return [
        Frame.from_arrays(frame.timestamp, positions, frame.visibilities())
        for frame, positions in zip(frames, smoothed)
    ]
