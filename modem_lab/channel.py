from __future__ import annotations

import math
from typing import Optional, Union
import numpy as np


def add_noise(
    signal: np.ndarray,
    snr_db: Optional[float],
    seed: Union[int, np.random.Generator, None] = None,
) -> np.ndarray:
    """
    AWGN at a given SNR (dB), measured against the average power of `signal`.
    A missing or non-finite SNR returns an unmodified copy.
    """
    x = np.asarray(signal, dtype=float)
    if snr_db is None or not math.isfinite(float(snr_db)):
        return x.copy()

    p_signal = float(np.mean(x * x)) if len(x) else 0.0
    p_noise = p_signal / (10.0 ** (float(snr_db) / 10.0))

    rng = seed if isinstance(seed, np.random.Generator) else np.random.default_rng(seed)
    return x + rng.normal(0.0, math.sqrt(p_noise), size=x.shape)
