from __future__ import annotations

from dataclasses import dataclass
from typing import List
import numpy as np

from modem_lab.utils import (
    Waveforms,
    bits_to_nrz,
    decisions_to_nrz,
    make_grid,
    make_time_axis,
    moving_average,
    validate_bits,
)


@dataclass
class BPSKDemod:
    mixed: np.ndarray        # received * local carrier
    lowpass: np.ndarray      # moving average of `mixed`
    recon: np.ndarray        # reconstructed NRZ (+1/-1, 0 past the last whole bit)
    decisions: List[int]
    I: np.ndarray
    Q: np.ndarray


def generate_bpsk(bits: List[int], amp: float, fc: float, fs: float, duration: float) -> Waveforms:
    """
    BPSK with one continuous-phase carrier cos(2π fc t) over the whole run.
    Bit transitions only flip the sign of the envelope; the carrier phase is
    never reset.
    """
    validate_bits(bits)
    grid = make_grid(len(bits), fs, duration)
    t = grid.t

    baseband = bits_to_nrz(bits, grid.samples_per_bit, grid.n_samples, level=amp)
    carrier = np.cos(2 * np.pi * float(fc) * t)
    mod = baseband * carrier

    return Waveforms(
        t=t,
        baseband=baseband,
        carrier=carrier,
        modulated=mod,
        samples_per_bit=grid.samples_per_bit,
        boundaries=grid.boundaries,
    )


def demod_bpsk(mod: np.ndarray, fc: float, fs: float, samples_per_bit: int) -> BPSKDemod:
    """
    Coherent BPSK receiver: mix with a local carrier of the same frequency and
    phase origin, low-pass with a moving average one bit long, then threshold
    at zero.

    The decision for bit b is read at the bit's last sample, where the causal
    window covers exactly that bit's samples (the whole-interval average).
    """
    mod = np.asarray(mod, dtype=float)
    Ns = max(1, int(samples_per_bit))
    N = len(mod)
    t = make_time_axis(N, fs)

    c = np.cos(2 * np.pi * float(fc) * t)
    s = np.sin(2 * np.pi * float(fc) * t)
    mixed = mod * c
    lp = moving_average(mixed, Ns)

    nbits = N // Ns
    decisions: List[int] = []
    for b in range(nbits):
        z = (b + 1) * Ns
        decisions.append(1 if lp[z - 1] > 0 else 0)

    recon = decisions_to_nrz(decisions, Ns, N)

    # Diagnostic scatter: raw per-sample products, not symbol-rate points
    return BPSKDemod(mixed=mixed, lowpass=lp, recon=recon, decisions=decisions, I=mixed, Q=mod * s)
