from __future__ import annotations

from dataclasses import dataclass
from typing import List
import numpy as np

from modem_lab.utils import Waveforms, bits_to_nrz, decisions_to_nrz, make_grid, make_time_axis, validate_bits


@dataclass
class FSKDemod:
    recon: np.ndarray        # reconstructed NRZ (+1/-1, 0 past the last whole bit)
    decisions: List[int]
    energies: np.ndarray     # (nbits, 2): (corr0, corr1) per bit


def generate_fsk(bits: List[int], amp: float, f0: float, f1: float, fs: float, duration: float) -> Waveforms:
    """
    Textbook BFSK: each bit is its own sinusoid at f1 (bit 1) or f0 (bit 0),
    restarting at phase 0 at the bit's first sample. Samples left over after
    len(bits)*samples_per_bit repeat the last computed sample.
    """
    validate_bits(bits)
    grid = make_grid(len(bits), fs, duration)
    N = grid.n_samples
    Ns = grid.samples_per_bit

    carrier = np.zeros(N, dtype=float)
    for b, bit in enumerate(bits):
        a, z = b * Ns, min(N, (b + 1) * Ns)
        if a >= N:
            break
        f = float(f1) if bit == 1 else float(f0)
        local_t = np.arange(z - a, dtype=float) / float(fs)
        carrier[a:z] = np.cos(2 * np.pi * f * local_t)

    covered = min(N, len(bits) * Ns)
    carrier[covered:] = carrier[covered - 1]

    baseband = bits_to_nrz(bits, Ns, N, level=amp)
    mod = float(amp) * carrier

    return Waveforms(
        t=grid.t,
        baseband=baseband,
        carrier=carrier,
        modulated=mod,
        samples_per_bit=Ns,
        boundaries=grid.boundaries,
    )


def demod_fsk(mod: np.ndarray, f0: float, f1: float, fs: float, samples_per_bit: int) -> FSKDemod:
    """
    Per-bit correlation receiver. Correlates against cos(2π f t) on the global
    time axis, not the transmitter's per-bit local time; only the relative
    size of corr0 and corr1 is used. Ties decide 0.
    """
    mod = np.asarray(mod, dtype=float)
    Ns = max(1, int(samples_per_bit))
    N = len(mod)
    t = make_time_axis(N, fs)

    ref0 = np.cos(2 * np.pi * float(f0) * t)
    ref1 = np.cos(2 * np.pi * float(f1) * t)

    nbits = N // Ns
    decisions: List[int] = []
    energies = np.zeros((nbits, 2), dtype=float)
    for b in range(nbits):
        a, z = b * Ns, (b + 1) * Ns
        corr0 = float(np.dot(mod[a:z], ref0[a:z]))
        corr1 = float(np.dot(mod[a:z], ref1[a:z]))
        energies[b] = (corr0, corr1)
        decisions.append(1 if corr1 > corr0 else 0)

    recon = decisions_to_nrz(decisions, Ns, N)
    return FSKDemod(recon=recon, decisions=decisions, energies=energies)
