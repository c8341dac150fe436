from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Union
import numpy as np

from modem_lab.utils import (
    SimConfig,
    SimParams,
    SimResult,
    Traces,
    parse_bits,
    run_duration,
    sanitize_params,
    validate_bits,
    warn_params,
)
from modem_lab.bpsk import demod_bpsk, generate_bpsk
from modem_lab.fsk import demod_fsk, generate_fsk
from modem_lab.channel import add_noise
from modem_lab.metrics import bit_error_rate, count_bit_errors

logger = logging.getLogger(__name__)

SCHEMES = ["BPSK", "FSK"]


def simulate_keying(
    bits: List[int],
    scheme: str,
    params: SimParams,
    seed: Union[int, np.random.Generator, None] = None,
) -> SimResult:
    """One generate -> channel -> demodulate -> BER pass."""
    validate_bits(bits)
    scheme = scheme.upper()
    if scheme not in SCHEMES:
        raise ValueError(f"Unknown modulation scheme: {scheme}")

    p, warnings = sanitize_params(params)
    duration, w = run_duration(len(bits), p)
    warnings += w

    meta: Dict[str, Any] = {"scheme": scheme}

    if scheme == "BPSK":
        wav = generate_bpsk(bits, p.amplitude, p.fc, p.fs, duration)
        freqs = [p.fc]
        meta["fc"] = p.fc
    else:
        if p.f0 == p.f1:
            warnings.append("FSK: f0 == f1; bits cannot be told apart.")
        wav = generate_fsk(bits, p.amplitude, p.f0, p.f1, p.fs, duration)
        freqs = [p.f0, p.f1]
        meta.update({"f0": p.f0, "f1": p.f1})

    N = len(wav.t)
    Ns = wav.samples_per_bit
    warnings += warn_params(p.fs, freqs, Ns, N, len(bits))

    rx = add_noise(wav.modulated, p.snr_db, seed)

    if scheme == "BPSK":
        dem = demod_bpsk(rx, p.fc, p.fs, Ns)
        scatter = np.column_stack([dem.I, dem.Q])
        meta.update({"mixed": dem.mixed, "lowpass": dem.lowpass})
    else:
        dem = demod_fsk(rx, p.f0, p.f1, p.fs, Ns)
        scatter = dem.energies

    decoded = list(dem.decisions)
    ber = bit_error_rate(bits, decoded)

    meta.update({
        "amplitude": p.amplitude,
        "fs": p.fs,
        "duration": duration,
        "snr_db": p.snr_db,
        "n_samples": N,
        "samples_per_bit": Ns,
        "boundaries": wav.boundaries,
        "input_len": len(bits),
        "decoded_len": len(decoded),
        "bit_errors": count_bit_errors(bits, decoded),
        "match": len(decoded) >= len(bits) and decoded[:len(bits)] == bits,
        "warnings": warnings,
    })

    for msg in warnings:
        logger.warning("%s: %s", scheme, msg)
    logger.debug(
        "%s run: %d bits, N=%d, Ns=%d, snr=%s, BER=%.4g",
        scheme, len(bits), N, Ns, p.snr_db, ber,
    )

    return SimResult(
        scheme=scheme,
        t=wav.t,
        traces=Traces(wav.baseband, wav.carrier, wav.modulated, dem.recon),
        received=rx,
        bits={"input": list(bits), "decoded": decoded},
        scatter=scatter,
        ber=ber,
        meta=meta,
    )


def run(config: SimConfig) -> SimResult:
    """Parse the bit text permissively and run one full simulation."""
    bits = parse_bits(config.bitstr)
    res = simulate_keying(bits, config.scheme, config.params, seed=config.seed)
    # keep the exact inputs so later sweeps/exports refer to this run
    res.meta["config"] = replace(config, params=replace(config.params))
    return res


def ber_sweep(
    config: SimConfig,
    snr_values: Sequence[float],
    trials: int = 20,
    seed: Optional[int] = None,
) -> np.ndarray:
    """Mean BER of `trials` noisy runs for each SNR (dB) in `snr_values`."""
    if trials < 1:
        raise ValueError("trials must be >= 1.")
    bits = parse_bits(config.bitstr)
    rng = np.random.default_rng(seed)

    out = np.zeros(len(snr_values), dtype=float)
    for k, snr in enumerate(snr_values):
        params = replace(config.params, snr_db=float(snr))
        total = 0.0
        for _ in range(trials):
            total += simulate_keying(bits, config.scheme, params, seed=rng).ber
        out[k] = total / trials
    return out
