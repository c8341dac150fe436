from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, NamedTuple, Optional, Tuple
import numpy as np


DEFAULT_BITS: List[int] = [1, 0, 1, 0]

# Lab defaults, also used as fallbacks when a control holds garbage
DEFAULT_AMPLITUDE = 1.0
DEFAULT_FS = 1000.0
DEFAULT_DURATION = 0.1
DEFAULT_FC = 10.0
DEFAULT_F0 = 8.0
DEFAULT_F1 = 12.0

MIN_FS = 100.0
MIN_DURATION = 0.001


@dataclass
class SimParams:
    amplitude: float = 1.0             # peak amplitude (V)
    fs: float = 10000.0                # sample rate (Hz)
    duration: Optional[float] = None   # run length (s); default 0.1 s
    bit_rate: Optional[float] = None   # bits/s; overrides duration when set
    fc: float = 10.0                   # BPSK carrier (Hz)
    f0: float = 8.0                    # FSK tone for bit 0 (Hz)
    f1: float = 12.0                   # FSK tone for bit 1 (Hz)
    snr_db: Optional[float] = None     # None/inf -> noiseless


@dataclass
class SimConfig:
    scheme: str = "BPSK"
    bitstr: str = "101011"
    params: SimParams = field(default_factory=SimParams)
    seed: Optional[int] = None


@dataclass
class SampleGrid:
    n_samples: int
    samples_per_bit: int
    duration: float
    t: np.ndarray
    boundaries: np.ndarray   # bit boundary instants, len(bits) + 1

    @property
    def n_decisions(self) -> int:
        return self.n_samples // self.samples_per_bit


@dataclass
class Waveforms:
    t: np.ndarray
    baseband: np.ndarray
    carrier: np.ndarray
    modulated: np.ndarray
    samples_per_bit: int
    boundaries: np.ndarray


class Traces(NamedTuple):
    baseband: np.ndarray
    carrier: np.ndarray
    modulated: np.ndarray
    demodulated: np.ndarray


@dataclass
class SimResult:
    scheme: str
    t: np.ndarray
    traces: Traces                     # the four plotted waveforms
    received: np.ndarray               # modulated signal after the channel
    bits: Dict[str, List[int]]         # "input", "decoded"
    scatter: np.ndarray                # (n, 2): I/Q per sample or E0/E1 per bit
    ber: float
    meta: Dict[str, Any]               # intermediate details


# ----------------------------
# Bits
# ----------------------------

def parse_bits(text: Optional[str]) -> List[int]:
    """Keep only '0'/'1' characters; fall back to 1010 when nothing is left."""
    if not text:
        return list(DEFAULT_BITS)
    s = "".join(c for c in str(text) if c in "01")
    if not s:
        return list(DEFAULT_BITS)
    return [1 if c == "1" else 0 for c in s]


def bits_to_string(bits: List[int]) -> str:
    return "".join("1" if b else "0" for b in bits)


def random_bits(min_len: int = 8, max_len: int = 23, seed: Optional[int] = None) -> str:
    """Random bit string with a length drawn uniformly from [min_len, max_len]."""
    if min_len < 1:
        raise ValueError("min_len must be >= 1.")
    if max_len < min_len:
        raise ValueError("max_len must be >= min_len.")
    rng = np.random.default_rng(seed)
    n = int(rng.integers(min_len, max_len + 1))
    return bits_to_string([int(x) for x in rng.integers(0, 2, size=n)])


def validate_bits(bits: List[int]) -> None:
    if len(bits) == 0:
        raise ValueError("Bits list is empty.")
    if any(b not in (0, 1) for b in bits):
        raise ValueError("Bits must be a list of 0/1 integers.")


# ----------------------------
# Parameters
# ----------------------------

def _finite(x: Any) -> bool:
    try:
        return math.isfinite(float(x))
    except (TypeError, ValueError):
        return False


def _positive_or(x: Any, default: float) -> float:
    return float(x) if _finite(x) and float(x) > 0 else default


def sanitize_params(params: SimParams) -> Tuple[SimParams, List[str]]:
    """
    Clamp user-facing parameters into a range the pipeline can always plot.
    Returns (clamped copy, warnings). Never raises.
    """
    warnings: List[str] = []

    amp = _positive_or(params.amplitude, DEFAULT_AMPLITUDE)
    if amp != params.amplitude:
        warnings.append(f"Amplitude {params.amplitude!r} is invalid; using {amp:g} V.")

    fs = float(params.fs) if _finite(params.fs) else DEFAULT_FS
    if fs < MIN_FS:
        fs = MIN_FS
    if fs != params.fs:
        warnings.append(f"Sample rate {params.fs!r} clamped to {fs:g} Hz.")

    duration = params.duration
    if duration is not None:
        duration = float(duration) if _finite(duration) else DEFAULT_DURATION
        duration = max(MIN_DURATION, duration)
        if duration != params.duration:
            warnings.append(f"Duration {params.duration!r} clamped to {duration:g} s.")

    bit_rate = params.bit_rate
    if bit_rate is not None and not (_finite(bit_rate) and float(bit_rate) > 0):
        warnings.append(f"Bit rate {bit_rate!r} is invalid; ignored.")
        bit_rate = None

    freqs = {}
    for name, default in (("fc", DEFAULT_FC), ("f0", DEFAULT_F0), ("f1", DEFAULT_F1)):
        raw = getattr(params, name)
        freqs[name] = _positive_or(raw, default)
        if freqs[name] != raw:
            warnings.append(f"{name} {raw!r} is invalid; using {freqs[name]:g} Hz.")

    snr_db = params.snr_db
    if snr_db is not None and not _finite(snr_db):
        snr_db = None

    clean = replace(
        params,
        amplitude=amp,
        fs=fs,
        duration=duration,
        bit_rate=None if bit_rate is None else float(bit_rate),
        snr_db=None if snr_db is None else float(snr_db),
        **freqs,
    )
    return clean, warnings


def run_duration(n_bits: int, params: SimParams) -> Tuple[float, List[str]]:
    """Resolve duration-or-bit-rate into a duration in seconds."""
    warnings: List[str] = []
    if params.bit_rate is not None:
        if params.duration is not None:
            warnings.append("Both duration and bit rate given; bit rate wins.")
        return max(MIN_DURATION, n_bits / float(params.bit_rate)), warnings
    if params.duration is None:
        return DEFAULT_DURATION, warnings
    return float(params.duration), warnings


def warn_params(fs: float, freqs: List[float], samples_per_bit: int,
                n_samples: int, n_bits: int) -> List[str]:
    warnings: List[str] = []
    nyq = fs / 2.0
    for f in freqs:
        if f >= nyq:
            warnings.append(f"Frequency {f:.3g} Hz >= Nyquist ({nyq:.3g} Hz): aliasing likely.")
    if n_samples < n_bits:
        warnings.append(
            f"Only {n_samples} samples for {n_bits} bits: trailing bits are truncated."
        )
    elif samples_per_bit < 8:
        warnings.append("samples_per_bit is very small; demod decisions may be unstable.")
    return warnings


# ----------------------------
# Sample grid / array helpers
# ----------------------------

def make_time_axis(num_samples: int, fs: float) -> np.ndarray:
    return np.arange(num_samples, dtype=float) / float(fs)


def make_grid(n_bits: int, fs: float, duration: float) -> SampleGrid:
    n = max(1, int(math.floor(float(fs) * float(duration))))
    ns = max(1, n // max(1, n_bits))
    bit_dur = float(duration) / max(1, n_bits)
    boundaries = np.arange(n_bits + 1, dtype=float) * bit_dur
    return SampleGrid(
        n_samples=n,
        samples_per_bit=ns,
        duration=float(duration),
        t=make_time_axis(n, fs),
        boundaries=boundaries,
    )


def bit_index(n_samples: int, samples_per_bit: int, n_bits: int) -> np.ndarray:
    """Owning bit of every sample; samples past the last full bit belong to the last bit."""
    return np.minimum(np.arange(n_samples) // samples_per_bit, n_bits - 1)


def bits_to_nrz(bits: List[int], samples_per_bit: int, n_samples: int,
                level: float = 1.0) -> np.ndarray:
    # NRZ: 1 -> +level, 0 -> -level, held for the bit's whole window
    signs = np.where(np.asarray(bits, dtype=int) == 1, 1.0, -1.0)
    return float(level) * signs[bit_index(n_samples, samples_per_bit, len(bits))]


def decisions_to_nrz(decisions: List[int], samples_per_bit: int, n_samples: int) -> np.ndarray:
    """+1/-1 over each decided bit window; samples past the last whole window stay 0."""
    out = np.zeros(n_samples, dtype=float)
    covered = len(decisions) * samples_per_bit
    if covered:
        signs = np.where(np.asarray(decisions, dtype=int) == 1, 1.0, -1.0)
        out[:covered] = np.repeat(signs, samples_per_bit)
    return out


def moving_average(x: np.ndarray, win: int) -> np.ndarray:
    """
    Causal moving average over the last `win` samples. The first win-1 outputs
    are normalised by the number of samples seen so far.
    """
    x = np.asarray(x, dtype=float)
    win = max(1, int(win))
    c = np.cumsum(x)
    s = c.copy()
    s[win:] = c[win:] - c[:-win]
    return s / np.minimum(win, np.arange(1, len(x) + 1))


def fft_mag(x: np.ndarray, fs: float) -> tuple[np.ndarray, np.ndarray]:
    # One-sided magnitude spectrum
    x = np.asarray(x, dtype=float)
    n = len(x)
    if n == 0:
        return np.array([]), np.array([])
    X = np.fft.rfft(x * np.hanning(n))
    f = np.fft.rfftfreq(n, d=1.0 / fs)
    mag = np.abs(X)
    return f, mag
