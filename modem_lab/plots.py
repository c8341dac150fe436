from __future__ import annotations

from typing import Sequence
import numpy as np
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from modem_lab.utils import SimResult, fft_mag

TRACE_COLORS = ["#1f77b4", "#ff7f0e", "#2ca02c", "#d62728"]


def trace_labels(res: SimResult) -> list[str]:
    if res.scheme == "BPSK":
        carrier = f"Carrier {res.meta['fc']:g} Hz"
    else:
        carrier = "Carrier (f0/f1)"
    return ["Input (NRZ ±A)", carrier, f"{res.scheme} modulated", "Demodulated (NRZ)"]


def plot_waveforms(res: SimResult, grid: bool = True) -> go.Figure:
    """Input, carrier, modulated and demodulated traces stacked on a shared time axis."""
    labels = trace_labels(res)
    y_titles = ["Input", "Carrier", "Modulated", "Demodulated"]
    fig = make_subplots(rows=4, cols=1, shared_xaxes=True, vertical_spacing=0.04)

    for k, (y, name) in enumerate(zip(res.traces, labels)):
        fig.add_trace(
            go.Scatter(x=res.t, y=y, mode="lines", name=name, line=dict(width=2, color=TRACE_COLORS[k])),
            row=k + 1, col=1,
        )
        fig.update_yaxes(title_text=y_titles[k], showgrid=grid, row=k + 1, col=1)

    # noisy channel output, drawn under the clean modulated trace
    if res.meta.get("snr_db") is not None:
        fig.add_trace(
            go.Scatter(x=res.t, y=res.received, mode="lines", name="Received (noisy)",
                       line=dict(width=1, color="#7f7f7f"), opacity=0.5),
            row=3, col=1,
        )

    amp = float(res.meta["amplitude"])
    fig.update_yaxes(range=[-1.5 * amp, 1.5 * amp], row=1, col=1)
    fig.update_yaxes(range=[-1.5, 1.5], row=4, col=1)
    fig.update_xaxes(title_text="Time (s)", showgrid=grid, row=4, col=1)

    for x in res.meta["boundaries"]:
        fig.add_shape(type="line", x0=float(x), x1=float(x), xref="x", yref="paper", y0=0, y1=1,
                      line=dict(color="#666", width=1, dash="dot"), opacity=0.25)

    if res.scheme == "BPSK":
        title = f"BPSK — fc={res.meta['fc']:g} Hz, fs={res.meta['fs']:g} Hz"
    else:
        title = f"FSK — f0={res.meta['f0']:g} Hz / f1={res.meta['f1']:g} Hz, fs={res.meta['fs']:g} Hz"
    fig.update_layout(title=title, height=700, margin=dict(t=70, l=70, r=30, b=60), showlegend=True)
    return fig


def plot_scatter(res: SimResult) -> go.Figure:
    pts = np.asarray(res.scatter, dtype=float).reshape(-1, 2)
    fig = go.Figure()
    if res.scheme == "BPSK":
        title, xt, yt = "BPSK: I/Q scatter (received samples)", "I", "Q"
        fig.add_trace(go.Scatter(x=pts[:, 0], y=pts[:, 1], mode="markers", marker=dict(size=6)))
    else:
        title, xt, yt = "FSK: energy scatter (E0 vs E1 per bit)", "E0", "E1"
        dec = np.asarray(res.bits["decoded"][: len(pts)])
        for bit, color in ((0, TRACE_COLORS[0]), (1, TRACE_COLORS[3])):
            sel = dec == bit
            fig.add_trace(go.Scatter(x=pts[sel, 0], y=pts[sel, 1], mode="markers",
                                     name=f"decided {bit}", marker=dict(size=8, color=color)))
    fig.update_layout(title=title, xaxis_title=xt, yaxis_title=yt, height=360)
    return fig


def plot_freq(x, fs, title):
    f, mag = fft_mag(np.asarray(x, dtype=float), fs)
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=f, y=mag, mode="lines", name="|X(f)|"))
    fig.update_layout(title=title, xaxis_title="Frequency (Hz)", yaxis_title="Magnitude")
    return fig


def plot_ber(snr_values: Sequence[float], ber: Sequence[float], scheme: str) -> go.Figure:
    fig = go.Figure()
    fig.add_trace(go.Scatter(x=list(snr_values), y=list(ber), mode="lines+markers", name=scheme))
    fig.update_layout(title=f"{scheme}: simulated BER vs SNR", xaxis_title="SNR (dB)", yaxis_title="BER")
    return fig
