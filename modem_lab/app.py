from __future__ import annotations

import logging

import streamlit as st
import numpy as np

from modem_lab.utils import SimConfig, SimParams, bits_to_string, random_bits
from modem_lab.simulate import ber_sweep, run
from modem_lab.export import to_csv
from modem_lab.plots import plot_ber, plot_freq, plot_scatter, plot_waveforms

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

st.set_page_config(layout="wide")

st.markdown(
    """
    <style>
    [data-testid="InputInstructions"] {
        display: none !important;
    }
    </style>
    """,
    unsafe_allow_html=True,
)


def summary_block(meta: dict, ber: float):
    items = {k: meta[k] for k in ["scheme", "match", "input_len", "decoded_len", "bit_errors",
                                  "fs", "duration", "n_samples", "samples_per_bit", "snr_db"] if k in meta}
    items["ber"] = ber
    st.subheader("Summary")
    st.json(items)


def empty_state(message: str = "Click **Generate** in the sidebar to see results."):
    st.markdown(
        """
        <div style="text-align:center; padding: 6rem 1rem; opacity: 0.95;">
            <div style="font-size: 4rem; line-height: 1;">📡</div>
            <div style="font-size: 1.35rem; font-weight: 600; margin-top: 0.75rem;">
                Ready when you are
            </div>
            <div style="font-size: 1.05rem; margin-top: 0.5rem;">
        """
        + message +
        """
            </div>
        </div>
        """,
        unsafe_allow_html=True,
    )


st.title("Digital Modulation Lab — BPSK / FSK")

with st.sidebar:
    st.header("Controls")

    scheme = st.selectbox("Experiment", ["BPSK", "FSK"])
    show_grid = st.checkbox("Show grid", value=True)

    st.divider()
    st.subheader("Signal parameters")

    amp = st.number_input("Amplitude (V)", value=1.0, step=0.1)
    fs = st.number_input("Sample rate fs (Hz)", value=10000.0, step=1000.0)

    timing = st.radio("Timing", ["Duration", "Bit rate"], horizontal=True)
    duration = None
    bit_rate = None
    if timing == "Duration":
        duration = st.number_input("Duration (s)", value=0.1, step=0.01, format="%.3f")
    else:
        bit_rate = st.number_input("Bit rate (bit/s)", value=50.0, step=10.0)

    fc, f0, f1 = 10.0, 8.0, 12.0
    if scheme == "BPSK":
        fc = st.number_input("Carrier freq fc (Hz)", value=10.0, step=1.0)
        st.caption("Demodulation: coherent (assumes phase-aligned LO). Constellation: I vs Q samples.")
    else:
        f0 = st.number_input("Freq for bit 0, f0 (Hz)", value=8.0, step=1.0)
        f1 = st.number_input("Freq for bit 1, f1 (Hz)", value=12.0, step=1.0)
        st.caption("Demodulation: correlation per bit interval. Constellation shows (E0, E1) scatter.")
        if np.isclose(f0, f1):
            st.warning("f0 and f1 are equal; the receiver cannot tell the bits apart.")

    add_awgn = st.checkbox("Add noise (AWGN)", value=False)
    snr_db = None
    if add_awgn:
        snr_db = st.slider("SNR (dB)", -10.0, 30.0, 10.0, step=1.0)

    st.divider()
    st.subheader("Digital input")

    if "bitstr" not in st.session_state:
        st.session_state["bitstr"] = "101011"

    def _random_bits_cb():
        st.session_state["bitstr"] = random_bits(8, 23)

    st.text_input("Bit pattern (e.g. 101010)", key="bitstr")
    st.button("Random bits", on_click=_random_bits_cb)

    params = SimParams(
        amplitude=float(amp), fs=float(fs), duration=duration, bit_rate=bit_rate,
        fc=float(fc), f0=float(f0), f1=float(f1), snr_db=snr_db,
    )
    config = SimConfig(scheme=scheme, bitstr=st.session_state["bitstr"], params=params)

    generate = st.button("Generate", type="primary")

if "last_result" not in st.session_state:
    st.session_state["last_result"] = None

if generate:
    st.session_state["last_result"] = run(config)
    logger.info("Generated %s run from %r", scheme, config.bitstr)

res = st.session_state.get("last_result", None)

with st.sidebar:
    try:
        csv_text = to_csv(res)
    except ValueError as exc:
        st.info(str(exc))
    else:
        st.download_button("Download CSV", data=csv_text, file_name="signals.csv", mime="text/csv")

if res is None:
    empty_state("Pick an experiment, enter a bit pattern, then click **Generate**.")
else:
    for w in res.meta.get("warnings", []):
        st.warning(w)

    st.subheader("Results")
    summary_block(res.meta, res.ber)

    tab1, tab2, tab3, tab4, tab5 = st.tabs(["Waveforms", "Constellation", "Frequency", "BER vs SNR", "Details"])

    with tab1:
        st.plotly_chart(plot_waveforms(res, grid=show_grid), width='stretch')

    with tab2:
        st.plotly_chart(plot_scatter(res), width='stretch')

    with tab3:
        st.plotly_chart(plot_freq(res.received, res.meta["fs"], "Spectrum of received signal"), width='stretch')

    with tab4:
        lo, hi = st.slider("SNR range (dB)", -10, 30, (-6, 12))
        trials = st.slider("Trials per point", 1, 50, 10)
        if st.button("Run sweep"):
            snrs = np.arange(lo, hi + 1, 2, dtype=float)
            # sweep the run on screen, not whatever the sidebar holds now
            ber = ber_sweep(res.meta["config"], snrs, trials=trials)
            st.plotly_chart(plot_ber(snrs, ber, res.scheme), width='stretch')

    with tab5:
        st.code("Input:    " + bits_to_string(res.bits["input"]))
        st.code("Decoded:  " + bits_to_string(res.bits["decoded"]))
        st.write("Match:")
        if res.meta["match"]:
            st.success("MATCH")
        else:
            st.error("MISMATCH")
