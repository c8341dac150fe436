"""BPSK / FSK modulation lab."""
