"""Preprocessing subpackage for waveform samples.

Exports the filter engine, the operator classes built on it and the
interpolation engine.
"""
from .filters import FilterSpec, apply_filter, leaky_integrator, median_filter, notch_filter
from .envelope import full_wave_rectify, smoothed_envelope
from .interpolate import interpolate, interpolate_channel
from .operators import Butterworth, Envelope, LeakyIntegrator, Median, Notch, Operator
