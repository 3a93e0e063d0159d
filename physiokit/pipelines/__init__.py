"""Orchestrators that read a store file, transform channels and write back."""
from .artifacts import remove_artifacts
from .base import BatchResult, Pipeline, run_batch
from .emg import emg_pipeline, emg_pp
from .generic import build_operator, preprocess, preprocess_files
from .interpolation import interpolate_all, interpolate_data, interpolate_file

__all__ = [
    "BatchResult",
    "Pipeline",
    "build_operator",
    "emg_pipeline",
    "emg_pp",
    "interpolate_all",
    "interpolate_data",
    "interpolate_file",
    "preprocess",
    "preprocess_files",
    "remove_artifacts",
    "run_batch",
]
