"""Manage Jupyter kernels backed by per-kernel virtual environments."""
