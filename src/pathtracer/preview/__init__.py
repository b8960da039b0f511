"""Output utilities for rendered images."""

from .export import compute_rmse, load_png, save_png

__all__ = ["save_png", "load_png", "compute_rmse"]
