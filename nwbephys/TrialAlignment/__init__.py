from .load_trial_aligned_data import load_trial_aligned_data

__all__ = [
    "load_trial_aligned_data",
]
