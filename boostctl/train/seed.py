# boostctl/train/seed.py
import random
import numpy as np

def set_global_seed(seed: int):
    """Seed the shared random sources used by fold generation."""
    random.seed(seed)
    np.random.seed(seed)
