"""
Shared fixtures for the NeuroAge test suite.
No test touches the network or the pretrained model.
"""

import numpy as np
import pytest


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


class StubPredictor:
    """Predictor returning fixed per-replica values, one batch per call."""

    def __init__(self, batches):
        self.batches = list(batches)
        self.calls = []

    def predict(self, image_array, patch_array, verbose=True):
        self.calls.append((image_array.shape, patch_array.shape))
        age, gender = self.batches.pop(0)
        age = np.asarray(age, dtype=np.float32).reshape(-1, 1)
        gender = np.asarray(gender, dtype=np.float32).reshape(-1, 1)
        site = np.zeros((age.shape[0], 6), dtype=np.float32)
        return site, age, gender


@pytest.fixture
def stub_predictor_factory():
    return StubPredictor
