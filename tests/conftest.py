
import pytest
import numpy as np


@pytest.fixture
def rng():
    return np.random.default_rng(42)

@pytest.fixture
def prior_cov():
    return np.array([[3.8908,   0.974802, 0.475912],
                     [0.974802, 4.03892,  0.502967],
                     [0.475912, 0.502967, 3.56278]])

@pytest.fixture
def neg_hessian():
    return np.array([[3.24731,  0.965769, 0.891059],
                     [0.965769, 3.11808,  1.24221],
                     [0.891059, 1.24221,  4.99718]])

@pytest.fixture
def laplace_mean():
    return np.array([-0.25005743001925373,
                     0.5300156020399001,
                     0.7143122346336731])

@pytest.fixture
def density_mean():
    return np.array([-0.20617401141446381,
                     0.15186815822664115,
                     -0.03498553786495774])

@pytest.fixture
def density_point():
    return np.array([0.9040983839157295,
                     -0.29874050736604413,
                     -1.2570687585683156])
