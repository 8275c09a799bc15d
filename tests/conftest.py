"""Shared fixtures for compair tests."""

import pytest


@pytest.fixture
def gamma_air():
    """Standard gamma for air."""
    return 1.4


@pytest.fixture
def gamma_monatomic():
    """Monatomic gas (He, Ar): γ = 5/3."""
    return 5.0 / 3.0
