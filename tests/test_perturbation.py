import numpy as np
import pytest

from apslab.core.perturbation import combined_cv, draw_noise, perturb
from apslab.core.types import GridPoint, ModelVariant


def test_draw_noise_is_seeded():
    a = draw_noise(10, 25, seed=7)
    b = draw_noise(10, 25, seed=7)
    c = draw_noise(10, 25, seed=8)
    assert a.shape == (10, 25)
    assert np.array_equal(a, b)
    assert not np.array_equal(a, c)


def test_combined_cv_adds_in_variance():
    assert np.isclose(combined_cv(0.03, 0.04), 0.05)
    assert combined_cv(0.02, None) == 0.02
    assert np.isclose(combined_cv(0.0, 0.056), 0.056)


@pytest.mark.parametrize("model", [ModelVariant.MU_ANALYTICAL, ModelVariant.IMP_BIAS_ANALYTICAL])
def test_zero_error_analytical_reproduces_truth(model):
    values = np.array([1.0, 4.5, 12.0])
    noise = draw_noise(5, values.size, seed=1)
    sim = perturb(model, values, noise, GridPoint(mu=0.0, bias=0.0))
    assert sim.shape == (5, 3)
    assert np.array_equal(sim, np.broadcast_to(values, (5, 3)))


def test_bias_shifts_proportionally():
    values = np.array([10.0, 20.0])
    noise = np.zeros((1, 2))
    sim = perturb(ModelVariant.IMP_BIAS_ANALYTICAL, values, noise, GridPoint(mu=0.05, bias=0.1))
    assert np.allclose(sim, [[11.0, 22.0]])

    sim = perturb(ModelVariant.IMP_BIAS_ANALYTICAL, values, noise, GridPoint(mu=0.05, bias=-0.1))
    assert np.allclose(sim, [[9.0, 18.0]])


def test_mu_analytical_scales_noise():
    values = np.array([10.0])
    noise = np.array([[1.0], [-2.0]])
    sim = perturb(ModelVariant.MU_ANALYTICAL, values, noise, GridPoint(mu=0.1))
    assert np.allclose(sim, [[11.0], [8.0]])


def test_resampling_adds_biological_variation_at_zero_mu():
    values = np.array([10.0])
    noise = np.array([[1.0]])
    sim = perturb(ModelVariant.MU_RESAMPLING, values, noise, GridPoint(mu=0.0), cv_i=0.05)
    assert np.allclose(sim, [[10.5]])

    sim = perturb(
        ModelVariant.IMP_BIAS_RESAMPLING, values, noise, GridPoint(mu=0.03, bias=0.1), cv_i=0.04
    )
    assert np.allclose(sim, [[10.0 * 1.05 + 1.0]])


def test_resampling_without_cv_i_raises():
    with pytest.raises(ValueError, match="requires cv_i"):
        perturb(ModelVariant.MU_RESAMPLING, np.ones(2), np.zeros((1, 2)), GridPoint(mu=0.01))


def test_simulated_values_may_go_negative():
    sim = perturb(ModelVariant.MU_ANALYTICAL, np.array([5.0]), np.array([[-10.0]]), GridPoint(mu=0.2))
    assert sim[0, 0] == pytest.approx(-5.0)
