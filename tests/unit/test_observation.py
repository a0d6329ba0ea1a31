"""Unit tests for the robust depth observation model."""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_almost_equal

from yttrium.errors import InvalidDimension
from yttrium.estimation.observation import (
    ObservationParameters,
    RobustDepthObservationModel,
)
from yttrium.estimation.state import StateLayout


def make_model(renderer, tail_weight: float = 0.1, workers: int = 1):
    params = ObservationParameters(
        bg_depth=2.5,
        fg_noise_std=0.01,
        bg_noise_std=0.05,
        tail_weight=tail_weight,
        uniform_tail_min=0.0,
        uniform_tail_max=5.0,
    )
    return RobustDepthObservationModel(
        params, renderer, StateLayout(object_count=1), workers=workers
    )


def state_at(z: float) -> np.ndarray:
    state = np.zeros(12)
    state[2] = z
    return state


class TestPixelDensity:
    """Tests for the per-pixel mixture density."""

    @pytest.mark.parametrize("rendered", [1.0, np.inf])
    @pytest.mark.parametrize("tail_weight", [0.0, 0.1, 1.0])
    def test_integrates_to_one(
        self, plane_renderer, rendered: float, tail_weight: float
    ) -> None:
        """Density integrates to one over the real line."""
        model = make_model(plane_renderer, tail_weight=tail_weight)
        z, dz = np.linspace(-2.0, 12.0, 1_400_001, retstep=True)

        density = model.pixel_density(z, rendered)

        assert np.sum(density) * dz == pytest.approx(1.0, abs=1e-4)

    def test_gaussian_component(self, plane_renderer) -> None:
        """Without a tail the density is the foreground Gaussian."""
        model = make_model(plane_renderer, tail_weight=0.0)
        measured = np.array([0.99, 1.0, 1.02])

        log_density = model.pixel_log_densities(np.ones(3), measured)

        expected = -0.5 * ((measured - 1.0) / 0.01) ** 2 - np.log(0.01 * np.sqrt(2 * np.pi))
        assert_allclose(log_density, expected)

    def test_background_uses_bg_parameters(self, plane_renderer) -> None:
        """Pixels without a rendered surface use bg_depth and bg_noise_std."""
        model = make_model(plane_renderer, tail_weight=0.0)

        log_density = model.pixel_log_densities(np.array([np.inf]), np.array([2.5]))

        assert log_density[0] == pytest.approx(-np.log(0.05 * np.sqrt(2 * np.pi)))

    def test_outlier_bounded_by_tail(self, plane_renderer) -> None:
        """Far outliers are explained by the uniform tail."""
        model = make_model(plane_renderer, tail_weight=0.1)

        log_density = model.pixel_log_densities(np.array([1.0]), np.array([4.0]))

        assert log_density[0] == pytest.approx(np.log(0.1 / 5.0))

    def test_outside_tail_bounds(self, plane_renderer) -> None:
        """The tail is zero outside its bounds."""
        model = make_model(plane_renderer, tail_weight=0.1)

        inside = model.pixel_density(np.array([4.9]), np.array([1.0]))
        outside = model.pixel_density(np.array([5.1]), np.array([1.0]))

        assert inside[0] == pytest.approx(0.02)
        assert outside[0] == pytest.approx(0.0, abs=1e-300)


class TestInvalidPixels:
    """Tests for missing depth handling."""

    def test_invalid_pixels_contribute_zero(self, plane_renderer) -> None:
        """NaN, inf, zero and negative depths give exactly zero."""
        model = make_model(plane_renderer)
        measured = np.array([np.nan, np.inf, 0.0, -1.0, 1.0])

        log_density = model.pixel_log_densities(np.ones(5), measured)

        assert np.all(log_density[:4] == 0.0)
        assert log_density[4] != 0.0

    def test_removing_pixel_subtracts_its_density(self, plane_renderer) -> None:
        """Invalidating pixel j removes exactly its log density from the sum."""
        model = make_model(plane_renderer)
        observation = np.array([1.0, 1.01, 0.98, 1.3, 2.0, 0.995, 1.0, 1.0, 0.7, 1.0, 1.0, 1.0])
        state = state_at(1.0)

        full = model.log_likelihood(state, observation)
        densities = model.pixel_log_densities(np.ones(12), observation)
        observation[3] = np.nan

        assert model.log_likelihood(state, observation) == pytest.approx(
            full - densities[3]
        )


class TestLogLikelihood:
    """Tests for state likelihood evaluation."""

    def test_peak_at_true_depth(self, plane_renderer) -> None:
        """Likelihood is highest for the state matching the observation."""
        model = make_model(plane_renderer)
        observation = np.full(12, 1.0)

        values = [model.log_likelihood(state_at(z), observation) for z in (0.98, 1.0, 1.02)]

        assert values[1] > values[0]
        assert values[1] > values[2]

    def test_observation_size_checked(self, plane_renderer) -> None:
        """Observations of the wrong size are rejected."""
        model = make_model(plane_renderer)
        with pytest.raises(InvalidDimension):
            model.log_likelihood(state_at(1.0), np.ones(11))

    def test_accepts_image_shaped_observation(self, plane_renderer) -> None:
        """(sensors, H, W) observations equal their flattened form."""
        model = make_model(plane_renderer)
        image = np.full((1, 3, 4), 1.005)

        assert model.log_likelihood(state_at(1.0), image) == pytest.approx(
            model.log_likelihood(state_at(1.0), image.reshape(-1))
        )

    def test_workers_keep_point_order(self, plane_renderer) -> None:
        """Threaded evaluation returns values in point order."""
        sequential = make_model(plane_renderer, workers=1)
        threaded = make_model(plane_renderer, workers=4)
        points = [state_at(z) for z in np.linspace(0.9, 1.1, 9)]
        observation = np.full(12, 1.0)

        assert_array_almost_equal(
            threaded.log_likelihoods(points, observation),
            sequential.log_likelihoods(points, observation),
        )

    def test_sensor_count_must_match_renderer(self, plane_renderer) -> None:
        """Parameters and renderer must agree on the number of sensors."""
        params = ObservationParameters(2.5, 0.01, 0.05, 0.1, 0.0, 5.0, sensors=2)
        with pytest.raises(InvalidDimension):
            RobustDepthObservationModel(params, plane_renderer, StateLayout(1))
