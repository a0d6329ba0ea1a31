"""Unit tests for the object transition model."""

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal, assert_array_equal

from yttrium.errors import InvalidDimension
from yttrium.estimation.state import StateLayout
from yttrium.estimation.transition import ObjectMotionParameters, ObjectTransitionModel


def make_model(
    object_count: int = 2,
    latent_dimension: int = 0,
    velocity_factor: float = 0.5,
    dt: float = 0.1,
) -> ObjectTransitionModel:
    layout = StateLayout(object_count=object_count, latent_dimension=latent_dimension)
    params = [
        ObjectMotionParameters(
            linear_sigma=0.01 * (i + 1),
            angular_sigma=0.1 * (i + 1),
            velocity_factor=velocity_factor,
        )
        for i in range(object_count)
    ]
    return ObjectTransitionModel(layout, params, latent_sigma=0.05, dt=dt)


class TestStateLayout:
    """Tests for the state layout."""

    def test_dimensions(self) -> None:
        """Dimensions follow the per-object block layout."""
        layout = StateLayout(object_count=2, latent_dimension=3)

        assert layout.n_state == 27
        assert layout.noise_dimension == 15
        assert layout.input_dimension == 12

    def test_compose_and_poses(self) -> None:
        """Composed states round-trip poses and velocities."""
        layout = StateLayout(object_count=2)
        poses = np.arange(12, dtype=float).reshape(2, 6)
        velocities = -poses

        state = layout.compose(poses, velocities)

        assert_array_equal(layout.poses(state), poses)
        assert_array_equal(layout.velocities(state), velocities)
        assert_array_equal(state[layout.pose_slice(1)], poses[1])

    def test_wrong_state_size(self) -> None:
        """States of the wrong length are rejected."""
        with pytest.raises(InvalidDimension):
            StateLayout(object_count=1).poses(np.zeros(11))


class TestObjectTransitionModel:
    """Tests for ObjectTransitionModel."""

    def test_accessors(self) -> None:
        """Dimension accessors match the layout."""
        model = make_model(object_count=2, latent_dimension=1)

        assert model.state_dimension == 25
        assert model.noise_dimension == 13
        assert model.input_dimension == 12

    def test_noise_free_prediction(self) -> None:
        """Without noise, v' = f v + u and pose' = pose + dt v'."""
        model = make_model(object_count=1, velocity_factor=0.5, dt=0.1)
        layout = model.layout
        pose = np.array([[0.0, 0.0, 1.0, 0.1, 0.2, 0.3]])
        velocity = np.array([[1.0, 2.0, 3.0, 0.4, 0.5, 0.6]])
        u = np.full(6, 0.1)

        state = model.predict(layout.compose(pose, velocity), input=u)

        expected_velocity = 0.5 * velocity + 0.1
        assert_array_almost_equal(layout.velocities(state), expected_velocity)
        assert_array_almost_equal(layout.poses(state), pose + 0.1 * expected_velocity)

    def test_noise_scaling(self) -> None:
        """Noise is scaled by the per-object sigmas."""
        model = make_model(object_count=1, velocity_factor=0.0, dt=1.0)
        state = np.zeros(model.state_dimension)
        noise = np.ones(model.noise_dimension)

        next_state = model.predict(state, noise=noise)

        expected = np.array([0.01] * 3 + [0.1] * 3)
        assert_array_almost_equal(model.layout.velocities(next_state)[0], expected)
        assert_array_almost_equal(model.layout.poses(next_state)[0], expected)

    def test_deterministic(self) -> None:
        """Equal inputs give equal outputs and inputs are not modified."""
        model = make_model()
        rng = np.random.default_rng(0)
        state = rng.normal(size=model.state_dimension)
        noise = rng.normal(size=model.noise_dimension)
        state_copy = state.copy()

        a = model.predict(state, noise=noise)
        b = model.predict(state, noise=noise)

        assert_array_equal(a, b)
        assert_array_equal(state, state_copy)

    def test_objects_are_independent(self) -> None:
        """Changing object 1 never changes the prediction of object 0."""
        model = make_model(object_count=2)
        rng = np.random.default_rng(1)
        state = rng.normal(size=model.state_dimension)
        noise = rng.normal(size=model.noise_dimension)

        perturbed_state = state.copy()
        perturbed_state[12:] += 5.0
        perturbed_noise = noise.copy()
        perturbed_noise[6:] -= 3.0

        a = model.predict(state, noise=noise)
        b = model.predict(perturbed_state, noise=perturbed_noise)

        assert_array_equal(a[:12], b[:12])

    def test_latent_random_walk(self) -> None:
        """Latent parameters move only by scaled noise."""
        model = make_model(object_count=1, latent_dimension=2)
        state = np.zeros(model.state_dimension)
        state[12:] = [1.0, -1.0]
        noise = np.zeros(model.noise_dimension)
        noise[6:] = [2.0, 4.0]

        next_state = model.predict(state, noise=noise)

        assert_array_almost_equal(next_state[12:], [1.1, -0.8])

    def test_wrong_noise_size(self) -> None:
        """Noise of the wrong length is rejected."""
        model = make_model()
        with pytest.raises(InvalidDimension):
            model.predict(np.zeros(model.state_dimension), noise=np.zeros(3))

    def test_wrong_input_size(self) -> None:
        """Input of the wrong length is rejected."""
        model = make_model()
        with pytest.raises(InvalidDimension):
            model.predict(np.zeros(model.state_dimension), input=np.zeros(5))

    def test_parameter_count_must_match(self) -> None:
        """One parameter set per object is required."""
        layout = StateLayout(object_count=2)
        with pytest.raises(InvalidDimension):
            ObjectTransitionModel(layout, [ObjectMotionParameters(0.1, 0.1, 0.5)])
