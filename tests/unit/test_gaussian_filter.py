"""Unit tests for the robust Gaussian filter and the object tracker."""

import numpy as np
import pytest
from numpy.testing import assert_allclose, assert_array_almost_equal

from yttrium.errors import InvalidDimension, NumericalDegeneracy
from yttrium.estimation.gaussian_filter import Belief, axis_moments
from yttrium.estimation.observation import RobustDepthObservationModel
from yttrium.estimation.state import StateLayout
from yttrium.estimation.tracker import ObjectTracker

PLANE = np.full(12, 1.0)


def prior(z: float = 1.003, std: float = 0.002) -> Belief:
    mean = np.zeros(12)
    mean[2] = z
    cov = np.diag([std**2] * 6 + [1e-6] * 6)
    return Belief(mean=mean, covariance=cov)


class NaNObservationModel(RobustDepthObservationModel):
    """Observation model whose likelihood evaluation degenerates."""

    def log_likelihoods(self, points, observation, executor=None):
        return np.full(len(points), np.nan)


class TestBelief:
    """Tests for the Belief snapshot."""

    def test_arrays_are_read_only(self) -> None:
        """Belief arrays cannot be modified in place."""
        belief = prior()
        with pytest.raises(ValueError):
            belief.mean[0] = 1.0
        with pytest.raises(ValueError):
            belief.covariance[0, 0] = 1.0

    def test_copies_input(self) -> None:
        """Mutating the source arrays does not change the belief."""
        mean = np.zeros(3)
        belief = Belief(mean=mean, covariance=np.eye(3))
        mean[0] = 5.0
        assert belief.mean[0] == 0.0

    def test_shape_mismatch(self) -> None:
        """Covariance must match the mean."""
        with pytest.raises(InvalidDimension):
            Belief(mean=np.zeros(3), covariance=np.eye(2))


class TestPredict:
    """Tests for the prediction step."""

    def test_zero_noise_keeps_belief(self, make_filter) -> None:
        """Without process noise or input the belief is unchanged."""
        gf = make_filter(velocity_factor=0.5)
        mean = np.zeros(12)
        mean[:6] = [0.1, -0.2, 1.0, 0.3, 0.0, 0.1]
        cov = np.diag([1e-4] * 6 + [0.0] * 6)
        belief = Belief(mean=mean, covariance=cov)

        predicted = gf.predict(belief)

        assert_allclose(predicted.mean, belief.mean, atol=1e-12)
        assert_allclose(predicted.covariance, belief.covariance, atol=1e-12)

    def test_linear_propagation(self, make_filter) -> None:
        """Prediction equals F P F^T + G G^T for the linear process model."""
        dt, vf, sl, sa = 0.5, 0.9, 0.01, 0.02
        gf = make_filter(velocity_factor=vf, linear_sigma=sl, angular_sigma=sa, dt=dt)
        rng = np.random.default_rng(0)
        A = rng.normal(size=(12, 12)) * 0.01
        belief = Belief(mean=rng.normal(size=12), covariance=A @ A.T + 1e-6 * np.eye(12))

        F = np.eye(12)
        F[:6, 6:] = dt * vf * np.eye(6)
        F[6:, 6:] = vf * np.eye(6)
        sigma = np.diag([sl] * 3 + [sa] * 3)
        G = np.vstack([dt * sigma, sigma])

        predicted = gf.predict(belief)

        assert_allclose(predicted.mean, F @ belief.mean, atol=1e-10)
        assert_allclose(
            predicted.covariance, F @ belief.covariance @ F.T + G @ G.T, atol=1e-10
        )

    def test_input_shifts_velocity(self, make_filter) -> None:
        """Inputs are added to the velocity."""
        gf = make_filter(velocity_factor=1.0, dt=1.0)
        u = np.array([0.01, 0.0, 0.0, 0.0, 0.0, 0.0])

        predicted = gf.predict(prior(), input=u)

        assert predicted.mean[6] == pytest.approx(0.01)
        assert predicted.mean[0] == pytest.approx(0.01)


class TestUpdate:
    """Tests for the measurement update."""

    def test_zero_rate_skips_update(self, make_filter, plane_renderer) -> None:
        """update_rate = 0 returns the predicted belief without rendering."""
        gf = make_filter(update_rate=0.0)
        belief = prior()

        result = gf.correct(belief, PLANE)

        assert result.belief is belief
        assert not result.applied
        assert plane_renderer.calls == 0

    def test_observed_axis_moves_toward_measurement(self, make_filter) -> None:
        """The depth axis moves toward the plane and its variance shrinks."""
        gf = make_filter()
        belief = prior(z=1.003)

        posterior = gf.update(belief, PLANE)

        assert 1.0 < posterior.mean[2] < 1.003
        assert posterior.covariance[2, 2] < belief.covariance[2, 2]

    def test_unobserved_axes_keep_variance(self, make_filter) -> None:
        """Axes the plane cannot see keep their prior mean and variance."""
        gf = make_filter()
        belief = prior()

        posterior = gf.update(belief, PLANE)

        for axis in (0, 1, 3, 4, 5):
            assert posterior.mean[axis] == pytest.approx(belief.mean[axis], abs=1e-12)
            assert posterior.covariance[axis, axis] == pytest.approx(
                belief.covariance[axis, axis], rel=1e-9
            )

    def test_flat_likelihood_reproduces_prior(self, make_filter) -> None:
        """An observation without valid pixels leaves the belief unchanged."""
        gf = make_filter()
        belief = prior()

        posterior = gf.update(belief, np.full(12, np.nan))

        assert_allclose(posterior.mean, belief.mean, atol=1e-15)
        assert_allclose(posterior.covariance, belief.covariance, rtol=1e-9, atol=1e-18)

    def test_update_rate_blends_linearly(self, make_filter) -> None:
        """A partial rate blends prediction and full correction linearly."""
        belief = prior()
        full = make_filter(update_rate=1.0).update(belief, PLANE)
        half = make_filter(update_rate=0.5).update(belief, PLANE)

        assert_allclose(half.mean, 0.5 * (belief.mean + full.mean), atol=1e-12)
        assert_allclose(
            half.covariance,
            0.5 * (belief.covariance + full.covariance),
            atol=1e-15,
        )

    def test_result_is_psd(self, make_filter) -> None:
        """Posterior covariance is symmetric positive semi-definite."""
        posterior = make_filter(tail_weight=0.1).update(prior(), PLANE)

        cov = posterior.covariance
        assert_array_almost_equal(cov, cov.T)
        assert np.linalg.eigvalsh(cov).min() >= -1e-15

    @pytest.mark.parametrize("alpha", [0.1, 0.2, 1.0, 2.0])
    def test_quadratic_likelihood_gives_kalman_posterior(self, make_filter, alpha) -> None:
        """A Gaussian likelihood yields the Kalman posterior for any alpha."""
        P = 0.002**2
        R = 0.01**2 / PLANE.size
        gain = P / (P + R)

        posterior = make_filter(alpha=alpha).update(prior(z=1.003), PLANE)

        assert posterior.mean[2] == pytest.approx(1.003 - gain * 0.003, rel=1e-9)
        assert posterior.covariance[2, 2] == pytest.approx((1.0 - gain) * P, rel=1e-6)

    def test_sharp_likelihood_small_alpha(self, make_filter) -> None:
        """A sharp likelihood with small alpha still gives a valid posterior."""
        belief = prior(z=1.0, std=0.05)

        posterior = make_filter(alpha=0.2).update(belief, PLANE)

        assert posterior.mean[2] == pytest.approx(1.0, abs=1e-12)
        assert posterior.covariance[2, 2] == pytest.approx(0.05**2 / 301.0, rel=1e-6)

    def test_axis_moments(self) -> None:
        """A rising likelihood moves the mean at most to the axis point."""
        log_likelihoods = np.array([0.0, 50.0, -100.0, -50.0, -100.0])

        shift, variance = axis_moments(log_likelihoods, dimension=2, spread=1.5)

        assert_allclose(shift, [1.5, 0.0])
        assert_allclose(variance, [1.0, 1.0 / (1.0 + 200.0 / 2.25)])

    def test_contraction_monotone_in_prior(self, make_filter) -> None:
        """A wider prior never yields a narrower posterior."""
        gf = make_filter()
        variances = [
            gf.update(prior(z=1.0, std=std), PLANE).covariance[2, 2]
            for std in (0.001, 0.002, 0.005, 0.02)
        ]

        assert variances == sorted(variances)

    def test_nan_likelihood_raises(self, make_filter, plane_renderer) -> None:
        """NaN likelihoods raise NumericalDegeneracy."""
        gf = make_filter()
        gf.observation = NaNObservationModel(
            gf.observation.parameters, plane_renderer, gf.observation.layout
        )

        with pytest.raises(NumericalDegeneracy):
            gf.update(prior(), PLANE)


class TestObjectTracker:
    """Tests for ObjectTracker."""

    def test_step_before_initialize(self, make_filter) -> None:
        """Stepping an uninitialized tracker raises RuntimeError."""
        tracker = ObjectTracker(make_filter(), StateLayout(object_count=1))

        assert not tracker.is_initialized
        with pytest.raises(RuntimeError):
            tracker.step(PLANE)

    def test_initialize_sets_belief(self, make_filter, tracker_config) -> None:
        """Initial covariance follows the configured std-devs."""
        tracker = ObjectTracker(
            make_filter(), StateLayout(object_count=1), initial=tracker_config.initial
        )
        pose = np.array([[0.0, 0.0, 1.0, 0.0, 0.0, 0.0]])

        belief = tracker.initialize(pose)

        assert tracker.is_initialized
        assert_array_almost_equal(tracker.poses, pose)
        assert belief.covariance[0, 0] == pytest.approx(0.002**2)
        assert belief.covariance[3, 3] == pytest.approx(0.01**2)
        assert belief.covariance[6, 6] == 0.0

    def test_step_commits_and_records(self, make_filter) -> None:
        """A successful cycle commits the belief and records telemetry."""
        tracker = ObjectTracker(make_filter(linear_sigma=1e-4), StateLayout(1))
        tracker.reset(prior())

        belief = tracker.step(PLANE)

        assert tracker.belief is belief
        assert tracker.cycle == 1
        latest = tracker.telemetry.latest
        assert latest is not None
        assert latest.update_applied
        assert latest.covariance_trace == pytest.approx(belief.trace)

    def test_failed_step_keeps_belief(self, make_filter, plane_renderer) -> None:
        """A degenerate cycle raises and keeps the pre-cycle belief."""
        gf = make_filter()
        gf.observation = NaNObservationModel(
            gf.observation.parameters, plane_renderer, gf.observation.layout
        )
        tracker = ObjectTracker(gf, StateLayout(1))
        before = prior()
        tracker.reset(before)

        with pytest.raises(NumericalDegeneracy):
            tracker.step(PLANE)

        assert tracker.belief is before
        assert tracker.cycle == 0
        assert tracker.telemetry.get_summary()["failures"] == 1

    def test_reset_dimension_checked(self, make_filter) -> None:
        """Beliefs of the wrong dimension are rejected."""
        tracker = ObjectTracker(make_filter(), StateLayout(1))
        with pytest.raises(InvalidDimension):
            tracker.reset(Belief(mean=np.zeros(6), covariance=np.eye(6)))
