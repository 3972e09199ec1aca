# tests/distributions/test_multivariate.py
import logging
import math

import numpy as np
import pytest
from scipy import stats

from probdraw.errors import DomainError, ParameterError
from probdraw.distributions import MultivariateNormal, MultivariateT, Wishart, InverseWishart
from probdraw.distributions.cache import is_computed
from probdraw.distributions.multivariate import standard_wishart_root, _bartlett_samplers


def approx(a, b, tol=1e-10):
    return np.allclose(a, b, atol=tol, rtol=0)


@pytest.fixture
def spd3():
    return np.array([[2.0, 0.5, 0.1],
                     [0.5, 1.5, -0.3],
                     [0.1, -0.3, 1.0]])


# -----------------------------------------------------------------------------
# Multivariate normal
# -----------------------------------------------------------------------------

def test_mvn_standard_log_pdf_at_origin():
    mvn = MultivariateNormal([0.0, 0.0], np.eye(2))
    assert mvn.log_pdf([0.0, 0.0]) == -math.log(2.0 * math.pi)


def test_mvn_sample_covariance_converges(stream):
    mvn = MultivariateNormal([0.0, 0.0], np.eye(2))
    X = mvn.sample(stream, 50_000)
    assert X.shape == (50_000, 2)
    assert np.allclose(X.mean(axis=0), 0.0, atol=0.03)
    assert np.allclose(np.cov(X, rowvar=False), np.eye(2), atol=0.03)


def test_mvn_log_pdf_matches_scipy(mean, cov_matrix, rng):
    mvn = MultivariateNormal(mean, cov_matrix)
    ref = stats.multivariate_normal(mean, cov_matrix)
    X = rng.normal(size=(10, 3))
    np.testing.assert_allclose(mvn.log_pdf(X), ref.logpdf(X), rtol=1e-10)
    assert mvn.log_pdf(X[0]) == pytest.approx(ref.logpdf(X[0]), rel=1e-10)
    assert isinstance(mvn.log_pdf(X[0]), float)


def test_mvn_cov_and_root_agree(mean, cov_matrix, rng):
    by_cov = MultivariateNormal(mean, cov_matrix)
    U = by_cov.root()
    assert approx(np.tril(U, -1), 0.0)
    assert approx(U.T @ U, cov_matrix)

    by_root = MultivariateNormal(mean, root=U)
    assert approx(by_root.covariance(), cov_matrix)
    X = rng.normal(size=(5, 3))
    np.testing.assert_allclose(by_root.log_pdf(X), by_cov.log_pdf(X), rtol=1e-12)


def test_mvn_root_computed_lazily(mean, cov_matrix, stream):
    mvn = MultivariateNormal(mean, cov_matrix)
    assert not is_computed(mvn, "_root_from_cov")
    mvn.draw(stream)
    assert is_computed(mvn, "_root_from_cov")
    assert mvn.root() is mvn.root()


def test_mvn_sample_moments(mean, cov_matrix, stream):
    X = MultivariateNormal(mean, cov_matrix).sample(stream, 40_000)
    assert np.allclose(X.mean(axis=0), mean, atol=0.05)
    assert np.allclose(np.cov(X, rowvar=False), cov_matrix, atol=0.06)


def test_mvn_scaled_draw(mean, cov_matrix, stream):
    mvn = MultivariateNormal(mean, cov_matrix)
    assert np.array_equal(mvn.draw(stream, scale=0.0), mean)
    X = np.array([mvn.draw(stream, scale=2.0) for _ in range(20_000)])
    assert np.allclose(np.cov(X, rowvar=False), 4.0 * cov_matrix, atol=0.4)


def test_mvn_owns_its_inputs(mean, cov_matrix):
    m, C = mean.copy(), cov_matrix.copy()
    mvn = MultivariateNormal(m, C)
    m[0] = 100.0
    C[0, 0] = 100.0
    assert mvn.mean()[0] == 0.0
    assert mvn.covariance()[0, 0] == 2.0
    assert not mvn.mean().flags.writeable


def test_mvn_semidefinite_covariance_uses_jitter(caplog, stream):
    C = np.array([[1.0, 1.0], [1.0, 1.0]])
    mvn = MultivariateNormal([0.0, 0.0], C)
    with caplog.at_level(logging.WARNING, logger="probdraw.linalg.operations"):
        x = mvn.draw(stream)
    assert "jitter" in caplog.text
    assert x[0] == pytest.approx(x[1], abs=1e-4)


def test_mvn_marginal(mean, cov_matrix):
    marg = MultivariateNormal(mean, cov_matrix).marginal([0, 2])
    assert marg.dimension == 2
    assert np.array_equal(marg.mean(), mean[[0, 2]])
    assert np.array_equal(marg.covariance(), cov_matrix[np.ix_([0, 2], [0, 2])])


def test_mvn_joint_cdf_not_implemented(mean, cov_matrix):
    with pytest.raises(NotImplementedError):
        MultivariateNormal(mean, cov_matrix).cdf(mean)


@pytest.mark.parametrize("kwargs", [
    dict(mean=[0.0, 0.0]),
    dict(mean=[0.0, 0.0], cov=np.eye(2), root=np.eye(2)),
    dict(mean=[0.0, 0.0], cov=np.eye(3)),
    dict(mean=[0.0, 0.0], cov=[[1.0, 0.5], [0.2, 1.0]]),
    dict(mean=[0.0, 0.0], cov=[[1.0, 2.0], [2.0, 1.0]]),
    dict(mean=[0.0, 0.0], root=[[1.0, 0.0], [0.5, 1.0]]),
    dict(mean=[0.0, 0.0], cov=np.ones((2, 3))),
])
def test_mvn_invalid_parameters(kwargs):
    with pytest.raises(ParameterError):
        MultivariateNormal(**kwargs)


# -----------------------------------------------------------------------------
# Multivariate t
# -----------------------------------------------------------------------------

def test_mvt_draw_returns_scaling_factor(mean, cov_matrix, stream):
    mvt = MultivariateT(mean, cov_matrix, nu=4.0)
    x, w = mvt.draw(stream)
    assert x.shape == (3,)
    assert w > 0.0
    X, W = mvt.sample(stream, 10)
    assert X.shape == (10, 3) and W.shape == (10,)


def test_mvt_log_pdf_matches_scipy(mean, cov_matrix, rng):
    mvt = MultivariateT(mean, cov_matrix, nu=3.5)
    ref = stats.multivariate_t(loc=mean, shape=cov_matrix, df=3.5)
    X = rng.normal(size=(8, 3)) * 2.0
    np.testing.assert_allclose(mvt.log_pdf(X), ref.logpdf(X), rtol=1e-10)


def test_mvt_moments(mean, cov_matrix, stream):
    mvt = MultivariateT(mean, cov_matrix, nu=6.0)
    assert np.array_equal(mvt.mean(), mean)
    assert approx(mvt.covariance(), 1.5 * cov_matrix)
    X, W = mvt.sample(stream, 40_000)
    assert np.allclose(X.mean(axis=0), mean, atol=0.05)
    assert np.allclose(np.cov(X, rowvar=False), 1.5 * cov_matrix, atol=0.15)
    # w ~ InverseChiSquare(6, 1) has mean 6 / 4
    assert W.mean() == pytest.approx(1.5, rel=0.03)


def test_mvt_undefined_moments(mean, cov_matrix):
    with pytest.raises(DomainError):
        MultivariateT(mean, cov_matrix, nu=1.0).mean()
    with pytest.raises(DomainError):
        MultivariateT(mean, cov_matrix, nu=2.0).covariance()


def test_mvt_marginal_not_implemented(mean, cov_matrix):
    with pytest.raises(NotImplementedError):
        MultivariateT(mean, cov_matrix, nu=5.0).marginal([0])


def test_mvt_invalid_nu(mean, cov_matrix):
    with pytest.raises(ParameterError):
        MultivariateT(mean, cov_matrix, nu=0.0)


def test_mvt_tiny_nu_draws(stream):
    # the scaling factor overflows to inf for most draws at this nu
    mvt = MultivariateT([0.0, 0.0], np.eye(2), nu=0.002)
    X, W = mvt.sample(stream, 200)
    assert np.all(W > 0.0) and np.any(np.isinf(W))
    assert not np.any(np.isnan(X))
    assert np.all(np.isinf(X[np.isinf(W)]))


# -----------------------------------------------------------------------------
# Wishart
# -----------------------------------------------------------------------------

def test_standard_wishart_root_shape(stream):
    L = standard_wishart_root(stream, _bartlett_samplers(5.0, 3))
    assert L.shape == (3, 3)
    assert np.all(np.triu(L, 1) == 0.0)
    assert np.all(np.diag(L) > 0.0)


def test_wishart_mean_is_exact():
    w = Wishart(5.0, np.eye(3))
    assert np.array_equal(w.mean(), 5.0 * np.eye(3))


def test_wishart_draws_symmetric_positive_definite(stream):
    w = Wishart(5.0, np.eye(3))
    for _ in range(200):
        X = w.draw(stream)
        assert X.shape == (3, 3)
        assert approx(X, X.T, tol=1e-12)
        assert np.linalg.eigvalsh(X).min() > 0.0


def test_wishart_sample_moments(spd3, stream):
    w = Wishart(7.0, spd3)
    X = w.sample(stream, 20_000)
    assert X.shape == (20_000, 3, 3)
    np.testing.assert_allclose(X.mean(axis=0), w.mean(), atol=0.3)
    np.testing.assert_allclose(X.var(axis=0), w.variance(), rtol=0.1, atol=0.1)


def test_wishart_log_pdf_matches_scipy(spd3, stream):
    w = Wishart(6.0, spd3)
    ref = stats.wishart(df=6.0, scale=spd3)
    X = w.draw(stream)
    assert w.log_pdf(X) == pytest.approx(ref.logpdf(X), rel=1e-9)
    batch = np.stack([w.draw(stream) for _ in range(4)])
    np.testing.assert_allclose(w.log_pdf(batch), [ref.logpdf(b) for b in batch], rtol=1e-9)


def test_wishart_log_pdf_outside_support(spd3):
    w = Wishart(4.0, spd3)
    assert w.log_pdf(-np.eye(3)) == -np.inf


def test_wishart_scale_root_cached(spd3):
    w = Wishart(4.0, spd3)
    L = w.scale_left_root()
    assert approx(L @ L.T, spd3)
    assert w.scale_left_root() is L


@pytest.mark.parametrize("nu,scale", [
    (2.0, np.eye(3)),
    (5.0, np.array([[1.0, 0.5], [0.4, 1.0]])),
    (5.0, np.array([[1.0, 1.0], [1.0, 1.0]])),
    (5.0, np.ones((2, 3))),
    (-1.0, np.eye(1)),
])
def test_wishart_invalid_parameters(nu, scale):
    with pytest.raises(ParameterError):
        Wishart(nu, scale)
    with pytest.raises(ParameterError):
        InverseWishart(nu, scale)


# -----------------------------------------------------------------------------
# Inverse Wishart
# -----------------------------------------------------------------------------

def test_inverse_wishart_log_pdf_matches_scipy(spd3, stream):
    iw = InverseWishart(6.0, spd3)
    ref = stats.invwishart(df=6.0, scale=spd3)
    X = iw.draw(stream)
    assert iw.log_pdf(X) == pytest.approx(ref.logpdf(X), rel=1e-9)


def test_inverse_wishart_draws_symmetric_positive_definite(spd3, stream):
    iw = InverseWishart(4.0, spd3)
    for _ in range(200):
        X = iw.draw(stream)
        assert approx(X, X.T, tol=1e-10)
        assert np.linalg.eigvalsh(X).min() > 0.0


def test_inverse_wishart_sample_moments(spd3, stream):
    iw = InverseWishart(16.0, spd3)
    X = iw.sample(stream, 20_000)
    np.testing.assert_allclose(iw.mean(), spd3 / 12.0)
    np.testing.assert_allclose(X.mean(axis=0), iw.mean(), atol=0.01)
    np.testing.assert_allclose(X.var(axis=0), iw.variance(), rtol=0.15, atol=1e-3)


def test_inverse_wishart_inverse_draws_are_wishart(spd3, stream):
    # X ~ IW(nu, Psi) implies X^-1 ~ Wishart(nu, Psi^-1)
    iw = InverseWishart(8.0, spd3)
    inv = np.array([np.linalg.inv(iw.draw(stream)) for _ in range(20_000)])
    np.testing.assert_allclose(inv.mean(axis=0), 8.0 * np.linalg.inv(spd3), atol=0.2)


def test_inverse_wishart_undefined_moments(spd3):
    with pytest.raises(DomainError):
        InverseWishart(4.0, spd3).mean()
    with pytest.raises(DomainError):
        InverseWishart(6.0, spd3).variance()


def test_inverse_wishart_right_root(spd3):
    iw = InverseWishart(4.0, spd3)
    U = iw.inverse_scale_right_root()
    assert approx(np.tril(U, -1), 0.0)
    assert approx(U.T @ U, spd3)
