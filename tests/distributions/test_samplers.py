# tests/distributions/test_samplers.py
import math
from fractions import Fraction

import numpy as np
import pytest
from scipy import stats

from probdraw.distributions.samplers import (
    standard_normal,
    TruncatedNormalSampler,
    StudentTSampler,
    GammaSampler,
    AliasTable,
    BernoulliSampler,
    PoissonSampler,
)

N = 50_000


def test_standard_normal_ks(stream):
    draws = [standard_normal(stream) for _ in range(N)]
    assert stats.kstest(draws, "norm").pvalue > 1e-3


@pytest.mark.parametrize("a", [-1.0, 0.0, 0.5, 2.0])
def test_truncated_normal_sampler_ks(stream, a):
    sampler = TruncatedNormalSampler(a)
    draws = np.array([sampler.draw(stream) for _ in range(N)])
    assert np.all(draws >= a)
    assert stats.kstest(draws, stats.truncnorm(a, np.inf).cdf).pvalue > 1e-3


def test_truncated_normal_tilt_constant():
    s = TruncatedNormalSampler(1.0)
    assert s.tilted
    assert s.alpha == 0.5 * (1.0 + math.sqrt(5.0))
    assert not TruncatedNormalSampler(0.0).tilted


def test_truncated_normal_tilted_acceptance_rate(stream):
    # count uniforms consumed per accepted draw in the tail regime
    class Counting:
        def __init__(self, inner):
            self.inner = inner
            self.exponentials = 0

        def next(self, bound=1.0):
            return self.inner.next(bound)

        def standard_exponential(self):
            self.exponentials += 1
            return self.inner.standard_exponential()

    counting = Counting(stream)
    sampler = TruncatedNormalSampler(3.0)
    n = 5000
    for _ in range(n):
        sampler.draw(counting)
    # acceptance rate with the optimal tilt at a = 3 is above 0.9
    assert counting.exponentials / n < 1.15


@pytest.mark.parametrize("nu", [1.0, 3.0, 10.0])
def test_student_t_sampler_ks(stream, nu):
    sampler = StudentTSampler(nu)
    draws = [sampler.draw(stream) for _ in range(N)]
    assert stats.kstest(draws, stats.t(nu).cdf).pvalue > 1e-3


@pytest.mark.parametrize("alpha", [0.3, 1.0, 4.5])
def test_gamma_sampler_ks(stream, alpha):
    sampler = GammaSampler(alpha)
    draws = np.array([sampler.draw(stream) for _ in range(N)])
    assert np.all(draws >= 0.0)
    assert stats.kstest(draws, stats.gamma(alpha).cdf).pvalue > 1e-3


def test_gamma_constants_use_boosted_shape():
    small = GammaSampler(0.5)
    assert small.boosted
    assert small.d == pytest.approx(1.5 - 1.0 / 3.0)
    assert small.c == pytest.approx(1.0 / math.sqrt(9.0 * small.d))

    large = GammaSampler(5.0)
    assert not large.boosted
    assert large.d == pytest.approx(5.0 - 1.0 / 3.0)


def test_alias_table_entries(simple_weights):
    table = AliasTable(simple_weights)
    assert table.n == 3
    assert np.all(table.prob >= 0.0) and np.all(table.prob <= 1.0)
    assert np.all((table.alias >= 0) & (table.alias < 3))

    # the table reproduces the input distribution exactly
    recovered = table.prob / 3.0
    for j in range(3):
        recovered[table.alias[j]] += (1.0 - table.prob[j]) / 3.0
    np.testing.assert_allclose(recovered, simple_weights, atol=1e-12)


@pytest.mark.parametrize("weights", [
    [1.0],
    [0.5, 0.5],
    [0.0, 0.25, 0.75],
    [0.1, 0.1, 0.1, 0.7],
    np.full(7, 1.0 / 7.0),
])
def test_alias_table_probs_in_unit_interval(weights):
    table = AliasTable(np.asarray(weights) / np.sum(weights))
    assert np.all(table.prob >= 0.0) and np.all(table.prob <= 1.0)


def test_alias_table_frequencies(stream, simple_weights):
    table = AliasTable(simple_weights)
    n = 1_000_000
    counts = np.bincount([table.draw(stream) for _ in range(n)], minlength=3)
    np.testing.assert_allclose(counts / n, simple_weights, rtol=0.01)


def test_alias_table_never_draws_zero_probability(stream):
    table = AliasTable([0.0, 0.5, 0.0, 0.5])
    draws = {table.draw(stream) for _ in range(20_000)}
    assert draws == {1, 3}


def test_bernoulli_sampler_exact_and_float(stream):
    exact = BernoulliSampler(Fraction(1, 3))
    assert exact.exact
    freq = np.mean([exact.draw(stream) for _ in range(N)])
    assert abs(freq - 1.0 / 3.0) < 0.01

    assert not BernoulliSampler(0.25).exact
    assert all(BernoulliSampler(Fraction(1)).draw(stream) for _ in range(100))
    assert not any(BernoulliSampler(0.0).draw(stream) for _ in range(100))


@pytest.mark.parametrize("lam", [0.5, 4.0, 30.0])
def test_poisson_sampler_moments(stream, lam):
    sampler = PoissonSampler(lam)
    draws = np.array([sampler.draw(stream) for _ in range(N)])
    assert draws.min() >= 0
    assert abs(draws.mean() - lam) < 5 * math.sqrt(lam / N)
    assert draws.var() == pytest.approx(lam, rel=0.05)
