"""Tests for the Gamma-Poisson model and ``gamma_poisson_ppd``.

Tests cover:
- Closed-form posterior and predictive parameters
- Sample collection sizes and reproducibility
- Direct Negative-Binomial vs two-stage (prior / posterior) predictive draws
- Poisson fit diagnostics and the zero/one posterior predictive check
- The end-to-end call with a confidence interval
"""

import numpy as np
import pytest
from scipy import stats as sp_stats

from bayescompare.core.config import settings
from bayescompare.stats.gamma_poisson import (
    GammaPoisson,
    GammaPoissonResult,
    gamma_poisson_ppd,
    poisson_fit,
    zero_one_counts,
)

Y1 = [0, 0, 1, 2, 1, 0, 3, 1, 0, 2, 1, 1, 0, 0, 2]
Y2 = [1, 2, 2, 0, 3, 1, 4, 2, 1, 0, 2, 3, 1, 2, 0, 1, 2]


def run(**overrides):
    kwargs = dict(
        sample_size=2000,
        gamma_a1=2,
        gamma_b1=1,
        y1=Y1,
        gamma_a2=2,
        gamma_b2=1,
        y2=Y2,
        seed=42,
    )
    kwargs.update(overrides)
    return gamma_poisson_ppd(**kwargs)


# ======================================================================
# GammaPoisson model
# ======================================================================


class TestGammaPoissonModel:
    def test_update_returns_new_instance(self):
        prior = GammaPoisson(2.0, 1.0)
        posterior = prior.update(np.array([0, 0, 1, 2]))
        assert prior.shape == 2.0
        assert prior.rate == 1.0
        assert posterior.shape == 5.0  # 2 + 3
        assert posterior.rate == 5.0   # 1 + 4
        assert posterior is not prior

    def test_posterior_mean_and_variance(self):
        model = GammaPoisson(5.0, 5.0)
        assert model.posterior_mean() == pytest.approx(1.0)
        assert model.posterior_variance() == pytest.approx(0.2)

    def test_predictive_probability(self):
        model = GammaPoisson(2.0, 1.0).update(np.array([0, 0, 1, 2]))
        # (b + n) / (b + n + 1) = 5 / 6
        assert model.predictive_probability() == pytest.approx(5.0 / 6.0)

    def test_sample_mean_close_to_posterior_mean(self):
        model = GammaPoisson(2.0, 1.0).update(np.array(Y2, dtype=float))
        samples = model.sample(100_000, np.random.default_rng(0))
        assert np.mean(samples) == pytest.approx(model.posterior_mean(), rel=0.01)

    def test_predictive_mean_matches_negative_binomial(self):
        """E[y_tilde] = shape / rate for the Negative-Binomial predictive."""
        model = GammaPoisson(2.0, 1.0).update(np.array(Y2, dtype=float))
        draws = model.sample_predictive(100_000, np.random.default_rng(1))
        assert np.mean(draws) == pytest.approx(model.shape / model.rate, rel=0.02)
        assert np.all(draws >= 0)

    def test_repr(self):
        assert repr(GammaPoisson(2, 1)) == "GammaPoisson(shape=2.000, rate=1.000)"


# ======================================================================
# gamma_poisson_ppd
# ======================================================================


class TestSampleCollections:
    def test_every_collection_has_sample_size_draws(self):
        res = run(sample_size=1234)
        for arr in (res.theta1, res.theta2, res.y_tilde1, res.y_tilde2,
                    res.zero_one_check.zeros, res.zero_one_check.ones):
            assert arr.shape == (1234,)
        assert sum(res.y_tilde1_table.values()) == 1234
        assert sum(res.y_tilde2_table.values()) == 1234

    def test_two_stage_sizes(self):
        res = run(sample_size=321, using_mcmc=True)
        assert res.y_tilde1.shape == (321,)
        assert res.y_tilde2.shape == (321,)

    def test_sample_size_one(self):
        res = run(sample_size=1, confidence_interval=(0.1, 0.9))
        assert res.theta1.shape == (1,)
        lo, hi = res.theta2_minus_theta1_quantile
        assert lo == pytest.approx(hi)

    def test_scalar_data_accepted(self):
        res = run(y1=3)
        assert res.posterior_1.shape == 5.0
        assert res.posterior_1.rate == 2.0

    def test_reproducible_with_seed(self):
        a = run(using_mcmc=True)
        b = run(using_mcmc=True)
        np.testing.assert_array_equal(a.theta1, b.theta1)
        np.testing.assert_array_equal(a.y_tilde2, b.y_tilde2)
        np.testing.assert_array_equal(a.zero_one_check.zeros, b.zero_one_check.zeros)

    def test_generator_is_consumed(self):
        """A passed Generator is used directly, so two calls draw different values."""
        rng = np.random.default_rng(7)
        a = run(seed=rng)
        b = run(seed=rng)
        assert not np.array_equal(a.theta1, b.theta1)


class TestPredictiveStrategies:
    """Direct NB sampling and the two-stage prior/posterior variants."""

    Y_BIG = [10] * 50  # posterior mean ~ 502 / 51 ~ 9.84, prior mean 2

    def _run(self, **kw):
        return run(sample_size=20_000, y1=self.Y_BIG, y2=self.Y_BIG, **kw)

    def test_direct_tracks_posterior(self):
        res = self._run(using_mcmc=False)
        assert np.mean(res.y_tilde1) == pytest.approx(502 / 51, abs=0.3)
        assert res.mcmc_source is None

    def test_two_stage_prior_ignores_data(self):
        res = self._run(using_mcmc=True)
        assert res.mcmc_source == "prior"
        # Prior Gamma(2, 1) has mean 2
        assert np.mean(res.y_tilde1) == pytest.approx(2.0, abs=0.15)

    def test_two_stage_posterior_tracks_posterior(self):
        res = self._run(using_mcmc=True, mcmc_source="posterior")
        assert res.mcmc_source == "posterior"
        assert np.mean(res.y_tilde2) == pytest.approx(502 / 51, abs=0.3)

    def test_unknown_source_rejected(self):
        with pytest.raises(ValueError, match="mcmc_source"):
            run(using_mcmc=True, mcmc_source="likelihood")


class TestConfidenceIntervalOutput:
    def test_no_interval_still_returns_samples(self):
        res = run()
        assert isinstance(res, GammaPoissonResult)
        assert res.confidence_interval is None
        assert res.theta2_minus_theta1_quantile is None
        assert res.y_tilde2_minus_y_tilde1_quantile is None
        assert res.to_dict() == {}

    def test_end_to_end_quantile_pairs(self):
        res = gamma_poisson_ppd(
            sample_size=5000,
            gamma_a1=2,
            gamma_b1=1,
            y1=Y1,
            gamma_a2=2,
            gamma_b2=1,
            y2=Y2,
            using_mcmc=False,
            confidence_interval=(0.025, 0.975),
            seed=2024,
        )
        out = res.to_dict()
        assert set(out) == {"theta2_minus_theta1_quantile", "y_tidle2_minus_ytilde1_quantile"}
        for pair in out.values():
            assert len(pair) == 2
            assert pair[0] < pair[1]

    def test_theta_difference_matches_paired_draws(self):
        res = run(confidence_interval=(0.1, 0.9))
        expected = np.quantile(res.theta2 - res.theta1, [0.1, 0.9])
        np.testing.assert_allclose(res.theta2_minus_theta1_quantile, expected)

    def test_difference_hdi_narrower_than_full_range(self):
        res = run(confidence_interval=(0.025, 0.975))
        lo, hi = res.difference_hdi(0.95)
        diff = res.theta2 - res.theta1
        assert diff.min() <= lo < hi <= diff.max()


class TestPoissonFit:
    def test_support_pmf_and_frequencies(self):
        fit = poisson_fit(np.array([0, 0, 1, 2]), 1.4)
        assert fit.support == [0, 1, 2]
        assert fit.empirical == pytest.approx([0.5, 0.25, 0.25])
        assert fit.pmf == pytest.approx(sp_stats.poisson.pmf([0, 1, 2], 1.4).tolist())

    def test_empirical_divides_by_own_group_size(self):
        res = run(poisson_fitting_mean=1.4)
        assert sum(res.poisson_fit_1.empirical) == pytest.approx(1.0)
        assert sum(res.poisson_fit_2.empirical) == pytest.approx(1.0)
        assert res.poisson_fit_2.support == list(range(0, max(Y2) + 1))

    def test_absent_without_mean(self):
        res = run()
        assert res.poisson_fit_1 is None
        assert res.poisson_fit_2 is None


class TestZeroOneCheck:
    def test_observed_point(self):
        res = run()
        assert res.zero_one_check.observed_point == (Y2.count(0), Y2.count(1))

    def test_counts_bounded_by_replications(self):
        res = run(sample_size=500)
        check = res.zero_one_check
        assert check.replications == 218
        assert np.all(check.zeros >= 0)
        assert np.all(check.zeros + check.ones <= 218)

    def test_replications_override(self):
        res = run(sample_size=100, replications=20)
        assert res.zero_one_check.replications == 20
        assert np.all(res.zero_one_check.zeros + res.zero_one_check.ones <= 20)

    def test_replications_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "PPC_REPLICATIONS", 30)
        res = run(sample_size=100)
        assert res.zero_one_check.replications == 30

    @pytest.mark.parametrize("bad", [0, 2.5, True])
    def test_invalid_replications(self, bad):
        with pytest.raises(ValueError, match="replications"):
            run(replications=bad)

    def test_bad_counts_rejected_before_any_draw(self):
        rng = np.random.default_rng(0)
        state = rng.bit_generator.state
        with pytest.raises(ValueError, match="non-negative integer counts"):
            run(y2=[-1, 2], poisson_fitting_mean=1.4, seed=rng)
        assert rng.bit_generator.state == state

    def test_chunking_covers_every_rate(self):
        rng = np.random.default_rng(3)
        rates = np.full(25, 1e-9)
        zeros, ones = zero_one_counts(rates, 10, rng, chunk_size=7)
        # Rates this small produce all zeros
        np.testing.assert_array_equal(zeros, np.full(25, 10))
        np.testing.assert_array_equal(ones, np.zeros(25))

    def test_zero_fraction_tracks_rate(self):
        """With theta ~ 1, about exp(-1) of each simulated data set is zero."""
        rng = np.random.default_rng(11)
        zeros, ones = zero_one_counts(np.ones(2000), 218, rng)
        assert np.mean(zeros) / 218 == pytest.approx(np.exp(-1), abs=0.01)
        assert np.mean(ones) / 218 == pytest.approx(np.exp(-1), abs=0.01)
