"""Bayesian comparison of groups under Gamma-Poisson and Normal-Gamma conjugate models."""

from bayescompare.stats import gamma_poisson_ppd, normal_gamma_conjugate_family

__version__ = "0.1.0"

__all__ = ["gamma_poisson_ppd", "normal_gamma_conjugate_family"]
