"""
Adaptive Metropolis Sampler

Multi-chain random-walk Metropolis with a Gaussian proposal whose covariance
is re-estimated from the chains during warmup (Haario et al., 2001) and then
frozen. Chains advance in lockstep so the log posterior is evaluated for all
chains in one vectorised call.
"""

from dataclasses import dataclass
from typing import Callable
import logging

import numpy as np


logger = logging.getLogger(__name__)

TARGET_ACCEPTANCE = 0.234


@dataclass
class SamplerResult:
    """Post-warmup draws.

    Attributes:
        draws: Array of shape (chains, kept iterations, parameters).
        acceptance_rate: Post-warmup acceptance rate per chain.
    """

    draws: np.ndarray
    acceptance_rate: np.ndarray

    @property
    def n_chains(self) -> int:
        return self.draws.shape[0]

    def pooled(self) -> np.ndarray:
        """Draws of all chains stacked: (chains * kept, parameters)."""
        return self.draws.reshape(-1, self.draws.shape[2])


def _cholesky(cov: np.ndarray) -> np.ndarray:
    d = cov.shape[0]
    jitter = 1e-10 * max(float(np.trace(cov)) / d, 1e-12)
    for _ in range(8):
        try:
            return np.linalg.cholesky(cov + jitter * np.eye(d))
        except np.linalg.LinAlgError:
            jitter *= 10.0
    return np.diag(np.sqrt(np.clip(np.diag(cov), 1e-12, None)))


def adaptive_metropolis(
    log_posterior: Callable[[np.ndarray], np.ndarray],
    init: np.ndarray,
    proposal_cov: np.ndarray,
    n_iter: int,
    n_warmup: int,
    rng: np.random.Generator,
    adapt_every: int = 50,
) -> SamplerResult:
    """Run ``init.shape[0]`` chains for ``n_iter`` iterations.

    Args:
        log_posterior: Maps an array (chains, parameters) to log densities
            (chains,); non-finite values reject the proposal.
        init: Starting points, shape (chains, parameters).
        proposal_cov: Initial proposal covariance (before the 2.38^2/d factor).
        n_iter: Total iterations per chain, warmup included.
        n_warmup: Iterations used for adaptation and discarded.
        rng: Random generator; the only source of randomness.
        adapt_every: Warmup iterations between covariance updates.

    Returns:
        SamplerResult with ``n_iter - n_warmup`` draws per chain.
    """
    n_chains, d = init.shape
    log_scale = np.log(2.38 ** 2 / d)
    cov = np.asarray(proposal_cov, dtype=float)
    chol = _cholesky(np.exp(log_scale) * cov)

    current = init.astype(float).copy()
    current_lp = np.asarray(log_posterior(current), dtype=float)
    current_lp = np.where(np.isfinite(current_lp), current_lp, -np.inf)

    warm = np.empty((n_chains, n_warmup, d))
    kept = np.empty((n_chains, n_iter - n_warmup, d))
    accepted_warm = 0
    accepted = np.zeros(n_chains)

    for it in range(n_iter):
        proposal = current + rng.standard_normal((n_chains, d)) @ chol.T
        proposal_lp = np.asarray(log_posterior(proposal), dtype=float)
        proposal_lp = np.where(np.isfinite(proposal_lp), proposal_lp, -np.inf)

        accept = np.log(rng.uniform(size=n_chains)) < proposal_lp - current_lp
        current = np.where(accept[:, None], proposal, current)
        current_lp = np.where(accept, proposal_lp, current_lp)

        if it < n_warmup:
            warm[:, it] = current
            accepted_warm += int(accept.sum())
            if (it + 1) % adapt_every == 0 and it + 1 >= 2 * adapt_every:
                rate = accepted_warm / (adapt_every * n_chains)
                accepted_warm = 0
                log_scale += (rate - TARGET_ACCEPTANCE) * 2.0
                recent = warm[:, (it + 1) // 2: it + 1].reshape(-1, d)
                if len(recent) > d:
                    cov = np.cov(recent, rowvar=False).reshape(d, d)
                chol = _cholesky(np.exp(log_scale) * cov)
            elif (it + 1) % adapt_every == 0:
                accepted_warm = 0
        else:
            kept[:, it - n_warmup] = current
            accepted += accept

    acceptance = accepted / max(n_iter - n_warmup, 1)
    logger.debug(f"sampler | Acceptance rate per chain: {np.round(acceptance, 3).tolist()}")
    return SamplerResult(draws=kept, acceptance_rate=acceptance)


def split_rhat(draws: np.ndarray) -> float:
    """Split R-hat of one parameter.

    Args:
        draws: Array (chains, iterations).

    Returns:
        Potential scale reduction factor; NaN with fewer than 4 draws per chain.
    """
    n = draws.shape[1] // 2
    if n < 2:
        return float("nan")
    halves = np.concatenate([draws[:, :n], draws[:, n:2 * n]], axis=0)
    means = halves.mean(axis=1)
    within = halves.var(axis=1, ddof=1).mean()
    between = n * means.var(ddof=1)
    if within == 0:
        return 1.0 if between == 0 else float("inf")
    var_plus = (n - 1) / n * within + between / n
    return float(np.sqrt(var_plus / within))


def mad_sd(values: np.ndarray, axis: int = 0) -> np.ndarray:
    """Median absolute deviation scaled to the normal standard deviation."""
    median = np.median(values, axis=axis, keepdims=True)
    return 1.4826 * np.median(np.abs(values - median), axis=axis)
