"""
Description:
    MCMC samplers: Metropolis-Hastings, Gibbs and HMC.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""

import jax
import jax.numpy as jnp
import jax.random as jr
from functools import partial
from numbers import Integral
from typing import Callable, Tuple, Union

from .datatypes import Point, QP, SamplerState, GibbsSweep, IntegratorConfig, History
from .target import BivariateGaussian
from .hamiltonian import Hamiltonian
from .integrator import gen_leapfrog
from .history import history_from_states, history_from_sweeps
from .rng import uniform, standard_normal_pair
from .validation import validate_target, validate_run

import logging
logger = logging.getLogger('bvmc')

def draw_momentum(q: jnp.ndarray, key: jax.random.PRNGKey) -> QP:
    """
    Resample momentum from standard Gaussian.

    Keeps position q, resamples p ~ N(0, I)
    """
    return QP(q=q, p=standard_normal_pair(key))

def accept_reject(ratio: jnp.ndarray, u: jnp.ndarray) -> jnp.ndarray:
    """
    Metropolis accept/reject test: accept iff u < ratio, u ~ U[0, 1).

    ratio is not clamped; any ratio >= 1 accepts since u < 1.
    Overflow policy:
        ratio = +inf  -> always accept
        ratio = 0     -> always reject (log ratio -inf)
        ratio = NaN   -> always reject

    Args:
        ratio: Acceptance ratio (or min(1, ratio))
        u: Uniform draw

    Returns:
        True if accepted, False otherwise
    """
    return jnp.where(jnp.isnan(ratio), False, u < ratio)

# Metropolis-Hastings

def gen_mh_kernel(
    target: BivariateGaussian,
    proposal_std: float
) -> Callable:
    """
    Generate random-walk MH kernel.

    The isotropic Gaussian proposal is symmetric, so the acceptance ratio is
    just the target density ratio.
    """
    def mh_kernel(carry_in, key):
        """
        Single MH step.

        Args:
            carry_in: current position (2,)
            key: Random key

        Returns:
            (carry_out, SamplerState) for scan
        """
        q = carry_in
        key_jump, key_accept = jr.split(key)

        proposal = q + standard_normal_pair(key_jump) * proposal_std

        log_ratio = target.log_density(proposal[0], proposal[1]) - target.log_density(q[0], q[1])
        is_accepted = accept_reject(jnp.exp(log_ratio), uniform(key_accept))

        q_out = jnp.where(is_accepted, proposal, q)
        return q_out, SamplerState(start=q, proposal=proposal,
                                   accepted=is_accepted, log_ratio=log_ratio)

    return mh_kernel

@jax.jit
def mh_sampler(
    initial_q: jnp.ndarray,
    keys: jax.random.PRNGKey,
    target: BivariateGaussian,
    proposal_std: float
) -> SamplerState:
    """
    Run MH sampler.

    Args:
        initial_q: Start position (2,)
        keys: Array of random keys (one per step)
        target: Target distribution
        proposal_std: Random walk scale

    Returns:
        SamplerState stacked over steps
    """
    mh_kernel = gen_mh_kernel(target, proposal_std)
    _, states = jax.lax.scan(mh_kernel, initial_q, xs=keys)
    return states

# Gibbs

def gibbs_sweep(
    target: BivariateGaussian,
    q: jnp.ndarray,
    z_x: jnp.ndarray,
    z_y: jnp.ndarray
) -> GibbsSweep:
    """
    Systematic scan given two standard normal draws.

        x' = E[x | y]  + z_x * sd(x | y)
        y' = E[y | x'] + z_y * sd(y | x')
    """
    mean_x, std_x = target.conditional_x(q[1])
    new_x = mean_x + z_x * std_x
    intermediate = jnp.stack([new_x, q[1]])

    mean_y, std_y = target.conditional_y(new_x)
    new_y = mean_y + z_y * std_y
    end = jnp.stack([new_x, new_y])
    return GibbsSweep(start=q, intermediate=intermediate, end=end)

def gen_gibbs_kernel(target: BivariateGaussian) -> Callable:
    """
    Generate Gibbs kernel. Conditional draws are exact, nothing is rejected.
    """
    def gibbs_kernel(carry_in, key):
        z = standard_normal_pair(key)
        sweep = gibbs_sweep(target, carry_in, z[0], z[1])
        return sweep.end, sweep

    return gibbs_kernel

@jax.jit
def gibbs_sampler(
    initial_q: jnp.ndarray,
    keys: jax.random.PRNGKey,
    target: BivariateGaussian
) -> GibbsSweep:
    """Run Gibbs sampler, one key per sweep"""
    gibbs_kernel = gen_gibbs_kernel(target)
    _, sweeps = jax.lax.scan(gibbs_kernel, initial_q, xs=keys)
    return sweeps

# HMC

def gen_hmc_kernel(
    target: BivariateGaussian,
    tau: float,
    N: int
) -> Callable:
    """
    Generate HMC kernel using leapfrog integrator.

    Args:
        target: Target distribution
        tau: Integration step size
        N: Number of integration steps

    Returns:
        HMC kernel function
    """
    H = Hamiltonian(target)
    integrator = gen_leapfrog(H.grad_q, IntegratorConfig(τ=tau, N=N))

    def hmc_kernel(carry_in, key):
        """
        Single HMC step.

        Args:
            carry_in: current position (2,)
            key: Random key

        Returns:
            (carry_out, SamplerState) for scan
        """
        q = carry_in
        key_momentum, key_accept = jr.split(key)

        # Resample momentum
        qp0 = draw_momentum(q, key_momentum)

        # Integrate
        qp_star, trajectory = integrator(qp0)

        # Accept/reject
        delta_H = H.energy(qp0) - H.energy(qp_star)  # current_H - proposal_H
        alpha = jnp.minimum(1.0, jnp.exp(delta_H))
        is_accepted = accept_reject(alpha, uniform(key_accept))

        q_out = jnp.where(is_accepted, qp_star.q, q)
        return q_out, SamplerState(start=q, proposal=qp_star.q, accepted=is_accepted,
                                   log_ratio=delta_H, trajectory=trajectory)

    return hmc_kernel

@partial(jax.jit, static_argnames=['N'])
def hmc_sampler(
    initial_q: jnp.ndarray,
    keys: jax.random.PRNGKey,
    target: BivariateGaussian,
    tau: float,
    N: int
) -> SamplerState:
    """
    Run HMC sampler.

    Args:
        initial_q: Start position (2,)
        keys: Array of random keys (one per sample)
        target: Target distribution
        tau: Step size
        N: Number of integration steps

    Returns:
        SamplerState stacked over steps, trajectories (n, N+1, 2)
    """
    hmc_kernel = gen_hmc_kernel(target, tau, N)
    _, states = jax.lax.scan(hmc_kernel, initial_q, xs=keys)
    return states

# Entry points returning step histories

def _as_key(key: Union[int, jax.random.PRNGKey]) -> jax.random.PRNGKey:
    if isinstance(key, Integral) and not isinstance(key, bool):
        return jr.PRNGKey(int(key))
    return key

def _prepare(
    target: BivariateGaussian,
    start: Point,
    num_steps: int,
    key: Union[int, jax.random.PRNGKey]
) -> Tuple[jnp.ndarray, jnp.ndarray]:
    validate_target(target.mean, target.std_dev, target.correlation)
    initial_q = Point(float(start[0]), float(start[1])).to_array()
    keys = jr.split(_as_key(key), num_steps)
    return initial_q, keys

def run_mh(
    target: BivariateGaussian,
    start: Point,
    num_steps: int,
    proposal_std: float,
    key: Union[int, jax.random.PRNGKey]
) -> History:
    """
    Random-walk Metropolis from start.

    Returns:
        History with num_steps records
    """
    validate_run(start, num_steps, proposal_std=proposal_std)
    initial_q, keys = _prepare(target, start, num_steps, key)
    logger.debug(f"MH: {num_steps} steps, proposal_std={proposal_std}")
    states = mh_sampler(initial_q, keys, target, float(proposal_std))
    return history_from_states(states)

def run_gibbs(
    target: BivariateGaussian,
    start: Point,
    num_steps: int,
    key: Union[int, jax.random.PRNGKey]
) -> History:
    """
    Gibbs sampling from start.

    Returns:
        History with 2 * num_steps records (x draw, then y draw)
    """
    validate_run(start, num_steps)
    initial_q, keys = _prepare(target, start, num_steps, key)
    logger.debug(f"Gibbs: {num_steps} sweeps")
    sweeps = gibbs_sampler(initial_q, keys, target)
    return history_from_sweeps(sweeps)

def run_hmc(
    target: BivariateGaussian,
    start: Point,
    num_steps: int,
    L: int,
    epsilon: float,
    key: Union[int, jax.random.PRNGKey]
) -> History:
    """
    HMC from start with L leapfrog steps of size epsilon.

    Returns:
        History with num_steps records, each carrying an (L+1)-point trajectory
    """
    validate_run(start, num_steps, L=L, epsilon=epsilon)
    initial_q, keys = _prepare(target, start, num_steps, key)
    logger.debug(f"HMC: {num_steps} steps, L={L}, epsilon={epsilon}")
    states = hmc_sampler(initial_q, keys, target, float(epsilon), int(L))
    return history_from_states(states)
