"""
Description:
    Leapfrog integrator for Hamiltonian dynamics.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
import jax
import jax.numpy as jnp
from typing import Callable, Tuple
from .datatypes import QP, IntegratorConfig

def kick(
        qp: QP,
        grad_U: Callable[[jnp.ndarray], jnp.ndarray],
        scale: float
) -> QP:
    """Momentum update: p -= scale * ∂U/∂q"""
    return QP(q=qp.q, p=qp.p - scale * grad_U(qp.q))

def drift(qp: QP, τ: float) -> QP:
    """Position update: q += τ * ∂K/∂p (identity mass)"""
    return QP(q=qp.q + τ * qp.p, p=qp.p)

def lf_step(
        qp: QP,
        grad_U: Callable[[jnp.ndarray], jnp.ndarray],
        τ: float
) -> QP:
    """
    Single lf integration step.

    Does p-first: half kick, full drift, half kick.
    """
    qp_half = kick(qp, grad_U, 0.5 * τ)
    qp_new_q = drift(qp_half, τ)
    return kick(qp_new_q, grad_U, 0.5 * τ)

def leapfrog(
    qp: QP,
    grad_U: Callable[[jnp.ndarray], jnp.ndarray],
    τ: float,
    N: int
) -> Tuple[QP, jnp.ndarray]:
    """
    N leapfrog steps, recording every position.

    The interior half kicks are merged into full kicks, and no kick follows
    the last drift except the closing half kick:
        p += τ/2 ∇log π(q)
        N times: q += τ p, record q, (not last) p += τ ∇log π(q)
        p += τ/2 ∇log π(q)

    Args:
        qp: Initial state
        grad_U: Potential gradient ∂U/∂q
        τ: Step size
        N: Number of steps (static under jit)

    Returns:
        (final state, (N+1, dim) trajectory including the start position)
    """
    q0 = qp.q
    qp = kick(qp, grad_U, 0.5 * τ)

    def body_fn(qp_state, _):
        qp_new = drift(qp_state, τ)
        qp_new = kick(qp_new, grad_U, τ)
        return qp_new, qp_new.q

    qp, interior = jax.lax.scan(body_fn, qp, None, length=N - 1)

    qp = drift(qp, τ)
    trajectory = jnp.concatenate([q0[None], interior, qp.q[None]], axis=0)
    qp = kick(qp, grad_U, 0.5 * τ)
    return qp, trajectory

def gen_leapfrog(
    grad_U: Callable[[jnp.ndarray], jnp.ndarray],
    config: IntegratorConfig
) -> Callable[[QP], Tuple[QP, jnp.ndarray]]:
    """
    Generate a leapfrog integrator with fixed step size and step count.
    """
    def integrator(qp: QP) -> Tuple[QP, jnp.ndarray]:
        return leapfrog(qp, grad_U, config.τ, config.N)

    return integrator
