"""
Description:
    Hamiltonian for HMC on the bivariate Gaussian target.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
from typing import NamedTuple
import jax.numpy as jnp
from .datatypes import QP
from .target import BivariateGaussian

class Hamiltonian(NamedTuple):
    """
    Hamiltonian(q,p) = U(q) + K(p)
    For standard HMC with identity mass:
        U(q) = -log π(q)
        K(p) = 0.5 * p.T @ p
    """
    target: BivariateGaussian

    def potential(self, q: jnp.ndarray) -> jnp.ndarray:
        """U(q)"""
        return -self.target.log_density(q[0], q[1])

    def kinetic(self, p: jnp.ndarray) -> jnp.ndarray:
        """K(p)"""
        return 0.5 * (p[0]**2 + p[1]**2)

    def energy(self, qp: QP) -> jnp.ndarray:
        """total energy H(q,p) = U(q) + K(p)"""
        return self.potential(qp.q) + self.kinetic(qp.p)

    def grad_q(self, q: jnp.ndarray) -> jnp.ndarray:
        """∂H/∂q = ∂U/∂q = -∇ log π(q)"""
        return -self.target.grad_log_density(q)
