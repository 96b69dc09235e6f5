"""
Description:
    Bivariate Gaussian target distribution.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
from typing import NamedTuple, Tuple
import jax.numpy as jnp
from .datatypes import Point
from .validation import validate_target
from . import config

class BivariateGaussian(NamedTuple):
    """
    N(mean, Σ) with
        Σ = [[σx²,      ρ σx σy],
             [ρ σx σy,  σy²    ]]

    A NamedTuple of floats is a jax pytree, so the target can be passed
    straight into jitted samplers.
    """
    mean: Point
    std_dev: Point
    correlation: float

    def log_density(self, x, y):
        """Normalized log π(x, y)"""
        mu_x, mu_y = self.mean
        s_x, s_y = self.std_dev
        rho = self.correlation
        dx = x - mu_x
        dy = y - mu_y
        z = (dx / s_x)**2 - (2 * rho * dx * dy) / (s_x * s_y) + (dy / s_y)**2
        log_denom = jnp.log(2 * jnp.pi * s_x * s_y * jnp.sqrt(1 - rho**2))
        return -log_denom - z / (2 * (1 - rho**2))

    def grad_log_density(self, q: jnp.ndarray) -> jnp.ndarray:
        """∇ log π(q), closed form"""
        mu_x, mu_y = self.mean
        s_x, s_y = self.std_dev
        rho = self.correlation
        common_factor = -1 / (1 - rho**2)
        grad_x = common_factor * ((q[0] - mu_x) / s_x**2 - (rho * (q[1] - mu_y)) / (s_x * s_y))
        grad_y = common_factor * ((q[1] - mu_y) / s_y**2 - (rho * (q[0] - mu_x)) / (s_x * s_y))
        return jnp.stack([grad_x, grad_y])

    def conditional_x(self, y) -> Tuple[jnp.ndarray, jnp.ndarray]:
        """(mean, std) of x | y"""
        mu_x, mu_y = self.mean
        s_x, s_y = self.std_dev
        rho = self.correlation
        return mu_x + rho * (s_x / s_y) * (y - mu_y), s_x * jnp.sqrt(1 - rho**2)

    def conditional_y(self, x) -> Tuple[jnp.ndarray, jnp.ndarray]:
        """(mean, std) of y | x"""
        mu_x, mu_y = self.mean
        s_x, s_y = self.std_dev
        rho = self.correlation
        return mu_y + rho * (s_y / s_x) * (x - mu_x), s_y * jnp.sqrt(1 - rho**2)

    def marginal_x(self) -> Tuple[float, float]:
        return self.mean.x, self.std_dev.x

    def marginal_y(self) -> Tuple[float, float]:
        return self.mean.y, self.std_dev.y

    def covariance(self) -> jnp.ndarray:
        s_x, s_y = self.std_dev
        cov_xy = self.correlation * s_x * s_y
        return jnp.array([[s_x**2, cov_xy], [cov_xy, s_y**2]])

def pdf_1d(x, mean, std_dev):
    """Univariate normal density, for marginal curves"""
    return jnp.exp(-0.5 * ((x - mean) / std_dev)**2) / (std_dev * jnp.sqrt(2 * jnp.pi))

def gen_bivariate_gaussian(
        mean: Point = config.TARGET_MEAN,
        std_dev: Point = config.TARGET_STD_DEV,
        correlation: float = config.TARGET_CORRELATION
) -> BivariateGaussian:
    validate_target(mean, std_dev, correlation)
    return BivariateGaussian(
        mean=Point(float(mean[0]), float(mean[1])),
        std_dev=Point(float(std_dev[0]), float(std_dev[1])),
        correlation=float(correlation),
    )
