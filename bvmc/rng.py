"""
Description:
    Uniform and standard normal variates.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

Normals come from the Box-Muller transform on top of jax.random.uniform, so a
given key always yields the same stream.
"""
from dataclasses import dataclass, field
from typing import Tuple

import jax
import jax.numpy as jnp
import jax.random as jr

from . import datatypes  # noqa: F401  (64-bit mode)


def uniform(key: jax.random.PRNGKey) -> jnp.ndarray:
    """u ~ U[0, 1)"""
    return jr.uniform(key, shape=(), dtype=jnp.float64)

def nonzero_uniform(key: jax.random.PRNGKey) -> jnp.ndarray:
    """
    u ~ U(0, 1): redraw while the draw is exactly zero so log(u) stays finite.
    """
    def cond(carry):
        _, u = carry
        return u == 0.0

    def body(carry):
        k, _ = carry
        k, sub = jr.split(k)
        return k, uniform(sub)

    key, sub = jr.split(key)
    _, u = jax.lax.while_loop(cond, body, (key, uniform(sub)))
    return u

def standard_normal(key: jax.random.PRNGKey) -> jnp.ndarray:
    """
    Box-Muller: sqrt(-2 ln u) * cos(2π v)
    """
    key_u, key_v = jr.split(key)
    u = nonzero_uniform(key_u)
    v = nonzero_uniform(key_v)
    return jnp.sqrt(-2.0 * jnp.log(u)) * jnp.cos(2.0 * jnp.pi * v)

def standard_normal_pair(key: jax.random.PRNGKey) -> jnp.ndarray:
    """Two independent standard normals, x draw first"""
    key_x, key_y = jr.split(key)
    return jnp.stack([standard_normal(key_x), standard_normal(key_y)])


@dataclass
class RNGStream:
    """Host-side random stream over a single jax key, reproducible from seed."""

    seed: int
    key: jax.random.PRNGKey = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.key = jr.PRNGKey(self.seed)

    def split(self, count: int = 1) -> Tuple[jax.random.PRNGKey, ...]:
        keys = jr.split(self.key, count + 1)
        self.key = keys[-1]
        return tuple(keys[:-1])

    def next_key(self) -> jax.random.PRNGKey:
        return self.split(1)[0]

    def uniform(self) -> float:
        return float(uniform(self.next_key()))

    def standard_normal(self) -> float:
        return float(standard_normal(self.next_key()))
