"""
Description:
    Core data structures for the bivariate MCMC engine.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

All modules import from here to ensure type consistency and avoid indexing bugs.
64-bit mode is switched on here so every array in the engine is float64.
"""
from typing import NamedTuple, Optional, Tuple, List
import jax
import jax.numpy as jnp

jax.config.update("jax_enable_x64", True)

class Point(NamedTuple):
    """Position (x, y) in the 2D sample space"""
    x: float
    y: float

    def to_array(self) -> jnp.ndarray:
        return jnp.array([self.x, self.y], dtype=jnp.float64)

class QP(NamedTuple):
    """Phase space state(q,p)"""
    q: jnp.ndarray # position
    p: jnp.ndarray # momentum

class StepRecord(NamedTuple):
    """
    One unit of chain history.

    trajectory is only set for HMC steps (the leapfrog path, L+1 points).
    log_ratio is the unclamped log acceptance ratio, None for Gibbs draws.
    """
    start: Point
    proposal: Point
    accepted: bool
    trajectory: Optional[Tuple[Point, ...]] = None
    log_ratio: Optional[float] = None

class SamplerState(NamedTuple):
    """MH/HMC per-step output of the scan, stacked along the leading axis"""
    start: jnp.ndarray # (2,)
    proposal: jnp.ndarray # (2,)
    accepted: jnp.ndarray # bool
    log_ratio: jnp.ndarray # log acceptance ratio before clamping
    trajectory: Optional[jnp.ndarray] = None # (L+1, 2), HMC only

class GibbsSweep(NamedTuple):
    """One Gibbs sweep: start -> (x', y) -> (x', y')"""
    start: jnp.ndarray
    intermediate: jnp.ndarray
    end: jnp.ndarray

class IntegratorConfig(NamedTuple):
    """Configuration for the leapfrog integrator"""
    τ: float # time-step size (epsilon)
    N: int # Number of leapfrog steps (L)

class Domain(NamedTuple):
    """Plot bounds, passed through to renderers"""
    min: float = -5.0
    max: float = 15.0

# Type aliases for clarity
History = List[StepRecord]
ChainPath = List[Point]
