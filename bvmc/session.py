"""
Description:
    Algorithm selection and simulation sessions.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

A session owns one run: it picks the algorithm once, samples once, derives
the chain path once and then serves playback frames by slicing.
"""
from dataclasses import dataclass, field
from typing import NamedTuple, Optional, Union

import jax

from .datatypes import Point, Domain, StepRecord, History, ChainPath
from .target import BivariateGaussian, gen_bivariate_gaussian
from .sampler import run_mh, run_gibbs, run_hmc
from .history import build_chain_path
from .metrics import acceptance_rate
from .rng import RNGStream
from .validation import InvalidParameterError, validate_run
from . import config

import logging
logger = logging.getLogger('bvmc')


class MetropolisHastings(NamedTuple):
    """Random-walk Metropolis with isotropic Gaussian jumps"""
    proposal_std: float = config.PROPOSAL_STD

    name = "mh"

    def validate(self, start: Point, num_steps: int) -> None:
        validate_run(start, num_steps, proposal_std=self.proposal_std)

    def run(self, target: BivariateGaussian, start: Point, num_steps: int,
            key: jax.random.PRNGKey) -> History:
        return run_mh(target, start, num_steps, self.proposal_std, key)


class Gibbs(NamedTuple):
    """Systematic-scan Gibbs, two records per sweep"""

    name = "gibbs"

    def validate(self, start: Point, num_steps: int) -> None:
        validate_run(start, num_steps)

    def run(self, target: BivariateGaussian, start: Point, num_steps: int,
            key: jax.random.PRNGKey) -> History:
        return run_gibbs(target, start, num_steps, key)


class HMC(NamedTuple):
    """Hamiltonian Monte Carlo, L leapfrog steps of size epsilon"""
    L: int = config.LEAPFROG_STEPS
    epsilon: float = config.STEP_SIZE

    name = "hmc"

    def validate(self, start: Point, num_steps: int) -> None:
        validate_run(start, num_steps, L=self.L, epsilon=self.epsilon)

    def run(self, target: BivariateGaussian, start: Point, num_steps: int,
            key: jax.random.PRNGKey) -> History:
        return run_hmc(target, start, num_steps, self.L, self.epsilon, key)


Algorithm = Union[MetropolisHastings, Gibbs, HMC]

_BY_NAME = {cls.name: cls for cls in (MetropolisHastings, Gibbs, HMC)}


def algorithm_from_name(name: str, **params) -> Algorithm:
    """
    Build an algorithm from its short name ("mh", "gibbs", "hmc").

    Keyword arguments the algorithm does not take are ignored, so a full
    parameter set can be passed whatever the choice.
    """
    try:
        cls = _BY_NAME[name.lower()]
    except KeyError:
        raise InvalidParameterError(
            f"Unknown algorithm {name!r}, expected one of {sorted(_BY_NAME)}"
        ) from None
    return cls(**{k: v for k, v in params.items() if k in cls._fields})


class Frame(NamedTuple):
    """What a renderer needs to draw frame i"""
    index: int
    path: ChainPath # chain_path[:i+1]
    latest: Optional[StepRecord] # history[i-1], None on frame 0


@dataclass
class SimulationSession:
    """
    One sampler run with its cached history and chain path.

    Parameters are validated before sampling; a bad parameter raises
    InvalidParameterError and no history is produced.
    """
    algorithm: Algorithm = field(default_factory=MetropolisHastings)
    num_steps: int = config.NUM_STEPS
    target: BivariateGaussian = field(default_factory=gen_bivariate_gaussian)
    start: Point = config.START_POINT
    seed: int = config.SEED
    domain: Domain = config.DOMAIN
    history: History = field(init=False, repr=False)
    chain_path: ChainPath = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.algorithm.validate(self.start, self.num_steps)
        self.start = Point(float(self.start[0]), float(self.start[1]))
        self._run()

    def _run(self) -> None:
        logger.info(f"Running {self.algorithm.name} for {self.num_steps} steps (seed={self.seed})")
        key = RNGStream(self.seed).next_key()
        self.history = self.algorithm.run(self.target, self.start, self.num_steps, key)
        self.chain_path = build_chain_path(self.start, self.history)
        logger.info(f"  {len(self.history)} records, acceptance rate {self.accept_rate:.3f}")

    def restart(self, seed: Optional[int] = None, algorithm: Optional[Algorithm] = None) -> None:
        """
        Discard the current history and sample again.

        The new algorithm is validated before anything changes, so a rejected
        restart leaves the session exactly as it was.
        """
        algorithm = algorithm if algorithm is not None else self.algorithm
        algorithm.validate(self.start, self.num_steps)
        if seed is not None:
            self.seed = seed
        self.algorithm = algorithm
        self._run()

    @property
    def n_frames(self) -> int:
        return len(self.history)

    @property
    def accept_rate(self) -> float:
        return acceptance_rate(self.history)

    def frame(self, i: int) -> Frame:
        if not 0 <= i <= self.n_frames:
            raise IndexError(f"frame {i} out of range [0, {self.n_frames}]")
        latest = self.history[i - 1] if i > 0 else None
        return Frame(index=i, path=self.chain_path[:i + 1], latest=latest)


def session_from_config(run: config.RunConfig, target: Optional[BivariateGaussian] = None) -> SimulationSession:
    """Build and run a session from a RunConfig"""
    algorithm = algorithm_from_name(
        run.algorithm, proposal_std=run.proposal_std, L=run.L, epsilon=run.epsilon
    )
    return SimulationSession(
        algorithm=algorithm,
        num_steps=run.num_steps,
        target=target if target is not None else gen_bivariate_gaussian(),
        start=run.start,
        seed=run.seed,
    )
