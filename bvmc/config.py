"""
Description:
    Deployment defaults and run configuration.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
from typing import NamedTuple
from .datatypes import Point, Domain

# Target distribution (fixed for a deployment)
TARGET_MEAN = Point(5.0, 5.0)
TARGET_STD_DEV = Point(2.0, 3.0)
TARGET_CORRELATION = 0.8

# Run defaults
START_POINT = Point(-2.0, 12.0)
NUM_STEPS = 500
PROPOSAL_STD = 3.0 # MH random walk scale
LEAPFROG_STEPS = 20 # HMC L
STEP_SIZE = 0.1 # HMC epsilon
SEED = 0
DOMAIN = Domain(min=-5.0, max=15.0)

class RunConfig(NamedTuple):
    """Everything a caller chooses for one run"""
    algorithm: str = "mh"
    num_steps: int = NUM_STEPS
    seed: int = SEED
    proposal_std: float = PROPOSAL_STD
    L: int = LEAPFROG_STEPS
    epsilon: float = STEP_SIZE
    start: Point = START_POINT
