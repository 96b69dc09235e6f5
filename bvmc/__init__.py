"""
bvmc - MCMC sampling of a bivariate Gaussian with replayable step histories

Public API:
    Target:
        BivariateGaussian, gen_bivariate_gaussian, pdf_1d

    Samplers:
        run_mh, run_gibbs, run_hmc - return a History (list of StepRecord)

    Sessions:
        SimulationSession - one cached run served as playback frames
        MetropolisHastings, Gibbs, HMC - algorithm choices
        algorithm_from_name, session_from_config

    Chain path:
        build_chain_path

    Errors:
        InvalidParameterError

Importing the package switches jax to 64-bit mode.
"""
from .datatypes import Point, StepRecord, History, ChainPath, Domain
from .target import BivariateGaussian, gen_bivariate_gaussian, pdf_1d
from .sampler import run_mh, run_gibbs, run_hmc
from .history import build_chain_path
from .session import (SimulationSession, MetropolisHastings, Gibbs, HMC,
                      algorithm_from_name, session_from_config)
from .validation import InvalidParameterError

__all__ = [
    "Point", "StepRecord", "History", "ChainPath", "Domain",
    "BivariateGaussian", "gen_bivariate_gaussian", "pdf_1d",
    "run_mh", "run_gibbs", "run_hmc",
    "build_chain_path",
    "SimulationSession", "MetropolisHastings", "Gibbs", "HMC",
    "algorithm_from_name", "session_from_config",
    "InvalidParameterError",
]
