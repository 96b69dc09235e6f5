"""
Description:
    Chain summaries used as regression guards.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1
"""
import numpy as np
from typing import Sequence, Tuple
from .datatypes import Point, StepRecord
from .history import chain_array

def cov(X):
    Xμ = np.mean(X, axis = 0)
    n=X.shape[0]
    return (X - Xμ).T@(X-Xμ)/(n-1)

def acceptance_rate(history: Sequence[StepRecord]) -> float:
    """
    Fraction of accepted steps in [0, 1], 0.0 for an empty history
    """
    if len(history) == 0:
        return 0.0
    return sum(step.accepted for step in history) / len(history)

def chain_moments(path: Sequence[Point]) -> Tuple[Point, Point]:
    """(sample mean, sample std dev) per axis of a chain path"""
    X = chain_array(path)
    μ = X.mean(axis=0)
    σ = np.sqrt(np.diag(cov(X)))
    return Point(float(μ[0]), float(μ[1])), Point(float(σ[0]), float(σ[1]))
