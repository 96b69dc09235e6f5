"""
Description:
    Parameter validation for targets and sampler runs.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

Every check runs before a sampling loop starts; a run with bad inputs never
produces a partial history.
"""
import math
from numbers import Integral
from typing import List, Optional

import numpy as np

import logging
logger = logging.getLogger('bvmc')


class InvalidParameterError(ValueError):
    """Precondition violation in a target or run parameter"""


def _is_finite(value) -> bool:
    """Finite real scalar: Python, numpy or 0-d jax values, never bool"""
    if isinstance(value, (bool, np.bool_, str, bytes)):
        return False
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False


def _check_positive(name: str, value, errors: List[str]) -> None:
    if not _is_finite(value) or value <= 0:
        errors.append(f"{name} must be a finite number > 0, got {value!r}")


def _check_count(name: str, value, errors: List[str]) -> None:
    if not isinstance(value, Integral) or isinstance(value, bool) or value < 1:
        errors.append(f"{name} must be an integer >= 1, got {value!r}")


def _check_point(name: str, point, errors: List[str]) -> None:
    try:
        coords = np.asarray(point, dtype=np.float64)
    except (TypeError, ValueError):
        coords = None
    if coords is None or coords.shape != (2,) or not np.all(np.isfinite(coords)):
        errors.append(f"{name} must be a pair of finite numbers, got {point!r}")


def raise_if_errors(errors: List[str], what: str) -> None:
    if errors:
        logger.debug("Rejected %s: %s", what, errors)
        raise InvalidParameterError(f"Invalid {what}:\n  " + "\n  ".join(errors))


def target_errors(mean, std_dev, correlation) -> List[str]:
    """
    Collect problems with bivariate Gaussian parameters.

    rho = ±1 gives a singular covariance, so correlation must lie strictly
    inside (-1, 1).
    """
    errors = []
    _check_point("mean", mean, errors)
    _check_point("std_dev", std_dev, errors)
    if not errors:
        for axis, s in zip("xy", std_dev):
            if s <= 0:
                errors.append(f"std_dev.{axis} must be > 0, got {s!r}")
    if not _is_finite(correlation) or not -1.0 < correlation < 1.0:
        errors.append(f"correlation must lie in (-1, 1), got {correlation!r}")
    return errors


def validate_target(mean, std_dev, correlation) -> None:
    """
    Raises:
        InvalidParameterError: If the target parameters are invalid
    """
    raise_if_errors(target_errors(mean, std_dev, correlation), "target distribution")


def validate_run(
    start,
    num_steps,
    proposal_std: Optional[float] = None,
    L: Optional[int] = None,
    epsilon: Optional[float] = None,
) -> None:
    """
    Validate the inputs of a single sampler run.

    proposal_std, L and epsilon are only checked when given, so each sampler
    passes just the knobs it uses.

    Raises:
        InvalidParameterError: If any parameter is invalid
    """
    errors = []
    _check_point("start", start, errors)
    _check_count("num_steps", num_steps, errors)
    if proposal_std is not None:
        _check_positive("proposal_std", proposal_std, errors)
    if L is not None:
        _check_count("L", L, errors)
    if epsilon is not None:
        _check_positive("epsilon", epsilon, errors)
    raise_if_errors(errors, "sampler run")
