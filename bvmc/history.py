"""
Description:
    Step histories and the chain path derived from them.
    USE THE CORRECT ENVIRONMENT:  bivariate-mcmc

Author: John Gallagher
Created: 2026-10-19
Last Modified: 2026-10-19
Version: 0.1

Sampler scans return stacked arrays; this module turns them into the
immutable StepRecord history handed to renderers, and folds a history into
the chain of realized states.
"""
from itertools import repeat
from typing import List, Sequence
import numpy as np
from .datatypes import Point, StepRecord, SamplerState, GibbsSweep, History, ChainPath

def _points(arr) -> List[Point]:
    return [Point(x, y) for x, y in np.asarray(arr).tolist()]

def history_from_states(states: SamplerState) -> History:
    """
    One StepRecord per MH/HMC step.

    Args:
        states: Stacked scan output of mh_sampler or hmc_sampler

    Returns:
        History, trajectories attached when the states carry them
    """
    starts = _points(states.start)
    proposals = _points(states.proposal)
    accepted = np.asarray(states.accepted).tolist()
    log_ratios = np.asarray(states.log_ratio).tolist()
    if states.trajectory is None:
        trajectories = repeat(None)
    else:
        trajectories = (
            tuple(Point(x, y) for x, y in path)
            for path in np.asarray(states.trajectory).tolist()
        )
    return [
        StepRecord(start=s, proposal=p, accepted=a, trajectory=t, log_ratio=r)
        for s, p, a, t, r in zip(starts, proposals, accepted, trajectories, log_ratios)
    ]

def history_from_sweeps(sweeps: GibbsSweep) -> History:
    """Two always-accepted StepRecords per Gibbs sweep, x draw first"""
    history = []
    for start, mid, end in zip(_points(sweeps.start),
                               _points(sweeps.intermediate),
                               _points(sweeps.end)):
        history.append(StepRecord(start=start, proposal=mid, accepted=True))
        history.append(StepRecord(start=mid, proposal=end, accepted=True))
    return history

def build_chain_path(start: Point, history: Sequence[StepRecord]) -> ChainPath:
    """
    Fold a history into realized chain states.

    path[0] = start, path[i+1] = history[i].proposal if accepted else path[i]
    """
    last = Point(float(start[0]), float(start[1]))
    path = [last]
    for step in history:
        if step.accepted:
            last = step.proposal
        path.append(last)
    return path

def chain_array(path: Sequence[Point]) -> np.ndarray:
    """(n, 2) array of chain positions"""
    return np.asarray(path, dtype=np.float64).reshape(-1, 2)
