import logging

import torch

from .base_solver import check_montecarlo_samples, check_warmup_phase
from .exceptions import InvalidMeasureError
from .sag_solver import SAGSolver
from .sga_solver import SGASolver
from .utils import check_eps

logger = logging.getLogger(__name__)


def transpose_cost(c):
    """Cost with swapped arguments, c_t(y, x) = c(x, y)."""

    def c_t(y, x):
        return c(x, y)

    return c_t


def wasserstein(c, mu, nu, eps=None, generator=None, maxiters=10000, stepsize=1.,
                warmup_phase=1., atol=0., rtol=None, montecarlo_samples=10000,
                return_solver=False):
    """Estimates the (entropic) Wasserstein distance

        W_eps(mu, nu) = min_pi int c(x, y) dpi(x, y) + eps KL(pi | mu x nu)

    with stochastic optimization of its semi-dual.

    If mu and nu are both discrete, stochastic averaged gradient (SAG) with a
    constant step size is used, with a convergence rate O(1 / k). If exactly
    one of them is discrete, the other one is only accessed through samples
    and stochastic gradient ascent with averaging (SGA) is used, with a
    convergence rate O(1 / sqrt(k)).

    Parameters
    ----------
    c: callable
    Cost function c(x, y) between a point of mu and a point of nu.

    mu: DiscreteMeasure or SampleableMeasure
    First measure.

    nu: DiscreteMeasure or SampleableMeasure
    Second measure.

    eps: float or None
    Strength of entropic regularization. None approximates the
    unregularized distance.

    generator: torch.Generator
    Source of randomness. If None, a new generator seeded from the system
    entropy is used.

    maxiters: int
    Maximum number of gradient steps.

    stepsize: float
    Constant step size of SAG or initial step size of SGA. It must scale
    with eps, and with the range of the costs when eps is None: the default
    1 suits eps of the order of the cost range. For smaller eps or eps=None
    a step of about eps (or a hundredth of the cost range) is needed,
    otherwise SAG does not converge and the estimate can be far below the
    distance, even negative.

    warmup_phase: float
    Warm-up phase w of SGA, the i-th step size is
    stepsize / (1 + sqrt((i - 1) / w)).

    atol: float
    Absolute tolerance on successive dual potentials.

    rtol: float
    Relative tolerance on successive dual potentials. Defaults to 1e-4 if
    atol is zero and 0 otherwise.

    montecarlo_samples: int
    Number of samples of the non discrete measure used to estimate the cost
    in the semi-discrete case.

    return_solver: bool
    If set to True, also returns the solver, whose attributes v, converged
    and niters describe the optimization.

    Returns
    ----------
    cost: float
    Estimate of W_eps(mu, nu).
    """
    check_eps(eps)
    if generator is None:
        generator = torch.Generator()
        generator.seed()

    if mu.is_discrete and nu.is_discrete:
        solver = SAGSolver(maxiters=maxiters, stepsize=stepsize, atol=atol, rtol=rtol)
        # SAG ignores them, bad values are reported all the same
        check_warmup_phase(warmup_phase)
        check_montecarlo_samples(montecarlo_samples)
        cost = solver.solve(generator, c, mu, nu, eps)
    elif mu.is_discrete or nu.is_discrete:
        solver = SGASolver(maxiters=maxiters, stepsize=stepsize, warmup_phase=warmup_phase,
                           atol=atol, rtol=rtol, montecarlo_samples=montecarlo_samples)
        if nu.is_discrete:
            cost = solver.solve(generator, c, mu, nu, eps)
        else:
            # The objective is symmetric once the cost is transposed
            cost = solver.solve(generator, transpose_cost(c), nu, mu, eps)
    else:
        raise InvalidMeasureError('At least one of the two measures must be discrete')

    logger.debug('wasserstein estimate %g with %s (converged=%s, niters=%d)',
                 cost, type(solver).__name__, solver.converged, solver.niters)
    if return_solver:
        return cost, solver
    return cost
