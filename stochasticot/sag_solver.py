import logging

import torch

from .base_solver import StochasticSolver
from .exceptions import InvalidMeasureError, NumericInstabilityError
from .utils import check_eps, cost_matrix, make_aggregator

logger = logging.getLogger(__name__)


class SAGState(object):
    """Optimization state of one SAG solve.

    v: dual potential on the support of nu, size [size_Y]
    memory: last gradient computed for each point of mu, size [size_X, size_Y]
    d: sum of the rows of memory, size [size_Y]
    fresh: memory rows computed since the potential last moved, size [size_X]
    """

    def __init__(self, size_x, size_y):
        self.v = torch.zeros(size_y, dtype=torch.float64)
        self.memory = torch.zeros(size_x, size_y, dtype=torch.float64)
        self.d = torch.zeros(size_y, dtype=torch.float64)
        self.fresh = torch.zeros(size_x, dtype=torch.bool)


class SAGSolver(StochasticSolver):
    """Stochastic averaged gradient ascent on the semi-dual of discrete OT.

    The potential v lives on the support of nu, the potential on the support
    of mu is eliminated by the (soft) c-transform. Each iteration refreshes the
    stored gradient of one point x_i of mu and moves v along the average of the
    stored gradients with a constant step size.

    The step size must be chosen relative to the problem. The semi-dual is
    1 / eps smooth, so stepsize should be of the order of eps. With eps=None
    the objective is not smooth and stepsize should be a small fraction of
    the spread of the costs. stepsize=1 only suits eps of the order of the
    cost range: with a larger step the iterates oscillate, ``converged``
    stays False and the returned value can be far below the true distance,
    even negative.

    References
    ----------
    Genevay et al. (2016). Stochastic Optimization for Large-Scale Optimal
    Transport. NIPS 2016.
    """

    @staticmethod
    def _check_measures(mu, nu):
        for name, m in (('mu', mu), ('nu', nu)):
            if not m.is_discrete:
                raise InvalidMeasureError('SAG requires two discrete measures, {} is not discrete'.format(name))

    def solve(self, generator, c, mu, nu, eps=None):
        # The cost matrix is evaluated once for both stages
        check_eps(eps)
        self._check_measures(mu, nu)
        C = cost_matrix(c, mu.support, nu.support)
        v = self.dual_v(generator, c, mu, nu, eps, C=C)
        return self.dual_cost(generator, c, v, mu, nu, eps, C=C)

    def dual_v(self, generator, c, mu, nu, eps=None, C=None):
        """
        Computes the dual potential on the support of nu
        :param generator: torch.Generator used to sample the points of mu
        :param c: cost function c(x, y)
        :param mu: DiscreteMeasure of size [size_X]
        :param nu: DiscreteMeasure of size [size_Y]
        :param eps: entropic regularization, None for unregularized OT
        :param C: precomputed cost matrix of size [size_X, size_Y], optional
        :return: torch.Tensor of size [size_Y]
        """
        check_eps(eps)
        self._check_measures(mu, nu)
        size_x, size_y = len(mu), len(nu)
        state = SAGState(size_x, size_y)
        if self.maxiters == 0:
            return self._finish(state.v, 0, False)

        aggregator = make_aggregator(eps)
        if C is None:
            C = cost_matrix(c, mu.support, nu.support)
        b, log_b = nu.weights, nu.log_weights
        # Gradient of the i-th summand of (1 / size_X) * sum_i size_X * a_i * h(x_i, v)
        scale = size_x * mu.weights
        logger.debug('SAG on %d x %d points, %r, stepsize=%g', size_x, size_y, aggregator, self.stepsize)

        for k in range(self.maxiters):
            i = torch.randint(size_x, (1,), generator=generator).item()
            v_prev = state.v.clone()
            g = scale[i] * (b - aggregator.weights(C[i] - state.v, log_b))
            state.d += g - state.memory[i]
            state.memory[i] = g
            state.v += self.stepsize * state.d / size_x
            if torch.isnan(state.v).any():
                raise NumericInstabilityError('NaN in the SAG potential at iteration {}'.format(k + 1))

            if self.monitor(v_prev, state.v):
                state.fresh[i] = True
            else:
                state.fresh.fill_(False)
            # Stop once every stored gradient was computed at the current potential
            if state.fresh.all():
                return self._finish(state.v, k + 1, True)
        return self._finish(state.v, self.maxiters, False)

    def dual_cost(self, generator, c, v, mu, nu, eps=None, C=None):
        """
        Evaluates the semi-dual objective sum_j v_j b_j + sum_i a_i v^c(x_i)
        :param generator: unused, the evaluation is exact on discrete measures
        :param v: torch.Tensor of size [size_Y]
        :param C: precomputed cost matrix of size [size_X, size_Y], optional
        :return: float
        """
        check_eps(eps)
        self._check_measures(mu, nu)
        self._check_potential(v, nu)
        aggregator = make_aggregator(eps)
        if C is None:
            C = cost_matrix(c, mu.support, nu.support)
        cost = torch.sum(v * nu.weights) \
            + torch.sum(mu.weights * aggregator.value(C - v[None, :], nu.log_weights))
        return cost.item()
