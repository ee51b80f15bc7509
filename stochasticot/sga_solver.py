import logging
import math

import torch

from .base_solver import StochasticSolver, check_montecarlo_samples, check_warmup_phase
from .exceptions import InvalidConfigurationError, InvalidMeasureError, NumericInstabilityError
from .utils import check_eps, cost_matrix, cost_row, make_aggregator

logger = logging.getLogger(__name__)


class SGAState(object):
    """Raw iterate v and its running (Cesaro) average v_avg, both of size [size_Y]."""

    def __init__(self, size_y):
        self.v = torch.zeros(size_y, dtype=torch.float64)
        self.v_avg = torch.zeros(size_y, dtype=torch.float64)


class SGASolver(StochasticSolver):
    """Averaged stochastic gradient ascent on the semi-dual of semi-discrete OT.

    mu is only accessed through samples, nu is discrete and carries the
    potential v. The step size of the i-th iteration is
    stepsize / (1 + sqrt((i - 1) / warmup_phase)).
    """

    def __init__(self, maxiters=10000, stepsize=1., warmup_phase=1., atol=0., rtol=None,
                 montecarlo_samples=10000):
        """
        :param warmup_phase: Number of iterations with a roughly constant step size
        :param montecarlo_samples: Number of samples of mu used to estimate the final cost
        """
        super(SGASolver, self).__init__(maxiters=maxiters, stepsize=stepsize, atol=atol, rtol=rtol)
        self.set_warmup_phase(warmup_phase)
        self.set_montecarlo_samples(montecarlo_samples)

    def get_warmup_phase(self):
        return self.warmup_phase

    def set_warmup_phase(self, warmup_phase):
        check_warmup_phase(warmup_phase)
        self.warmup_phase = float(warmup_phase)

    def get_montecarlo_samples(self):
        return self.montecarlo_samples

    def set_montecarlo_samples(self, montecarlo_samples):
        check_montecarlo_samples(montecarlo_samples)
        self.montecarlo_samples = int(montecarlo_samples)

    def stepsize_at(self, i):
        """Step size of the i-th iteration (1-indexed)."""
        return self.stepsize / (1. + math.sqrt((i - 1) / self.warmup_phase))

    @staticmethod
    def _check_measures(mu, nu):
        if not hasattr(mu, 'draw'):
            raise InvalidMeasureError('mu must support draw(generator)')
        if not nu.is_discrete:
            raise InvalidMeasureError('SGA requires nu to be a discrete measure')

    def dual_v(self, generator, c, mu, nu, eps=None):
        """
        Computes the averaged dual potential on the support of nu
        :param generator: torch.Generator passed to mu.draw
        :param c: cost function c(x, y)
        :param mu: measure supporting draw(generator)
        :param nu: DiscreteMeasure of size [size_Y]
        :param eps: entropic regularization, None for unregularized OT
        :return: torch.Tensor of size [size_Y]
        """
        check_eps(eps)
        self._check_measures(mu, nu)
        state = SGAState(len(nu))
        if self.maxiters == 0:
            return self._finish(state.v_avg, 0, False)

        aggregator = make_aggregator(eps)
        ys, b, log_b = nu.support, nu.weights, nu.log_weights
        logger.debug('SGA on %d points, %r, stepsize=%g, warmup_phase=%g',
                     len(nu), aggregator, self.stepsize, self.warmup_phase)

        for i in range(1, self.maxiters + 1):
            x = mu.draw(generator)
            g = b - aggregator.weights(cost_row(c, x, ys) - state.v, log_b)
            state.v += self.stepsize_at(i) * g
            v_prev = state.v_avg.clone()
            state.v_avg += (state.v - state.v_avg) / i
            if torch.isnan(state.v_avg).any():
                raise NumericInstabilityError('NaN in the SGA potential at iteration {}'.format(i))
            if self.monitor(v_prev, state.v_avg):
                return self._finish(state.v_avg, i, True)
        return self._finish(state.v_avg, self.maxiters, False)

    def dual_cost(self, generator, c, v, mu, nu, eps=None):
        """
        Monte Carlo estimate of sum_j v_j b_j + E_{x ~ mu}[v^c(x)] with fresh samples
        :param v: torch.Tensor of size [size_Y]
        :return: float
        """
        check_eps(eps)
        self._check_measures(mu, nu)
        self._check_potential(v, nu)
        if self.montecarlo_samples == 0:
            raise InvalidConfigurationError('montecarlo_samples must be positive to estimate the cost')
        aggregator = make_aggregator(eps)
        xs = mu.draw_many(generator, self.montecarlo_samples)
        C = cost_matrix(c, xs, nu.support)
        cost = torch.sum(v * nu.weights) + aggregator.value(C - v[None, :], nu.log_weights).mean()
        return cost.item()
