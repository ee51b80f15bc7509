import torch

from .exceptions import InvalidConfigurationError, NumericInstabilityError
from .measures import DiscreteMeasure

"""
Stabilized soft-min aggregation, cost helpers and random measures
"""


def check_eps(eps):
    if eps is None:
        return
    if not eps > 0:
        raise InvalidConfigurationError(
            'eps must be positive or None for the unregularized problem, got {}'.format(eps))


def check_finite(a, name='input'):
    if torch.isnan(a).any() or (a == float('Inf')).any():
        raise NumericInstabilityError('{} contains NaN or +Inf values'.format(name))


def stable_logsumexp(a, eps):
    """Computes eps * log(sum_i exp(a_i / eps)) along the last dimension.

    The maximum is subtracted before exponentiating and added back after
    the logarithm, so the exponentials never exceed one.

    Parameters
    ----------
    a: torch.Tensor of size [..., size_Y]
    Values to aggregate. Entries equal to -Inf are ignored.

    eps: float
    Temperature of the aggregation, must be positive.

    Returns
    ----------
    out: torch.Tensor of size [...]
    """
    if eps is None:
        raise InvalidConfigurationError('stable_logsumexp needs a positive eps')
    check_eps(eps)
    check_finite(a)
    m = a.max(dim=-1, keepdim=True).values
    if not torch.isfinite(m).all():
        raise NumericInstabilityError('Cannot aggregate a row where every value is -Inf')
    out = m.squeeze(-1) + eps * ((a - m) / eps).exp().sum(dim=-1).log()
    if not torch.isfinite(out).all():
        raise NumericInstabilityError('Overflow in the aggregation with eps={}'.format(eps))
    return out


#####################################################
# Aggregation strategies for the c-transform
#####################################################

class Aggregator(object):
    """(Soft) minimum of a_j = c(x, y_j) - v_j weighted by nu.

    ``value`` gives the (soft) c-transform and ``weights`` the conditional
    transport plan pi(. | x), whose difference with nu is the gradient of the
    semi-dual objective.
    """

    def value(self, a, log_w):
        raise NotImplementedError

    def weights(self, a, log_w):
        raise NotImplementedError


class SoftMin(Aggregator):

    def __init__(self, eps):
        check_eps(eps)
        if eps is None:
            raise InvalidConfigurationError('SoftMin needs a positive eps')
        self.eps = eps

    def __repr__(self):
        return 'SoftMin(eps={})'.format(self.eps)

    def value(self, a, log_w):
        check_finite(a, 'cost minus potential')
        return -stable_logsumexp(self.eps * log_w - a, self.eps)

    def weights(self, a, log_w):
        check_finite(a, 'cost minus potential')
        return torch.softmax(log_w - a / self.eps, dim=-1)


class HardMin(Aggregator):

    eps = None

    def __repr__(self):
        return 'HardMin()'

    @staticmethod
    def _mask(a, log_w):
        # Points without mass can never be transported to
        return a.masked_fill(log_w == -float('Inf'), float('Inf'))

    def value(self, a, log_w):
        check_finite(a, 'cost minus potential')
        return self._mask(a, log_w).min(dim=-1).values

    def weights(self, a, log_w):
        check_finite(a, 'cost minus potential')
        idx = torch.argmin(self._mask(a, log_w), dim=-1, keepdim=True)
        return torch.zeros_like(a).scatter_(-1, idx, 1.)


def make_aggregator(eps):
    """Soft-min for eps > 0, exact minimum for eps=None."""
    if eps is None:
        return HardMin()
    return SoftMin(eps)


#####################################################
# Cost functions
#####################################################

def euclidean(x, y):
    return (torch.as_tensor(x) - torch.as_tensor(y)).norm(p=2)


def sqeuclidean(x, y):
    return ((torch.as_tensor(x) - torch.as_tensor(y)) ** 2).sum()


def cost_row(c, x, ys):
    """Evaluates c(x, y_j) for every point y_j of the support ys."""
    return torch.tensor([float(c(x, y)) for y in ys], dtype=torch.float64)


def cost_matrix(c, xs, ys):
    """Cost matrix C[i, j] = c(x_i, y_j) of size [size_X, size_Y]."""
    return torch.stack([cost_row(c, x, ys) for x in xs])


def generate_measure(n_sample, n_dim, generator=None, equal=False):
    """
    Generate a discrete probability measure in R^d sampled over the unit
    square.
    :param n_sample: Number of sampling points in R^d
    :param n_dim: Dimension of the feature space
    :param generator: torch.Generator used for the draws, a new generator
        seeded from the system entropy if None
    :param equal: Uniform weights
    :return: A DiscreteMeasure with a support of size (n_sample, n_dim)
    """
    if generator is None:
        generator = torch.Generator()
        generator.seed()
    x = torch.rand(n_sample, n_dim, generator=generator, dtype=torch.float64)
    if equal:
        return DiscreteMeasure(x)
    # Exponential(1) weights normalized to a probability vector
    a = -(1. - torch.rand(n_sample, generator=generator, dtype=torch.float64)).log()
    return DiscreteMeasure(x, a / a.sum())
