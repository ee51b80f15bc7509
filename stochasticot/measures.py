"""
Probability measures understood by the solvers.

A measure is either discrete (finite support with weights) or sampleable
(only accessible through i.i.d. draws). The two kinds are told apart by the
``is_discrete`` flag, which the dispatcher branches on.
"""

import numpy as np
import torch

from .exceptions import InvalidMeasureError

# Tolerance on the total mass of discrete weights
MASS_TOL = 1e-6


class DiscreteMeasure(object):

    is_discrete = True

    def __init__(self, xs, ps=None):
        """
        :param xs: support points, array-like of size [size_X] or [size_X, dim]
        :param ps: weights, array-like of size [size_X]. Defaults to uniform weights
        """
        xs = torch.as_tensor(xs, dtype=torch.float64)
        if xs.dim() == 0 or xs.shape[0] == 0:
            raise InvalidMeasureError('The support of a discrete measure must be non empty')
        if ps is None:
            ps = torch.full((xs.shape[0],), 1. / xs.shape[0], dtype=torch.float64)
        else:
            ps = torch.as_tensor(ps, dtype=torch.float64)
        if ps.dim() != 1 or ps.shape[0] != xs.shape[0]:
            raise InvalidMeasureError(
                'Expected {} weights, got a tensor of shape {}'.format(xs.shape[0], tuple(ps.shape)))
        if torch.isnan(ps).any() or (ps < 0).any():
            raise InvalidMeasureError('The weights of a discrete measure must be nonnegative')
        if abs(ps.sum().item() - 1.) > MASS_TOL:
            raise InvalidMeasureError(
                'The weights of a discrete measure must sum to 1, got {}'.format(ps.sum().item()))
        self._xs = xs
        self._ps = ps

    @classmethod
    def empirical(cls, samples):
        """Empirical measure of samples, repeated points are merged and weighted by their count."""
        samples = np.atleast_1d(np.asarray(samples, dtype=np.float64))
        if samples.size == 0:
            raise InvalidMeasureError('The support of a discrete measure must be non empty')
        xs, counts = np.unique(samples, axis=0, return_counts=True)
        return cls(xs, counts / counts.sum())

    def __len__(self):
        return self._xs.shape[0]

    def __repr__(self):
        return 'DiscreteMeasure(size={})'.format(len(self))

    @property
    def support(self):
        return self._xs

    @property
    def weights(self):
        return self._ps

    @property
    def log_weights(self):
        return self._ps.log()

    def draw(self, generator):
        """Draw one support point according to the weights."""
        i = torch.multinomial(self._ps, 1, generator=generator).item()
        return self._xs[i]

    def draw_many(self, generator, n):
        idx = torch.multinomial(self._ps, n, replacement=True, generator=generator)
        return list(self._xs[idx])


class SampleableMeasure(object):

    is_discrete = False

    def __init__(self, sampler):
        """
        :param sampler: callable mapping a torch.Generator to one point of the measure
        """
        if not callable(sampler):
            raise InvalidMeasureError('A sampleable measure needs a callable sampler')
        self._sampler = sampler

    def __repr__(self):
        return 'SampleableMeasure({!r})'.format(self._sampler)

    def draw(self, generator):
        return self._sampler(generator)

    def draw_many(self, generator, n):
        return [self._sampler(generator) for _ in range(n)]

    @classmethod
    def normal(cls, loc=0., scale=1., shape=()):
        """Gaussian measure N(loc, scale^2) with independent coordinates."""
        if scale <= 0:
            raise InvalidMeasureError('scale must be positive, got {}'.format(scale))

        def sampler(generator):
            return loc + scale * torch.randn(shape, generator=generator, dtype=torch.float64)

        return cls(sampler)

    @classmethod
    def uniform(cls, low=0., high=1., shape=()):
        """Uniform measure on the box [low, high]^shape."""
        if not low < high:
            raise InvalidMeasureError('Expected low < high, got [{}, {}]'.format(low, high))

        def sampler(generator):
            return low + (high - low) * torch.rand(shape, generator=generator, dtype=torch.float64)

        return cls(sampler)
