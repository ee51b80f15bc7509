"""
==================================
Using a basic example of stochasticot
==================================

This example estimates Wasserstein distances between discrete measures
(with SAG) and between a discrete and a Gaussian measure (with SGA).

"""

import logging

import torch

from stochasticot import wasserstein, DiscreteMeasure, SampleableMeasure
from stochasticot.utils import generate_measure, sqeuclidean

logging.basicConfig(level=logging.INFO)
torch.set_printoptions(8)

gen = torch.Generator().manual_seed(0)

# Generate two discrete measures in the unit square
mu = generate_measure(n_sample=5, n_dim=2, generator=gen)
nu = generate_measure(n_sample=6, n_dim=2, generator=gen)

# Unregularized and entropic distances, larger eps can only increase the cost.
# The SAG step size scales with eps (a fraction of the cost range for eps=None)
for eps, stepsize in [(None, 0.01), (0.1, 0.1), (1.0, 1.0)]:
    cost, solver = wasserstein(sqeuclidean, mu, nu, eps, generator=gen,
                               stepsize=stepsize, return_solver=True)
    print("eps={}: cost {:.6f}, converged={} after {} iterations".format(
        eps, cost, solver.converged, solver.niters))
    print("Dual potential: ", solver.v)

# Semi-discrete problem: squared distance between a point mass and N(0, 1)
point = DiscreteMeasure([0.], [1.])
gaussian = SampleableMeasure.normal()
cost = wasserstein(lambda x, y: (x - y) ** 2, point, gaussian, generator=gen,
                   montecarlo_samples=50000)
print("W2^2(delta_0, N(0, 1)) ~ {:.4f} (exact value 1)".format(cost))

# Empirical measure of samples against the Gaussian it was drawn from
samples = torch.stack(gaussian.draw_many(gen, 20))
empirical = DiscreteMeasure.empirical(samples.numpy())
cost = wasserstein(lambda x, y: (x - y) ** 2, empirical, gaussian, 0.05,
                   generator=gen, stepsize=0.5, warmup_phase=100,
                   montecarlo_samples=2000)
print("Entropic W2^2(empirical, N(0, 1)) ~ {:.4f}".format(cost))
