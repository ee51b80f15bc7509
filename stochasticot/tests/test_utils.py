import math

import pytest
import torch

from stochasticot.exceptions import InvalidConfigurationError, NumericInstabilityError
from stochasticot.utils import stable_logsumexp, SoftMin, HardMin, make_aggregator, \
    euclidean, sqeuclidean, cost_matrix, generate_measure

gen = torch.Generator().manual_seed(42)
a = torch.randn(4, 6, generator=gen, dtype=torch.float64)


@pytest.mark.parametrize('eps', [0.1, 0.5, 1.0, 10.0])
def test_stable_logsumexp_matches_torch(eps):
    assert torch.allclose(stable_logsumexp(a, eps), eps * (a / eps).logsumexp(dim=-1))


def test_stable_logsumexp_large_values():
    x = torch.tensor([1000., 1000.], dtype=torch.float64)
    assert stable_logsumexp(x, 1.).item() == pytest.approx(1000. + math.log(2.))
    x = torch.tensor([-1e4, 0.], dtype=torch.float64)
    assert stable_logsumexp(x, 1e-3).item() == pytest.approx(0.)


def test_stable_logsumexp_ignores_minus_inf():
    x = torch.tensor([-float('Inf'), 2.], dtype=torch.float64)
    assert stable_logsumexp(x, 0.5).item() == pytest.approx(2.)


@pytest.mark.parametrize('eps', [0., -1., None])
def test_stable_logsumexp_rejects_eps(eps):
    with pytest.raises(InvalidConfigurationError):
        stable_logsumexp(a, eps)


@pytest.mark.parametrize('bad', [float('nan'), float('Inf')])
def test_stable_logsumexp_rejects_non_finite(bad):
    with pytest.raises(NumericInstabilityError):
        stable_logsumexp(torch.tensor([bad, 1.], dtype=torch.float64), 1.)


def test_make_aggregator():
    assert isinstance(make_aggregator(None), HardMin)
    assert isinstance(make_aggregator(0.5), SoftMin)
    with pytest.raises(InvalidConfigurationError):
        make_aggregator(0.)


values = torch.tensor([0.3, 0.1, 0.7], dtype=torch.float64)
log_w = torch.tensor([0.2, 0.5, 0.3], dtype=torch.float64).log()


def test_softmin_tends_to_hardmin():
    soft, hard = SoftMin(1e-3), HardMin()
    assert hard.value(values, log_w).item() == pytest.approx(0.1)
    assert soft.value(values, log_w).item() == pytest.approx(0.1, abs=1e-2)
    assert torch.allclose(hard.weights(values, log_w), torch.tensor([0., 1., 0.], dtype=torch.float64))
    assert torch.allclose(soft.weights(values, log_w), hard.weights(values, log_w), atol=1e-6)


@pytest.mark.parametrize('eps', [0.1, 1.0, 10.0])
def test_softmin_is_below_weighted_mean(eps):
    # Jensen: -eps log E[exp(-a / eps)] <= E[a]
    soft = SoftMin(eps)
    assert soft.value(values, log_w).item() <= torch.sum(log_w.exp() * values).item() + 1e-12
    assert soft.weights(values, log_w).sum().item() == pytest.approx(1.)


def test_hardmin_skips_points_without_mass():
    x = torch.tensor([0., 1.], dtype=torch.float64)
    lw = torch.tensor([0., 1.], dtype=torch.float64).log()
    hard = HardMin()
    assert hard.value(x, lw).item() == 1.
    assert torch.equal(hard.weights(x, lw), torch.tensor([0., 1.], dtype=torch.float64))
    assert SoftMin(0.1).value(x, lw).item() == pytest.approx(1.)


def test_hardmin_breaks_ties_with_first_index():
    x = torch.tensor([[1., 1.], [2., 0.]], dtype=torch.float64)
    lw = torch.zeros(2, dtype=torch.float64)
    w = HardMin().weights(x, lw)
    assert torch.equal(w, torch.tensor([[1., 0.], [0., 1.]], dtype=torch.float64))


def test_aggregators_reject_nan():
    x = torch.tensor([float('nan'), 1.], dtype=torch.float64)
    lw = torch.zeros(2, dtype=torch.float64)
    for agg in [HardMin(), SoftMin(1.)]:
        with pytest.raises(NumericInstabilityError):
            agg.value(x, lw)
        with pytest.raises(NumericInstabilityError):
            agg.weights(x, lw)


def test_costs():
    x = torch.tensor([0., 0.], dtype=torch.float64)
    y = torch.tensor([3., 4.], dtype=torch.float64)
    assert euclidean(x, y).item() == pytest.approx(5.)
    assert sqeuclidean(x, y).item() == pytest.approx(25.)
    assert sqeuclidean(1., 3.).item() == pytest.approx(4.)


def test_cost_matrix():
    mu = generate_measure(n_sample=5, n_dim=3, generator=torch.Generator().manual_seed(0))
    nu = generate_measure(n_sample=6, n_dim=3, generator=torch.Generator().manual_seed(1))
    C = cost_matrix(sqeuclidean, mu.support, nu.support)
    ref = ((mu.support[:, None, :] - nu.support[None, :, :]) ** 2).sum(dim=2)
    assert C.shape == (5, 6)
    assert torch.allclose(C, ref)


def test_generate_measure():
    mu = generate_measure(n_sample=5, n_dim=2, generator=torch.Generator().manual_seed(0))
    assert mu.support.shape == (5, 2)
    assert (mu.support >= 0).all() and (mu.support < 1).all()
    assert mu.weights.sum().item() == pytest.approx(1.)
    mu = generate_measure(n_sample=4, n_dim=2, generator=torch.Generator().manual_seed(0), equal=True)
    assert torch.allclose(mu.weights, torch.full((4,), 0.25, dtype=torch.float64))


@pytest.mark.parametrize('equal', [True, False])
def test_generate_measure_leaves_global_rng_untouched(equal):
    state = torch.get_rng_state()
    mu = generate_measure(n_sample=4, n_dim=2, equal=equal)
    assert mu.support.shape == (4, 2)
    assert torch.equal(torch.get_rng_state(), state)
