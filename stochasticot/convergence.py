import torch

from .exceptions import InvalidConfigurationError


def default_rtol(atol):
    """Relative tolerance used when none is given: 1e-4 if atol is zero, else 0."""
    return 1e-4 if atol == 0 else 0.


class ConvergenceMonitor(object):

    def __init__(self, atol=0., rtol=None):
        """
        :param atol: absolute tolerance on successive iterates
        :param rtol: relative tolerance on successive iterates. Defaults to default_rtol(atol)
        """
        if rtol is None:
            rtol = default_rtol(atol)
        if atol < 0 or rtol < 0:
            raise InvalidConfigurationError(
                'Tolerances must be nonnegative, got atol={} and rtol={}'.format(atol, rtol))
        self.atol = float(atol)
        self.rtol = float(rtol)

    def __repr__(self):
        return 'ConvergenceMonitor(atol={}, rtol={})'.format(self.atol, self.rtol)

    def __call__(self, v_prev, v_new):
        """True iff |v_new - v_prev| <= atol + rtol * |v_prev| for every coordinate."""
        return torch.allclose(v_new, v_prev, rtol=self.rtol, atol=self.atol)
