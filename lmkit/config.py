# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the lmkit authors and collaborators.
# Licensed under the MIT License.

"""Configuration of the Levenberg-Marquardt fitter.

A :class:`Config` is a :class:`lmkit.Holder` that only accepts the option
names listed below. Unset options fall back to the class-level defaults::

  from lmkit.config import Config

  cfg = Config(ftol=1e-8, maxiter=50)
  cfg.xtol = 1e-12

Options:

ftol
  The relative error desired in the sum of squares. Default 1e-10.
xtol
  The relative error desired in the approximate solution. Default 1e-10.
gtol
  The orthogonality desired between the function vector and the columns of
  the Jacobian. Default 1e-10.
maxiter
  The maximum number of iterations. Zero means that no iterations are done:
  the covariance is evaluated at the initial parameters. Default 200.
maxfev
  The maximum number of residual function evaluations, or zero for no
  limit. Default 0.
epsfcn
  The expected relative error in the residual function, used to choose
  finite-difference steps. None means the machine precision. Default None.
step_factor
  The initial trust-region radius is ``step_factor`` times the norm of the
  scaled initial parameters. Default 100.
cov_tol
  Relative size of a pivot of R below which the corresponding direction is
  treated as rank deficient in the covariance. The Jacobian is computed by
  finite differences, so collinear parameters leave pivots at about
  ``sqrt(epsfcn)`` rather than zero; a useful value must sit above that
  noise. None means ``100 * sqrt(max(epsfcn, eps))``, about 1.5e-6 for
  doubles. Default None.
maxreject
  The number of consecutive rejected trial steps after which the fit gives
  up with status 'noprogress'. Default 100.
diag
  User scale factors, one positive value per parameter. None means the
  parameters are scaled internally by the Jacobian column norms. Default
  None.
scale_covar
  If true, multiply the covariance by the reduced chi-squared. Default
  False: the residuals are assumed to be normalized by their true
  uncertainties.
nprint
  Log fit progress at INFO level every ``nprint`` iterations; zero
  disables it. Default 0.
nofinitecheck
  If true, do not check that the residual function returns finite values.
  Default False.
normfunc
  A function ``normfunc(vec, finfo)`` computing Euclidean norms. None means
  :func:`lmkit.enorm.enorm_mpfit_careful`. Default None.

"""

__all__ = "Config".split()

import numpy as np

from . import ConfigurationError, Holder
from .enorm import enorm_mpfit_careful


class Config(Holder):
    ftol = 1e-10
    xtol = 1e-10
    gtol = 1e-10
    maxiter = 200
    maxfev = 0
    epsfcn = None
    step_factor = 100.0
    cov_tol = None
    maxreject = 100
    diag = None
    scale_covar = False
    nprint = 0
    nofinitecheck = False
    normfunc = None

    _names = frozenset(
        """ftol xtol gtol maxiter maxfev epsfcn step_factor cov_tol maxreject
        diag scale_covar nprint nofinitecheck normfunc""".split()
    )

    def __setattr__(self, name, value):
        if not name.startswith("_") and name not in self._names:
            raise ConfigurationError("unrecognized configuration option %r", name)
        super(Config, self).__setattr__(name, value)

    def set(self, **kwargs):
        for name in kwargs:
            if name not in self._names:
                raise ConfigurationError("unrecognized configuration option %r", name)
        return super(Config, self).set(**kwargs)

    def to_dict(self):
        """Return all options, defaults included, as a :class:`dict`."""
        return dict((k, getattr(self, k)) for k in self._names)

    def validate(self, npar, dtype=float):
        """Return a copy of this configuration with every option coerced to its
        proper type and checked.

        *npar* is the total number of parameters of the problem and *dtype*
        the floating-point type used for the computation. Raises
        :exc:`lmkit.ConfigurationError` for a bad value.

        """
        c = self.copy()

        try:
            c.ftol = float(c.ftol)
            c.xtol = float(c.xtol)
            c.gtol = float(c.gtol)
            c.step_factor = float(c.step_factor)
            c.maxiter = int(c.maxiter)
            c.maxfev = int(c.maxfev)
            c.maxreject = int(c.maxreject)
            c.nprint = int(c.nprint)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("invalid configuration value: %s", e) from e

        c.scale_covar = bool(c.scale_covar)
        c.nofinitecheck = bool(c.nofinitecheck)

        if c.epsfcn is None:
            c.epsfcn = float(np.finfo(dtype).eps)
        else:
            c.epsfcn = float(c.epsfcn)

        try:
            if c.cov_tol is None:
                c.cov_tol = float(100 * np.sqrt(max(c.epsfcn, np.finfo(dtype).eps)))
            else:
                c.cov_tol = float(c.cov_tol)
        except (TypeError, ValueError) as e:
            raise ConfigurationError("invalid configuration value: %s", e) from e

        if c.normfunc is None:
            c.normfunc = enorm_mpfit_careful
        elif not callable(c.normfunc):
            raise ConfigurationError("normfunc must be a callable or None")

        if c.diag is not None:
            c.diag = np.atleast_1d(np.asarray(c.diag, dtype=dtype))

            if c.diag.shape != (npar,):
                raise ConfigurationError(
                    "diag must have exactly %d elements; got shape %r", npar, c.diag.shape
                )
            if np.any(~np.isfinite(c.diag)) or np.any(c.diag <= 0.0):
                raise ConfigurationError("diag values must be positive and finite")

        for name in ("ftol", "xtol", "gtol", "cov_tol"):
            v = getattr(c, name)
            if not np.isfinite(v) or v < 0.0:
                raise ConfigurationError("%s must be nonnegative; got %r", name, v)

        if not np.isfinite(c.epsfcn) or c.epsfcn < 0.0:
            raise ConfigurationError("epsfcn must be nonnegative; got %r", c.epsfcn)

        if not np.isfinite(c.step_factor) or c.step_factor <= 0.0:
            raise ConfigurationError("step_factor must be positive; got %r", c.step_factor)

        if c.maxiter < 0:
            raise ConfigurationError("maxiter must be nonnegative; got %r", c.maxiter)

        if c.maxfev < 0:
            raise ConfigurationError("maxfev must be nonnegative; got %r", c.maxfev)

        if c.maxreject < 1:
            raise ConfigurationError("maxreject must be positive; got %r", c.maxreject)

        if c.nprint < 0:
            raise ConfigurationError("nprint must be nonnegative; got %r", c.nprint)

        return c
