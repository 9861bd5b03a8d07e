# -*- mode: python; coding: utf-8 -*-
# Copyright (C) 1997-2011, Craig Markwardt
# Copyright 2003 Mark Rivers
# Copyright 2006, 2009-2011 (inclusive) Nadia Dencheva
# Copyright 2011-2017 (inclusive) Peter Williams
# Copyright 2026 the lmkit authors and collaborators.
#
# This software is provided as is without any warranty whatsoever. Permission
# to use, copy, modify, and distribute modified or unmodified copies is
# granted, provided this copyright and disclaimer are included unchanged.

### lmmin is a Levenberg-Marquardt least-squares minimizer derived
### (circuitously) from the classic MINPACK implementation. Usage information
### is given in the docstring farther below.

# == Provenance ==
#
# This implementation of the Levenberg-Marquardt technique has its origins in
# MINPACK-1 (the lmdif and lmdir subroutines), by Jorge Moré, Burt Garbow, and
# Ken Hillstrom, implemented around 1980. In 1997-1998, Craig Markwardt ported
# the FORTRAN code (with permission) to IDL, resulting in the MPFIT procedure,
# and later to C as CMPFIT. The parameter-limit handling here follows CMPFIT.
# The Python lineage passes through Mark Rivers' mpfit.py, Nadia Dencheva's
# Numpy port nmpfit.py, and Peter Williams' lmmin.py.
#
#
# == Academic References ==
#
# Levenberg, K. 1944, "A method for the solution of certain nonlinear
#  problems in least squares," Quart. Appl. Math., vol. 2,
#  pp. 164-168.
#
# Marquardt, DW. 1963, "An algorithm for least squares estimation of
#  nonlinear parameters," SIAM J. Appl. Math., vol. 11, pp. 431-441.
#  (DOI: 10.1137/0111030 )
#
# Moré, J. 1978, "The Levenberg-Marquardt Algorithm: Implementation
#  and Theory," in Numerical Analysis, vol. 630, ed. G. A. Watson
#  (Springer-Verlag: Berlin), p. 105 (DOI: 10.1007/BFb0067700 )
#
# Markwardt, C. B. 2008, "Non-Linear Least Squares Fitting in IDL with
#  MPFIT," in Proc. Astronomical Data Analysis Software and Systems
#  XVIII, ASP Conference Series, Vol. 411, pp. 251-254
#  (arxiv:0902.2850; bibcode: 2009ASPC..411..251M)

"""lmkit.lmmin - Pythonic, Numpy-based Levenberg-Marquardt least-squares minimizer

Basic usage::

    from lmkit.lmmin import Problem, mpfit

    def yfunc(params, vals):
        vals[:] = {stuff with params}

    p = Problem(npar, nout, yfunc)
    solution = p.solve(guess)

    # or, in one go:
    solution = mpfit(yfunc, guess, nout, ftol=1e-8)

Derivatives are always computed by forward finite differences.

Main Solution properties:

    prob   - The Problem.
    status - Set of strings; presence of 'ftol', 'gtol', or 'xtol' means success.
    params - Final parameter values.
    perror - 1σ uncertainties on params.
    covar  - Covariance matrix of parameters.
    fnorm  - Final sum of squared function outputs (the χ²).
    fvec   - Final vector of function outputs.
    fjac   - Final Jacobian matrix of d(fvec)/d(params), free params only.

Automatic least-squares model-fitting (subtracts "observed" Y values and
multiplies by inverse errors):

    def yrfunc(params, modelyvalues):
        modelyvalues[:] = {stuff with params}

    p = ResidualProblem(npar, yobs, errinv, yrfunc)

Parameter meta-information:

    p.p_value(paramindex, value, fixed=False)
    p.p_limit(paramindex, lower=None, upper=None)
    p.p_step(paramindex, stepsize, isrel=False)
    p.set_param_specs([Free(), Fixed(), Bounded(0, None)])

Tolerances and limits live in ``p.config``, a :class:`lmkit.config.Config`.

Solution.status is a set of strings; see :mod:`lmkit.convergence` for their
meanings. Multiple conditions may contribute to ending the iteration. The
fit did not converge if none of 'ftol', 'xtol', or 'gtol' are present; the
parameters are nonetheless the best ones found.

Errors that prevent fitting altogether are raised: a bad setup raises
:exc:`lmkit.ConfigurationError` before anything is evaluated, and a failure
of the residual function raises :exc:`lmkit.EvaluationError`.

"""

__all__ = "Problem ResidualProblem Solution Status mpfit".split()

import logging

import numpy as np

from . import ConfigurationError, EvaluationError, LMError
from .config import Config
from .convergence import (
    ACCEPT_RATIO,
    Status,
    actual_reduction,
    convergence_status,
    predicted_reduction,
    scaled_gradient_norm,
    update_step_bound,
)
from .covar import calc_covariance, expand_covariance
from .jacobian import fd_jacobian
from .lmpar import lm_solve
from .params import Bounded, Fixed, Free, ParamLayout, normalize_specs
from .qr import qr_factor_packed, qr_qtf

logger = logging.getLogger(__name__)


def anynotfinite(x):
    return not np.all(np.isfinite(x))


class Solution(object):
    """A parameter solution from the Levenberg-Marquardt algorithm. Attributes:

    ndof     - The number of degrees of freedom in the problem.
    prob     - The `Problem`.
    status   - A set of strings indicating which stop condition(s) arose.
    niter    - The number of iterations needed to obtain the solution.
    perror   - The 1σ errors on the final parameters.
    params   - The final best-fit parameters.
    covar    - The covariance of the function parameters.
    singular - Boolean array flagging parameters whose covariance entries
               were zeroed because the Jacobian was rank deficient. This
               includes parameters pegged at a limit at the end of the fit.
    fnorm    - The final sum of squared residuals.
    orignorm - The sum of squared residuals at the initial parameters.
    rchisq   - fnorm / ndof, or None if there are no degrees of freedom.
    fvec     - The final function outputs.
    fjac     - The Jacobian from the last iteration, one row per free
               parameter, before any rows of pegged parameters were zeroed.
    nfev     - The number of function evaluations needed to obtain the solution.
    njev     - The number of Jacobian evaluations needed to obtain the solution.
    nfree    - The number of free parameters.
    npegged  - The number of free parameters sitting on one of their limits.
    nfunc    - The number of residuals.

    The presence of 'ftol', 'gtol', or 'xtol' in `status` means success.

    """

    ndof = None
    prob = None
    status = None
    niter = None
    perror = None
    params = None
    covar = None
    singular = None
    fnorm = None
    orignorm = None
    rchisq = None
    fvec = None
    fjac = None
    nfev = -1
    njev = -1
    nfree = None
    npegged = None
    nfunc = None

    def __init__(self, prob):
        self.prob = prob

    @property
    def succeeded(self):
        "Whether any of the convergence conditions arose."
        return bool(self.status and (self.status & Status.successes))

    def __repr__(self):
        return "<Solution status=%s niter=%s nfev=%s fnorm=%s>" % (
            sorted(self.status or ()),
            self.niter,
            self.nfev,
            self.fnorm,
        )


class _ResidualCaller(object):
    """Evaluate the user's function for one call of `Problem.solve`, counting
    the evaluations and converting failures into `EvaluationError`.

    """

    def __init__(self, yfunc, nofinitecheck):
        self.yfunc = yfunc
        self.nofinitecheck = nofinitecheck
        self.nfev = 0

    def __call__(self, params, vec):
        self.nfev += 1

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("call #%4d f(%s)", self.nfev, params)

        try:
            self.yfunc(params, vec)
        except Exception as e:
            raise EvaluationError(
                "residual function failed on call #%d: %s",
                self.nfev,
                e,
                params=params.copy(),
            ) from e

        if not self.nofinitecheck and anynotfinite(vec):
            raise EvaluationError(
                "residual function returned nonfinite values on call #%d",
                self.nfev,
                params=params.copy(),
            )


class Problem(object):
    """A Levenberg-Marquardt problem to be solved. Attributes:

    config
      A :class:`lmkit.config.Config` holding tolerances and limits.
    solclass
      A factory for Solution instances.

    Methods:

    copy
      Duplicate this `Problem`.
    get_ndof
      Get the number of degrees of freedom in the problem.
    get_nfree
      Get the number of free parameters.
    get_param_specs
      Get the list of per-parameter specifications.
    p_value
      Set the initial or fixed value of a parameter.
    p_limit
      Set limits on parameter values.
    p_step
      Set the finite-difference stepsize for a parameter.
    set_func
      Set the function to be optimized.
    set_npar
      Set the number of parameters; allows p_* to be called.
    set_param_specs
      Set all parameter specifications at once.
    set_residual_func
      Set the function to a standard model-fitting style.
    solve
      Run the algorithm.

    """

    _yfunc = None
    _npar = None
    _nout = None
    _values = None
    _specs = None

    config = None
    solclass = None

    def __init__(self, npar=None, nout=None, yfunc=None, config=None, solclass=Solution):
        if npar is not None:
            self.set_npar(npar)
        if yfunc is not None:
            self.set_func(nout, yfunc)

        if not issubclass(solclass, Solution):
            raise ConfigurationError("solclass must be a subclass of Solution")

        if config is None:
            config = Config()
        elif not isinstance(config, Config):
            raise ConfigurationError("config must be a Config instance; got %r", config)

        self.config = config
        self.solclass = solclass

    # The parameters and their metadata -- can be configured without
    # setting nout or the function.

    def set_npar(self, npar):
        try:
            npar = int(npar)
            assert npar > 0
        except Exception:
            raise ConfigurationError("npar must be a positive integer; got %r", npar)

        if self._npar is not None and self._npar == npar:
            return self

        values = np.empty(npar)
        values.fill(np.nan)
        specs = [Free() for _ in range(npar)]

        if self._npar is not None:
            overlap = min(self._npar, npar)
            values[:overlap] = self._values[:overlap]
            specs[:overlap] = self._specs[:overlap]

        self._values = values
        self._specs = specs
        self._npar = npar
        # Return self for easy chaining of calls.
        return self

    def _check_idx(self, idx):
        if self._npar is None:
            raise ConfigurationError("no npar yet")

        idx = int(idx)
        if idx < 0 or idx >= self._npar:
            raise ConfigurationError("illegal parameter number %d", idx)
        return idx

    def p_value(self, idx, value, fixed=False):
        idx = self._check_idx(idx)
        value = float(value)

        if not np.isfinite(value):
            raise ConfigurationError("parameter #%d value must be finite; got %r", idx, value)

        self._values[idx] = value
        old = self._specs[idx]

        if fixed:
            self._specs[idx] = Fixed(step=old.step, relstep=old.relstep)
        elif old.fixed:
            self._specs[idx] = Free(step=old.step, relstep=old.relstep)

        return self

    def p_limit(self, idx, lower=None, upper=None):
        idx = self._check_idx(idx)

        if lower is not None and np.isneginf(lower):
            lower = None
        if upper is not None and np.isposinf(upper):
            upper = None

        # Setting lower = upper marks the parameter as fixed.

        if lower is not None and upper is not None and lower == upper:
            return self.p_value(idx, lower, True)

        old = self._specs[idx]

        if lower is None and upper is None:
            self._specs[idx] = Free(step=old.step, relstep=old.relstep)
        else:
            self._specs[idx] = Bounded(lower, upper, step=old.step, relstep=old.relstep)

        return self

    def p_step(self, idx, step, isrel=False):
        idx = self._check_idx(idx)
        old = self._specs[idx]
        kwargs = {"relstep": step} if isrel else {"step": step}

        if isinstance(old, Bounded):
            self._specs[idx] = Bounded(old.low, old.high, **kwargs)
        else:
            self._specs[idx] = old.__class__(**kwargs)

        return self

    def set_param_specs(self, specs):
        """Replace all parameter specifications. *specs* is a sequence of
        :class:`lmkit.params.ParamSpec` with one entry per parameter, or None
        to make every parameter free.

        """
        if self._npar is None:
            raise ConfigurationError("no npar yet")

        self._specs = normalize_specs(specs, self._npar)
        return self

    def get_param_specs(self):
        return list(self._specs)

    def _check_param_config(self):
        if self._npar is None:
            raise ConfigurationError("no npar yet")

        layout = ParamLayout(self._specs)

        if layout.nfree == 0:
            raise ConfigurationError("no free parameters")

        return layout

    def get_nfree(self):
        return self._check_param_config().nfree

    # Now, the function

    def set_func(self, nout, yfunc):
        try:
            nout = int(nout)
            assert nout > 0
            # Do not check that nout >= npar here, since
            # the user may wish to fix parameters, which
            # could make the problem tractable after all.
        except Exception:
            raise ConfigurationError("nout must be a positive integer; got %r", nout)

        if not callable(yfunc):
            raise ConfigurationError("yfunc must be callable")

        self._nout = nout
        self._yfunc = yfunc
        return self

    def set_residual_func(self, yobs, errinv, yfunc):
        from numpy import multiply, subtract

        yobs = np.asarray(yobs, dtype=float).ravel()
        errinv = np.asarray(errinv, dtype=float).ravel()

        try:
            errinv = np.broadcast_to(errinv, yobs.shape)
        except ValueError as e:
            raise ConfigurationError(
                "%d inverse errors do not match %d observed values", errinv.size, yobs.size
            ) from e

        if anynotfinite(yobs):
            raise ConfigurationError("some observed values are nonfinite")
        if anynotfinite(errinv):
            raise ConfigurationError("some inverse errors are nonfinite")

        if not callable(yfunc):
            raise ConfigurationError("yfunc must be callable")

        def ywrap(pars, nresids):
            yfunc(pars, nresids)  # model Y values => nresids
            subtract(yobs, nresids, nresids)  # abs. residuals => nresids
            multiply(nresids, errinv, nresids)

        return self.set_func(yobs.size, ywrap)

    def _fixup_check(self, dtype):
        layout = self._check_param_config()

        if self._nout is None:
            raise ConfigurationError("no nout yet")

        if self._nout < layout.nfree:
            raise ConfigurationError(
                "not enough degrees of freedom: %d residuals but %d free parameters",
                self._nout,
                layout.nfree,
            )

        if not issubclass(self.solclass, Solution):
            raise ConfigurationError("solclass must be a subclass of Solution")

        if not isinstance(self.config, Config):
            raise ConfigurationError("config must be a Config instance")

        return layout, self.config.validate(self._npar, dtype)

    def get_ndof(self):
        layout, _ = self._fixup_check(float)  # dtype is irrelevant here
        return self._nout - layout.nfree

    def copy(self):
        n = Problem(self._npar, self._nout, self._yfunc, self.config.copy(), self.solclass)

        if self._npar is not None:
            n._values = self._values.copy()
            n._specs = list(self._specs)

        return n

    # Actual implementation code!

    def _initial_params(self, initial_params, dtype):
        if initial_params is not None:
            initial_params = np.atleast_1d(np.asarray(initial_params, dtype=dtype))
        else:
            initial_params = self._values

        if initial_params.shape != (self._npar,):
            raise ConfigurationError(
                "expected exactly %d parameters, got %d", self._npar, initial_params.size
            )

        initial_params = initial_params.astype(dtype)  # always a fresh copy

        # Values given to p_value(..., fixed=True) override the argument.
        for i, spec in enumerate(self._specs):
            if spec.fixed and np.isfinite(self._values[i]):
                initial_params[i] = self._values[i]

        if anynotfinite(initial_params):
            raise ConfigurationError("some nonfinite initial parameter values")

        return initial_params

    def solve(self, initial_params=None, dtype=float):
        """Run the Levenberg-Marquardt algorithm and return a `Solution`.

        *initial_params* is the starting parameter vector; if None, the values
        set with `p_value` are used. It is not modified.

        """
        from numpy import dot, where

        layout, cfg = self._fixup_check(dtype)
        ifree = layout.ifree
        n = layout.nfree
        m = self._nout
        initial_params = self._initial_params(initial_params, dtype)
        layout.check_values(initial_params)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("solving with configuration:\n%s", cfg.to_pretty())

        dtype = initial_params.dtype
        finfo = np.finfo(dtype)
        enorm = cfg.normfunc
        ycall = _ResidualCaller(self._yfunc, cfg.nofinitecheck)

        params = initial_params.copy()
        x = params[ifree]  # x is the free subset of our parameters

        fvec = np.zeros(m, dtype)
        fjac = np.zeros((n, m), dtype)
        ycall(params, fvec)
        fnorm = enorm(fvec, finfo)
        orignorm = fnorm**2

        # Initialize Levenberg-Marquardt parameter and
        # iteration counter.

        par = 0.0
        niter = 1
        njev = 0
        nreject = 0
        status = set()

        # Outer loop top.

        while True:
            params[ifree] = x

            if cfg.nprint > 0 and (niter - 1) % cfg.nprint == 0:
                logger.info("iter %d: chi^2 = %g, params = %s", niter, fnorm**2, params)

            fd_jacobian(ycall, params, fvec, fjac, layout, cfg.epsfcn, finfo)
            njev += 1

            if anynotfinite(fjac):
                raise LMError("nonfinite terms in Jacobian matrix")

            # The factorization below destroys fjac; keep the Jacobian itself
            # for the Solution.
            lastjac = fjac.copy()
            nodirection = not lastjac.any()

            if layout.anylimits:
                # Parameters pegged at a limit with the gradient pointing out
                # of bounds contribute nothing to this iteration.
                lpeg, upeg = layout.pegged(x)

                for i in where(lpeg)[0]:
                    if dot(fjac[i], fvec) > 0:
                        fjac[i] = 0

                for i in where(upeg)[0]:
                    if dot(fjac[i], fvec) < 0:
                        fjac[i] = 0

            # Compute QR factorization of the Jacobian
            # rdiag: diagonal part of R matrix, pivoting applied
            # acnorm: unpermuted row norms of fjac
            # fjac: overwritten with Q and R matrix info, pivoted
            pmut, rdiag, acnorm = qr_factor_packed(fjac, enorm, finfo)

            if niter == 1:
                # If "diag" unspecified, scale according to norms of rows
                # of the initial jacobian
                if cfg.diag is not None:
                    diag = cfg.diag[ifree].copy()
                else:
                    diag = acnorm.copy()
                    diag[where(diag == 0)] = 1.0

                # Calculate norm of scaled x, initialize step bound delta
                xnorm = enorm(diag * x, finfo)
                delta = cfg.step_factor * xnorm
                if delta == 0.0:
                    delta = cfg.step_factor

            # Compute fvec * (q.T), store the first n components in qtf.
            # This also leaves the full lower triangle of R in fjac.
            qtf = qr_qtf(fjac, rdiag, fvec)

            if cfg.maxiter == 0:
                # Only the covariance at the initial parameters was wanted.
                status.add(Status.maxiter)
                break

            if nodirection and fnorm != 0:
                status.add(Status.noprogress)
                break

            # Calculate the norm of the scaled gradient and test for
            # convergence of gradient norm

            gnorm = scaled_gradient_norm(fjac, pmut, qtf, acnorm, fnorm)

            if gnorm <= cfg.gtol:
                status.add(Status.gtol)
                break

            if cfg.diag is None:
                diag = np.maximum(diag, acnorm)

            # Inner loop
            while True:
                # Get Levenberg-Marquardt parameter. fjac is modified in-place
                par, wa1 = lm_solve(fjac, pmut, diag, qtf, delta, par, enorm, finfo)
                # "Store the direction p and x+p. Calculate the norm of p"
                wa1 *= -1

                if anynotfinite(wa1):
                    raise LMError("overflow in step vector")

                wa1, alpha, wa2 = layout.restrict_step(x, wa1, finfo)

                if anynotfinite(wa2):
                    raise LMError("overflow in parameter vector")

                wa3 = diag * wa1
                pnorm = enorm(wa3, finfo)

                # On first iter, also adjust initial step bound
                if niter == 1:
                    delta = min(delta, pnorm)

                # Evaluate func at x + p and calculate norm

                params[ifree] = wa2
                wa4 = np.empty_like(fvec)
                ycall(params, wa4)
                fnorm1 = enorm(wa4, finfo)

                actred = actual_reduction(fnorm, fnorm1)
                prered, dirder = predicted_reduction(
                    fjac, pmut, wa1, alpha, par, pnorm, fnorm, enorm, finfo
                )

                # Compute ratio of the actual to the predicted reduction.
                ratio = 0.0
                if prered != 0:
                    ratio = actred / prered

                delta, par = update_step_bound(
                    ratio, actred, dirder, delta, pnorm, par, fnorm, fnorm1
                )

                if ratio >= ACCEPT_RATIO:
                    # Successful iteration.
                    x = wa2
                    xnorm = enorm(diag * x, finfo)
                    fvec = wa4
                    fnorm = fnorm1
                    niter += 1
                    nreject = 0
                else:
                    params[ifree] = x
                    nreject += 1

                # Check for convergence and for termination, "stringent
                # tolerances"

                status |= convergence_status(
                    actred, prered, ratio, delta, xnorm, gnorm, cfg.ftol, cfg.xtol, finfo
                )

                if niter >= cfg.maxiter:
                    status.add(Status.maxiter)

                if cfg.maxfev > 0 and ycall.nfev >= cfg.maxfev:
                    status.add(Status.maxfev)

                if not len(status) and nreject >= cfg.maxreject:
                    status.add(Status.noprogress)

                # Repeat loop if iteration unsuccessful. "Unsuccessful"
                # means that the ratio of actual to predicted norm
                # reduction is less than 1e-4 and none of the stopping
                # criteria were met.
                if ratio >= ACCEPT_RATIO or len(status):
                    break

            if len(status):
                break

        # End outer loop. fvec and fnorm always describe the committed x.

        params[ifree] = x
        fnorm = fnorm**2
        ndof = m - n

        # Covariance matrix. Nonfree parameters get zeros, and so do
        # directions in which the final Jacobian is rank deficient.

        cv, rank = calc_covariance(fjac[:, :n], pmut, cfg.cov_tol)

        if cfg.scale_covar and ndof > 0:
            cv *= fnorm / ndof

        covar = expand_covariance(cv, ifree, self._npar, dtype)
        singular = np.zeros(self._npar, dtype=bool)
        singular[ifree[pmut[rank:]]] = True

        # Errors in parameters from the diagonal of covar.

        perror = np.zeros(self._npar, dtype)
        d = covar.diagonal()
        wh = where(d >= 0)
        perror[wh] = np.sqrt(d[wh])

        lpeg, upeg = layout.pegged(x)

        logger.debug(
            "finished: status=%s niter=%d nfev=%d chi^2=%g",
            sorted(status),
            niter,
            ycall.nfev,
            fnorm,
        )

        # Export results and we're done.

        soln = self.solclass(self)
        soln.ndof = ndof
        soln.status = status
        soln.niter = niter
        soln.params = params
        soln.covar = covar
        soln.singular = singular
        soln.perror = perror
        soln.fnorm = fnorm
        soln.orignorm = orignorm
        soln.rchisq = fnorm / ndof if ndof > 0 else None
        soln.fvec = fvec
        soln.fjac = lastjac
        soln.nfev = ycall.nfev
        soln.njev = njev
        soln.nfree = n
        soln.npegged = int(lpeg.sum() + upeg.sum())
        soln.nfunc = m
        return soln

    def _manual_jacobian(self, params, dtype=float):
        """Evaluate the finite-difference Jacobian at *params*, returning an array
        with one row per free parameter.

        """
        layout, cfg = self._fixup_check(dtype)

        params = np.atleast_1d(np.asarray(params, dtype))
        finfo = np.finfo(dtype)
        ycall = _ResidualCaller(self._yfunc, cfg.nofinitecheck)
        fvec = np.empty(self._nout, dtype)
        fjac = np.empty((layout.nfree, self._nout), dtype)

        ycall(params, fvec)
        fd_jacobian(ycall, params, fvec, fjac, layout, cfg.epsfcn, finfo)
        return fjac


def ResidualProblem(npar, yobs, errinv, yfunc, config=None, solclass=Solution):
    p = Problem(config=config, solclass=solclass)
    p.set_npar(npar)
    p.set_residual_func(yobs, errinv, yfunc)
    return p


def mpfit(func, params, nout, config=None, parinfo=None, **kwargs):
    """Fit the parameters of *func* by Levenberg-Marquardt least squares.

    Parameters:
    func    - A callable ``func(params, resids)`` that fills the preallocated
              *nout*-element array *resids* with the deviates at *params*.
    params  - The initial parameter vector. If it is a writable Numpy float
              array, it is updated in place with the final parameters;
              it is left untouched if an exception is raised.
    nout    - The number of deviates computed by *func*.
    config  - An optional :class:`lmkit.config.Config`; it is not modified.
    parinfo - An optional list of :class:`lmkit.params.ParamSpec`, one per
              parameter; by default all parameters are free.
    kwargs  - Any additional keywords override configuration options.

    Returns:
    A `Solution`. Inspect its `status` to learn whether the fit converged.

    Raises :exc:`lmkit.ConfigurationError` for invalid setups and
    :exc:`lmkit.EvaluationError` when *func* fails.

    """
    if config is None:
        config = Config()
    elif not isinstance(config, Config):
        raise ConfigurationError("config must be a Config instance; got %r", config)

    config = config.copy().set(**kwargs)
    guess = np.atleast_1d(np.asarray(params, dtype=float))

    prob = Problem(guess.size, nout, func, config=config)
    prob.set_param_specs(parinfo)
    soln = prob.solve(guess)

    if (
        isinstance(params, np.ndarray)
        and params.dtype.kind == "f"
        and params.flags.writeable
        and params.size == soln.params.size
    ):
        params.reshape(-1)[:] = soln.params

    return soln
