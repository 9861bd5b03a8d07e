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

"""Step evaluation and stopping tests for the Levenberg-Marquardt driver.

The quoted descriptions of the termination conditions come from the MINPACK
documentation.

'ftol'
  "Termination occurs when both the actual and predicted relative
  reductions in the sum of squares are at most FTOL. Therefore, FTOL
  measures the relative error desired in the sum of squares."

'xtol'
  "Termination occurs when the relative error between two consecutive
  iterates is at most XTOL. Therefore, XTOL measures the relative
  error desired in the approximate solution."

'gtol'
  "Termination occurs when the cosine of the angle between fvec and
  any column of the jacobian is at most GTOL in absolute
  value. Therefore, GTOL measures the orthogonality desired between
  the function vector and the columns of the jacobian."

'maxiter'
  Number of iterations reached maxiter.

'maxfev'
  Number of residual function evaluations reached maxfev.

'noprogress'
  The Jacobian has no usable direction, or too many consecutive trial
  steps were rejected without any other condition arising.

'feps'
  "ftol is too small. no further reduction in the sum of squares is
  possible."

'xeps'
  "xtol is too small. no further improvement in the approximate
  solution x is possible."

'geps'
  "gtol is too small. fvec is orthogonal to the columns of the jacobian
  to machine precision."

"""

__all__ = """Status actual_reduction convergence_status predicted_reduction
scaled_gradient_norm update_step_bound""".split()

import numpy as np

from .simpleenum import enumeration

# A trial step is accepted if it achieves at least this fraction of the
# predicted reduction.
ACCEPT_RATIO = 1e-4


@enumeration
class Status(object):
    """Termination conditions reported in :attr:`lmkit.lmmin.Solution.status`."""

    ftol = "ftol"
    xtol = "xtol"
    gtol = "gtol"
    maxiter = "maxiter"
    maxfev = "maxfev"
    noprogress = "noprogress"
    feps = "feps"
    xeps = "xeps"
    geps = "geps"

    successes = frozenset((ftol, xtol, gtol))
    failures = frozenset((maxiter, maxfev, noprogress, feps, xeps, geps))


def scaled_gradient_norm(fjac, pmut, qtf, acnorm, fnorm):
    """Compute the largest cosine of the angle between the residual vector and
    any column of the Jacobian.

    *fjac* holds the full lower triangle of R (transposed layout), *qtf* the
    first n elements of Q^T fvec, *acnorm* the unpermuted Jacobian column
    norms. Columns with zero norm are skipped.

    """
    gnorm = 0.0

    if fnorm == 0:
        return gnorm

    for j in range(pmut.size):
        l = pmut[j]
        if acnorm[l] != 0:
            s = np.dot(qtf[: j + 1] / fnorm, fjac[j, : j + 1] / acnorm[l])
            gnorm = max(gnorm, abs(s))

    return gnorm


def actual_reduction(fnorm, fnorm1):
    """Scaled actual reduction in the residual norm, or -1 if the new norm is at
    least ten times the old one.

    """
    if 0.1 * fnorm1 < fnorm:
        return 1 - (fnorm1 / fnorm) ** 2
    return -1.0


def predicted_reduction(fjac, pmut, step, alpha, par, pnorm, fnorm, enorm, finfo):
    """Compute the scaled predicted reduction and scaled directional derivative
    of a step.

    Parameters:
    fjac  - n-by-m array whose full lower triangle holds R.
    pmut  - the permutation vector of the factorization.
    step  - the step actually proposed, in free-parameter order.
    alpha - the fraction of the full LM step that was kept after applying
            parameter limits.
    par   - the LM parameter used to compute the step.
    pnorm - enorm(diag * step).
    fnorm - the current residual norm.

    Returns:
    prered - the predicted reduction in the sum of squares, relative to
             fnorm**2.
    dirder - the scaled directional derivative.

    """
    n = pmut.size
    wa3 = np.zeros(n, dtype=fjac.dtype)

    for j in range(n):
        wa3[: j + 1] += fjac[j, : j + 1] * step[pmut[j]]

    # Remember, alpha is the fraction of the full LM step actually taken.
    temp1 = enorm(alpha * wa3, finfo) / fnorm
    temp2 = np.sqrt(alpha * par) * pnorm / fnorm
    prered = temp1**2 + 2 * temp2**2
    dirder = -(temp1**2 + temp2**2)
    return prered, dirder


def update_step_bound(ratio, actred, dirder, delta, pnorm, par, fnorm, fnorm1):
    """Update the trust-region radius *delta* and the LM parameter *par* after a
    trial step whose outcome is described by the other arguments. Returns the
    new ``(delta, par)``.

    A poor step (ratio <= 0.25) shrinks delta by a factor between 0.1 and 0.5
    and raises par accordingly. A good step (ratio >= 0.75), or any step
    taken with par = 0, sets delta to twice the step norm and halves par.
    Otherwise both are unchanged.

    """
    if ratio <= 0.25:
        if actred >= 0:
            temp = 0.5
        else:
            temp = 0.5 * dirder / (dirder + 0.5 * actred)

        if 0.1 * fnorm1 >= fnorm or temp < 0.1:
            temp = 0.1

        delta = temp * min(delta, 10 * pnorm)
        par /= temp
    elif par == 0 or ratio >= 0.75:
        delta = 2 * pnorm
        par *= 0.5

    return delta, par


def convergence_status(actred, prered, ratio, delta, xnorm, gnorm, ftol, xtol, finfo):
    """Return the set of convergence and "stringent tolerance" conditions met
    after a trial step. 'gtol' is tested separately, before the step is
    computed.

    """
    status = set()

    if abs(actred) <= ftol and prered <= ftol and ratio <= 2:
        status.add(Status.ftol)

    if delta <= xtol * xnorm:
        status.add(Status.xtol)

    if abs(actred) <= finfo.eps and prered <= finfo.eps and ratio <= 2:
        status.add(Status.feps)

    if delta <= finfo.eps * xnorm:
        status.add(Status.xeps)

    if gnorm <= finfo.eps:
        status.add(Status.geps)

    return status
