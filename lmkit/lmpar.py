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

"""Calculation of the Levenberg-Marquardt parameter (the trust-region step)."""

__all__ = "lm_solve lm_solve_full".split()

import numpy as np

from .enorm import enorm_mpfit_careful
from .qr import qr_factor_full, qrd_solve

# Relative tolerance on enorm(D x) - delta.
DELTA_RTOL = 0.1

# The damping search gives up after this many trial values of par.
MAX_PAR_ITERS = 10


def lm_solve(r, pmut, ddiag, bqt, delta, par0, enorm, finfo):
    """Compute the Levenberg-Marquardt parameter and solution vector.

    Parameters:
    r     - IN/OUT n-by-m matrix, m >= n. On input, the full lower triangle is
            the full lower triangle of R and the strict upper triangle is
            ignored. On output, the strict upper triangle has been
            obliterated. The value of 'm' here is not relevant so long as it
            is at least n.
    pmut  - n-vector, defines permutation of R
    ddiag - n-vector, diagonal elements of D
    bqt   - n-vector, first elements of B Q^T
    delta - positive scalar, specifies scale of enorm(Dx)
    par0  - positive scalar, initial estimate of the LM parameter
    enorm - norm-computing function
    finfo - info about chosen floating-point representation

    Returns:
    par   - positive scalar, final estimate of LM parameter
    x     - n-vector, least-squares solution of LM equation (see below)

    This routine computes the Levenberg-Marquardt parameter 'par' and a LM
    solution vector 'x'. Given an n-by-n matrix A, an n-by-n nonsingular
    diagonal matrix D, an m-vector B, and a positive number delta, the
    problem is to determine values such that 'x' is the least-squares
    solution to

     A x = B
     sqrt(par) * D x = 0

    and either

     (1) par = 0, dxnorm - delta <= 0.1 delta or
     (2) par > 0 and |dxnorm - delta| <= 0.1 delta

    where dxnorm = enorm(D x).

    This routine is not given A, B, or D directly. If we define the
    column-pivoted transposed QR factorization of A such that

     A P = R Q

    where P is a permutation matrix, Q has orthogonal rows, and R is a
    lower triangular matrix with diagonal elements of nonincreasing
    magnitude, this routine is given the full lower triangle of R, a
    vector defining P ('pmut'), and the first n components of B Q^T
    ('bqt'). These values are essentially passed verbatim to qrd_solve().

    Because enorm(D x(par)) decreases monotonically as par grows, the
    zero of enorm(D x) - delta can be bracketed and refined with a
    safeguarded Newton iteration. Usually only a few iterations are
    needed, but no more than 10 are performed: the result is good enough
    for a trust-region method, not exact."""

    dwarf = finfo.tiny
    n = r.shape[0]
    x = np.empty_like(bqt)
    sdiag = np.empty_like(bqt)

    # Gauss-Newton step by back substitution, truncated at the first zero
    # pivot of R.

    nnonsingular = n
    wa1 = bqt.copy()

    for i in range(n):
        if r[i, i] == 0:
            nnonsingular = i
            wa1[i:] = 0
            break

    for j in range(nnonsingular - 1, -1, -1):
        wa1[j] /= r[j, j]
        wa1[:j] -= r[j, :j] * wa1[j]

    x[pmut] = wa1

    # Done if the Gauss-Newton step already fits in the trust region.

    wa2 = ddiag * x
    dxnorm = enorm(wa2, finfo)
    normdiff = dxnorm - delta

    if normdiff <= DELTA_RTOL * delta:
        return 0.0, x

    # Lower bound on par, available only at full rank.

    par_lower = 0.0

    if nnonsingular == n:
        wa1 = ddiag[pmut] * (wa2[pmut] / dxnorm)
        wa1[0] /= r[0, 0]

        for j in range(1, n):
            wa1[j] = (wa1[j] - np.dot(wa1[:j], r[j, :j])) / r[j, j]

        temp = enorm(wa1, finfo)
        par_lower = normdiff / delta / temp**2

    # Upper bound on par from the scaled gradient.

    for j in range(n):
        wa1[j] = np.dot(bqt[: j + 1], r[j, : j + 1] / ddiag[pmut[j]])

    gnorm = enorm(wa1, finfo)
    par_upper = gnorm / delta
    if par_upper == 0:
        par_upper = dwarf / min(delta, 0.1)

    # Safeguarded Newton iteration on par.

    par = min(max(par0, par_lower), par_upper)
    if par == 0:
        par = gnorm / dxnorm

    itercount = 0

    while True:
        itercount += 1

        if par == 0:
            par = max(dwarf, par_upper * 0.001)

        temp = np.sqrt(par)
        wa1 = temp * ddiag
        x = qrd_solve(r[:, :n], pmut, wa1, bqt, sdiag)  # fills sdiag
        wa2 = ddiag * x
        dxnorm = enorm(wa2, finfo)
        olddiff = normdiff
        normdiff = dxnorm - delta

        if abs(normdiff) <= DELTA_RTOL * delta:
            break
        if par_lower == 0 and normdiff <= olddiff and olddiff < 0:
            break  # overshot with no lower bound to push back against
        if itercount == MAX_PAR_ITERS:
            break

        # Newton correction to par.

        wa1 = ddiag[pmut] * (wa2[pmut] / dxnorm)

        for j in range(n - 1):
            wa1[j] /= sdiag[j]
            wa1[j + 1 : n] -= r[j, j + 1 : n] * wa1[j]
        wa1[n - 1] /= sdiag[n - 1]

        par_delta = normdiff / delta / enorm(wa1, finfo) ** 2

        if normdiff > 0:
            par_lower = max(par_lower, par)
        elif normdiff < 0:
            par_upper = min(par_upper, par)

        par = max(par_lower, par + par_delta)

    return par, x


def lm_solve_full(a, b, ddiag, delta, par0, dtype=float):
    """Compute the Levenberg-Marquardt parameter and solution vector.

    Parameters:
    a     - n-by-m matrix, m >= n (only the n-by-n component is used)
    b     - an m-vector
    ddiag - n-vector, diagonal elements of D
    delta - positive scalar, specifies scale of enorm(Dx)
    par0  - positive scalar, initial estimate of the LM parameter

    Returns:
    par    - positive scalar, final estimate of LM parameter
    x      - n-vector, least-squares solution of LM equation
    dxnorm - positive scalar, enorm(D x)
    relnormdiff - scalar, (dxnorm - delta) / delta, maybe abs-ified

    This is lm_solve() starting from an unfactored matrix, via
    qr_factor_full(). See lm_solve() for the definition of the problem."""

    a = np.asarray(a, dtype)
    b = np.asarray(b, dtype)
    ddiag = np.asarray(ddiag, dtype)

    n, m = a.shape
    if m < n:
        raise ValueError('"a" must be at least as tall as it is wide')
    if b.shape != (m,):
        raise ValueError('"b" must be an m-vector')
    if ddiag.shape != (n,):
        raise ValueError('"ddiag" must be an n-vector')

    finfo = np.finfo(dtype)
    q, r, pmut = qr_factor_full(a, dtype)
    bqt = np.dot(b, q.T)[:n]
    par, x = lm_solve(r, pmut, ddiag, bqt, delta, par0, enorm_mpfit_careful, finfo)
    dxnorm = enorm_mpfit_careful(ddiag * x, finfo)
    relnormdiff = (dxnorm - delta) / delta

    if par > 0:
        relnormdiff = abs(relnormdiff)

    return par, x, dxnorm, relnormdiff
