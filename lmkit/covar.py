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

"""Covariance of the fitted parameters from the final Q-R factorization."""

__all__ = "calc_covariance expand_covariance".split()

import numpy as np


def calc_covariance(r, pmut, tol=1e-14):
    """Calculate the covariance matrix of the fitted parameters

    Parameters:
    r    - n-by-n matrix, the full lower triangle of R
    pmut - n-vector, defines the permutation of R
    tol  - scalar, relative column scale for determining rank
           deficiency. Default 1e-14.

    Returns:
    cov  - n-by-n matrix, the covariance matrix C
    rank - the numerical rank of R

    Given an n-by-n matrix A, the corresponding covariance matrix
    is

      C = inverse(A^T A)

    This routine is given information relating to the pivoted transposed
    QR factorization of A, which is defined by matrices such that

     A P = R Q

    where P is a permutation matrix, Q has orthogonal rows, and R is a
    lower triangular matrix with diagonal elements of nonincreasing
    magnitude. In particular we take the full lower triangle of R ('r')
    and a vector describing P ('pmut'). The covariance matrix is then

     C = P inverse(R^T R) P^T

    If A is nearly rank-deficient, it may be desirable to compute the
    covariance matrix corresponding to the linearly-independent columns of
    A. We use a tolerance, 'tol', to define the numerical rank of A. If j
    is the largest integer such that |R[j,j]| > tol*|R[0,0]|, then we
    compute the covariance matrix for the first j columns of R. For k > j,
    the corresponding covariance entries (pmut[k]) are set to zero."""

    n = r.shape[1]
    if r.shape[0] < n:
        raise ValueError('"r" must have at least as many rows as columns')
    r = r[:n, :n].copy()

    # Invert R in place, stopping at the numerical rank.

    jrank = -1
    abstol = tol * abs(r[0, 0])

    for i in range(n):
        if abs(r[i, i]) <= abstol:
            break

        r[i, i] **= -1

        for j in range(i):
            temp = r[i, i] * r[i, j]
            r[i, j] = 0.0
            r[i, : j + 1] -= temp * r[j, : j + 1]

        jrank = i

    # Multiply out inverse(R^T R), still lower triangular and permuted.

    for i in range(jrank + 1):
        for j in range(i):
            r[j, : j + 1] += r[i, j] * r[i, : j + 1]
        r[i, : i + 1] *= r[i, i]

    # Undo the pivoting into the upper triangle, zeroing rank-deficient
    # entries. wa keeps the diagonal.

    wa = np.empty(n)

    for i in range(n):
        pi = pmut[i]
        sing = i > jrank

        for j in range(i + 1):
            if sing:
                r[i, j] = 0.0

            pj = pmut[j]
            if pj > pi:
                r[pi, pj] = r[i, j]
            elif pj < pi:
                r[pj, pi] = r[i, j]

        wa[pi] = r[i, i]

    # Mirror into the lower triangle.

    for i in range(n):
        r[i, : i + 1] = r[: i + 1, i]
        r[i, i] = wa[i]

    return r, jrank + 1


def expand_covariance(cov, ifree, npar, dtype=float):
    """Expand the covariance *cov* of the free parameters into an *npar*-by-*npar*
    matrix. Rows and columns of parameters not listed in *ifree* are zero.

    """
    full = np.zeros((npar, npar), dtype)

    for i in range(ifree.size):  # one row at a time
        full[ifree[i], ifree] = cov[i]

    return full
