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

"""Pivoting Q-R factorization and the associated least-squares solve.

== Transposition ==

These routines transpose the matrices of the MINPACK originals. In Fortran an
n-by-m matrix has its columns adjacent in memory, while in Numpy the rows are
the preferred inner axis. By transposing we match the algorithms to the memory
layout as intended in the original Fortran. The main operation of interest is
the Q R factorization, which in the Fortran version involves matrices A, P, Q
and R such that

  A P = Q R or, in Python,
  a[:,pmut] == np.dot(q, r)

where A is an arbitrary m-by-n matrix, P is a permutation matrix, Q is an
orthogonal m-by-m matrix (Q Q^T = Ident), and R is an m-by-n upper
triangular matrix. In the transposed version,

  A P = R Q

where A is n-by-m and R is n-by-m and lower triangular. We refer to this as
the "transposed Q R factorization."

"""

__all__ = "qr_factor_packed qr_factor_full qr_qtf qrd_solve qrd_solve_full".split()

import numpy as np

from .enorm import enorm_mpfit_careful


def qr_factor_packed(a, enorm, finfo):
    """Compute the packed pivoting Q-R factorization of a matrix.

    Parameters:
    a     - An n-by-m matrix, m >= n. This will be *overwritten*
            by this function as described below!
    enorm - A Euclidian-norm-computing function.
    finfo - A Numpy finfo object.

    Returns:
    pmut   - An n-element permutation vector
    rdiag  - An n-element vector of the diagonal of R
    acnorm - An n-element vector of the norms of the rows
             of the input matrix 'a'.

    Computes the transposed Q-R factorization of the matrix 'a', with
    pivoting, in a packed form, in-place. The packed information can be
    used to construct matrices Q and R such that

      A P = R Q or, in Python,
      np.dot(r, q) = a[pmut]

    where q is m-by-m and q q^T = ident and r is n-by-m and is lower
    triangular. The function qr_factor_full can compute these matrices.
    The packed form of output is all that is used by the main LM fitting
    algorithm.

    "Pivoting" refers to permuting the rows of 'a' to have their norms in
    nonincreasing order. The return value 'pmut' maps the unpermuted rows
    of 'a' to permuted rows. That is, the norms of the rows of a[pmut] are
    in nonincreasing order.

    The new value of 'a' comes in two parts. Its strict lower triangular part
    contains the strict lower triangular part of R. (The diagonal of R is
    returned in 'rdiag' and the strict upper trapezoidal part of R is zero.)
    The upper trapezoidal part of 'a' contains Q as factorized into a series
    of Householder transformation vectors. Q can be reconstructed as the
    matrix product of n Householder matrices, where the i'th Householder
    matrix is defined by

    H_i = I - 2 (v^T v) / (v v^T)

    where 'v' is the i'th row of 'a' with its strict lower triangular part
    set to zero.

    A zero entry in 'rdiag' marks a row that became linearly dependent on the
    preceding ones; it carries no gradient information for this
    factorization.

    The form of this transformation and the method of pivoting first
    appeared in Linpack."""

    machep = finfo.eps
    n, m = a.shape

    if m < n:
        raise ValueError('"a" must be at least as tall as it is wide')

    acnorm = np.empty(n, finfo.dtype)
    for j in range(n):
        acnorm[j] = enorm(a[j], finfo)

    rdiag = acnorm.copy()
    wa = acnorm.copy()
    pmut = np.arange(n)

    for i in range(n):
        # Pivot the remaining row with the largest norm into place.

        kmax = rdiag[i:].argmax() + i

        if kmax != i:
            pmut[i], pmut[kmax] = pmut[kmax], pmut[i]

            rdiag[kmax] = rdiag[i]
            wa[kmax] = wa[i]

            temp = a[i].copy()
            a[i] = a[kmax]
            a[kmax] = temp

        # Householder vector zeroing row i beyond its diagonal.

        ainorm = enorm(a[i, i:], finfo)

        if ainorm == 0:
            rdiag[i] = 0
            continue

        if a[i, i] < 0:
            ainorm = -ainorm

        a[i, i:] /= ainorm
        a[i, i] += 1

        # Reflect the later rows and downdate their norms.

        for j in range(i + 1, n):
            a[j, i:] -= a[i, i:] * np.dot(a[i, i:], a[j, i:]) / a[i, i]

            if rdiag[j] != 0:
                rdiag[j] *= np.sqrt(max(1 - (a[j, i] / rdiag[j]) ** 2, 0))

                if 0.05 * (rdiag[j] / wa[j]) ** 2 <= machep:
                    # The downdated norm has lost too much precision;
                    # recompute it from scratch.
                    wa[j] = rdiag[j] = enorm(a[j, i + 1 :], finfo)

        rdiag[i] = -ainorm

    return pmut, rdiag, acnorm


def qr_qtf(a, rdiag, b):
    """Apply the packed orthogonal factor to a vector.

    Parameters:
    a     - The n-by-m output of qr_factor_packed. On return its diagonal
            holds the diagonal of R, so that its full lower triangle is
            the full lower triangle of R.
    rdiag - The n-vector of R's diagonal from qr_factor_packed.
    b     - An m-vector. It is not modified.

    Returns:
    bqt   - The first n elements of B Q^T.

    Q is never formed explicitly; each Householder vector stored in 'a' is
    applied in turn."""

    n = a.shape[0]
    wa = b.copy()
    bqt = np.empty(n, dtype=a.dtype)

    for j in range(n):
        temp = a[j, j]
        if temp != 0:
            aj = a[j, j:]
            wj = wa[j:]
            wa[j:] = wj - aj * np.dot(wj, aj) / temp
        a[j, j] = rdiag[j]
        bqt[j] = wa[j]

    return bqt


def qr_factor_full(a, dtype=float):
    """Compute the QR factorization of a matrix, with pivoting.

    Parameters:
    a     - An n-by-m arraylike, m >= n.
    dtype - (optional) The data type to use for computations.
            Default is float.

    Returns:
    q    - An m-by-m orthogonal matrix (q q^T = ident)
    r    - An n-by-m lower triangular matrix
    pmut - An n-element permutation vector

    The returned values will satisfy the equation

    np.dot(r, q) == a[pmut]

    The outputs are computed indirectly via the function qr_factor_packed,
    so this function is mostly useful for checking it. The permutation
    vector pmut sorts the rows of 'a' by their norms, so that the pmut[i]'th
    row of 'a' has the i'th biggest norm."""

    a = np.array(a, dtype)
    n, m = a.shape
    packed = a.copy()
    pmut, rdiag, acnorm = qr_factor_packed(packed, enorm_mpfit_careful, np.finfo(dtype))

    # R: strict lower triangle from 'packed', diagonal from 'rdiag'.

    r = np.zeros((n, m))

    for i in range(n):
        r[i, :i] = packed[i, :i]
        r[i, i] = rdiag[i]

    # Q: product of the reflections stored in the upper trapezoid of
    # 'packed'.

    q = np.eye(m)
    v = np.empty(m)

    for i in range(n):
        v[:] = packed[i]
        v[:i] = 0

        if not v.any():
            continue  # zero pivot: no reflection was applied

        hhm = np.eye(m) - 2 * np.outer(v, v) / np.dot(v, v)
        q = np.dot(hhm, q)

    return q, r, pmut


def qrd_solve(r, pmut, ddiag, bqt, sdiag):
    """Solve an equation given a QR factored matrix and a diagonal.

    Parameters:
    r     - **input-output** n-by-n array. The full lower triangle contains
            the full lower triangle of R. On output, the strict upper
            triangle contains the transpose of the strict lower triangle of
            S.
    pmut  - n-vector describing the permutation matrix P.
    ddiag - n-vector containing the diagonal of the matrix D in the base
            problem (see below).
    bqt   - n-vector containing the first n elements of B Q^T.
    sdiag - output n-vector. It is filled with the diagonal of S. Should
            be preallocated by the caller; the trust-region search reuses
            it from one call to the next.

    Returns:
    x     - n-vector solving the equation.

    Compute the n-vector x such that

    A^T x = B, D x = 0

    where A is an n-by-m matrix, B is an m-vector, and D is an n-by-n
    diagonal matrix. We are given information about pivoted QR
    factorization of A with permutation, such that

    A P = R Q

    where P is a permutation matrix, Q has orthogonal rows, and R is lower
    triangular with nonincreasing diagonal elements. If the system is
    rank-deficient, these equations are solved as well as possible in a
    least-squares sense. For the purposes of the LM algorithm we also
    compute the triangular n-by-n matrix S such that

    P^T (A^T A + D D) P = S^T S."""

    n = r.shape[0]

    # Only the lower triangle of R is read on input, so the upper triangle
    # is free to hold R^T while S is built. x keeps the diagonal of R.

    for i in range(n):
        r[i, i:] = r[i:, i]

    x = r.diagonal().copy()
    zwork = bqt.copy()

    # Rotate each row of D into R, one pivot at a time.

    for i in range(n):
        li = pmut[i]
        if ddiag[li] == 0:
            sdiag[i] = r[i, i]
            r[i, i] = x[i]
            continue

        sdiag[i:] = 0
        sdiag[i] = ddiag[li]

        # Extra element of Q^T b, past the first n.
        bqtpi = 0.0

        for j in range(i, n):
            if sdiag[j] == 0:
                continue

            if abs(r[j, j]) < abs(sdiag[j]):
                cot = r[j, j] / sdiag[j]
                sin = 0.5 / np.sqrt(0.25 + 0.25 * cot**2)
                cos = sin * cot
            else:
                tan = sdiag[j] / r[j, j]
                cos = 0.5 / np.sqrt(0.25 + 0.25 * tan**2)
                sin = cos * tan

            # Givens rotation of (r_jj, d_j) and of the right-hand side.
            r[j, j] = cos * r[j, j] + sin * sdiag[j]
            temp = cos * zwork[j] + sin * bqtpi
            bqtpi = -sin * zwork[j] + cos * bqtpi
            zwork[j] = temp

            # Carry it along the rest of the row.
            if j + 1 < n:
                temp = cos * r[j, j + 1 :] + sin * sdiag[j + 1 :]
                sdiag[j + 1 :] = -sin * r[j, j + 1 :] + cos * sdiag[j + 1 :]
                r[j, j + 1 :] = temp

        # Keep S's diagonal in sdiag; put R's back.
        sdiag[i] = r[i, i]
        r[i, i] = x[i]

    # Back substitution on S, truncated at its first zero pivot.

    nsing = n

    for i in range(n):
        if sdiag[i] == 0.0:
            nsing = i
            zwork[i:] = 0
            break

    if nsing > 0:
        zwork[nsing - 1] /= sdiag[nsing - 1]
        for i in range(nsing - 2, -1, -1):
            s = np.dot(zwork[i + 1 : nsing], r[i, i + 1 : nsing])
            zwork[i] = (zwork[i] - s) / sdiag[i]

    x[pmut] = zwork
    return x


def qrd_solve_full(a, b, ddiag, dtype=float):
    """Solve the equation A^T x = B, D x = 0.

    Parameters:
    a     - an n-by-m array, m >= n
    b     - an m-vector
    ddiag - an n-vector giving the diagonal of D. (The rest of D is 0.)

    Returns:
    x    - n-vector solving the equation.
    s    - the n-by-n supplementary matrix s.
    pmut - n-element permutation vector defining the permutation matrix P.

    The equations are solved in a least-squares sense if the system is
    rank-deficient. The matrix s is lower triangular and satisfies

    P^T (A A^T + D D) P = S S^T

    This goes through qr_factor_full and exists to check qrd_solve."""

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

    q, r, pmut = qr_factor_full(a, dtype)
    bqt = np.dot(b, q.T)[:n]
    swork = r[:, :n].copy()
    sdiag = np.empty(n, dtype)

    x = qrd_solve(swork, pmut, ddiag, bqt, sdiag)

    # Rebuild s from its transposed strict triangle and sdiag.
    s = swork.T.copy()
    for i in range(n):
        s[i, i:] = 0
        s[i, i] = sdiag[i]

    return x, s, pmut
