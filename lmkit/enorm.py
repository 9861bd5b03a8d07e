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

"""Euclidean norm-calculating functions.

Every norm function takes the vector and a :class:`numpy.finfo` object
describing the working precision. The naive implementation is fast but can be
sensitive to under/overflows. The "mpfit_careful" version is slower but tries
to be more robust; it is the default used by the fitter. The "minpack"
version emulates the three-accumulator MINPACK routine exactly.

"""

__all__ = "enorm_fast enorm_mpfit_careful enorm_minpack".split()

import numpy as np

# sqrt(1.5 * tiny) * 10 and sqrt(max) * 0.1 for IEEE doubles. These are the
# CMPFIT values; the Fortran originals were tuned for older hardware.
RDWARF = 1.8269129289596699e-153
RGIANT = 1.3407807799935083e153


def enorm_fast(v, finfo):
    return np.sqrt(np.dot(v, v))


def enorm_mpfit_careful(v, finfo):
    if v.size == 0:
        return finfo.dtype.type(0.0)

    mx = max(abs(v.max()), abs(v.min()))

    if mx == 0:
        return v[0] * 0.0
    if not np.isfinite(mx):
        raise ValueError("tried to compute norm of a vector with nonfinite values")
    # The sum of squares overflows once mx passes sqrt(max / size) and
    # loses precision once mx drops below sqrt(tiny).
    if mx > np.sqrt(finfo.max / v.size) or mx < np.sqrt(finfo.tiny):
        return mx * np.sqrt(np.dot(v / mx, v / mx))

    return np.sqrt(np.dot(v, v))


def enorm_minpack(v, finfo):
    agiant = RGIANT / max(v.size, 1)
    s1 = s2 = s3 = x1max = x3max = 0.0

    for xabs in np.abs(v):
        if xabs > RDWARF and xabs < agiant:
            s2 += xabs**2
        elif xabs <= RDWARF:
            if xabs <= x3max:
                if xabs != 0.0:
                    s3 += (xabs / x3max) ** 2
            else:
                s3 = 1 + s3 * (x3max / xabs) ** 2
                x3max = xabs
        else:
            if xabs <= x1max:
                s1 += (xabs / x1max) ** 2
            else:
                s1 = 1.0 + s1 * (x1max / xabs) ** 2
                x1max = xabs

    if s1 != 0.0:
        return x1max * np.sqrt(s1 + (s2 / x1max) / x1max)

    if s2 == 0.0:
        return x3max * np.sqrt(s3)

    if s2 >= x3max:
        return np.sqrt(s2 * (1 + (x3max / s2) * (x3max * s3)))

    return np.sqrt(x3max * ((s2 / x3max) + (x3max * s3)))
