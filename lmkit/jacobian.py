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

"""Forward-difference approximation of the Jacobian.

The Jacobian is stored *transposed*: row ``i`` of the output holds the
derivatives of every residual with respect to the ``i``'th free parameter.
See :mod:`lmkit.qr` for why.

"""

__all__ = "fd_jacobian".split()

import logging

import numpy as np

logger = logging.getLogger(__name__)


def fd_jacobian(ycall, params, fvec, fjac, layout, epsfcn, finfo):
    """Fill *fjac* with a forward-difference Jacobian.

    Parameters:
    ycall  - A callable ``ycall(params, vec)`` that evaluates the residuals
             at the full parameter vector *params* into *vec*. Any exception
             it raises propagates unchanged.
    params - The full parameter vector at which to evaluate the derivatives.
             It is not modified.
    fvec   - The residuals already evaluated at *params*.
    fjac   - Output array of shape at least (nfree, m). Row ``i`` receives
             d(fvec)/d(params[ifree[i]]).
    layout - The :class:`lmkit.params.ParamLayout` of the problem.
    epsfcn - Estimate of the relative error in the residual function.
    finfo  - A Numpy finfo object.

    Returns:
    h      - The signed steps that were used, one per free parameter.

    Costs one residual evaluation per free parameter. The step is made
    negative for a parameter too close to its upper limit for a positive step
    to remain inside it, so that the residual function is never evaluated
    outside of the limits.

    """
    ifree = layout.ifree
    x = params[ifree]
    h = layout.steps(x, epsfcn, finfo)

    # Reverse sign of step if against the upper limit. If even the
    # negative step would cross the lower limit, step by whichever
    # limit leaves more room.

    wh = np.where(layout.hasulim & (x > layout.ulim - h))
    h[wh] = -h[wh]

    wh = np.where(layout.hasllim & (x + h < layout.llim))[0]
    for i in wh:
        room_up = layout.ulim[i] - x[i]
        room_down = x[i] - layout.llim[i]
        h[i] = room_up if room_up >= room_down else -room_down

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("jacobian steps: %s", h)

    fp = np.empty_like(fvec)
    xp = params.copy()

    for i in range(ifree.size):
        xp[ifree[i]] = x[i] + h[i]
        ycall(xp, fp)
        fjac[i] = (fp - fvec) / h[i]
        xp[ifree[i]] = x[i]

    return h
