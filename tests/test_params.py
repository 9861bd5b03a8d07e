# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the lmkit authors and collaborators.
# Licensed under the MIT License.

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal as Taaae
from numpy.testing import assert_almost_equal as Taae

from lmkit import ConfigurationError
from lmkit.params import Bounded, Fixed, Free, ParamLayout, normalize_specs

finfo = np.finfo(float)


def test_spec_validation():
    with pytest.raises(ConfigurationError):
        Bounded(1.0, 1.0)
    with pytest.raises(ConfigurationError):
        Bounded(2.0, 1.0)
    with pytest.raises(ConfigurationError):
        Bounded(np.nan, 1.0)
    with pytest.raises(ConfigurationError):
        Free(step=0.0)
    with pytest.raises(ConfigurationError):
        Free(relstep=-1.0)
    with pytest.raises(ConfigurationError):
        Fixed(step=np.inf)
    with pytest.raises(ConfigurationError):
        Free(step=1.0, relstep=0.1)

    # Configuration errors are also ValueErrors.
    with pytest.raises(ValueError):
        Bounded(3.0, -3.0)

    b = Bounded(low=0)
    assert b.lower == 0
    assert b.upper == np.inf
    assert Bounded(0, 1) == Bounded(0.0, 1.0)
    assert Bounded(0, 1) != Bounded(0, 2)
    assert Free() != Fixed()


def test_normalize_specs():
    specs = normalize_specs(None, 3)
    assert specs == [Free(), Free(), Free()]

    with pytest.raises(ConfigurationError):
        normalize_specs([Free()], 2)
    with pytest.raises(ConfigurationError):
        normalize_specs([Free(), (0, 1)], 2)


def test_layout():
    layout = ParamLayout([Free(), Fixed(), Bounded(0, None), Bounded(None, 5, step=0.5)])
    assert layout.npar == 4
    assert list(layout.ifree) == [0, 2, 3]
    assert layout.nfree == 3
    assert layout.anylimits
    assert list(layout.hasllim) == [False, True, False]
    assert list(layout.hasulim) == [False, False, True]
    Taaae(layout.step, [0, 0, 0.5])

    layout.check_values(np.asarray([-100.0, 7, 0, 5]))

    with pytest.raises(ConfigurationError):
        layout.check_values(np.asarray([0.0, 0, -1e-9, 0]))
    with pytest.raises(ConfigurationError):
        layout.check_values(np.asarray([0.0, 0, 0, 6]))

    Taaae(layout.clamp(np.asarray([-3.0, -3, 9])), [-3, 0, 5])

    lpeg, upeg = layout.pegged(np.asarray([0.0, 0, 5]))
    assert list(lpeg) == [False, True, False]
    assert list(upeg) == [False, False, True]

    assert not ParamLayout([Free(), Free()]).anylimits


def test_steps():
    layout = ParamLayout([Free(), Free(step=0.25), Free(relstep=0.1), Free()])
    x = np.asarray([2.0, 3, -4, 0])
    h = layout.steps(x, 0.0, finfo)
    eps = np.sqrt(finfo.eps)

    Taae(h[0], 2 * eps)
    Taae(h[1], 0.25)
    Taae(h[2], 0.4)
    Taae(h[3], eps)

    # A larger epsfcn means larger steps.
    h = layout.steps(x, 1e-6, finfo)
    Taae(h[0], 2e-3)


def test_restrict_step_unbounded():
    layout = ParamLayout([Free(), Free()])
    x = np.asarray([1.0, 2.0])
    step, alpha, newx = layout.restrict_step(x, np.asarray([10.0, -10.0]), finfo)
    assert alpha == 1
    Taaae(newx, [11, -8])


def test_restrict_step_bounded():
    layout = ParamLayout([Bounded(0, 1), Free()])
    x = np.asarray([0.5, 0.0])

    # The whole step is scaled so the first component lands on its limit.
    step, alpha, newx = layout.restrict_step(x, np.asarray([1.0, 4.0]), finfo)
    Taae(alpha, 0.5)
    assert newx[0] == 1.0
    Taae(newx[1], 2.0)

    # A pegged parameter can't move out of bounds, but the others can.
    x = np.asarray([1.0, 0.0])
    step, alpha, newx = layout.restrict_step(x, np.asarray([1.0, 4.0]), finfo)
    assert alpha == 1
    assert step[0] == 0
    assert newx[0] == 1.0
    Taae(newx[1], 4.0)

    # But it can move back inside.
    step, alpha, newx = layout.restrict_step(x, np.asarray([-0.25, 4.0]), finfo)
    Taae(newx[0], 0.75)

    # Values a hair inside a limit are snapped onto it.
    x = np.asarray([0.5, 0.0])
    step, alpha, newx = layout.restrict_step(x, np.asarray([-0.5 + 1e-16, 0.0]), finfo)
    assert newx[0] == 0.0

    layout = ParamLayout([Bounded(-2, 0)])
    step, alpha, newx = layout.restrict_step(np.asarray([-1.0]), np.asarray([1.0 - 1e-16]), finfo)
    assert newx[0] == 0.0
