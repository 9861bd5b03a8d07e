# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the lmkit authors and collaborators.
# Licensed under the MIT License.

"""Per-parameter constraints for the least-squares fitter.

Each parameter of a problem is described by one of three specifications:

:class:`Free`
  The parameter is varied without restriction.
:class:`Fixed`
  The parameter keeps its initial value and is not part of the fit.
:class:`Bounded`
  The parameter is varied inside ``[low, high]``; either limit may be
  omitted to get a one-sided bound.

Any specification may carry an override for the finite-difference step used
when computing the Jacobian: *step* gives an absolute step, *relstep* a step
relative to the current parameter value.

The fitter never works with the specifications directly. Instead it builds a
:class:`ParamLayout`, which collects the index list of free parameters and
their bounds and step overrides as arrays over the free subspace.

"""

__all__ = "Bounded Fixed Free ParamLayout ParamSpec normalize_specs".split()

import numpy as np

from . import ConfigurationError


class ParamSpec(object):
    """Base class of the parameter specifications."""

    fixed = False

    def __init__(self, step=None, relstep=None):
        if step is not None and relstep is not None:
            raise ConfigurationError("only one of step and relstep may be given")

        for name, val in (("step", step), ("relstep", relstep)):
            if val is None:
                continue
            val = float(val)
            if not np.isfinite(val) or val <= 0:
                raise ConfigurationError("%s must be positive and finite; got %r", name, val)

        self.step = None if step is None else float(step)
        self.relstep = None if relstep is None else float(relstep)

    @property
    def lower(self):
        return -np.inf

    @property
    def upper(self):
        return np.inf

    def _step_repr(self):
        if self.step is not None:
            return "step=%r" % self.step
        if self.relstep is not None:
            return "relstep=%r" % self.relstep
        return ""

    def __repr__(self):
        return "%s(%s)" % (self.__class__.__name__, self._step_repr())

    def __eq__(self, other):
        return (
            self.__class__ is other.__class__
            and self.lower == other.lower
            and self.upper == other.upper
            and self.step == other.step
            and self.relstep == other.relstep
        )

    def __ne__(self, other):
        return not self == other

    __hash__ = None


class Free(ParamSpec):
    """A parameter that is varied without limits."""


class Fixed(ParamSpec):
    """A parameter held at its initial value."""

    fixed = True


class Bounded(ParamSpec):
    """A parameter restricted to ``[low, high]``. Pass None for a missing limit."""

    def __init__(self, low=None, high=None, step=None, relstep=None):
        super(Bounded, self).__init__(step=step, relstep=relstep)

        if low is not None:
            low = float(low)
            if np.isnan(low):
                raise ConfigurationError("lower limit may not be NaN")
        if high is not None:
            high = float(high)
            if np.isnan(high):
                raise ConfigurationError("upper limit may not be NaN")
        if low is not None and high is not None and not low < high:
            raise ConfigurationError(
                "lower limit %r must be strictly less than upper limit %r", low, high
            )

        self.low = low
        self.high = high

    @property
    def lower(self):
        return -np.inf if self.low is None else self.low

    @property
    def upper(self):
        return np.inf if self.high is None else self.high

    def __repr__(self):
        bits = ["low=%r" % self.low, "high=%r" % self.high]
        s = self._step_repr()
        if s:
            bits.append(s)
        return "Bounded(%s)" % ", ".join(bits)


def normalize_specs(specs, npar):
    """Return a list of *npar* :class:`ParamSpec` instances.

    *specs* may be None, meaning all parameters are free. Raises
    :exc:`~lmkit.ConfigurationError` if the number of entries is wrong or an
    entry is not a specification.

    """
    if specs is None:
        return [Free() for _ in range(npar)]

    specs = list(specs)

    if len(specs) != npar:
        raise ConfigurationError(
            "expected %d parameter specifications, got %d", npar, len(specs)
        )

    for i, s in enumerate(specs):
        if not isinstance(s, ParamSpec):
            raise ConfigurationError(
                "parameter #%d specification must be Free, Fixed, or Bounded; got %r",
                i,
                s,
            )

    return specs


class ParamLayout(object):
    """The free-parameter view of a list of parameter specifications.

    Attributes:

    npar
      The total number of parameters.
    ifree
      Integer array mapping free-parameter positions to full-vector positions.
    nfree
      The number of free parameters.
    llim, ulim
      Lower and upper limits of the free parameters (infinite if absent).
    hasllim, hasulim
      Boolean arrays telling which free parameters have each limit.
    anylimits
      Whether any free parameter is bounded at all.
    step, relstep
      Absolute and relative step overrides of the free parameters; zero
      where unspecified.

    """

    def __init__(self, specs):
        specs = list(specs)
        self.npar = len(specs)
        self.ifree = np.asarray([i for i, s in enumerate(specs) if not s.fixed], dtype=int)
        self.nfree = self.ifree.size

        free = [specs[i] for i in self.ifree]
        self.llim = np.asarray([s.lower for s in free], dtype=float)
        self.ulim = np.asarray([s.upper for s in free], dtype=float)
        self.hasllim = np.isfinite(self.llim)
        self.hasulim = np.isfinite(self.ulim)
        self.anylimits = bool(self.hasllim.any() or self.hasulim.any())
        self.step = np.asarray([s.step or 0.0 for s in free], dtype=float)
        self.relstep = np.asarray([s.relstep or 0.0 for s in free], dtype=float)

    def check_values(self, params):
        """Raise :exc:`~lmkit.ConfigurationError` if any free parameter in the
        full vector *params* lies outside its limits.

        """
        x = params[self.ifree]

        for j in range(self.nfree):
            if x[j] < self.llim[j]:
                raise ConfigurationError(
                    "parameter #%d value %r below its lower limit %r",
                    self.ifree[j],
                    x[j],
                    self.llim[j],
                )
            if x[j] > self.ulim[j]:
                raise ConfigurationError(
                    "parameter #%d value %r above its upper limit %r",
                    self.ifree[j],
                    x[j],
                    self.ulim[j],
                )

    def steps(self, x, epsfcn, finfo):
        """Compute unsigned finite-difference steps for the free-parameter vector
        *x*.

        The default step is ``sqrt(max(epsfcn, eps)) * |x|``. An absolute step
        override replaces it; a relative override gives ``|relstep * x|``. Any
        step that comes out as zero is replaced by ``sqrt(max(epsfcn, eps))``.

        """
        eps = np.sqrt(max(epsfcn, finfo.eps))
        h = eps * np.abs(x)

        wh = np.where(self.step > 0)
        h[wh] = self.step[wh]
        wh = np.where(self.relstep > 0)
        h[wh] = np.abs(self.relstep[wh] * x[wh])

        h[np.where(h == 0)] = eps
        return h

    def clamp(self, x):
        """Project the free-parameter vector *x* into the limits, returning a new
        array.

        """
        return np.clip(x, self.llim, self.ulim)

    def restrict_step(self, x, step, finfo):
        """Keep the trial step *step* from the free-parameter vector *x* inside the
        limits.

        Returns:
        step  - The step, with components that push a pegged parameter out of
                bounds zeroed and the remainder scaled by alpha.
        alpha - The fraction of the proposed step kept, 0 < alpha <= 1.
        newx  - The new parameter vector; never outside the limits.

        Parameters that land within a relative epsilon of a limit are snapped
        onto it, so that they are treated as pegged on the next iteration.

        """
        step = step.copy()
        alpha = 1.0

        if not self.anylimits:
            return step, alpha, x + step

        eps = finfo.eps
        lpeg, upeg = self.pegged(x)
        step[lpeg & (step < 0)] = 0
        step[upeg & (step > 0)] = 0

        dstep = np.abs(step) > eps

        wh = np.where(dstep & self.hasllim & (x + step < self.llim))
        if wh[0].size:
            alpha = min(alpha, ((self.llim[wh] - x[wh]) / step[wh]).min())

        wh = np.where(dstep & self.hasulim & (x + step > self.ulim))
        if wh[0].size:
            alpha = min(alpha, ((self.ulim[wh] - x[wh]) / step[wh]).min())

        step *= alpha
        newx = x + step

        # Snap values sitting right at a limit onto it.

        with np.errstate(invalid="ignore"):
            sgnu = np.where(self.ulim >= 0, 1.0, -1.0)
            sgnl = np.where(self.llim >= 0, 1.0, -1.0)
            ulim1 = self.ulim * (1 - sgnu * eps) - np.where(self.ulim == 0, eps, 0.0)
            llim1 = self.llim * (1 + sgnl * eps) + np.where(self.llim == 0, eps, 0.0)

        wh = np.where(self.hasulim & (newx >= ulim1))
        newx[wh] = self.ulim[wh]
        wh = np.where(self.hasllim & (newx <= llim1))
        newx[wh] = self.llim[wh]

        return step, alpha, self.clamp(newx)

    def pegged(self, x):
        """Return boolean arrays marking free parameters sitting exactly on their
        lower and upper limits.

        """
        return (self.hasllim & (x == self.llim), self.hasulim & (x == self.ulim))
