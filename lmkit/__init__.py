# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the lmkit authors and collaborators.
# Licensed under the MIT License.

"""Levenberg-Marquardt least-squares fitting with finite-difference Jacobians.

The fitting machinery lives in :mod:`lmkit.lmmin`. This module only holds the
exception hierarchy and the small :class:`Holder` helper that the rest of the
package builds on.

"""

__all__ = "ConfigurationError EvaluationError Holder LMError".split()

__version__ = "0.1.0"  # also edit ../setup.py, ../docs/source/conf.py!


class LMError(Exception):
    """A generic base class for exceptions.

    All custom exceptions raised by :mod:`lmkit` modules are subclasses of
    this class.

    The constructor automatically applies old-fashioned ``printf``-like
    (``%``-based) string formatting if more than one argument is given::

      LMError('my format string says %r, %d', myobj, 12345)
      # has text content equal to:
      'my format string says %r, %d' % (myobj, 12345)

    If only a single argument is given, the exception text is its
    stringification without applying ``printf``-style formatting.

    """

    def __init__(self, fmt, *args):
        if not len(args):
            self.args = (str(fmt),)
        else:
            self.args = (str(fmt) % args,)

    def __str__(self):
        return self.args[0]

    def __repr__(self):
        return "%s(%r)" % (self.__class__.__name__, self.args[0])


class ConfigurationError(LMError, ValueError):
    """The problem setup is invalid: inverted bounds, no free parameters, fewer
    residuals than free parameters, bad tolerances, and so on. Always raised
    before the residual function is first evaluated.

    """


class EvaluationError(LMError):
    """The residual function could not be evaluated.

    The underlying exception, if any, is available as ``__cause__``. The
    parameter vector at which the failure happened is stored in
    :attr:`params`.

    """

    params = None

    def __init__(self, fmt, *args, **kwargs):
        self.params = kwargs.pop("params", None)
        super(EvaluationError, self).__init__(fmt, *args)


class Holder(object):
    """Create a new :class:`Holder`. Any keyword arguments will be assigned as
    properties on the object itself, for instance, ``o = Holder(foo=1)``
    yields an object such that ``o.foo`` is 1.

    """

    def __init__(self, **kwargs):
        self.set(**kwargs)

    def __str__(self):
        d = self.__dict__
        s = sorted(d.keys())
        return "{" + ", ".join("%s=%s" % (k, d[k]) for k in s) + "}"

    def __repr__(self):
        d = self.__dict__
        s = sorted(d.keys())
        return "%s(%s)" % (
            self.__class__.__name__,
            ", ".join("%s=%r" % (k, d[k]) for k in s),
        )

    def __iter__(self):
        return iter(self.__dict__.items())

    def __contains__(self, key):
        return key in self.__dict__

    def set(self, **kwargs):
        """For each keyword argument, sets an attribute on this :class:`Holder` to its
        value.

        Returns *self*.

        """
        self.__dict__.update(kwargs)
        return self

    def get(self, name, defval=None):
        """Get an attribute on this :class:`Holder`.

        Equivalent to ``getattr(self, name, defval)``.

        """
        return getattr(self, name, defval)

    def copy(self):
        """Return a shallow copy of this object."""
        new = self.__class__()
        new.__dict__ = dict(self.__dict__)
        return new

    def to_dict(self):
        """Return a copy of this object converted to a :class:`dict`."""
        return self.__dict__.copy()

    def to_pretty(self, format="str"):
        """Return a string with a prettified version of this object's contents.

        The format is a multiline string where each line is of the form ``key
        = value``. If the *format* argument is equal to ``"str"``, each
        ``value`` is the stringification of the value; if it is ``"repr"``, it
        is its :func:`repr`.

        """
        if format == "str":
            template = "%-*s = %s"
        elif format == "repr":
            template = "%-*s = %r"
        else:
            raise ValueError('unrecognized value for "format": %r' % format)

        d = self.to_dict()
        maxlen = 0

        for k in d.keys():
            maxlen = max(maxlen, len(k))

        return "\n".join(template % (maxlen, k, d[k]) for k in sorted(d.keys()))
