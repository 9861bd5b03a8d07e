# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the lmkit authors and collaborators.
# Licensed under the MIT License.

"""The :mod:`lmkit.simpleenum` module contains a single decorator function for
creating "enumerations", by which we mean a group of named, un-modifiable
values. :mod:`lmkit.lmmin` uses it for its termination codes::

  from lmkit.simpleenum import enumeration

  @enumeration
  class Status(object):
    ftol = "ftol"
    maxiter = "maxiter"
    successes = frozenset((ftol,))

  if Status.ftol in solution.status:
    ...

Populate enumerations with immutable values only (:class:`str`,
:class:`frozenset`, :class:`tuple`); a mutable member could still be
modified in place.

"""

__all__ = "enumeration".split()


def enumeration(cls):
    """A very simple decorator for creating enumerations. Unlike
    :class:`enum.Enum`, this just gives a way to use a class declaration to
    create an immutable object containing only the values specified in the
    class. Iterating over the result yields the names of its members.

    """
    name = cls.__name__

    def __str__(self):
        return "<enumeration holder %s>" % name

    def __iter__(self):
        return iter(sorted(k for k in dir(cls) if not k.startswith("_")))

    def getattr_error(self, attr):
        raise AttributeError("enumeration %s does not contain attribute %s" % (name, attr))

    def modattr_error(self, *args, **kwargs):
        raise AttributeError("modification of %s enumeration not allowed" % name)

    clsdict = {
        "__doc__": cls.__doc__,
        "__slots__": (),
        "__str__": __str__,
        "__repr__": __str__,
        "__iter__": __iter__,
        "__getattr__": getattr_error,
        "__setattr__": modattr_error,
        "__delattr__": modattr_error,
    }

    for key in dir(cls):
        if not key.startswith("_"):
            clsdict[key] = getattr(cls, key)

    enumcls = type(name, (object,), clsdict)
    return enumcls()
