# -*- mode: python; coding: utf-8 -*-
# Copyright 2026 the lmkit authors and collaborators.
# Licensed under the MIT License.

import logging

import numpy as np
import pytest
from numpy.testing import assert_array_almost_equal as Taaae
from numpy.testing import assert_array_equal as Taee
from numpy.testing import assert_almost_equal as Taae

from lmkit import ConfigurationError, EvaluationError
from lmkit.config import Config
from lmkit.lmmin import Problem, ResidualProblem, Solution, Status, mpfit
from lmkit.params import Bounded, Fixed, Free

# The canonical linear-fit fixture: y = a + b x with uncertainties of 0.07.

LIN_X = np.asarray(
    [
        -1.7237128e00,
        1.8712276e00,
        -9.6608055e-01,
        -2.8394297e-01,
        1.3416969e00,
        1.3757038e00,
        -1.3703436e00,
        4.2581975e-02,
        -1.4970151e-01,
        8.2065094e-01,
    ]
)
LIN_Y = np.asarray(
    [
        1.9000429e-01,
        6.5807428e00,
        1.4582725e00,
        2.7270851e00,
        5.5969253e00,
        5.6249280e00,
        0.787615,
        3.2599759e00,
        2.9771762e00,
        4.5936475e00,
    ]
)
LIN_YERR = 0.07


def _linear_deviates(params, vec):
    vec[:] = (LIN_Y - (params[0] + params[1] * LIN_X)) / LIN_YERR


def test_linear_fixture():
    p = np.asarray([1.0, 1.0])
    s = mpfit(_linear_deviates, p, 10)

    assert s.succeeded
    Taaae(p, [3.20996572, 1.77095420], decimal=6)
    Taaae(s.params, p)
    Taaae(s.perror, [0.02221018, 0.01893756], decimal=6)
    assert s.nfree == 2
    assert s.nfunc == 10
    assert s.ndof == 8
    assert s.npegged == 0
    assert s.niter >= 1
    assert s.nfev > 3
    assert s.orignorm > s.fnorm
    Taae(s.fnorm, (s.fvec**2).sum())
    Taae(s.rchisq, s.fnorm / 8)
    assert not s.singular.any()

    # The covariance is symmetric with the squared errors on the diagonal.
    Taaae(s.covar, s.covar.T, decimal=12)
    Taaae(np.sqrt(np.diag(s.covar)), s.perror)


def test_linear_residual_problem():
    def model(params, ymodel):
        ymodel[:] = params[0] + params[1] * LIN_X

    p = ResidualProblem(2, LIN_Y, 1.0 / LIN_YERR, model)
    s = p.solve([1.0, 1.0])
    assert s.succeeded
    Taaae(s.params, [3.20996572, 1.77095420], decimal=6)
    Taaae(s.perror, [0.02221018, 0.01893756], decimal=6)

    # Scaled covariance: errors inflated by the reduced chi-squared.
    p.config.scale_covar = True
    s2 = p.solve([1.0, 1.0])
    Taaae(s2.perror, s.perror * np.sqrt(s.fnorm / 8), decimal=8)


def test_residual_problem_error_shape():
    def model(params, ymodel):
        ymodel[:] = params[0] + params[1] * LIN_X

    with pytest.raises(ConfigurationError) as excinfo:
        ResidualProblem(2, LIN_Y, np.ones(3), model)
    assert "3 inverse errors" in str(excinfo.value)

    # Scalars and full-length arrays broadcast.
    ResidualProblem(2, LIN_Y, np.full(LIN_Y.size, 1.0 / LIN_YERR), model)


def test_solve_linear_noiseless():
    x = np.asarray([1, 2, 3])
    y = 2 * x + 1

    from numpy import add, multiply

    def f(pars, ymodel):
        multiply(x, pars[0], ymodel)
        add(ymodel, pars[1], ymodel)

    p = ResidualProblem(2, y, 100, f)
    s = p.solve([2.5, 1.5])
    assert s.succeeded
    Taaae(s.params, [2.0, 1.0], decimal=8)
    assert s.fnorm < 1e-12


def test_fixed_params_untouched():
    xs = np.linspace(-1, 1, 20)
    ys = 1.5 - 0.5 * xs + 0.25 * xs**2

    def f(pars, vec):
        vec[:] = ys - (pars[0] + pars[1] * xs + pars[2] * xs**2)

    guess = np.asarray([0.0, 0.0, 0.123456789])
    s = mpfit(f, guess, 20, parinfo=[Free(), Free(), Fixed()])

    assert s.params[2] == 0.123456789
    assert guess[2] == 0.123456789
    assert s.nfree == 2
    assert s.ndof == 18
    assert s.perror[2] == 0
    Taee(s.covar[2], 0)
    Taee(s.covar[:, 2], 0)
    assert s.fjac.shape == (2, 20)


def test_fixed_via_problem_api():
    xs = np.linspace(0, 1, 10)

    def f(pars, vec):
        vec[:] = 3 - pars[0] - pars[1] * xs

    p = Problem(2, 10, f)
    p.p_value(0, 1.0)
    p.p_value(1, 0.7, fixed=True)
    assert p.get_nfree() == 1
    assert p.get_ndof() == 9

    # The fixed value overrides what's passed to solve().
    s = p.solve([0.0, 5.0])
    assert s.params[1] == 0.7
    Taae(s.params[0], 3 - 0.7 * xs.mean(), decimal=8)

    # Values from p_value are the default starting point.
    s = p.solve()
    assert s.params[1] == 0.7

    # Setting equal limits is the same as fixing.
    p.p_value(1, 0.7)
    assert p.get_nfree() == 2
    p.p_limit(1, 0.5, 0.5)
    assert p.get_nfree() == 1
    assert p.solve().params[1] == 0.5


def test_bounded_params_stay_in_bounds():
    seen = []

    def f(params, vec):
        seen.append(params.copy())
        _linear_deviates(params, vec)

    p = np.asarray([1.0, 1.0])
    s = mpfit(f, p, 10, parinfo=[Bounded(-10, 10), Bounded(None, 1.5)])

    seen = np.asarray(seen)
    assert np.all(seen[:, 1] <= 1.5)
    assert np.all(seen[:, 0] >= -10)
    assert np.all(seen[:, 0] <= 10)

    # The unconstrained slope is 1.77, so the bound is active.
    assert s.params[1] == 1.5
    assert s.npegged == 1
    assert s.succeeded

    # The intercept is still optimal given the pegged slope.
    Taae(s.params[0], (LIN_Y - 1.5 * LIN_X).mean(), decimal=6)


def test_lower_bound():
    def f(params, vec):
        vec[:] = params[0] + 3.0 - np.arange(4)
        vec *= np.exp(params[0] * 0.1)

    s = mpfit(f, [1.0], 4, parinfo=[Bounded(low=0.5)])
    assert s.params[0] >= 0.5
    assert s.params[0] == 0.5
    assert s.npegged == 1


def test_determinism():
    def run():
        p = np.asarray([0.5, -2.0])
        return mpfit(_linear_deviates, p, 10, parinfo=[Bounded(0, 5), Free()])

    s1 = run()
    s2 = run()
    Taee(s1.params, s2.params)
    Taee(s1.covar, s2.covar)
    Taee(s1.fvec, s2.fvec)
    assert s1.nfev == s2.nfev
    assert s1.niter == s2.niter
    assert s1.status == s2.status


def test_evaluation_error_first_call():
    def f(params, vec):
        raise RuntimeError("no can do")

    p = np.asarray([1.0, 2.0])

    with pytest.raises(EvaluationError) as excinfo:
        mpfit(f, p, 3)

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    Taee(p, [1.0, 2.0])


def test_evaluation_error_later():
    calls = [0]

    def f(params, vec):
        calls[0] += 1
        if calls[0] > 4:
            raise ValueError("gave up")
        _linear_deviates(params, vec)

    p = np.asarray([1.0, 1.0])

    with pytest.raises(EvaluationError):
        mpfit(f, p, 10)

    Taee(p, [1.0, 1.0])


def test_nonfinite_residuals():
    def f(params, vec):
        vec[:] = np.nan

    with pytest.raises(EvaluationError):
        mpfit(f, [1.0], 2)

    # Unless the check is disabled; then it's up to the user.
    def g(params, vec):
        vec[:] = params[0] - 1
        vec[1] = np.inf if params[0] > 100 else vec[1]

    s = mpfit(g, [0.0], 2, nofinitecheck=True)
    Taae(s.params[0], 1.0)


def test_configuration_errors():
    calls = []

    def f(params, vec):
        calls.append(1)
        vec[:] = params.sum()

    # Fewer residuals than free parameters.
    with pytest.raises(ConfigurationError):
        mpfit(f, [1.0, 2.0, 3.0], 2)

    # ... which is OK if enough are fixed.
    mpfit(f, [1.0, 2.0, 3.0], 2, parinfo=[Free(), Fixed(), Fixed()])
    del calls[:]

    # No free parameters.
    with pytest.raises(ConfigurationError):
        mpfit(f, [1.0, 2.0], 2, parinfo=[Fixed(), Fixed()])

    # Initial value out of bounds.
    with pytest.raises(ConfigurationError):
        mpfit(f, [1.0, 2.0], 2, parinfo=[Bounded(0, 0.5), Free()])

    # Nonfinite initial value.
    with pytest.raises(ConfigurationError):
        mpfit(f, [np.nan, 2.0], 2)

    # Wrong number of specifications.
    with pytest.raises(ConfigurationError):
        mpfit(f, [1.0, 2.0], 2, parinfo=[Free()])

    # Unknown options and bad values.
    with pytest.raises(ConfigurationError):
        mpfit(f, [1.0, 2.0], 2, max_iter=3)
    with pytest.raises(ConfigurationError):
        mpfit(f, [1.0, 2.0], 2, ftol=-1)

    # Problem setup.
    with pytest.raises(ConfigurationError):
        Problem(0, 1, f)
    with pytest.raises(ConfigurationError):
        Problem(1, 0, f)
    with pytest.raises(ConfigurationError):
        Problem(1, 1, "not callable")
    with pytest.raises(ConfigurationError):
        Problem(2, 2, f).p_value(2, 1.0)
    with pytest.raises(ConfigurationError):
        Problem(2, 2, f).solve([1.0])
    with pytest.raises(ConfigurationError):
        Problem(2).solve([1.0, 2.0])

    assert len(calls) == 0


def _rosenbrock(params, vec):
    vec[0] = 10 * (params[1] - params[0] ** 2)
    vec[1] = 1 - params[0]


def test_maxiter():
    s = mpfit(_rosenbrock, [-1.2, 1.0], 2, maxiter=2)
    assert Status.maxiter in s.status
    assert not s.succeeded
    assert s.niter <= 2

    # The best parameters found are still returned.
    y = np.empty(2)
    _rosenbrock(np.asarray([-1.2, 1.0]), y)
    assert s.fnorm <= (y**2).sum()


def test_maxiter_zero():
    guess = np.asarray([-1.2, 1.0])
    s = mpfit(_rosenbrock, guess, 2, maxiter=0)
    assert s.status == {Status.maxiter}
    Taee(s.params, [-1.2, 1.0])
    assert s.nfev == 3
    assert np.all(np.isfinite(s.covar))
    assert np.all(s.perror > 0)
    Taae(s.fnorm, s.orignorm)


def test_maxfev():
    s = mpfit(_rosenbrock, [-1.2, 1.0], 2, maxfev=5)
    assert Status.maxfev in s.status
    assert s.nfev >= 5
    assert s.nfev <= 5 + 2


def test_noprogress():
    def f(params, vec):
        vec[:] = [1.0, 2.0, 3.0]

    s = mpfit(f, [1.0, 2.0], 3)
    assert s.status == {Status.noprogress}
    assert not s.succeeded
    Taee(s.params, [1.0, 2.0])


def test_rejected_steps_give_up():
    # The finite-difference slope at 1 points downhill, but every real step
    # away from 1 goes uphill.

    def f(params, vec):
        d = params[0] - 1.0
        if abs(d) < 1e-6:
            vec[0] = 1.0 - d
        else:
            vec[0] = 2.0 + abs(d)

    p = np.asarray([1.0])
    s = mpfit(f, p, 1, maxreject=3, xtol=0, ftol=0)
    assert s.status == {Status.noprogress}
    assert not s.succeeded
    Taee(p, [1.0])
    Taee(s.params, [1.0])
    assert s.niter == 1
    assert s.nfev == 5


@pytest.mark.parametrize("scale", [1e-165, 1e160])
def test_extreme_residual_scales(scale):
    # The squared deviates under- or overflow; the fit must not notice.

    def f(params, vec):
        _linear_deviates(params, vec)
        vec *= scale

    p = np.asarray([1.0, 1.0])

    with np.errstate(over="ignore", under="ignore", invalid="ignore"):
        s = mpfit(f, p, 10)

    assert s.succeeded
    assert s.niter > 1
    Taaae(p, [3.20996572, 1.77095420], decimal=6)


def test_collinear_parameters_are_singular():
    def f(params, vec):
        vec[:] = (LIN_Y - (params[0] + params[2] + params[1] * LIN_X)) / LIN_YERR

    s = mpfit(f, [1.0, 1.0, 1.0], 10)
    assert s.succeeded
    Taae(s.params[0] + s.params[2], 3.20996572, decimal=6)
    Taae(s.params[1], 1.77095420, decimal=6)

    # Exactly one of the two offsets is flagged; the other carries the
    # intercept's uncertainty.
    assert not s.singular[1]
    assert s.singular[0] != s.singular[2]
    keep = 2 if s.singular[0] else 0
    drop = 2 - keep
    assert s.perror[drop] == 0
    Taee(s.covar[drop], 0)
    Taaae(s.perror[[keep, 1]], [0.02221018, 0.01893756], decimal=6)

    # A rank tolerance below the finite-difference noise misses it.
    s = mpfit(f, [1.0, 1.0, 1.0], 10, cov_tol=1e-14)
    assert not s.singular.any()


def test_unused_parameter_is_singular():
    def f(params, vec):
        _linear_deviates(params, vec)

    s = mpfit(f, [1.0, 1.0, 7.0], 10)
    assert s.succeeded
    Taaae(s.params[:2], [3.20996572, 1.77095420], decimal=6)
    assert list(s.singular) == [False, False, True]
    Taee(s.covar[2], 0)
    Taee(s.covar[:, 2], 0)
    Taaae(s.perror[:2], [0.02221018, 0.01893756], decimal=6)


def test_user_diag():
    cfg = Config(diag=[1.0, 1.0])
    p = np.asarray([1.0, 1.0])
    s = mpfit(_linear_deviates, p, 10, config=cfg)
    assert s.succeeded
    Taaae(s.params, [3.20996572, 1.77095420], decimal=6)
    assert cfg.diag == [1.0, 1.0]


def test_mpfit_input_handling():
    # Lists are accepted and left alone; the result is in the Solution.
    guess = [1.0, 1.0]
    s = mpfit(_linear_deviates, guess, 10)
    assert guess == [1.0, 1.0]
    Taaae(s.params, [3.20996572, 1.77095420], decimal=6)

    # Integer arrays can't hold the result, so they aren't updated.
    guess = np.asarray([1, 1])
    mpfit(_linear_deviates, guess, 10)
    Taee(guess, [1, 1])

    # The configuration object isn't modified by keyword overrides.
    cfg = Config()
    mpfit(_linear_deviates, [1.0, 1.0], 10, config=cfg, ftol=1e-5)
    assert cfg.ftol == 1e-10


def test_problem_copy():
    p = Problem(2, 10, _linear_deviates)
    p.p_limit(1, upper=1.5)
    p.config.ftol = 1e-6

    p2 = p.copy()
    p2.p_limit(1)
    p2.config.ftol = 1e-3

    assert isinstance(p.get_param_specs()[1], Bounded)
    assert isinstance(p2.get_param_specs()[1], Free)
    assert p.config.ftol == 1e-6

    s1 = p.solve([1.0, 1.0])
    s2 = p2.solve([1.0, 1.0])
    assert s1.params[1] == 1.5
    Taae(s2.params[1], 1.77095420, decimal=6)


def test_solution_class():
    class MySolution(Solution):
        pass

    p = Problem(2, 10, _linear_deviates, solclass=MySolution)
    s = p.solve([1.0, 1.0])
    assert isinstance(s, MySolution)
    assert s.prob is p
    assert "status=" in repr(s)

    with pytest.raises(ConfigurationError):
        Problem(2, 10, _linear_deviates, solclass=dict)


def test_progress_logging(caplog):
    with caplog.at_level(logging.INFO, logger="lmkit.lmmin"):
        mpfit(_linear_deviates, [1.0, 1.0], 10, nprint=1)

    assert any(r.name == "lmkit.lmmin" and "iter 1:" in r.getMessage() for r in caplog.records)


def test_quiet_by_default(caplog):
    with caplog.at_level(logging.INFO, logger="lmkit"):
        mpfit(_linear_deviates, [1.0, 1.0], 10)

    assert not caplog.records


def test_scipy_agrees():
    optimize = pytest.importorskip("scipy.optimize")

    xs = np.linspace(0, 4, 25)
    ys = 2.5 * np.exp(-1.3 * xs) + 0.5 + 0.01 * np.sin(7 * xs)

    def f(params, vec):
        vec[:] = ys - (params[0] * np.exp(-params[1] * xs) + params[2])

    guess = np.asarray([1.0, 1.0, 0.0])
    s = mpfit(f, guess.copy(), xs.size)

    def g(params):
        vec = np.empty(xs.size)
        f(params, vec)
        return vec

    sp_params, sp_cov, info, msg, ier = optimize.leastsq(g, guess, full_output=True)

    assert s.succeeded
    assert ier in (1, 2, 3, 4)
    Taaae(s.params, sp_params, decimal=6)
    Taaae(s.covar, sp_cov, decimal=5)
