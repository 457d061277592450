"""
Curve normalizer.

A decay model is fitted to the early (pre-stimulus) part of a response window
and extrapolated over the whole window; the trace is then expressed as a ratio
to that extrapolation, so an unperturbed trace sits at 1.0. When no model can
be fitted the trace is divided by the mean of the early window instead.
"""
import logging
import warnings
from dataclasses import dataclass
from typing import Optional

import numpy as np
from scipy.optimize import curve_fit, OptimizeWarning

from errors import FitFailure, InsufficientWindow

logger = logging.getLogger(__name__)

MODELS = ("decay", "asymptotic", "none")


def decay(X, Y0, k):
    return Y0*np.exp(-k*X)

def asymptotic(X, Y0, k, Yf):
    return (Y0 - Yf)*np.exp(-k*X) + Yf


@dataclass(frozen=True)
class FitResult:
    model: str
    Y0: Optional[float] = None
    k: Optional[float] = None
    Yf: Optional[float] = None
    reason: str = ""

    def __post_init__(self):
        if self.model not in MODELS:
            raise ValueError(f"unknown fit model {self.model!r}")

    @property
    def ok(self) -> bool:
        return self.model != "none"

    def evaluate(self, X):
        X = np.asarray(X, dtype=float)
        if self.model == "decay":
            return decay(X, self.Y0, self.k)
        if self.model == "asymptotic":
            return asymptotic(X, self.Y0, self.k, self.Yf)
        raise ValueError("a failed fit has no curve to evaluate")


def _fit(f, X, Y, p0):
    X = np.asarray(X, dtype=float); Y = np.asarray(Y, dtype=float)
    need = len(p0) + 1
    if X.size < need:
        raise InsufficientWindow(X.size, need)
    if np.ptp(Y) == 0.0:
        raise FitFailure("window has zero variance; decay rate is not identifiable")
    with warnings.catch_warnings():
        # covariance that cannot be estimated is reported through pcov
        warnings.simplefilter("ignore", OptimizeWarning)
        try:
            popt, pcov = curve_fit(f, X, Y, p0=p0, maxfev=5000)
        except RuntimeError as e:
            raise FitFailure(str(e)) from e
    if not np.all(np.isfinite(popt)) or not np.all(np.isfinite(pcov)):
        raise FitFailure(f"degenerate estimate {popt}")
    return popt


def fit_decay(X, Y):
    """Least squares fit of Y = Y0*exp(-k*X); returns (Y0, k)."""
    Y = np.asarray(Y, dtype=float)
    p0 = (Y[0] if Y.size else 1.0, 0.01)
    return tuple(float(v) for v in _fit(decay, X, Y, p0))

def fit_asymptotic(X, Y):
    """Least squares fit of Y = (Y0-Yf)*exp(-k*X)+Yf; returns (Y0, k, Yf)."""
    Y = np.asarray(Y, dtype=float)
    p0 = (Y[0], 0.1, Y[-1]) if Y.size else (1.0, 0.1, 0.0)
    return tuple(float(v) for v in _fit(asymptotic, X, Y, p0))


def fit_curve(X, Y, allow_asymptotic=False) -> FitResult:
    """Try the simple decay, then (optionally) the asymptotic model."""
    try:
        Y0, k = fit_decay(X, Y)
        return FitResult("decay", Y0=Y0, k=k)
    except FitFailure as e:
        reason = f"decay: {e}"
    if allow_asymptotic:
        try:
            Y0, k, Yf = fit_asymptotic(X, Y)
            return FitResult("asymptotic", Y0=Y0, k=k, Yf=Yf)
        except FitFailure as e:
            reason += f"; asymptotic: {e}"
    return FitResult("none", reason=reason)


def extract_window(T, Y, start, length):
    """Samples with start <= T <= start+length, time re-indexed to begin at 0."""
    T = np.asarray(T, dtype=float); Y = np.asarray(Y, dtype=float)
    # half a grid step of slack against round-off in T
    eps = 0.5*np.min(np.diff(T)) if T.size > 1 else 0.0
    mask = (T >= start - eps) & (T <= start + length + eps)
    if not np.any(mask):
        raise ValueError(f"no samples in window [{start}, {start + length}]")
    Tw = T[mask]
    return Tw - Tw[0], Y[mask]


def normalize(X, Y, fit_window, allow_asymptotic=False):
    """Ratio of Y to a curve fitted on X <= X[0] + fit_window.

    Returns (Y3, Y2, fit): normalized trace, reference curve, fit result.
    """
    X = np.asarray(X, dtype=float); Y = np.asarray(Y, dtype=float)
    if X.size == 0 or X.shape != Y.shape:
        raise ValueError("normalize needs matching, non-empty X and Y")
    early = X <= X[0] + fit_window
    Xw, Yw = X[early] - X[0], Y[early]

    fit = fit_curve(Xw, Yw, allow_asymptotic=allow_asymptotic)
    if fit.ok:
        with np.errstate(over="ignore", invalid="ignore"):
            Y2 = fit.evaluate(X - X[0])
        if not np.all(np.isfinite(Y2)) or np.any(Y2 == 0.0):
            fit = FitResult("none", reason=f"{fit.model} fit (Y0={fit.Y0}, k={fit.k}) "
                                           "does not extrapolate to a finite, non-zero curve")
    if not fit.ok:
        logger.debug("flat normalization: %s", fit.reason)
        baseline = float(np.mean(Yw))
        if baseline == 0.0:
            raise ValueError("cannot normalize: fit window mean is zero")
        Y2 = np.full_like(Y, baseline)
    return Y/Y2, Y2, fit
