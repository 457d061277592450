class NumericalDivergence(RuntimeError):
    """Integration produced a non-finite state, exceeded its step budget or failed."""


class FitFailure(RuntimeError):
    """Curve fit did not converge or gave a degenerate estimate."""


class InsufficientWindow(FitFailure):
    """Fit window holds too few points for the model."""

    def __init__(self, n_points: int, n_required: int):
        self.n_points = n_points
        self.n_required = n_required
        super().__init__(f"fit window has {n_points} points, need at least {n_required}")
