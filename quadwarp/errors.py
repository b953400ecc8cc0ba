"""
Failure types raised while solving a quadrilateral-to-quadrilateral transform.

Every error carries the quadrilateral it concerns (``"p"`` for the source,
``"q"`` for the target) and the solver step that failed, when known.
"""


class TransformError(ValueError):
    """Base class for all solver failures."""

    def __init__(self, message: str, quadrilateral: str = None,
                 step: str = None):
        super().__init__(message)
        self.message = message
        self.quadrilateral = quadrilateral
        self.step = step

    def with_context(self, quadrilateral: str = None, step: str = None):
        """Return a copy of this error tagged with solver context."""
        return type(self)(self.message,
                          quadrilateral=quadrilateral or self.quadrilateral,
                          step=step or self.step)

    def __str__(self) -> str:
        context = []
        if self.quadrilateral is not None:
            context.append(f"quadrilateral {self.quadrilateral}")
        if self.step is not None:
            context.append(f"step '{self.step}'")
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class SingularMatrixError(TransformError):
    """A matrix that must be inverted has a (near-)zero determinant."""


class NonConvexInputError(TransformError):
    """A quadrilateral is not strictly convex."""


class DegenerateInputError(TransformError):
    """Too few distinct, finite points to form the required shape."""
