"""Cache-coherent reads and optimistic progress writes."""
from .service import CategoryView, ProgressSync, ToggleOutcome

__all__ = ["CategoryView", "ProgressSync", "ToggleOutcome"]
