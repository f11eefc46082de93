from .mlflow_tracker import RunTracker

__all__ = ["RunTracker"]
