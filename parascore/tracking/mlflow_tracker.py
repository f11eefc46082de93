from __future__ import annotations

import os
import uuid
from typing import Any, Dict, Optional


class RunTracker:
    """
    Optional MLflow tracker for pipeline runs. Enabled by setting
    PARASCORE_ENABLE_MLFLOW=1 and installing the mlflow package.
    """

    def __init__(self, enabled: Optional[bool] = None) -> None:
        if enabled is None:
            enabled = os.getenv("PARASCORE_ENABLE_MLFLOW", "0").lower() in (
                "1",
                "true",
                "yes",
            )
        self._enabled = enabled
        self._mlflow = None
        self._run_name = os.getenv("PARASCORE_MLFLOW_RUN_NAME", "parascore")
        if self._enabled:
            try:
                import mlflow  # type: ignore

                self._mlflow = mlflow
            except ImportError:
                self._enabled = False
                self._mlflow = None

    @property
    def enabled(self) -> bool:
        return self._enabled

    def log_config(self, config: Dict[str, Any]) -> None:
        if not (self._enabled and self._mlflow):
            return
        self._log_dict(config, f"config/{uuid.uuid4().hex}.json")

    def log_run_summary(self, summary: Dict[str, Any]) -> None:
        if not (self._enabled and self._mlflow):
            return
        self._log_dict(summary, f"runs/summary_{uuid.uuid4().hex}.json")

    def _log_dict(self, data: Dict[str, Any], artifact_path: str) -> None:
        assert self._mlflow is not None

        def action() -> None:
            self._mlflow.log_dict(data, artifact_path)

        active = self._mlflow.active_run()
        if active:
            action()
            return

        with self._mlflow.start_run(run_name=self._run_name):
            action()
