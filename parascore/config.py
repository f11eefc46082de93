from __future__ import annotations

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Mapping, NamedTuple, Optional

import yaml

from .coordinator import Coordinator, CoordinatorConfig
from .fetcher import DEFAULT_QUERY, SQLFetcher, SQLiteDataSource
from .pool import WorkPool
from .processing import (
    ConstantScoringModel,
    Processor,
    RandomScoringModel,
    ScoringModel,
    TokenCountModel,
    WhitespaceTokenizer,
)
from .sink import BaseResultSink, CsvResultSink, JsonLinesResultSink
from .tracking import RunTracker
from .utils.rate_limiter import FetchThrottle

OUTPUT_FORMATS = ("csv", "jsonl")
MODEL_KINDS = ("random", "constant", "token_count")

ENV_OVERRIDES = {
    "PARASCORE_WORKERS": ("workers", int),
    "PARASCORE_LOG_LEVEL": ("log_level", str),
    "PARASCORE_DATABASE": ("database", str),
    "PARASCORE_OUTPUT": ("output", str),
}


@dataclass
class PipelineConfig:
    database: Optional[str] = None
    query: str = DEFAULT_QUERY
    output: str = "results.csv"
    output_format: str = "csv"
    workers: Optional[int] = None
    reserve_cores: int = 1
    log_level: str = "ERROR"
    log_file: Optional[str] = None
    log_tracebacks: bool = True
    progress_every: int = 100
    fetch_retries: int = 0
    items: Optional[List[Any]] = None
    item_range: Optional[Dict[str, Any]] = None
    model: Dict[str, Any] = field(default_factory=lambda: {"kind": "random"})
    extra: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.output_format not in OUTPUT_FORMATS:
            raise ValueError(
                f"Unknown output_format '{self.output_format}', expected one of {OUTPUT_FORMATS}."
            )
        if self.items is not None and self.item_range is not None:
            raise ValueError("Specify either 'items' or 'item_range', not both.")
        if self.item_range is not None:
            if not isinstance(self.item_range, dict):
                raise ValueError("item_range must be a mapping.")
            if "stop" not in self.item_range:
                raise ValueError("item_range requires 'stop'.")

    def as_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_pipeline_config(path: str | Path) -> PipelineConfig:
    data = yaml.safe_load(Path(path).read_text()) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Config {path} must be a mapping.")
    known = {f.name for f in fields(PipelineConfig)} - {"extra"}
    return PipelineConfig(
        **{k: v for k, v in data.items() if k in known},
        extra={k: v for k, v in data.items() if k not in known},
    )


def apply_env_overrides(
    cfg: PipelineConfig, environ: Optional[Mapping[str, str]] = None
) -> PipelineConfig:
    """Overwrite config values from PARASCORE_* environment variables."""
    environ = os.environ if environ is None else environ
    for var, (attr, cast) in ENV_OVERRIDES.items():
        value = environ.get(var)
        if value:
            setattr(cfg, attr, cast(value))
    return cfg


def build_pool(cfg: PipelineConfig) -> WorkPool:
    if cfg.items is not None:
        return WorkPool(cfg.items)
    if cfg.item_range is not None:
        range_cfg = cfg.item_range
        return WorkPool.from_range(
            start=int(range_cfg.get("start", 0)),
            stop=int(range_cfg["stop"]),
            sample_size=range_cfg.get("sample_size"),
            seed=range_cfg.get("seed"),
        )
    raise ValueError("Config must define 'items' or 'item_range'.")


def build_model(model_cfg: Mapping[str, Any]) -> ScoringModel:
    kind = model_cfg.get("kind", "random")
    if kind == "random":
        return RandomScoringModel(seed=model_cfg.get("seed"))
    if kind == "constant":
        return ConstantScoringModel(model_cfg.get("value", 0.0))
    if kind == "token_count":
        return TokenCountModel(weight=model_cfg.get("weight", 1.0))
    raise ValueError(f"Unknown model kind '{kind}', expected one of {MODEL_KINDS}.")


def build_sink(cfg: PipelineConfig) -> BaseResultSink:
    if cfg.output_format == "jsonl":
        return JsonLinesResultSink(cfg.output)
    return CsvResultSink(cfg.output)


class Pipeline(NamedTuple):
    pool: WorkPool
    coordinator: Coordinator
    sink: BaseResultSink


def build_pipeline(cfg: PipelineConfig, tracker: Optional[RunTracker] = None) -> Pipeline:
    if not cfg.database:
        raise ValueError("Config must define 'database'.")

    fetcher = SQLFetcher(
        SQLiteDataSource(cfg.database),
        query=cfg.query,
        throttle=FetchThrottle(max_retries=cfg.fetch_retries),
    )
    processor = Processor(WhitespaceTokenizer(), build_model(cfg.model))
    sink = build_sink(cfg)
    coordinator = Coordinator(
        fetcher,
        processor,
        sink,
        config=CoordinatorConfig(
            workers=cfg.workers,
            reserve_cores=cfg.reserve_cores,
            log_tracebacks=cfg.log_tracebacks,
            progress_every=cfg.progress_every,
        ),
        tracker=tracker,
    )
    return Pipeline(pool=build_pool(cfg), coordinator=coordinator, sink=sink)
