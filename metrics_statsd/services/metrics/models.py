"""Pydantic V2 models for the metrics API responses.

These models serialize the registry listing and the StatsD reporter status
for the REST endpoints under /api/v1/metrics.
"""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class MetricInfoModel(BaseModel):
    """One registered metric and its kind"""
    model_config = ConfigDict(from_attributes=True)

    group: str
    type: str
    name: str
    scope: Optional[str] = None
    kind: str


class MetricsListModel(BaseModel):
    """Every metric currently held by the registry"""
    model_config = ConfigDict(from_attributes=True)

    metrics: List[MetricInfoModel]
    total: int


class CycleReportModel(BaseModel):
    """Outcome of a single StatsD export cycle"""
    model_config = ConfigDict(from_attributes=True)

    epoch: int
    connected: bool
    metrics_reported: int
    metrics_failed: int
    samples_sent: int
    duration_ms: float


class ReporterStatusModel(BaseModel):
    """Lightweight reporter health response, returned even when reporting is disabled"""
    model_config = ConfigDict(from_attributes=True)

    enabled: bool
    running: bool
    host: str
    port: int
    prefix: str
    period_seconds: float
    cycles_total: int
    send_failures: int
    last_cycle: Optional[CycleReportModel] = None
    metric_count: int
    version: str
