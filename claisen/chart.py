"""Decimated concentration series for the line chart."""
from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

import pandas as pd

from .config import SimConfig
from .display import format_time
from .kinetics import SPECIES, SPECIES_COLORS, SPECIES_LABELS, Concentrations


class ChartRecorder:
    """
    Append-only time series, one per species, sharing a label axis.

    Only roughly one tick in ``chart_stride`` is recorded, which bounds the
    size of the series and the cost of redrawing the chart.
    """

    def __init__(self, config: SimConfig):
        self.config = config
        self.times: List[float] = []
        self.labels: List[str] = []
        self.series: Dict[str, List[float]] = {key: [] for key in SPECIES}

    def should_record(self, t: float) -> bool:
        # Rounded first so float error in t (e.g. 2.9999999) cannot skip a sample.
        scaled = round(t * self.config.chart_resolution, 6)
        return math.floor(scaled) % self.config.chart_stride == 0

    def record(self, t: float, c: Concentrations) -> Optional[Dict[str, Any]]:
        """Append a sample if ``t`` falls on the decimation grid."""
        if not self.should_record(t):
            return None

        label = format_time(t)
        values = c.as_dict()
        self.times.append(t)
        self.labels.append(label)
        for key in SPECIES:
            self.series[key].append(values[key])

        return {"label": label, "values": values}

    def clear(self) -> None:
        self.times = []
        self.labels = []
        self.series = {key: [] for key in SPECIES}

    def __len__(self) -> int:
        return len(self.labels)

    def as_chart_data(self) -> Dict[str, Any]:
        """Full chart payload in the shape Chart.js consumes."""
        return {
            "labels": list(self.labels),
            "datasets": [
                {
                    "key": key,
                    "label": SPECIES_LABELS[key],
                    "borderColor": SPECIES_COLORS[key],
                    "data": list(self.series[key]),
                }
                for key in SPECIES
            ],
            "y_min": 0.0,
            "y_max": self.config.chart_y_max,
        }

    def to_frame(self) -> pd.DataFrame:
        frame = pd.DataFrame({"t": self.times})
        for key in SPECIES:
            frame[key] = self.series[key]
        return frame
