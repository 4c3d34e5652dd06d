"""
Decision Logger for Strategy Engines

Captures every decision cycle for introspection:
- Raw signal and post-filter direction
- Stop distance, risk and take-profit factor after filtering
- Position policy outcome and mandated closures
- Order outcome (position id or rejection reason)

Also provides persistence of the collected records:
- CSV and Pickle format support
- Run ID based file naming
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd


@dataclass
class CycleLog:
    """Record of a single decision cycle."""
    bar: int
    time: Optional[pd.Timestamp] = None
    signal: str = 'no_signal'
    direction: Optional[str] = None
    stop_loss_distance: Optional[float] = None
    take_profit_distance: Optional[float] = None
    risk_fraction: Optional[float] = None
    allowed: Optional[bool] = None
    closed_positions: List[int] = field(default_factory=list)
    volume: Optional[float] = None
    position_id: Optional[int] = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class DecisionLogger:
    """
    Per-cycle decision recorder.

    Config keys:
        - enabled: record cycles (default True)
        - output_dir: directory used by save()
        - run_id: file name prefix (default: timestamp)
        - log_no_signal: also record cycles without a signal (default True)
    """

    def __init__(self, config: Dict = None):
        self.config = config or {}
        self.enabled = self.config.get('enabled', True)
        self.output_dir = Path(self.config.get('output_dir', 'results'))
        self.run_id = self.config.get('run_id', datetime.now().strftime('%Y%m%d_%H%M%S'))
        self.log_no_signal = self.config.get('log_no_signal', True)

        self.cycles: List[CycleLog] = []

    def start_cycle(self, bar: int, time: Optional[pd.Timestamp] = None) -> CycleLog:
        """Create the record for a new cycle; commit() stores it."""
        return CycleLog(bar=bar, time=time)

    def commit(self, log: CycleLog) -> None:
        if not self.enabled:
            return
        if log.signal == 'no_signal' and not self.log_no_signal:
            return
        self.cycles.append(log)

    def to_dataframe(self) -> pd.DataFrame:
        if not self.cycles:
            return pd.DataFrame(columns=list(CycleLog.__dataclass_fields__.keys()))
        return pd.DataFrame([asdict(c) for c in self.cycles])

    def summary(self) -> Dict[str, int]:
        """Counts of signals, admissions and submitted/rejected orders."""
        signals = [c for c in self.cycles if c.signal != 'no_signal']
        return {
            'cycles': len(self.cycles),
            'signals': len(signals),
            'admitted': sum(1 for c in signals if c.allowed),
            'orders': sum(1 for c in signals if c.position_id is not None),
            'rejected': sum(1 for c in signals if c.error is not None),
            'closures': sum(len(c.closed_positions) for c in self.cycles),
        }

    def save(self, output_dir: str = None, fmt: str = 'csv') -> Path:
        """
        Persist the cycle records.

        Args:
            output_dir: Override of the configured directory
            fmt: 'csv' or 'pickle'

        Returns:
            Path of the written file
        """
        target_dir = Path(output_dir) if output_dir else self.output_dir
        target_dir.mkdir(parents=True, exist_ok=True)
        df = self.to_dataframe()

        if fmt == 'csv':
            path = target_dir / f"{self.run_id}_decisions.csv"
            df.to_csv(path, index=False)
        elif fmt == 'pickle':
            path = target_dir / f"{self.run_id}_decisions.pkl"
            df.to_pickle(path)
        else:
            raise ValueError(f"Unsupported format: {fmt}")
        return path

    def clear(self) -> None:
        self.cycles = []
