"""Edge detection module."""
from edge.detector import ConsensusOdds, EdgeCalculator, EdgeReport, EdgeThresholds

__all__ = ['ConsensusOdds', 'EdgeCalculator', 'EdgeReport', 'EdgeThresholds']
