"""Rating and prediction models."""
from modeling.elo import EloModel, replay_from_scratch, update_after_game
from modeling.params import AdjustmentParams, ConfigError, EloConfig, SimulationParams
from modeling.predictor import Predictor

__all__ = [
    'EloModel', 'replay_from_scratch', 'update_after_game',
    'AdjustmentParams', 'ConfigError', 'EloConfig', 'SimulationParams',
    'Predictor',
]
