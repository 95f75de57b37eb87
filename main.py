#!/usr/bin/env python3
"""
Edgeline: sports Elo rating and prediction engine

Elo ratings, score/spread/total predictions and market edges for the
NFL, NBA, NHL and college basketball.

Usage:
    python main.py init                           # Initialize database
    python main.py games pull --sport nfl         # Pull ESPN scoreboard
    python main.py odds pull --sport nfl          # Pull current odds
    python main.py model recalc --sport nfl       # Replay every completed game
    python main.py model update --sport nfl       # Fold in new results
    python main.py predict --sport nba            # Today's predictions
    python main.py edges --sport nba              # Model vs market
    python main.py backtest --sport nfl --max-spread 7
    python main.py optimize --sport nfl --workers 4
"""

from cli import cli

if __name__ == '__main__':
    cli()
