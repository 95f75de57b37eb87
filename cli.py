"""CLI for the Edgeline rating and prediction engine."""
import click
from datetime import datetime
from tabulate import tabulate

import config
from backtest.optimizer import DEFAULT_COMBOS, DEFAULT_OPTIONS, GridSearchOptimizer
from backtest.simulator import Backtester
from database.db import init_db, reset_db
from database.models import GameStatus, utcnow
from database.store import RatingStore
from edge.detector import EdgeCalculator
from ingestion.espn import ScoreboardIngester
from ingestion.odds import OddsIngester
from ingestion.weather import WeatherClient
from modeling.calibration import calibrate
from modeling.context import PredictionContext
from modeling.elo import EloModel
from modeling.params import ConfigError, SimulationParams
from modeling.predictor import Predictor, round_half


def _validate_sport(ctx, param, value):
    key = value.lower()
    if key not in config.SPORTS:
        raise click.BadParameter(
            f"unknown sport '{value}' (choose from {', '.join(config.SPORTS)})"
        )
    return key


def sport_option(f):
    return click.option(
        '--sport', default='nfl', callback=_validate_sport,
        help='League: nfl, nba, nhl or cbb'
    )(f)


def _store(ctx) -> RatingStore:
    return RatingStore(ctx.obj.get('db'))


def _today() -> str:
    return utcnow().strftime("%Y-%m-%d")


@click.group()
@click.option('--db', 'db_path', default=None, type=click.Path(dir_okay=False),
              help='SQLite database file (defaults to EDGELINE_DB_PATH)')
@click.pass_context
def cli(ctx, db_path):
    """Edgeline: Elo ratings, spread predictions and market edges"""
    ctx.ensure_object(dict)
    ctx.obj['db'] = db_path


@cli.command('init')
@click.pass_context
def init_command(ctx):
    """Initialize the database."""
    init_db(ctx.obj.get('db'))
    click.echo("Database initialized.")


@cli.command('reset')
@click.confirmation_option(prompt='Are you sure you want to reset the database?')
@click.pass_context
def reset_command(ctx):
    """Reset the database (deletes all data)."""
    reset_db(ctx.obj.get('db'))
    click.echo("Database reset complete.")


@cli.group('games')
def games_group():
    """Games management commands."""
    pass


@games_group.command('pull')
@sport_option
@click.option('--date', default=None, help='Scoreboard date (YYYY-MM-DD)')
@click.option('--week', type=int, default=None, help='Week number (NFL)')
@click.option('--from', 'from_date', default=None, help='Start date (YYYY-MM-DD)')
@click.option('--to', 'to_date', default=None, help='End date (YYYY-MM-DD)')
@click.pass_context
def games_pull(ctx, sport, date, week, from_date, to_date):
    """Pull schedule and scores from ESPN."""
    ingester = ScoreboardIngester(sport, _store(ctx))

    if from_date and to_date:
        count = ingester.ingest_range(from_date, to_date)
    else:
        count = ingester.ingest(date=date, week=week)

    click.echo(f"Pulled {count} games.")


@games_group.command('list')
@sport_option
@click.option('--date', default=None, help='Only games on this date (YYYY-MM-DD)')
@click.option('--status', type=click.Choice([s.value for s in GameStatus]), default=None)
@click.option('--limit', default=20, help='Number of games to show')
@click.pass_context
def games_list(ctx, sport, date, status, limit):
    """List games in the database."""
    store = _store(ctx)
    games = store.get_games(sport, status=status, on_date=date)[-limit:]

    if not games:
        click.echo("No games found.")
        return

    names = {t.id: t.name for t in store.get_teams(sport)}
    table = []
    for g in games:
        score = f"{g.home_score}-{g.away_score}" if g.home_score is not None else ""
        table.append([
            g.id,
            g.game_time.strftime("%Y-%m-%d %H:%M"),
            names.get(g.away_team_id, g.away_team_id),
            '@',
            names.get(g.home_team_id, g.home_team_id),
            score,
            g.status.value,
            g.elo_state.value,
        ])

    click.echo(tabulate(table, headers=['ID', 'Time', 'Away', '', 'Home', 'Score', 'Status', 'Elo']))


@cli.group('odds')
def odds_group():
    """Odds management commands."""
    pass


@odds_group.command('pull')
@sport_option
@click.pass_context
def odds_pull(ctx, sport):
    """Pull current odds from The Odds API."""
    ingester = OddsIngester(sport, _store(ctx))
    count = ingester.ingest_odds()
    click.echo(f"Pulled {count} odds snapshots.")


@cli.group('model')
def model_group():
    """Model management commands."""
    pass


@model_group.command('recalc')
@sport_option
@click.pass_context
def model_recalc(ctx, sport):
    """Reset ratings and replay every completed game."""
    model = EloModel(_store(ctx))
    stats = model.recalculate(sport)

    click.echo("\nRecalculation complete:")
    click.echo(f"  Games processed: {stats['games_processed']}")
    click.echo(f"  Correct predictions: {stats['correct_predictions']}")
    click.echo(f"  Accuracy: {stats['accuracy']:.2%}")
    click.echo(f"  Teams updated: {stats['updated_teams']}")


@model_group.command('update')
@sport_option
@click.pass_context
def model_update(ctx, sport):
    """Fold newly finished games into the ratings."""
    model = EloModel(_store(ctx))
    stats = model.update(sport)
    click.echo(f"Updated ratings from {stats['games_processed']} games.")


@model_group.command('rankings')
@sport_option
@click.option('--limit', default=30, help='Number of teams to show')
@click.pass_context
def model_rankings(ctx, sport, limit):
    """Show current team Elo rankings."""
    model = EloModel(_store(ctx))
    rankings = model.rankings(sport)[:limit]

    if not rankings:
        click.echo("No rankings available. Run 'games pull' and 'model recalc' first.")
        return

    def fmt(value):
        return f"{value:.1f}" if value is not None else "-"

    table = [
        [t['rank'], t['name'], t['abbreviation'], f"{t['rating']:.0f}", fmt(t['ppg']), fmt(t['ppg_allowed'])]
        for t in rankings
    ]
    click.echo(tabulate(table, headers=['Rank', 'Team', 'Abbr', 'Elo', 'PPG', 'Allowed']))


@model_group.command('calibrate')
@sport_option
@click.pass_context
def model_calibrate(ctx, sport):
    """Fit Elo-to-points and home field from completed games."""
    games = _store(ctx).get_games(sport, status=GameStatus.FINAL)
    result = calibrate(games)
    if result is None:
        click.echo("Not enough completed games with a rating gap to calibrate.")
        return

    defaults = config.sport(sport)
    click.echo(f"\nCALIBRATION ({result.sample_size} {sport.upper()} games)")
    click.echo(tabulate([
        ['Elo to points (per 100)', f"{result.elo_to_points:.2f}", defaults['elo_to_points']],
        ['Home field points', f"{result.home_field_points:.2f}", defaults['home_field_points']],
        ['R squared', f"{result.r_squared:.3f}", ''],
        ['Home win %', f"{result.home_win_pct:.1f}", ''],
        ['Average home margin', f"{result.avg_margin:+.1f}", ''],
    ], headers=['Metric', 'Fitted', 'Current']))


def _predict_games(store, sport, date, weather):
    """Predict every game on a date; yields (game, home, away, prediction)."""
    predictor = Predictor(params=SimulationParams.for_sport(sport))
    client = WeatherClient() if weather else None

    for game in store.get_games(sport, on_date=date):
        home = store.get_team(game.home_team_id)
        away = store.get_team(game.away_team_id)
        if home is None or away is None:
            continue
        context = None
        if client is not None:
            context = PredictionContext(weather=client.for_venue(game.venue, game.game_time))
        yield game, home, away, predictor.predict(home, away, context, game_id=game.id)


@cli.command('predict')
@sport_option
@click.option('--date', default=None, help='Game date (YYYY-MM-DD), defaults to today (UTC)')
@click.option('--weather', is_flag=True, help='Apply game-time weather (outdoor venues)')
@click.pass_context
def predict_command(ctx, sport, date, weather):
    """Predict scores, spreads and totals for a day's games."""
    store = _store(ctx)
    date = date or _today()

    table = []
    for game, home, away, prediction in _predict_games(store, sport, date, weather):
        store.save_prediction(prediction)
        table.append([
            game.game_time.strftime("%H:%M"),
            away.name,
            '@',
            home.name,
            f"{prediction.away_score:.1f}-{prediction.home_score:.1f}",
            f"{round_half(prediction.spread):+.1f}",
            f"{round_half(prediction.total):.1f}",
            f"{prediction.home_win_probability:.1%}",
            f"{prediction.confidence:.0%}",
        ])

    if not table:
        click.echo(f"No games found for {date}")
        return

    click.echo(tabulate(table, headers=[
        'Time', 'Away', '', 'Home', 'Score', 'Spread', 'Total', 'Home Win', 'Conf'
    ]))


@cli.command('edges')
@sport_option
@click.option('--date', default=None, help='Game date (YYYY-MM-DD), defaults to today (UTC)')
@click.option('--weather', is_flag=True, help='Apply game-time weather (outdoor venues)')
@click.pass_context
def edges_command(ctx, sport, date, weather):
    """Compare predictions with the consensus market line."""
    store = _store(ctx)
    date = date or _today()
    calculator = EdgeCalculator()

    table = []
    for game, home, away, prediction in _predict_games(store, sport, date, weather):
        report = calculator.evaluate(prediction, store.get_odds(game.id))
        if report.consensus is None:
            continue

        prediction.edge_spread = report.edge_spread
        prediction.edge_total = report.edge_total
        prediction.recommendation = report.recommendation
        store.save_prediction(prediction)

        table.append([
            f"{away.abbreviation or away.name} @ {home.abbreviation or home.name}",
            f"{round_half(prediction.spread):+.1f}",
            f"{report.consensus.home_spread:+.1f}",
            f"{report.edge_spread:+.1f}",
            f"{round_half(prediction.total):.1f}",
            f"{report.consensus.total:.1f}",
            f"{report.edge_total:+.1f}",
            report.strength,
            report.recommendation or '-',
        ])

    if not table:
        click.echo(f"No games with odds found for {date}")
        return

    click.echo(f"\nEDGES FOR {date}")
    click.echo("=" * 100)
    click.echo(tabulate(table, headers=[
        'Game', 'Model', 'Market', 'Edge', 'Model O/U', 'Market O/U', 'Edge', 'Strength', 'Pick'
    ]))


def _backtester(store, sport, rolling_stats):
    games = store.get_games(sport, status=GameStatus.FINAL)
    teams = store.get_teams(sport)
    odds = [snapshot for game in games for snapshot in store.get_odds(game.id)]
    return Backtester(games, teams, rolling_stats=rolling_stats, odds=odds)


@cli.command('backtest')
@sport_option
@click.option('--elo-to-points', type=float, default=None, help='Spread points per 100 Elo')
@click.option('--home-field', type=float, default=None, help='Home advantage in points')
@click.option('--spread-regression', type=float, default=None, help='Shrink spread toward 0 (0-1)')
@click.option('--elo-cap', type=float, default=None, help='Max Elo adjustment in points (0 = none)')
@click.option('--min-spread', type=float, default=None, help='Only bet if |spread| >= this')
@click.option('--max-spread', type=float, default=None, help='Only bet if |spread| <= this')
@click.option('--rolling-stats', is_flag=True, help='Build team stats game by game')
@click.option('--export', is_flag=True, help='Export results to CSV')
@click.option('--output', default='backtest_results.csv', help='Output CSV filename')
@click.pass_context
def backtest_command(ctx, sport, elo_to_points, home_field, spread_regression, elo_cap,
                     min_spread, max_spread, rolling_stats, export, output):
    """Run a spread-betting backtest over completed games."""
    overrides = {
        'elo_to_points': elo_to_points,
        'home_field_points': home_field,
        'spread_regression': spread_regression,
        'elo_cap': elo_cap,
        'min_spread': min_spread,
        'max_spread': max_spread,
    }
    try:
        params = SimulationParams.for_sport(
            sport, **{k: v for k, v in overrides.items() if v is not None}
        )
    except ConfigError as e:
        raise click.UsageError(str(e))

    backtester = _backtester(_store(ctx), sport, rolling_stats)
    click.echo(f"Running {sport.upper()} backtest over {len(backtester.games)} games...")

    result = backtester.run(params, keep_bets=export)
    backtester.print_results(result)

    if export:
        backtester.export_to_csv(result, output)


@cli.command('optimize')
@sport_option
@click.option('--workers', default=1, help='Worker processes')
@click.option('--top', 'top_n', default=20, help='Number of results to show')
@click.option('--min-bets', default=config.MIN_BETS, help='Drop runs with fewer bets')
@click.option('--by', 'by_param', default=None,
              type=click.Choice(sorted(DEFAULT_OPTIONS)), help='Best run per value of a parameter')
@click.option('--rolling-stats', is_flag=True, help='Build team stats game by game')
@click.pass_context
def optimize_command(ctx, sport, workers, top_n, min_bets, by_param, rolling_stats):
    """Grid-search simulation parameters for spread-betting profit."""
    backtester = _backtester(_store(ctx), sport, rolling_stats)
    optimizer = GridSearchOptimizer(backtester, SimulationParams.for_sport(sport), min_bets=min_bets)

    started = datetime.now()
    report = optimizer.search(optimizer.sweep(DEFAULT_OPTIONS, DEFAULT_COMBOS), workers=workers)
    elapsed = (datetime.now() - started).total_seconds()

    if not report.viable:
        click.echo(f"No combination placed at least {min_bets} bets.")
        return

    columns = ['elo_to_points', 'home_field_points', 'spread_regression', 'elo_cap',
               'min_spread', 'max_spread', 'stats_regression', 'bets', 'win_pct', 'profit']
    frame = report.to_frame()[columns]

    click.echo(f"\nTOP {top_n} OF {report.tested} COMBINATIONS ({elapsed:.1f}s)")
    click.echo(tabulate(frame.head(top_n), headers='keys', showindex=False, floatfmt='.2f'))

    click.echo("\nHIGHLIGHTS")
    for label, result in [
        ('Best profit', report.best_by_profit),
        ('Best win %', report.best_by_win_pct),
        ('Best volume', report.best_by_volume),
    ]:
        if result is None:
            click.echo(f"  {label}: none above {config.BREAKEVEN_WIN_PCT}%")
            continue
        click.echo(f"  {label}: {result.graded} bets, {result.win_pct:.1f}%, "
                   f"{result.profit:+,.0f} ({result.params.to_dict()})")

    if by_param:
        click.echo(f"\nBEST BY {by_param.upper()}")
        click.echo(tabulate(report.best_per(by_param)[columns], headers='keys',
                            showindex=False, floatfmt='.2f'))


if __name__ == '__main__':
    cli()
