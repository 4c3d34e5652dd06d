#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
StrategyTemplateEngine - Unified Entry Point

Commands:
1. Replay a bar file through a configured strategy (paper broker)
2. Score a balance history with the fitness function
3. List registered strategies and their parameters

Usage:
    # Replay bars through the configured strategy
    python run.py --config config/default_strategy.yaml --bars data/eurusd_h1.csv

    # Same config, different strategy
    python run.py --config config/default_strategy.yaml --bars data/eurusd_h1.csv --strategy TrendIndicator

    # Fitness of a balance history (columns: time, balance)
    python run.py --fitness results/balance_history.csv --plot

    # List available strategies
    python run.py --list-strategies
"""

import sys
import argparse
import logging
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

logger = logging.getLogger('botcore.run')


def main():
    parser = argparse.ArgumentParser(
        description='StrategyTemplateEngine - Trading Strategy Decision Engine',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Replay bars from config
  python run.py --config config/default_strategy.yaml --bars data/eurusd_h1.csv

  # Override the strategy and save outputs
  python run.py -c config/default_strategy.yaml -b data/eurusd_h1.csv -s TrendIndicator --save

  # Fitness of an existing balance history
  python run.py --fitness Result/balance_history.csv --plot

  # List available options
  python run.py --list-strategies
        """
    )

    # Replay options
    parser.add_argument(
        '--config', '-c',
        type=str,
        help='Path to engine configuration YAML file'
    )

    parser.add_argument(
        '--bars', '-b',
        type=str,
        help='Bar file (CSV or parquet) with high/low/close and indicator columns'
    )

    parser.add_argument(
        '--strategy', '-s',
        type=str,
        help='Strategy name, overrides the configured one'
    )

    # Fitness options
    parser.add_argument(
        '--fitness', '-f',
        type=str,
        help='Balance history CSV (time, balance) to score'
    )

    # Output options
    parser.add_argument(
        '--output', '-o',
        type=str,
        default='./Result',
        help='Output directory'
    )

    parser.add_argument(
        '--save',
        action='store_true',
        help='Save results to files'
    )

    parser.add_argument(
        '--plot',
        action='store_true',
        help='Generate fitness chart'
    )

    # Utility options
    parser.add_argument(
        '--list-strategies',
        action='store_true',
        help='List all registered strategies'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Console log level'
    )

    parser.add_argument(
        '--quiet', '-q',
        action='store_true',
        help='Quiet mode (minimal output)'
    )

    args = parser.parse_args()

    from botcore.logging_setup import setup_logging
    setup_logging(
        log_level=args.log_level,
        logs_dir=Path(args.output) / 'logs' if args.save else None,
        console_output=not args.quiet,
    )

    # Handle utility commands
    if args.list_strategies:
        list_strategies()
        return

    # Determine run mode
    if args.fitness:
        run_fitness(args)
    elif args.config or args.bars:
        run_from_config(args)
    else:
        print("Error: Must specify --config/--bars or --fitness")
        print("Use --list-strategies to see available strategies")
        print("Use --help for usage information")
        sys.exit(1)


def list_strategies():
    """List all registered strategies with their parameters."""
    import botcore.signals  # noqa: F401  registers the bundled strategies
    from botcore.signals.registry import get_registry

    registry = get_registry()

    print("\n" + "=" * 60)
    print("Available Strategies")
    print("=" * 60)

    for name in registry.list_strategies():
        strategy_class = registry.get_class(name)
        metadata = registry.get_metadata(name)
        print(f"\n{name}")
        if strategy_class.__doc__:
            print(f"  {strategy_class.__doc__.strip().splitlines()[0]}")
        print(f"  Series: {', '.join(metadata.get('series', []))}")
        for param_name, param in strategy_class.parameters.items():
            bounds = []
            if param.min_value is not None:
                bounds.append(f"min={param.min_value}")
            if param.max_value is not None:
                bounds.append(f"max={param.max_value}")
            suffix = f" ({', '.join(bounds)})" if bounds else ""
            print(f"  - {param_name} = {param.default}{suffix}")

    print("\n" + "=" * 60)


def run_from_config(args):
    """Replay a bar file through the configured engine."""
    import botcore.signals  # noqa: F401
    from botcore.engine.backtest_runner import BacktestRunner, load_bars
    from botcore.exceptions import ConfigurationError
    from botcore.processors.config_loader import StrategyConfigLoader

    if not args.bars:
        print("Error: --bars is required for a replay")
        sys.exit(1)
    if args.config and not Path(args.config).exists():
        print(f"Error: Config file not found: {args.config}")
        sys.exit(1)

    verbose = not args.quiet

    try:
        loader = StrategyConfigLoader(args.config)
        loader.load()
        if args.strategy:
            loader.set_strategy(args.strategy)
        runner = BacktestRunner(loader, warmup_bars=int(loader.get('backtest.warmup_bars', 1)))
        bars = load_bars(args.bars)
        result = runner.run(bars)
    except ConfigurationError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if verbose:
        _print_result_summary(result)

    if args.save:
        prefix = args.strategy or (Path(args.config).stem if args.config else 'default')
        out = runner.save_result(result, Path(args.output) / prefix)
        print(f"Saved results to: {out}")

    if args.plot:
        _plot_fitness(result.balance_history, Path(args.output) / 'fitness.png',
                      title=f"{result.strategy} ({result.label})")


def run_fitness(args):
    """Score a balance history file."""
    import pandas as pd
    from botcore.metrics.fitness import FitnessEvaluator

    path = Path(args.fitness)
    if not path.exists():
        print(f"Error: Balance history not found: {path}")
        sys.exit(1)

    history = pd.read_csv(path)
    if 'balance' not in history.columns:
        print(f"Error: {path} has no 'balance' column")
        sys.exit(1)

    result = FitnessEvaluator().evaluate(history)

    print(f"\n{'='*60}")
    print("Fitness")
    print(f"{'='*60}")
    print(f"  Samples: {result.n}")
    if result.accepted:
        print(f"  Slope: {result.fit.slope:.6f}")
        print(f"  Intercept: {result.fit.intercept:.6f}")
        print(f"  Extrapolated: {result.extrapolated:.6f}")
        print(f"  RMS deviation: {result.dev:.6f}")
    else:
        print("  Insufficient history")
    print(f"  Score: {result.score:.4f}")
    print(f"\n{'='*60}")

    if args.plot:
        _plot_fitness(history, Path(args.output) / f"{path.stem}_fitness.png", title=path.stem)


def _plot_fitness(history, save_path: Path, title: str):
    from botcore.metrics.visualizer import FitnessVisualizer

    fig = FitnessVisualizer().plot_fitness(history, title=title, save_path=str(save_path))
    if fig is None:
        print("Not enough balance history to plot")
    else:
        print(f"Saved fitness chart to: {save_path}")


def _print_result_summary(result):
    """Print result summary."""
    print(f"\n{'='*60}")
    print("Replay Results Summary")
    print(f"{'='*60}")

    print(f"\nStrategy: {result.strategy} ({result.label})")

    if result.decision_summary:
        print(f"\nDecisions:")
        for key, value in result.decision_summary.items():
            print(f"  {key}: {value}")

    print(f"\nTrade Statistics:")
    print(f"  Total Trades: {len(result.trade_history)}")
    print(f"  Open Positions: {result.open_positions}")

    balances = result.balance_history['balance']
    print(f"\nBalance:")
    print(f"  Start: {balances.iloc[0]:,.2f}")
    print(f"  End: {balances.iloc[-1]:,.2f}")
    print(f"  Total Return: {balances.iloc[-1] / balances.iloc[0] - 1:.2%}")

    print(f"\nFitness: {result.fitness.score:.4f} (n={result.fitness.n})")

    print(f"\n{'='*60}")


if __name__ == '__main__':
    main()
