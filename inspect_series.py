#!/usr/bin/env python3
"""
inspect_series.py - By-Class Time Series Inspector

Loads a by-class time series table the way the simulation does and prints
what the simulation would see:
1. Load and validate the table
2. Fit it to the simulation length (truncation / looping)
3. Report warnings
4. Run optional point lookups

Usage:
    python inspect_series.py --file mortality.csv --steps-per-year 24 --years 10

    python inspect_series.py \\
        --file mortality.csv \\
        --config simulation.json \\
        --n-min 24 \\
        --lookup 0:1.5 --lookup 12:30.0

Author: Simulation Inputs Project
"""

import argparse
import json
import sys
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# Set up logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def parse_lookup(text: str) -> Tuple[int, float]:
    """Parse a STEP:VALUE lookup argument."""
    try:
        step, value = text.split(':', 1)
        return int(step), float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected STEP:VALUE, got '{text}'") from None


def inspect_series(
    filename: str,
    settings: Dict[str, Any],
    n_min: Optional[int] = None,
    n_max: Optional[int] = None,
    separator: Optional[str] = None,
    permissive: bool = False,
    below_range: str = "raise",
    lookups: Optional[List[Tuple[int, float]]] = None,
) -> Dict[str, Any]:
    """
    Load a time series and run lookups against it.

    Args:
        filename: Path to the table
        settings: Simulation settings (n_step_year / n_year)
        n_min: Minimum number of time steps (default: full simulation)
        n_max: Number of time steps of the grid (default: full simulation)
        separator: Field separator (default: guessed from the file)
        permissive: Accept non-ascending class thresholds
        below_range: Below-range policy for lookups
        lookups: (step, class value) pairs to resolve

    Returns:
        Dict with the load summary and the lookup results
    """
    from byclass_timeseries import BelowRangeError, create_time_series

    series = create_time_series(
        settings,
        strict_thresholds=not permissive,
        below_range=below_range,
    )
    result = series.load(filename, n_min, n_max, separator=separator)

    print("=" * 70)
    print("BY-CLASS TIME SERIES")
    print("=" * 70)
    print(f"File:        {filename}")
    print(f"Loaded:      {'yes' if result.success else 'NO'}")

    if not result.success:
        print(f"Error:       {result.error}")
        return {'summary': series.get_summary(), 'lookups': []}

    print(f"Classes:     {series.n_class} {series.classes.tolist()}")
    print(f"Time steps:  {series.n_step}")
    for warning in result.warnings:
        print(f"Warning:     {warning.message}")
    print()

    resolved = []
    for step, value in lookups or []:
        try:
            k = series.class_of(value)
            resolved_value = series.value_at(step, value)
            print(f"  step {step:>5}  class value {value:>10g}  bin {k:>3}  -> {resolved_value:g}")
        except (IndexError, BelowRangeError) as e:
            resolved_value = None
            print(f"  step {step:>5}  class value {value:>10g}  -> ERROR: {e}")
        resolved.append({'step': step, 'class_value': value, 'value': resolved_value})

    return {'summary': series.get_summary(), 'lookups': resolved}


def main():
    parser = argparse.ArgumentParser(
        description='Inspect a by-class time series table',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python inspect_series.py --file mortality.csv --steps-per-year 24 --years 10
  python inspect_series.py --file mortality.csv --config simulation.json --lookup 0:1.5
"""
    )

    parser.add_argument('--file', type=str, required=True, help='Time series table')
    parser.add_argument('--config', type=str, help='JSON file with n_step_year / n_year')
    parser.add_argument('--steps-per-year', type=int, help='Number of time steps per year')
    parser.add_argument('--years', type=int, help='Number of simulated years')
    parser.add_argument('--n-min', type=int, help='Minimum number of time steps')
    parser.add_argument('--n-max', type=int, help='Number of time steps of the grid')
    parser.add_argument('--separator', type=str, help='Field separator (default: guessed)')
    parser.add_argument('--permissive', action='store_true',
                        help='Accept class thresholds that are not ascending')
    parser.add_argument('--below-range', choices=['raise', 'clamp', 'sentinel'],
                        default='raise', help='Lookup policy below the first threshold')
    parser.add_argument('--lookup', type=parse_lookup, action='append', default=[],
                        metavar='STEP:VALUE', help='Point lookup (repeatable)')
    parser.add_argument('--json', action='store_true', help='Print the result as JSON')

    args = parser.parse_args()

    settings: Dict[str, Any] = {}
    if args.config:
        with open(Path(args.config)) as f:
            settings.update(json.load(f))
    if args.steps_per_year is not None:
        settings['n_step_year'] = args.steps_per_year
    if args.years is not None:
        settings['n_year'] = args.years

    aliases = {'n_step_year': 'steps_per_year', 'n_year': 'years'}
    missing = [key for key, alias in aliases.items()
               if settings.get(key) is None and settings.get(alias) is None]
    if missing:
        print(f"ERROR: Missing simulation settings: {', '.join(missing)}")
        print("Use --config or --steps-per-year / --years.")
        sys.exit(1)

    output = inspect_series(
        filename=args.file,
        settings=settings,
        n_min=args.n_min,
        n_max=args.n_max,
        separator=args.separator,
        permissive=args.permissive,
        below_range=args.below_range,
        lookups=args.lookup,
    )

    if args.json:
        print(json.dumps(output, indent=2, default=str))

    if not output['summary'].get('success'):
        sys.exit(1)


if __name__ == '__main__':
    main()
