#!/usr/bin/env python3
"""
Steel Supply Chain Calculator - CLI Tool

A command-line interface for evaluating formulas, running the sales
sensitivity sweep and exporting reports.

Usage:
    python cli.py overview              # Formula results and constraint check
    python cli.py sweep                 # Sales % sensitivity with break-even
    python cli.py formulas              # List formulas and expressions
    python cli.py params                # List builtin inputs and custom parameters
    python cli.py export <format>       # Export full analysis report
"""

import argparse
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import pandas as pd

import config
from models.exceptions import CalculatorError, InvalidValueError
from models.formatting import format_currency, format_number
from models.inputs import BUILTIN_INPUTS
from analysis.constraints import OperationalLimits
from analysis.sensitivity import SweepRange, to_frame
from analysis.snapshot import AppState, DerivedState, recompute

logger = logging.getLogger(__name__)


class Colors:
    """ANSI color codes for terminal output."""
    HEADER = '\033[95m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    RED = '\033[91m'
    ENDC = '\033[0m'
    BOLD = '\033[1m'


def colorize(text: str, color: str) -> str:
    """Apply color to text."""
    return f"{color}{text}{Colors.ENDC}"


def print_header(text: str):
    """Print a formatted header."""
    print()
    print(colorize("=" * 60, Colors.CYAN))
    print(colorize(f"  {text}", Colors.BOLD + Colors.CYAN))
    print(colorize("=" * 60, Colors.CYAN))
    print()


def print_subheader(text: str):
    """Print a formatted subheader."""
    print()
    print(colorize(f"--- {text} ---", Colors.YELLOW))
    print()


def print_metric(name: str, value: str, good: Optional[bool] = None):
    """Print a formatted metric, green/red when good is given."""
    if good is not None:
        value = colorize(value, Colors.GREEN if good else Colors.RED)
    print(f"  {colorize(name + ':', Colors.BOLD)} {value}")


def format_result_value(value: float, unit: str) -> str:
    if unit == '₹':
        return format_currency(value)
    return f"{format_number(value)} {unit}".rstrip()


def cmd_overview(state: AppState, derived: DerivedState):
    """Display formula results and constraint check."""
    print_header("Steel Supply Chain - Results Overview")

    print_subheader("Results")
    print(f"  {'Formula':<30} {'Value':>24}  Deduct")
    print("  " + "-" * 64)
    for row in derived.aggregate.display_results():
        if row.ok:
            value = format_result_value(row.value, row.unit)
        else:
            value = colorize(f"Error: {row.error}", Colors.RED)
        deduct = "yes" if row.subtract_from_profit else ""
        print(f"  {row.name:<30} {value:>24}  {deduct}")

    headlines = derived.aggregate.headlines
    print_subheader("Headline")
    print_metric("Total Revenue", format_currency(headlines.revenue))
    print_metric("Total Cost", format_currency(headlines.total_cost))
    if headlines.profit_deductions:
        print_metric("Profit Deductions", format_currency(headlines.profit_deductions))
    print_metric("Net Profit", format_currency(headlines.net_profit),
                 good=headlines.net_profit >= 0)

    break_even = derived.break_even
    if break_even is not None:
        print_metric("Break-even Sales", f"{break_even.sales_percent:.2f}% of production")

    print_subheader("Constraints Checker")
    inputs, limits, status = state.inputs, state.limits, derived.constraints
    rows = [
        ("Production Volume", status.production, inputs.production_volume,
         limits.max_production, "tons"),
        ("Sales Volume", status.sales, inputs.sales_volume, limits.max_sales, "tons"),
        ("Inventory Space", status.inventory, inputs.inventory_volume,
         limits.max_inventory, "tons"),
        ("Total CO₂ Emission", status.emissions, headlines.total_emissions,
         limits.max_emissions, "tons CO₂"),
    ]
    for label, ok, current, limit, unit in rows:
        mark = colorize("OK  ", Colors.GREEN) if ok else colorize("OVER", Colors.RED)
        print(f"  {mark} {label:<22} {format_number(current):>14} / "
              f"{format_number(limit)} {unit}")

    print()


def cmd_sweep(state: AppState, derived: DerivedState):
    """Display the sales % sensitivity series."""
    print_header("Sales Volume Sensitivity")

    if not derived.sweep:
        print(colorize("Production volume is zero; nothing to sweep.", Colors.YELLOW))
        print()
        return

    print(f"Production: {format_number(state.inputs.production_volume)} tons")
    print(f"Range: {state.sweep_range.start}% to {state.sweep_range.stop}% of production")
    print()

    print(f"  {'Sales %':>8} {'Sales t':>12} {'Revenue':>18} {'Total Cost':>18} {'Net Profit':>18}")
    print("  " + "-" * 78)
    for point in derived.sweep:
        line = (f"  {point.sales_percent:>8.2f} "
                f"{format_number(point.sales_volume):>12} "
                f"{format_currency(point.revenue):>18} "
                f"{format_currency(point.total_cost):>18} "
                f"{format_currency(point.net_profit):>18}")
        if point.is_break_even:
            line = colorize(line + "  <- break-even", Colors.YELLOW)
        elif point.net_profit < 0:
            line = colorize(line, Colors.RED)
        print(line)

    print()


def cmd_formulas(state: AppState):
    """List formulas."""
    print_header("Formulas")

    for formula in state.formulas:
        flag = colorize(" [deducted from profit]", Colors.YELLOW) if formula.subtract_from_profit else ""
        print(f"  {colorize(formula.name, Colors.BOLD)} ({formula.id}){flag}")
        print(f"    = {formula.expression}")
        if formula.unit:
            print(f"    unit: {formula.unit}")

    print()


def cmd_list_params(state: AppState):
    """List builtin inputs and custom parameters."""
    print_header("Available Parameters")

    categories = {}
    for field in BUILTIN_INPUTS:
        categories.setdefault(field.category, []).append(field)

    for category, fields in categories.items():
        print(f"\n  {colorize(category, Colors.BOLD)}")
        for field in fields:
            value = getattr(state.inputs, field.attr)
            print(f"    {field.name:<30} = {format_number(value):>12} {field.unit}")

    print(f"\n  {colorize('Custom Parameters', Colors.BOLD)}")
    if not len(state.parameters):
        print("    (none)")
    for param in state.parameters:
        print(f"    {param.name:<30} = {format_number(param.numeric_value):>12} {param.unit}")

    print()


def build_report(state: AppState, derived: DerivedState) -> dict:
    return {
        'generated_at': datetime.now().isoformat(),
        'inputs': state.inputs.to_dict(),
        'parameters': {p.name: p.numeric_value for p in state.parameters},
        'limits': asdict(state.limits),
        'results': [asdict(r) for r in derived.aggregate.display_results()],
        'headlines': asdict(derived.aggregate.headlines),
        'constraints': {
            **asdict(derived.constraints),
            'all_satisfied': derived.constraints.all_satisfied,
        },
        'sweep': [asdict(p) for p in derived.sweep],
    }


def cmd_export(state: AppState, derived: DerivedState, format: str,
               output_path: Optional[str] = None) -> int:
    """Export the analysis to file."""
    print_header("Exporting Analysis Report")

    report = build_report(state, derived)

    if not output_path:
        timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
        output_path = f"supply_chain_analysis_{timestamp}.{format}"

    if format == 'json':
        with open(output_path, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, default=str, ensure_ascii=False)
    elif format == 'csv':
        output_dir = Path(output_path).with_suffix('')
        output_dir.mkdir(parents=True, exist_ok=True)

        pd.DataFrame(report['results']).to_csv(output_dir / 'results.csv', index=False)
        pd.DataFrame([report['headlines']]).to_csv(output_dir / 'headlines.csv', index=False)
        pd.DataFrame([report['constraints']]).to_csv(output_dir / 'constraints.csv', index=False)
        to_frame(derived.sweep).to_csv(output_dir / 'sweep.csv', index=False)

        output_path = str(output_dir)
    else:
        print(colorize(f"Error: Unknown format '{format}'", Colors.RED))
        return 1

    logger.info("Report written to %s", output_path)
    print(colorize(f"\nReport exported to: {output_path}", Colors.GREEN))
    print()
    return 0


def _split_assignment(text: str, option: str):
    name, sep, value = text.partition('=')
    if not sep:
        raise argparse.ArgumentTypeError(f"{option} expects NAME=VALUE, got '{text}'")
    return name.strip(), value.strip()


# (flag dest, OperationalInputs field); volumes last so links resolve in order
INPUT_OVERRIDES = [
    ('selling_price', 'selling_price'),
    ('manufacturing_cost', 'manufacturing_cost_per_ton'),
    ('storage_cost_percent', 'storage_cost_percent'),
    ('transportation_cost_percent', 'transportation_cost_percent'),
    ('sustainability_cost', 'sustainability_cost_per_ton_co2'),
    ('co2_emission_factor', 'co2_emission_factor'),
    ('production_volume', 'production_volume'),
    ('sales_volume', 'sales_volume'),
    ('sales_percent', 'sales_volume_percent'),
    ('inventory_volume', 'inventory_volume'),
    ('inventory_percent', 'inventory_volume_percent'),
]


def build_state(args) -> AppState:
    """Create application state from parsed arguments."""
    state = AppState(
        limits=OperationalLimits(
            max_inventory=args.max_inventory,
            max_production=args.max_production,
            max_sales=args.max_sales,
            max_emissions=args.max_emissions,
        ),
        sweep_range=SweepRange(start=args.sweep_start, stop=args.sweep_stop),
    )

    for dest, field_name in INPUT_OVERRIDES:
        text = getattr(args, dest)
        if text is None:
            continue
        updated = state.inputs.set_text(field_name, text)
        if updated is None:
            option = "--" + dest.replace("_", "-")
            raise InvalidValueError(
                f"{option} expects digits with an optional decimal point, got '{text}'"
            )
        state.inputs = updated

    for item in args.param:
        name, value = _split_assignment(item, '--param')
        state.parameters.add(label=name, name=name, value=value)

    for item in args.formula:
        name, expression = _split_assignment(item, '--formula')
        state.formulas.add(name, expression)

    for item in args.deduction:
        name, expression = _split_assignment(item, '--deduction')
        state.formulas.add(name, expression, unit='₹', subtract_from_profit=True)

    return state


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Steel Supply Chain Calculator - Formula & Sensitivity Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py overview
  python cli.py overview --production-volume 55000 --sales-percent 90
  python cli.py sweep --sweep-start 80
  python cli.py overview --param carbonTax=120 --deduction "Carbon Tax=carbonTax * productionVolume"
  python cli.py export json --output report.json
  python cli.py params
        """
    )

    parser.add_argument('command', choices=[
        'overview', 'sweep', 'formulas', 'params', 'export'
    ], help='Command to run')

    parser.add_argument('args', nargs='*', help='Command arguments')

    # Builtin input overrides
    # Taken as text and gated like keyboard input
    parser.add_argument('--selling-price', metavar='NUMBER')
    parser.add_argument('--manufacturing-cost', metavar='NUMBER')
    parser.add_argument('--storage-cost-percent', metavar='NUMBER')
    parser.add_argument('--transportation-cost-percent', metavar='NUMBER')
    parser.add_argument('--sustainability-cost', metavar='NUMBER')
    parser.add_argument('--co2-emission-factor', metavar='NUMBER')
    parser.add_argument('--production-volume', metavar='NUMBER')
    parser.add_argument('--sales-volume', metavar='NUMBER')
    parser.add_argument('--sales-percent', metavar='NUMBER')
    parser.add_argument('--inventory-volume', metavar='NUMBER')
    parser.add_argument('--inventory-percent', metavar='NUMBER')

    # Custom parameters and formulas
    parser.add_argument('--param', action='append', default=[], metavar='NAME=VALUE',
                        help='Add a custom parameter (repeatable)')
    parser.add_argument('--formula', action='append', default=[], metavar='LABEL=EXPR',
                        help='Add a formula (repeatable)')
    parser.add_argument('--deduction', action='append', default=[], metavar='LABEL=EXPR',
                        help='Add a formula deducted from net profit (repeatable)')

    # Limits
    parser.add_argument('--max-production', type=float, default=config.MAX_PRODUCTION_TONS)
    parser.add_argument('--max-sales', type=float, default=config.MAX_SALES_TONS)
    parser.add_argument('--max-inventory', type=float, default=config.MAX_INVENTORY_TONS)
    parser.add_argument('--max-emissions', type=float, default=config.MAX_EMISSIONS_TONS)

    # Sweep
    parser.add_argument('--sweep-start', type=int, default=config.SWEEP_START_PERCENT,
                        help=f'First sales %% (default: {config.SWEEP_START_PERCENT})')
    parser.add_argument('--sweep-stop', type=int, default=config.SWEEP_STOP_PERCENT,
                        help=f'Last sales %% (default: {config.SWEEP_STOP_PERCENT})')

    parser.add_argument('--output', '-o', type=str,
                        help='Output file path')
    parser.add_argument('--verbose', '-v', action='store_true',
                        help='Enable debug logging')
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.LOG_LEVEL,
        format='%(asctime)s %(name)s %(levelname)s: %(message)s',
    )

    try:
        state = build_state(args)
    except (CalculatorError, argparse.ArgumentTypeError) as exc:
        print(colorize(f"Error: {exc}", Colors.RED))
        return 1

    derived = recompute(state)

    if args.command == 'overview':
        cmd_overview(state, derived)
    elif args.command == 'sweep':
        cmd_sweep(state, derived)
    elif args.command == 'formulas':
        cmd_formulas(state)
    elif args.command == 'params':
        cmd_list_params(state)
    elif args.command == 'export':
        if not args.args:
            print(colorize("Error: Please specify export format (json, csv)", Colors.RED))
            return 1
        return cmd_export(state, derived, args.args[0], args.output)
    return 0


if __name__ == '__main__':
    sys.exit(main())
