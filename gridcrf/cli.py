#!/usr/bin/env python3
"""
gridcrf Command Line Interface

Usage:
    python -m gridcrf solve problem.npz -o result.npz --solver TRWS
    python -m gridcrf generate -o problem.npz --shape 16 16 --labels 3
    python -m gridcrf info problem.npz

Commands:
    solve: Minimize the labeling energy of a problem file
    generate: Write a synthetic problem
    info: Display information about a data file
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

import numpy as np


def main(args: Optional[List[str]] = None):
    """Main entry point for CLI."""
    from . import __version__

    parser = argparse.ArgumentParser(
        prog='gridcrf',
        description='Grid CRF energy minimization (mean field / TRW-S)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  gridcrf generate -o problem.npz --shape 16 16 --labels 3 --seed 0
  gridcrf solve problem.npz -o result.npz --solver MF --iterations 10
  gridcrf solve problem.npz -o result.mat --solver TRWS --min-pairwise-cost 0.1
  gridcrf info result.npz
        """
    )

    parser.add_argument('--version', action='version', version=f'gridcrf {__version__}')

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Solve command
    solve_parser = subparsers.add_parser(
        'solve',
        help='Minimize the energy of a problem file'
    )
    solve_parser.add_argument('input', type=str, help='Problem file (.npz or .mat)')
    solve_parser.add_argument('-o', '--output', type=str, required=True,
                              help='Output file (.npz or .mat)')
    solve_parser.add_argument('--solver', type=str, required=True,
                              help='Solver: MF or TRWS')
    solve_parser.add_argument('--iterations', type=int, default=20,
                              help='Iteration budget')
    solve_parser.add_argument('--min-pairwise-cost', type=float, default=0.0,
                              help='Edge pruning threshold (TRWS only)')
    solve_parser.add_argument('--normalization', type=str, default='NO_NORMALIZATION',
                              help='Kernel normalization (MF only)')
    solve_parser.add_argument('--gaussian-weight', type=float, default=3.0)
    solve_parser.add_argument('--gaussian-stddev', type=float, nargs=2, default=[3.0, 3.0],
                              metavar=('X', 'Y'))
    solve_parser.add_argument('--bilateral-weight', type=float, default=10.0)
    solve_parser.add_argument('--bilateral-stddev', type=float, nargs=2, default=[80.0, 80.0],
                              metavar=('X', 'Y'))
    solve_parser.add_argument('--color-stddev', type=float, nargs='+', default=[13.0],
                              help='One value for all channels or one per channel')
    solve_parser.add_argument('--plot', type=str, default=None,
                              help='Save a plot of the labeling to this file')
    solve_parser.add_argument('-d', '--debug', action='store_true',
                              help='Print diagnostics and timings')

    # Generate command
    gen_parser = subparsers.add_parser(
        'generate',
        help='Write a synthetic problem'
    )
    gen_parser.add_argument('-o', '--output', type=str, required=True,
                            help='Output problem file (.npz)')
    gen_parser.add_argument('--shape', type=int, nargs=2, default=[16, 16],
                            metavar=('M', 'N'))
    gen_parser.add_argument('--labels', type=int, default=3, help='Number of labels')
    gen_parser.add_argument('--channels', type=int, default=3, help='Image channels')
    gen_parser.add_argument('--noise', type=float, default=0.3, help='Unary noise level')
    gen_parser.add_argument('--seed', type=int, default=None, help='Random seed')

    # Info command
    info_parser = subparsers.add_parser(
        'info',
        help='Display information about a data file'
    )
    info_parser.add_argument('input', type=str, help='Input file')

    parsed = parser.parse_args(args)

    if parsed.command is None:
        parser.print_help()
        return 0

    if parsed.command == 'solve':
        return cmd_solve(parsed)
    elif parsed.command == 'generate':
        return cmd_generate(parsed)
    elif parsed.command == 'info':
        return cmd_info(parsed)
    else:
        parser.print_help()
        return 1


def build_options(args, channels: int) -> dict:
    """Translate parsed CLI arguments into solve options."""
    colors = list(args.color_stddev)
    if len(colors) == 1:
        colors = colors * channels

    return {
        'solver': args.solver,
        'iterations': args.iterations,
        'debug': args.debug,
        'min_pairwise_cost': args.min_pairwise_cost,
        'normalization': args.normalization,
        'gaussian_weight': args.gaussian_weight,
        'gaussian_x_stddev': args.gaussian_stddev[0],
        'gaussian_y_stddev': args.gaussian_stddev[1],
        'bilateral_weight': args.bilateral_weight,
        'bilateral_x_stddev': args.bilateral_stddev[0],
        'bilateral_y_stddev': args.bilateral_stddev[1],
        'bilateral_color_stddevs': colors,
    }


def cmd_solve(args) -> int:
    """Run solve command."""
    import gridcrf

    print(f"Loading problem from: {args.input}")

    try:
        problem = gridcrf.load_problem(args.input)
    except (OSError, ValueError, ImportError) as e:
        print(f"Error loading file: {e}")
        return 1

    M, N, C = problem.im_size
    print(f"  Grid: {M} x {N}, {C} channels, {problem.num_labels} labels")

    try:
        result = gridcrf.solve_problem(problem, build_options(args, C))
    except gridcrf.GridCRFError as e:
        print(f"Error: {e}")
        return 1

    print(f"Solver: {result.solver}")
    print(f"  Energy:      {result.energy:.6f}")
    print(f"  Lower bound: {result.lower_bound:.6f}")
    if 'num_edges' in result.metadata:
        print(f"  Edges:       {result.metadata['num_edges']} / {result.metadata['num_pairs']}")

    output_path = Path(args.output)
    if output_path.suffix.lower() == '.mat':
        saved = gridcrf.save_result_mat(result, output_path)
    else:
        saved = gridcrf.save_result_npz(result, output_path)
    print(f"Saved to: {saved}")

    if args.plot:
        import matplotlib
        matplotlib.use('Agg')
        fig = gridcrf.plot_solution_comparison(problem.image, {result.solver: result},
                                               num_labels=problem.num_labels)
        fig.savefig(args.plot, dpi=150)
        print(f"Saved plot to: {args.plot}")

    print("Done!")
    return 0


def cmd_generate(args) -> int:
    """Write a synthetic problem."""
    import gridcrf

    problem, _ = gridcrf.create_synthetic_problem(
        shape=tuple(args.shape),
        num_labels=args.labels,
        channels=args.channels,
        noise=args.noise,
        seed=args.seed,
    )
    if Path(args.output).suffix.lower() == '.mat':
        saved = gridcrf.save_problem_mat(problem, args.output)
    else:
        saved = gridcrf.save_problem_npz(problem, args.output)
    print(f"Saved {args.shape[0]}x{args.shape[1]} problem with {args.labels} labels to: {saved}")
    return 0


def cmd_info(args) -> int:
    """Display file information."""
    filepath = Path(args.input)

    if not filepath.exists():
        print(f"File not found: {filepath}")
        return 1

    print(f"File: {filepath}")
    print(f"Size: {filepath.stat().st_size / 1024:.1f} KB")

    suffix = filepath.suffix.lower()

    if suffix == '.npz':
        with np.load(filepath, allow_pickle=False) as data:
            print("Format: NumPy NPZ")
            print(f"Keys: {list(data.files)}")

            for key in data.files:
                arr = data[key]
                print(f"  {key}: shape={arr.shape}, dtype={arr.dtype}")

            if 'image' in data.files and 'unary' in data.files:
                image = data['image']
                M, N = image.shape[:2]
                print("\nDetected: Labeling problem")
                print(f"  Grid: {M} x {N}, labels: {data['unary'].size // (M * N)}")
            elif 'labels' in data.files:
                print("\nDetected: Solve result")
                print(f"  Solver: {data['solver']}, energy: {float(data['energy']):.6f}, "
                      f"lower bound: {float(data['lower_bound']):.6f}")

    elif suffix == '.mat':
        try:
            from scipy.io import loadmat
            data = loadmat(str(filepath))
            print("Format: MATLAB MAT")
            print(f"Variables: {[k for k in data.keys() if not k.startswith('_')]}")
        except ImportError:
            print("Format: MATLAB MAT (install scipy for details)")

    else:
        print(f"Unknown format: {suffix}")

    return 0


if __name__ == '__main__':
    sys.exit(main())
