"""
CLI entry-point for supportvector.

Usage:
    python -m supportvector fit --csv data.csv --formula "species ~ ."
    python -m supportvector fit --csv data.csv --formula "price ~ x1 + x2" \
        --output confusion --weights wgt --save-dir outputs
"""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pandas as pd  # noqa: E402

from .models.machine import SupportVectorMachine  # noqa: E402
from .utils.config import load_config  # noqa: E402
from .utils.logger import add_file_sink, get_logger, set_level  # noqa: E402

logger = get_logger(__name__)

_OUTPUT_CHOICES = {
    "accuracy": "Accuracy",
    "confusion": "Confusion Matrix",
    "detail": "Detail",
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="supportvector",
        description="Fit a support vector machine to a CSV and report on it.",
    )
    sub = parser.add_subparsers(dest="command")

    # ── fit ────────────────────────────────────────────────────────
    fit_p = sub.add_parser("fit", help="Fit a model and print the selected output.")
    fit_p.add_argument("--csv", required=True, help="Path to input CSV.")
    fit_p.add_argument("--formula", required=True, help='Model formula, e.g. "y ~ x1 + x2".')
    fit_p.add_argument("--output", choices=sorted(_OUTPUT_CHOICES), default=None, help="Output to produce.")
    fit_p.add_argument("--missing", choices=["error", "exclude"], default=None, help="Missing-data policy.")
    fit_p.add_argument("--cost", type=float, default=None, help="SVM cost (must be positive).")
    fit_p.add_argument("--seed", type=int, default=None, help="Random seed.")
    fit_p.add_argument("--subset", default=None, help="Boolean column selecting the cases to use.")
    fit_p.add_argument("--weights", default=None, help="Column of sampling weights.")
    fit_p.add_argument("--config", default=None, help="YAML config file.")
    fit_p.add_argument("--save-dir", default=None, help="Directory for the rendered output.")
    fit_p.add_argument("--save-model", default=None, help="Path for the fitted estimator (.pkl).")
    return parser


def run_fit(args: argparse.Namespace) -> SupportVectorMachine:
    cfg = load_config(args.config)
    set_level(cfg.logging.level)
    if cfg.logging.file:
        add_file_sink(cfg.logging.file)

    data = pd.read_csv(args.csv)
    logger.info(f"Loaded {len(data)} rows × {data.shape[1]} columns from {args.csv}")

    output = _OUTPUT_CHOICES[args.output] if args.output else cfg.svm.output
    svm = SupportVectorMachine(
        args.formula,
        data,
        subset=args.subset,
        weights=args.weights,
        output=output,
        missing=args.missing or cfg.svm.missing,
        cost=args.cost if args.cost is not None else cfg.svm.cost,
        seed=args.seed if args.seed is not None else cfg.svm.seed,
        kernel=cfg.svm.kernel,
        gamma=cfg.svm.gamma,
    )

    plot_kwargs = {}
    if svm.output == "Confusion Matrix":
        plot_kwargs = dict(
            cmap=cfg.reporting.cmap,
            dpi=cfg.reporting.dpi,
            annotate_max_rows=cfg.reporting.annotate_max_rows,
        )
    rendered = svm.render(save_dir=args.save_dir, decimals=cfg.reporting.decimals, **plot_kwargs)
    if isinstance(rendered, str):
        print(rendered)
    else:
        plt.close(rendered)

    if args.save_model:
        svm.save(args.save_model)
    return svm


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "fit":
        try:
            run_fit(args)
        except (ValueError, FileNotFoundError) as exc:
            logger.error(str(exc))
            sys.exit(1)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
