import argparse
import logging
import sys
from pathlib import Path

from analysis.mcmc_diagnostics import check_convergence, compute_chain_diagnostics
from analysis.model_runner import ModelRunner
from core.config_schema import LogLevel
from core.config_utils import (
    build_model_config,
    check_configuration_warnings,
    load_config,
    safe_get,
    validate_configuration,
)
from core.error_handling import ConvergenceError, SLFMError
from core.io_utils import save_csv, save_result
from data.data_matrix import load_matrix_csv
from data.synthetic import generate_synthetic_data
from visualization.report_generator import ReportGenerator, format_result

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
MODEL_OPTIONS = ("factors", "sample", "burnin", "lag", "seed", "degenerate", "init")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="slfm-run", description="Fit a Bayesian sparse latent factor model"
    )
    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--input", type=str,
                        help="CSV file, variables in rows, first column holds the row labels")
    source.add_argument("--synthetic", action="store_true",
                        help="Fit a noise-only 20 x 100 synthetic matrix")
    parser.add_argument("--config", type=str, default=None,
                        help="YAML configuration file (sections: model, monitoring, output)")
    parser.add_argument("--factors", type=int, default=None,
                        help="Number of latent factors K (required here or in the config)")
    parser.add_argument("--sample", type=int, default=None,
                        help="Number of retained MCMC iterations")
    parser.add_argument("--burnin", type=int, default=None,
                        help="Burn-in iterations (default: round(0.25 * sample))")
    parser.add_argument("--lag", type=int, default=None,
                        help="Thinning stride after burn-in")
    parser.add_argument("--degenerate", action="store_true", default=None,
                        help="Use a point mass at zero as spike component")
    parser.add_argument("--init", type=str, default=None, choices=["pca", "prior"],
                        help="Starting values of the sampler")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")
    parser.add_argument("--output-dir", type=str, default=None,
                        help="Directory for tables, chains and the report")
    parser.add_argument("--no-chains", action="store_true",
                        help="Do not save the raw chains")
    parser.add_argument("--diagnostics", action="store_true",
                        help="Compute ESS and split R-hat of lambda and sigma2")
    parser.add_argument("--html", action="store_true",
                        help="Also write an HTML report")
    parser.add_argument("--log-level", type=str, default=None,
                        choices=[level.value for level in LogLevel])
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config) if args.config else {}
    except (SLFMError, FileNotFoundError) as e:
        logging.basicConfig(level=logging.ERROR, format=LOG_FORMAT)
        logger.error(f"❌ Could not load configuration: {e}")
        return 1

    log_level = args.log_level or safe_get(config, "monitoring", "log_level", default="INFO")
    logging.basicConfig(level=getattr(logging, log_level), format=LOG_FORMAT)
    logging.info("Starting run_analysis.py")

    try:
        model_config = build_model_config(
            config, {name: getattr(args, name) for name in MODEL_OPTIONS}
        )
        sections = validate_configuration({**config, "model": model_config.to_dict()})
        for warning in check_configuration_warnings(model_config):
            logger.warning(warning)

        if args.synthetic:
            x = generate_synthetic_data(20, 100, seed=model_config.seed)["X"]
        else:
            x = load_matrix_csv(args.input)

        runner = ModelRunner(
            model_config, progress_interval=sections["monitoring"].progress_interval
        )
        result = runner.run(x)
    except (SLFMError, FileNotFoundError) as e:
        logger.error(f"❌ {type(e).__name__}: {e}")
        return 1

    report = format_result(result)
    print(report)

    output = sections["output"]
    output_dir = Path(args.output_dir or output.output_dir)
    save_result(result, output_dir, save_chains=output.save_chains and not args.no_chains)
    reports = ReportGenerator()
    reports.write_text_report(result, output_dir / "report.txt")

    diagnostics = None
    if args.diagnostics:
        diagnostics = compute_chain_diagnostics(result)
        save_csv(diagnostics, output_dir / "diagnostics.csv", index=True)
        try:
            check_convergence(diagnostics)
        except ConvergenceError as e:
            logger.warning(f"Convergence check: {e}")

    if args.html:
        reports.generate_html_report(result, output_dir / "report.html", diagnostics=diagnostics)

    logging.info(f"Results saved to {output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
