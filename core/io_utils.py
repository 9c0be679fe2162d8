"""Reading and writing fitted-model outputs."""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Union

import numpy as np
import pandas as pd

logger = logging.getLogger(__name__)

SUMMARY_TABLES = {
    "classification": "classification.csv",
    "alpha": "alpha_summary.csv",
    "lambda_": "lambda_summary.csv",
    "sigma": "sigma_summary.csv",
}
# Index columns of each summary table as written by save_result
TABLE_INDEX = {
    "classification": ["variable", "factor"],
    "alpha": ["variable", "factor"],
    "lambda_": ["factor", "sample"],
    "sigma": ["variable"],
}
RUN_INFO_FILE = "run_info.json"
CHAINS_FILE = "chains.npz"
CALL_CATEGORIES = ["present", "marginal", "absent"]


def ensure_directory(dirpath: Union[str, Path]) -> Path:
    dirpath = Path(dirpath)
    dirpath.mkdir(parents=True, exist_ok=True)
    return dirpath


def save_json(data: Any, filepath: Union[str, Path], indent: int = 2) -> None:
    """Write ``data`` as indented JSON; values json cannot encode are stringified."""
    filepath = Path(filepath)
    ensure_directory(filepath.parent)
    try:
        with open(filepath, "w") as f:
            json.dump(data, f, indent=indent, default=str)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to save JSON to {filepath}: {e}")
        raise
    logger.debug(f"Saved JSON to {filepath}")


def load_json(filepath: Union[str, Path]) -> Any:
    with open(filepath, "r") as f:
        return json.load(f)


def save_csv(df: pd.DataFrame, filepath: Union[str, Path], index: bool = False, **kwargs) -> None:
    """Write a DataFrame as CSV, creating the parent directory; missing values as ``NA``."""
    filepath = Path(filepath)
    ensure_directory(filepath.parent)
    kwargs.setdefault("na_rep", "NA")
    df.to_csv(filepath, index=index, **kwargs)
    logger.debug(f"Saved CSV to {filepath}")


def save_chain_archive(
    chains: Mapping[str, np.ndarray], filepath: Union[str, Path], max_size_mb: int = 500
) -> Path:
    """
    Write several chains into one compressed ``.npz`` archive.

    Parameters
    ----------
    chains : Mapping[str, np.ndarray]
        Arrays keyed by chain name; the names become the archive keys
    filepath : Union[str, Path]
        Output path, forced to the ``.npz`` suffix
    max_size_mb : int, optional
        Total size above which a warning is logged

    Returns
    -------
    Path
        Path actually written
    """
    filepath = Path(filepath).with_suffix(".npz")
    ensure_directory(filepath.parent)

    total_mb = sum(np.asarray(chain).nbytes for chain in chains.values()) / (1024 * 1024)
    if total_mb > max_size_mb:
        logger.warning(
            f"Writing {total_mb:.1f}MB of chains to {filepath}; consider a larger lag"
        )

    np.savez_compressed(filepath, **{name: np.asarray(chain) for name, chain in chains.items()})
    logger.debug(f"Saved {len(chains)} chains to {filepath}")
    return filepath


def load_chain_archive(filepath: Union[str, Path]) -> Dict[str, np.ndarray]:
    with np.load(filepath) as archive:
        return {name: archive[name] for name in archive.files}


def save_result(result, output_dir: Union[str, Path], save_chains: bool = True) -> Path:
    """
    Persist a fitted model result.

    Writes the four summary tables as CSV, the configuration, data shape and
    classification counts to ``run_info.json`` and, unless
    ``save_chains`` is False, every post burn-in chain to ``chains.npz``.

    Parameters
    ----------
    result : SLFMResult
        Result returned by the model entry point
    output_dir : Union[str, Path]
        Directory to write into
    save_chains : bool, optional
        Whether to also write the raw chains

    Returns
    -------
    Path
        The output directory
    """
    output_dir = ensure_directory(output_dir)

    for attribute, filename in SUMMARY_TABLES.items():
        save_csv(getattr(result, attribute), output_dir / filename, index=True)

    save_json(
        {
            "config": result.config.to_dict(),
            "shape": {"variables": result.n_variables, "samples": result.n_samples},
            "classification_counts": result.classification_counts(),
        },
        output_dir / RUN_INFO_FILE,
    )

    if save_chains:
        save_chain_archive(
            {
                "p_star": result.p_star,
                "alpha": result.alpha_chain,
                "lambda": result.lambda_chain,
                "sigma2": result.sigma2_chain,
                "z": result.z_chain,
                "q": result.q_chain,
            },
            output_dir / CHAINS_FILE,
        )

    logger.info(f"Saved results to {output_dir}")
    return output_dir


def load_result(output_dir: Union[str, Path]) -> Dict[str, Any]:
    """
    Read back the files written by ``save_result``.

    Returns
    -------
    Dict with the summary tables (keys ``classification``, ``alpha``,
    ``lambda_``, ``sigma``, indexed as in the fitted result), ``run_info`` and,
    when they were saved, ``chains``

    Raises
    ------
    FileNotFoundError
        If ``output_dir`` does not hold a saved result
    """
    output_dir = Path(output_dir)
    if not (output_dir / RUN_INFO_FILE).exists():
        raise FileNotFoundError(f"No saved result in {output_dir}")

    loaded = {"run_info": load_json(output_dir / RUN_INFO_FILE)}
    for key, filename in SUMMARY_TABLES.items():
        table = pd.read_csv(
            output_dir / filename,
            index_col=TABLE_INDEX[key],
            keep_default_na=False,
            na_values=["NA"],
        )
        if "call" in table.columns:
            table["call"] = pd.Categorical(table["call"], categories=CALL_CATEGORIES)
        loaded[key] = table

    chains_path = output_dir / CHAINS_FILE
    if chains_path.exists():
        loaded["chains"] = load_chain_archive(chains_path)

    logger.info(f"Loaded result from {output_dir}")
    return loaded
