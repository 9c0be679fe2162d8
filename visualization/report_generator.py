# visualization/report_generator.py
"""Report generation module."""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

logger = logging.getLogger(__name__)


def format_result(result) -> str:
    """Plain-text summary of a fitted model.

    Shows the sizes of the loading and factor-score tables, the number of
    loadings per call and the call of every loading as a variable x factor
    table. Nothing is computed here beyond counting.
    """
    calls = pd.DataFrame(
        result.loading_calls(),
        index=pd.Index(result.variable_names, name="variable"),
        columns=result.classification.index.get_level_values("factor").unique(),
    )
    counts = result.classification_counts()
    variant = "degenerate" if result.config.degenerate else "normal-normal"

    lines = [
        "SLFM object",
        "",
        f"Data: {result.n_variables} variables x {result.n_samples} samples, "
        f"K={result.factors} ({variant} mixture)",
        f"Draws: {result.n_draws} after burn-in={result.config.burnin}, lag={result.config.lag}",
        "",
        "Dimensions",
        f"- alpha: {len(result.alpha)}",
        f"- lambda: {len(result.lambda_)}",
        "",
        "Classification counts:",
    ]
    lines += [f"- {call}: {count}" for call, count in counts.items()]
    lines += ["", "Classification:", calls.to_string()]
    return "\n".join(lines)


class ReportGenerator:
    """Generates text and HTML reports for a fitted model."""

    def write_text_report(self, result, path: Union[str, Path]) -> Path:
        """Write ``format_result(result)`` to a file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(format_result(result) + "\n")
        logger.info(f"Report saved to: {path}")
        return path

    def generate_html_report(
        self, result, path: Union[str, Path], diagnostics: Optional[pd.DataFrame] = None
    ) -> Path:
        """Write an HTML page with the classification and summary tables to ``path``."""
        logger.info("Generating HTML report")

        html_content = self._create_html_header()
        html_content += self._create_data_section(result)
        html_content += self._create_classification_section(result)
        html_content += self._create_table_section("Loadings (selected component)", result.alpha)
        html_content += self._create_table_section("Residual variances", result.sigma)
        if diagnostics is not None:
            html_content += self._create_table_section("Chain diagnostics", diagnostics)
        html_content += self._create_html_footer()

        report_path = Path(path)
        report_path.parent.mkdir(parents=True, exist_ok=True)

        with open(report_path, "w") as f:
            f.write(html_content)

        logger.info(f"Report saved to: {report_path}")
        return report_path

    def _create_html_header(self) -> str:
        return """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>Sparse Latent Factor Model Report</title>
<style>
body { font-family: sans-serif; margin: 2em; }
h2 { margin-top: 1.5em; }
table { border-collapse: collapse; }
th, td { border: 1px solid #ccc; padding: 2px 6px; text-align: right; }
</style>
</head>
<body>
<h1>Sparse Latent Factor Model Report</h1>
"""

    def _create_data_section(self, result) -> str:
        variant = "degenerate" if result.config.degenerate else "normal-normal"
        return (
            "<h2>Data and sampler</h2>\n<ul>\n"
            f"<li>{result.n_variables} variables x {result.n_samples} samples</li>\n"
            f"<li>K={result.factors}, {variant} mixture</li>\n"
            f"<li>{result.n_draws} retained draws</li>\n</ul>\n"
        )

    def _create_classification_section(self, result) -> str:
        items = "".join(
            f"<li>{call}: {count}</li>\n" for call, count in result.classification_counts().items()
        )
        return (
            f"<h2>Classification</h2>\n<ul>\n{items}</ul>\n"
            + self._create_table_section("Calls per loading", result.classification, heading=False)
        )

    def _create_table_section(self, title: str, table: pd.DataFrame, heading: bool = True) -> str:
        header = f"<h2>{title}</h2>\n" if heading else ""
        return header + table.to_html(na_rep="NA", float_format=lambda v: f"{v:.4f}") + "\n"

    def _create_html_footer(self) -> str:
        return "</body>\n</html>\n"
