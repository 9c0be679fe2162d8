"""Tests for visualization.report_generator module."""

import pandas as pd

from visualization.report_generator import ReportGenerator, format_result


class TestFormatResult:
    """Test the plain-text summary."""

    def test_header_and_dimensions(self, fitted_result):
        text = format_result(fitted_result)
        lines = text.splitlines()

        assert lines[0] == "SLFM object"
        assert "10 variables x 25 samples, K=2 (normal-normal mixture)" in text
        assert "Draws: 60 after burn-in=20, lag=1" in text
        assert "- alpha: 20" in lines
        assert "- lambda: 50" in lines

    def test_counts_listed_for_every_call(self, fitted_result):
        lines = format_result(fitted_result).splitlines()
        counts = fitted_result.classification_counts()

        for call in ("present", "marginal", "absent"):
            assert f"- {call}: {counts[call]}" in lines

    def test_call_table(self, fitted_result):
        text = format_result(fitted_result)
        table = text.split("Classification:\n", 1)[1].splitlines()

        assert "F1" in table[0] and "F2" in table[0]
        # Header, index name row, one row per variable
        assert len(table) == 2 + 10
        assert table[2].split() == ["V1", "present", "absent"]


class TestReportGenerator:
    """Test report files."""

    def test_text_report(self, fitted_result, temp_dir):
        path = ReportGenerator().write_text_report(fitted_result, temp_dir / "out" / "report.txt")

        assert path.exists()
        assert path.read_text().startswith("SLFM object")

    def test_html_report(self, fitted_result, temp_dir):
        diagnostics = pd.DataFrame({"ess": [100.0], "r_hat": [1.01]}, index=["sigma2[V1]"])

        path = ReportGenerator().generate_html_report(
            fitted_result, temp_dir / "out" / "report.html", diagnostics=diagnostics
        )

        assert path.exists()
        html = path.read_text()
        assert "<h2>Classification</h2>" in html
        assert "Chain diagnostics" in html
        assert "Residual variances" in html
        assert html.strip().endswith("</html>")

    def test_html_report_without_diagnostics(self, fitted_result, temp_dir):
        path = ReportGenerator().generate_html_report(fitted_result, temp_dir / "report.html")
        html = path.read_text()
        assert "Chain diagnostics" not in html
