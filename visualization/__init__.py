"""
Visualization package for the sparse latent factor model.

- format_result: Plain-text summary of a fitted model
- ReportGenerator: Text and HTML reports
"""

from .report_generator import ReportGenerator, format_result

__all__ = ["ReportGenerator", "format_result"]
