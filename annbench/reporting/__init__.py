"""
Reporting module for query run reports.

Provides export to:
    - JSON (stats file)
    - CSV
    - Visualizations (Matplotlib/Seaborn), imported on demand
"""

from annbench.reporting.exporter import CSVExporter, JSONExporter

__all__ = [
    "JSONExporter",
    "CSVExporter",
]
