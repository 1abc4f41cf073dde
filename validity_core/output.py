"""
Result Files
============

Every run writes into one dated directory, and every file in it carries the
run date and analysis name so results from different runs never collide:

    {base}/{DATE}-{ANALYSIS}/{DATE}-{ANALYSIS}-{NAME}.{EXT}

Per-dimension Aiken tables are written as ``aiken-<dimension>.csv``.
"""

import re
from datetime import date
from pathlib import Path
from typing import Optional

import pandas as pd
import matplotlib.pyplot as plt

from . import config

KIND_BY_EXT = {'.csv': 'table', '.png': 'figure', '.txt': 'report'}


def get_output_dir(analysis_name: str, base: Optional[str] = None) -> Path:
    """
    Create (if needed) and return the dated directory for a run.

    Parameters:
        analysis_name: Lowercase-hyphen analysis name, e.g. 'content-validity'
        base: Parent directory. Defaults to config.DEFAULT_OUTPUT_BASE

    Returns:
        Path of the run directory
    """
    if base is None:
        base = config.DEFAULT_OUTPUT_BASE

    output_dir = Path(base) / f"{date.today().isoformat()}-{analysis_name}"
    output_dir.mkdir(parents=True, exist_ok=True)

    print(f"Output directory: {output_dir}")
    return output_dir


def slugify(name) -> str:
    """Lowercase a table or dimension name and join its words with hyphens."""
    return re.sub(r'[^a-z0-9]+', '-', str(name).lower()).strip('-')


def _dated_path(output_dir: Path, analysis_name: str, name: str, ext: str) -> Path:
    return Path(output_dir) / f"{date.today().isoformat()}-{analysis_name}-{name}.{ext}"


def save_table(
    df: pd.DataFrame,
    output_dir: Path,
    analysis_name: str,
    name: str,
    index: bool = False
) -> Path:
    """Write one result table as CSV and return its path."""
    filepath = _dated_path(output_dir, analysis_name, slugify(name), 'csv')
    df.to_csv(filepath, index=index)
    print(f"Saved table: {filepath.name}")
    return filepath


def save_dimension_tables(
    tables: dict[str, pd.DataFrame],
    output_dir: Path,
    analysis_name: str
) -> dict[str, Path]:
    """
    Write the per-dimension Aiken's V tables in one pass.

    Parameters:
        tables: Output of aiken.split_by_dimension()
        output_dir: Run directory
        analysis_name: Analysis name for the file names

    Returns:
        Dictionary mapping each dimension to the CSV written for it
    """
    return {
        dimension: save_table(table, output_dir, analysis_name, f"aiken-{slugify(dimension)}")
        for dimension, table in tables.items()
    }


def save_figure(
    fig: plt.Figure,
    output_dir: Path,
    analysis_name: str,
    name: str,
    dpi: Optional[int] = None
) -> Path:
    """Write a figure as PNG (config.DEFAULT_DPI unless given) and close it."""
    if dpi is None:
        dpi = config.DEFAULT_DPI

    filepath = _dated_path(output_dir, analysis_name, slugify(name), 'png')
    fig.savefig(filepath, dpi=dpi, bbox_inches='tight', facecolor='white')
    plt.close(fig)
    print(f"Saved figure: {filepath.name}")
    return filepath


def save_report(text: str, output_dir: Path, analysis_name: str) -> Path:
    """Write the run's text report."""
    filepath = _dated_path(output_dir, analysis_name, 'report', 'txt')
    filepath.write_text(text, encoding='utf-8')
    print(f"Saved report: {filepath.name}")
    return filepath


def summarize_run_files(output_dir: Path) -> dict[str, list[str]]:
    """
    Group the files of a run directory by kind and print the counts.

    Returns:
        Dictionary with 'table', 'figure' and 'report' file name lists
    """
    files = {kind: [] for kind in KIND_BY_EXT.values()}
    for path in sorted(Path(output_dir).glob('*')):
        kind = KIND_BY_EXT.get(path.suffix)
        if kind is not None:
            files[kind].append(path.name)

    print(f"\n{output_dir}: {len(files['table'])} table(s), "
          f"{len(files['figure'])} figure(s), {len(files['report'])} report(s)")
    return files
