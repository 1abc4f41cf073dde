#!/usr/bin/env python3
"""
Content Validity Analysis Script
================================

Computes Aiken's V with score confidence intervals for every item judged
by the expert panel, separately for each dimension (relevance, wording).

Parameters:
    data_file     - Path to wide ratings CSV (one row per judge per dimension)
    k             - Number of scale categories
    confidence    - CI coverage
    decimals      - Presentation rounding
    skip_invalid  - Skip items with out-of-range ratings instead of aborting

Outputs:
    - Full item table (CSV)
    - One table per dimension (CSV)
    - Aiken's V interval plot (PNG)
    - Text report (TXT)
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from validity_core import aiken, config, data, output, viz

# =============================================================================
# PARAMETERS
# =============================================================================
DEFAULTS = {
    'data_file': config.DEFAULT_RATINGS_FILE,
    'k': config.DEFAULT_K,
    'confidence': config.DEFAULT_CONFIDENCE,
    'decimals': config.ROUND_DECIMALS,
    'skip_invalid': False,
    'output_base': config.DEFAULT_OUTPUT_BASE,
}

ANALYSIS_NAME = 'content-validity'


# =============================================================================
# MAIN ANALYSIS
# =============================================================================
def run_analysis(params: dict, ratings_df=None) -> dict:
    """
    Run the content validity pipeline.

    Parameters:
        params: Dictionary with analysis parameters
        ratings_df: Optional wide ratings table; loaded from params['data_file'] if None

    Returns:
        Dictionary with all analysis results
    """
    print("=" * 70)
    print("CONTENT VALIDITY ANALYSIS (AIKEN'S V)")
    print("=" * 70)

    output_dir = output.get_output_dir(ANALYSIS_NAME, params['output_base'])

    # Step 1: Load and reshape ratings
    print("\n" + "=" * 70)
    print("STEP 1: LOADING RATINGS")
    print("=" * 70)

    if ratings_df is None:
        ratings_df = data.load_csv(params['data_file'])
    long_df = data.ratings_to_long(ratings_df)

    # Step 2: Item statistics
    results = aiken.compute_item_statistics(
        long_df,
        k=params['k'],
        confidence=params['confidence'],
        skip_invalid=params['skip_invalid'],
    )
    flagged = aiken.flag_items(results)

    # Step 3: Tables
    rounded = aiken.round_results(results, params['decimals'])
    tables = aiken.split_by_dimension(rounded)

    if results.empty:
        print("\nNo valid items left; skipping tables and plot")
    else:
        output.save_table(rounded, output_dir, ANALYSIS_NAME, 'items')
        output.save_dimension_tables(tables, output_dir, ANALYSIS_NAME)

        for dimension, table in tables.items():
            print(f"\n{dimension.upper()}")
            print("-" * 60)
            print(table.to_string(index=False))

        # Step 4: Plot
        viz.setup_style()
        fig = viz.plot_aiken_by_dimension(results)
        output.save_figure(fig, output_dir, ANALYSIS_NAME, 'aiken-v')

    # Step 5: Report
    report = generate_report(tables, flagged, params)
    output.save_report(report, output_dir, ANALYSIS_NAME)

    print("\n" + "=" * 70)
    print("ANALYSIS COMPLETE")
    print("=" * 70)
    output.summarize_run_files(output_dir)

    return {
        'long': long_df,
        'results': results,
        'tables': tables,
        'flagged': flagged,
        'output_dir': output_dir,
    }


def generate_report(tables, flagged, params, item_col='item'):
    """Generate text report summarizing content validity."""
    lines = [
        "=" * 70,
        "CONTENT VALIDITY REPORT (AIKEN'S V)",
        "=" * 70,
        "",
        "CONFIGURATION",
        "-" * 50,
        f"Data file: {params['data_file']}",
        f"Scale categories (k): {params['k']}",
        f"Confidence level: {params['confidence']*100:g}%",
        "",
    ]

    if not tables:
        lines.extend(["No items passed validation.", ""])

    for dimension, table in tables.items():
        lines.extend([
            f"DIMENSION: {dimension}",
            "-" * 50,
            table.to_string(index=False),
            "",
        ])

    lines.append(f"ITEMS WITH CI LOWER BOUND BELOW {config.AIKEN_MIN_ACCEPTABLE}")
    lines.append("-" * 50)
    if len(flagged) == 0:
        lines.append("None")
    for _, row in flagged.iterrows():
        lines.append(f"{row[config.DIMENSION_COL]} / {row[item_col]}: V={row['V']:.3f} "
                     f"[{row['ci_lower']:.3f}, {row['ci_upper']:.3f}]")

    lines.extend(["", "=" * 70])
    return "\n".join(lines)


# =============================================================================
# ENTRY POINT
# =============================================================================
if __name__ == '__main__':
    params = {**DEFAULTS}
    results = run_analysis(params)
