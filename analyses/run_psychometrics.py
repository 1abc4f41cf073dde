#!/usr/bin/env python3
"""
Psychometric Properties Script
==============================

Exploratory factor analysis, reliability and construct validity of the
survey instrument on the calibration half of the sample.

Parameters:
    data_file         - Path to survey responses CSV
    row_filters       - Column -> required value (consent, tool use); empty = none
    hampel_n_mad      - Total-score outlier bound in MADs (None = no screening)
    item_prefixes     - Item code prefixes (one per hypothesized factor)
    efa_sample_size   - Respondents drawn for the EFA half
    seed              - Random seed for the sample split
    n_factors         - Number of factors (None = parallel analysis)
    rotation, method  - factor_analyzer rotation and extraction method

Outputs:
    - Item descriptives, frequencies, univariate and Mardia normality (CSV)
    - Factorability tests, loadings, communalities (CSV)
    - Reliability, convergent and discriminant validity (CSV)
    - Scree plot, correlation, loadings and HTMT heatmaps (PNG)
    - Text report (TXT)
"""

import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import pandas as pd

from validity_core import config, data, efa, output, reliability, stats, viz

# =============================================================================
# PARAMETERS
# =============================================================================
DEFAULTS = {
    'data_file': config.DEFAULT_RESPONSES_FILE,
    'row_filters': config.DEFAULT_ROW_FILTERS,
    'item_prefixes': config.DEFAULT_ITEM_PREFIXES,
    'hampel_n_mad': config.HAMPEL_N_MAD,
    'efa_sample_size': config.DEFAULT_EFA_SAMPLE_SIZE,
    'seed': config.RANDOM_SEED,
    'n_factors': None,  # None = parallel analysis
    'rotation': config.DEFAULT_ROTATION,
    'method': config.DEFAULT_METHOD,
    'k': config.DEFAULT_K,
    'output_base': config.DEFAULT_OUTPUT_BASE,
}

ANALYSIS_NAME = 'psychometrics'


def run_analysis(params: dict, responses_df=None) -> dict:
    """
    Run the psychometric properties pipeline.

    Parameters:
        params: Dictionary with analysis parameters
        responses_df: Optional responses table; loaded from params['data_file'] if None

    Returns:
        Dictionary with all analysis results
    """
    print("=" * 70)
    print("PSYCHOMETRIC PROPERTIES")
    print("=" * 70)

    output_dir = output.get_output_dir(ANALYSIS_NAME, params['output_base'])
    viz.setup_style()

    # Step 1: Load, screen respondents, split sample
    print("\n" + "=" * 70)
    print("STEP 1: LOADING RESPONSES")
    print("=" * 70)

    if responses_df is None:
        responses_df = data.load_csv(params['data_file'])
    n_loaded = len(responses_df)
    if params['row_filters']:
        responses_df = data.filter_rows(responses_df, params['row_filters'])
    items_df = data.select_items(responses_df, params['item_prefixes'])
    if params['hampel_n_mad'] is not None:
        items_df = data.hampel_filter(items_df, n_mad=params['hampel_n_mad'])
    efa_df, holdout_df = data.split_sample(items_df, params['efa_sample_size'], params['seed'])
    efa_df = efa_df.dropna()
    item_names = list(efa_df.columns)

    # Step 2: Descriptives
    descriptives = stats.describe_items(efa_df)
    frequencies = stats.response_frequencies(efa_df, params['k'])
    normality = stats.run_normality_tests(efa_df)
    mardia = stats.mardia_test(efa_df)
    output.save_table(descriptives, output_dir, ANALYSIS_NAME, 'descriptives', index=True)
    output.save_table(frequencies, output_dir, ANALYSIS_NAME, 'frequencies', index=True)
    output.save_table(normality, output_dir, ANALYSIS_NAME, 'normality')
    output.save_table(pd.DataFrame([mardia]), output_dir, ANALYSIS_NAME, 'mardia')

    corr = efa_df.corr(method='spearman')
    output.save_figure(viz.plot_heatmap(corr, 'Item Correlations (Spearman)'),
                       output_dir, ANALYSIS_NAME, 'correlation')

    # Step 3: Factorability and retention
    values, _, _, _ = data.standardize_features(efa_df, item_names)
    factorability = efa.check_factorability(values, item_names)
    output.save_table(efa.get_factorability_summary(factorability),
                      output_dir, ANALYSIS_NAME, 'factorability')

    eigenvalues, kaiser_factors = efa.determine_num_factors(values, item_names)
    parallel = efa.parallel_analysis(values, seed=params['seed'])
    output.save_figure(viz.plot_scree(eigenvalues, parallel['random_threshold']),
                       output_dir, ANALYSIS_NAME, 'scree')

    n_factors = params['n_factors'] or max(1, parallel['n_factors'])

    # Step 4: EFA
    efa_results = efa.run_efa(values, item_names, n_factors,
                              rotation=params['rotation'], method=params['method'])
    output.save_table(efa_results['loadings'], output_dir, ANALYSIS_NAME, 'loadings', index=True)
    output.save_table(efa_results['communalities'], output_dir, ANALYSIS_NAME, 'communalities', index=True)
    output.save_figure(viz.plot_heatmap(efa_results['loadings'], 'Factor Loadings'),
                       output_dir, ANALYSIS_NAME, 'loadings')

    # Step 5: Reliability
    hypothesized = data.build_item_groups(item_names, params['item_prefixes'])
    alpha_table = reliability.reliability_summary(efa_df, hypothesized)
    item_alpha = reliability.alpha_if_item_deleted(efa_df)
    output.save_table(alpha_table, output_dir, ANALYSIS_NAME, 'reliability')
    output.save_table(item_alpha, output_dir, ANALYSIS_NAME, 'alpha-if-deleted', index=True)

    # Step 6: Convergent validity from the empirical factor structure
    factor_groups = efa.assign_items_to_factors(efa_results['loadings'])
    item_loadings = reliability.primary_loadings(efa_results['loadings'], factor_groups)
    convergent = reliability.convergent_validity(item_loadings, factor_groups)
    output.save_table(convergent, output_dir, ANALYSIS_NAME, 'convergent', index=True)

    # Step 7: Discriminant validity
    htmt_groups = {name: items for name, items in hypothesized.items() if len(items) >= 2}
    htmt_matrix = None
    htmt_pairs = None
    if len(htmt_groups) >= 2:
        htmt_matrix = reliability.htmt(corr, htmt_groups)
        htmt_pairs = reliability.flag_htmt(htmt_matrix)
        output.save_table(htmt_matrix, output_dir, ANALYSIS_NAME, 'htmt', index=True)
        output.save_figure(viz.plot_heatmap(htmt_matrix, 'HTMT', style='sequential'),
                           output_dir, ANALYSIS_NAME, 'htmt')

    fornell = None
    factor_corr = efa_results['factor_correlations']
    if factor_corr is None or len(convergent) < 2:
        print("\nFornell-Larcker skipped: needs an oblique solution and two factors with items")
    else:
        fornell = reliability.fornell_larcker(convergent['AVE'], factor_corr)
        output.save_table(fornell['matrix'], output_dir, ANALYSIS_NAME, 'fornell-larcker', index=True)

    # Step 8: Report
    screening = {'loaded': n_loaded, 'retained': len(items_df)}
    report = generate_report(factorability, parallel, kaiser_factors, efa_results,
                             alpha_table, convergent, htmt_pairs, fornell, mardia,
                             screening, len(efa_df), len(holdout_df), params)
    output.save_report(report, output_dir, ANALYSIS_NAME)

    print("\n" + "=" * 70)
    print("ANALYSIS COMPLETE")
    print("=" * 70)
    output.summarize_run_files(output_dir)

    return {
        'screened': items_df,
        'efa_sample': efa_df,
        'holdout_sample': holdout_df,
        'mardia': mardia,
        'factorability': factorability,
        'efa': efa_results,
        'reliability': alpha_table,
        'convergent': convergent,
        'htmt': htmt_matrix,
        'fornell_larcker': fornell,
        'output_dir': output_dir,
    }


def generate_report(factorability, parallel, kaiser_factors, efa_results, alpha_table,
                    convergent, htmt_pairs, fornell, mardia, screening,
                    n_efa, n_holdout, params):
    """Generate text report summarizing the psychometric analysis."""
    lines = [
        "=" * 70,
        "PSYCHOMETRIC PROPERTIES REPORT",
        "=" * 70,
        "",
        "CONFIGURATION",
        "-" * 50,
        f"Data file: {params['data_file']}",
        f"Respondents: {screening['loaded']} loaded, {screening['retained']} after screening",
        f"EFA sample: {n_efa} respondents (holdout: {n_holdout})",
        f"Extraction: {efa_results['method']}, rotation: {efa_results['rotation']}",
        "",
        "MULTIVARIATE NORMALITY (Mardia)",
        "-" * 50,
        f"Skewness: {mardia['skewness']:.3f} (p={mardia['skewness_p_value']:.4f})",
        f"Kurtosis: {mardia['kurtosis']:.3f} (p={mardia['kurtosis_p_value']:.4f})",
        "",
        "FACTORABILITY",
        "-" * 50,
        f"Bartlett's test: p={factorability['bartlett_p_value']:.2e} "
        f"({'PASS' if factorability['bartlett_pass'] else 'FAIL'})",
        f"KMO: {factorability['kmo_overall']:.3f} ({factorability['kmo_label']})",
        "",
        "FACTOR RETENTION",
        "-" * 50,
        f"Kaiser criterion: {kaiser_factors}",
        f"Parallel analysis: {parallel['n_factors']}",
        f"Factors extracted: {efa_results['n_factors']}",
        "",
        f"SALIENT LOADINGS (> {config.LOADING_THRESHOLD})",
        "-" * 50,
    ]

    for factor, loaders in efa.interpret_factors(efa_results['loadings']).items():
        lines.append(f"\n{factor}:")
        for var, loading in loaders:
            lines.append(f"  {var}: {loading:.2f}")

    lines.extend([
        "",
        f"Total variance explained: "
        f"{efa_results['variance'].loc['Cumulative_Var'].iloc[-1]*100:.1f}%",
        "",
        "RELIABILITY",
        "-" * 50,
        alpha_table.round(3).to_string(index=False),
        "",
        "CONVERGENT VALIDITY",
        "-" * 50,
        convergent.round(3).to_string(),
        "",
    ])

    if htmt_pairs is not None:
        lines.extend(["HTMT", "-" * 50, htmt_pairs.round(3).to_string(index=False), ""])

    if fornell is not None:
        lines.extend([
            "FORNELL-LARCKER (AVE diagonal, squared correlations above)",
            "-" * 50,
            fornell['matrix'].round(4).to_string(),
            "",
        ])

    lines.append("=" * 70)
    return "\n".join(lines)


# =============================================================================
# ENTRY POINT
# =============================================================================
if __name__ == '__main__':
    params = {**DEFAULTS}
    results = run_analysis(params)
