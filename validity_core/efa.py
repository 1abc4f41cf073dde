"""
Exploratory Factor Analysis Module
===================================

Factorability testing, factor retention, factor extraction and score
calculation for Likert-type survey items.
"""

import pandas as pd
import numpy as np
from factor_analyzer import FactorAnalyzer
from factor_analyzer.factor_analyzer import calculate_bartlett_sphericity, calculate_kmo
from typing import Optional

from . import config


def _factor_names(n_factors: int) -> list[str]:
    return [f'Factor_{i+1}' for i in range(n_factors)]


def check_factorability(data: np.ndarray, var_names: list[str]) -> dict:
    """
    Test whether data is suitable for factor analysis.

    Performs:
    - Bartlett's Test of Sphericity: Should be significant (p < 0.05)
    - KMO (Kaiser-Meyer-Olkin): Should be > 0.6, ideally > 0.8

    Parameters:
        data: Item response array (n_respondents x n_items)
        var_names: List of item names

    Returns:
        Dictionary with test results and interpretations
    """
    chi_square, p_value = calculate_bartlett_sphericity(data)
    kmo_all, kmo_model = calculate_kmo(data)

    results = {
        'bartlett_chi_square': chi_square,
        'bartlett_p_value': p_value,
        'bartlett_pass': p_value < 0.05,
        'kmo_overall': kmo_model,
        'kmo_label': config.get_kmo_label(kmo_model),
        'kmo_per_variable': dict(zip(var_names, kmo_all)),
    }

    print("\n" + "=" * 60)
    print("FACTORABILITY TESTS")
    print("=" * 60)

    print(f"\nBartlett's Test of Sphericity:")
    print(f"  Chi-square: {chi_square:,.2f}")
    print(f"  p-value: {p_value:.2e}")
    print(f"  Result: {'PASS' if results['bartlett_pass'] else 'FAIL'}")

    print(f"\nKaiser-Meyer-Olkin (KMO) Measure:")
    print(f"  Overall KMO: {kmo_model:.3f} ({results['kmo_label']})")

    print(f"\n  Per-item KMO:")
    for var, kmo in results['kmo_per_variable'].items():
        print(f"    {var}: {kmo:.3f} ({config.get_kmo_label(kmo)})")

    return results


def determine_num_factors(data: np.ndarray, var_names: Optional[list[str]] = None) -> tuple:
    """
    Determine number of factors using Kaiser criterion.

    Kaiser criterion: Retain factors with eigenvalue > 1

    Parameters:
        data: Item response array
        var_names: Optional item names (for sizing)

    Returns:
        Tuple of (eigenvalues array, suggested number of factors)
    """
    n_vars = data.shape[1] if var_names is None else len(var_names)

    # Fit with max possible factors to get all eigenvalues
    fa = FactorAnalyzer(n_factors=n_vars, rotation=None)
    fa.fit(data)
    eigenvalues, _ = fa.get_eigenvalues()

    kaiser_factors = int(sum(eigenvalues > 1))

    print("\n" + "=" * 60)
    print("FACTOR RETENTION CRITERIA")
    print("=" * 60)

    print(f"\nEigenvalues:")
    for i, ev in enumerate(eigenvalues, 1):
        marker = " <-- Kaiser cutoff" if i == kaiser_factors and ev > 1 else ""
        print(f"  Factor {i}: {ev:.3f}{marker}")

    print(f"\nKaiser Criterion (eigenvalue > 1): {kaiser_factors} factors")

    total_var = sum(eigenvalues)
    cum_var = np.cumsum(eigenvalues) / total_var * 100
    print(f"\nCumulative variance explained:")
    for i in range(min(kaiser_factors + 1, len(eigenvalues))):
        print(f"  {i+1} factor(s): {cum_var[i]:.1f}%")

    return eigenvalues, kaiser_factors


def parallel_analysis(
    data: np.ndarray,
    n_iter: Optional[int] = None,
    seed: Optional[int] = None,
    percentile: float = 95
) -> dict:
    """
    Horn's parallel analysis on the correlation matrix eigenvalues.

    Retains factors whose observed eigenvalue exceeds the chosen
    percentile of eigenvalues from random normal data of the same shape.

    Parameters:
        data: Item response array
        n_iter: Number of random datasets. Defaults to config.PARALLEL_ITERATIONS
        seed: Random seed. Defaults to config.RANDOM_SEED
        percentile: Percentile of the random eigenvalues used as cutoff

    Returns:
        Dictionary with observed and random eigenvalues and suggested factors
    """
    if n_iter is None:
        n_iter = config.PARALLEL_ITERATIONS
    if seed is None:
        seed = config.RANDOM_SEED

    data = np.asarray(data, dtype=float)
    n_obs, n_vars = data.shape

    observed = np.sort(np.linalg.eigvalsh(np.corrcoef(data, rowvar=False)))[::-1]

    rng = np.random.default_rng(seed)
    simulated = np.empty((n_iter, n_vars))
    for i in range(n_iter):
        noise = rng.standard_normal((n_obs, n_vars))
        simulated[i] = np.sort(np.linalg.eigvalsh(np.corrcoef(noise, rowvar=False)))[::-1]

    threshold = np.percentile(simulated, percentile, axis=0)

    # Count leading eigenvalues above the random threshold
    above = observed > threshold
    n_factors = int(np.argmin(above)) if not above.all() else n_vars

    print("\n" + "=" * 60)
    print(f"PARALLEL ANALYSIS ({n_iter} iterations, {percentile:g}th percentile)")
    print("=" * 60)
    for i, (obs, rand) in enumerate(zip(observed, threshold), 1):
        marker = " *" if i <= n_factors else ""
        print(f"  Factor {i}: observed {obs:.3f} vs random {rand:.3f}{marker}")
    print(f"\nSuggested factors: {n_factors}")

    return {
        'observed': observed,
        'random_mean': simulated.mean(axis=0),
        'random_threshold': threshold,
        'n_factors': n_factors,
    }


def run_efa(
    data: np.ndarray,
    var_names: list[str],
    n_factors: int,
    rotation: Optional[str] = None,
    method: Optional[str] = None
) -> dict:
    """
    Run Exploratory Factor Analysis with specified rotation.

    Parameters:
        data: Item response array
        var_names: List of item names
        n_factors: Number of factors to extract
        rotation: Rotation method. Defaults to config.DEFAULT_ROTATION
        method: Extraction method. Defaults to config.DEFAULT_METHOD

    Returns:
        Dictionary with factor_analyzer, loadings, communalities, variance,
        and factor correlations (oblique rotations only)
    """
    if rotation is None:
        rotation = config.DEFAULT_ROTATION
    if method is None:
        method = config.DEFAULT_METHOD

    fa = FactorAnalyzer(n_factors=n_factors, rotation=rotation, method=method)
    fa.fit(data)

    factor_cols = _factor_names(n_factors)

    loadings = pd.DataFrame(fa.loadings_, index=var_names, columns=factor_cols)

    communalities = pd.DataFrame(
        fa.get_communalities(),
        index=var_names,
        columns=['Communality']
    )

    variance = fa.get_factor_variance()
    variance_df = pd.DataFrame(
        variance,
        index=['Variance', 'Proportional_Var', 'Cumulative_Var'],
        columns=factor_cols
    )

    phi = getattr(fa, 'phi_', None)
    factor_corr = None
    if phi is not None:
        factor_corr = pd.DataFrame(phi, index=factor_cols, columns=factor_cols)

    print("\n" + "=" * 60)
    print(f"FACTOR ANALYSIS ({n_factors} factors, {method}, {rotation} rotation)")
    print("=" * 60)

    print("\nFactor Loadings:")
    print("-" * 50)
    print(loadings.round(3).to_string())

    print("\nCommunalities:")
    print("-" * 50)
    for var in var_names:
        comm = communalities.loc[var, 'Communality']
        status = "LOW" if comm < 0.4 else "OK"
        print(f"  {var}: {comm:.3f} [{status}]")

    print(f"\nTotal variance explained: {variance[2][-1]*100:.1f}%")

    if factor_corr is not None:
        print("\nFactor Correlations:")
        print(factor_corr.round(3).to_string())

    return {
        'factor_analyzer': fa,
        'loadings': loadings,
        'communalities': communalities,
        'variance': variance_df,
        'factor_correlations': factor_corr,
        'n_factors': n_factors,
        'rotation': rotation,
        'method': method,
    }


def calculate_factor_scores(
    fa: FactorAnalyzer,
    data: np.ndarray,
    valid_indices: Optional[pd.Index] = None
) -> pd.DataFrame:
    """
    Calculate factor scores for each respondent.

    Parameters:
        fa: Fitted FactorAnalyzer object
        data: Item response array
        valid_indices: Optional index to assign to output DataFrame

    Returns:
        DataFrame with factor scores (n_respondents x n_factors)
    """
    scores = fa.transform(data)
    scores_df = pd.DataFrame(
        scores,
        index=valid_indices,
        columns=_factor_names(scores.shape[1])
    )

    print(f"\nCalculated {scores.shape[1]} factor scores for {len(scores_df):,} respondents")
    return scores_df


def interpret_factors(
    loadings: pd.DataFrame,
    threshold: Optional[float] = None
) -> dict[str, list[tuple[str, float]]]:
    """
    Generate factor interpretations based on salient loadings.

    Parameters:
        loadings: Factor loadings DataFrame
        threshold: Minimum absolute loading to consider. Defaults to config.LOADING_THRESHOLD

    Returns:
        Dictionary mapping factor names to list of (item, loading) tuples,
        strongest first
    """
    if threshold is None:
        threshold = config.LOADING_THRESHOLD

    interpretations = {}
    for col in loadings.columns:
        high_loaders = loadings[abs(loadings[col]) > threshold][col]
        high_loaders = high_loaders.reindex(high_loaders.abs().sort_values(ascending=False).index)
        interpretations[col] = [(var, loading) for var, loading in high_loaders.items()]

    return interpretations


def assign_items_to_factors(
    loadings: pd.DataFrame,
    threshold: Optional[float] = None
) -> dict[str, list[str]]:
    """
    Assign each item to the factor it loads on most strongly.

    Items whose largest absolute loading does not exceed the threshold
    are left unassigned.

    Parameters:
        loadings: Factor loadings DataFrame
        threshold: Minimum absolute loading. Defaults to config.LOADING_THRESHOLD

    Returns:
        Dictionary mapping factor name to its items (factors with no items omitted)
    """
    if threshold is None:
        threshold = config.LOADING_THRESHOLD

    primary = loadings.abs().idxmax(axis=1)
    strength = loadings.abs().max(axis=1)

    groups = {}
    for col in loadings.columns:
        members = [item for item in loadings.index
                   if primary[item] == col and strength[item] > threshold]
        if members:
            groups[col] = members
    return groups


def get_factorability_summary(results: dict) -> pd.DataFrame:
    """
    Convert factorability results to a summary DataFrame.

    Parameters:
        results: Output from check_factorability()

    Returns:
        DataFrame with factorability test results
    """
    rows = [
        {'Test': 'Bartlett_Chi_Square', 'Value': results['bartlett_chi_square'], 'Interpretation': ''},
        {'Test': 'Bartlett_p_value', 'Value': results['bartlett_p_value'],
         'Interpretation': 'PASS' if results['bartlett_pass'] else 'FAIL'},
        {'Test': 'KMO_Overall', 'Value': results['kmo_overall'], 'Interpretation': results['kmo_label']},
    ]

    for var, kmo in results['kmo_per_variable'].items():
        rows.append({
            'Test': f'KMO_{var}',
            'Value': kmo,
            'Interpretation': config.get_kmo_label(kmo)
        })

    return pd.DataFrame(rows)
