"""
Reliability and Construct Validity Module
=========================================

Internal consistency (Cronbach's alpha with Feldt confidence interval),
convergent validity (composite reliability, AVE) and discriminant validity
(HTMT ratio, Fornell-Larcker criterion).

Loadings passed to these functions are standardized loadings, e.g. from
run_efa() in the efa module.
"""

import itertools

import pandas as pd
import numpy as np
from scipy import stats as scipy_stats
from typing import Optional

from . import config


# =============================================================================
# INTERNAL CONSISTENCY
# =============================================================================
def cronbach_alpha(df: pd.DataFrame) -> float:
    """
    Cronbach's alpha on complete cases.

    Parameters:
        df: Item responses (respondents x items), at least two items

    Returns:
        Alpha coefficient
    """
    data = df.dropna()
    n_items = data.shape[1]
    if n_items < 2:
        raise ValueError(f"Cronbach's alpha needs at least 2 items, got {n_items}")
    if len(data) < 2:
        raise ValueError("Cronbach's alpha needs at least 2 complete respondents")

    item_var = data.var(axis=0, ddof=1).sum()
    total_var = data.sum(axis=1).var(ddof=1)

    return float(n_items / (n_items - 1) * (1 - item_var / total_var))


def alpha_ci(
    alpha: float,
    n_obs: int,
    n_items: int,
    confidence: Optional[float] = None
) -> tuple[float, float]:
    """
    Feldt confidence interval for Cronbach's alpha.

    Parameters:
        alpha: Sample alpha
        n_obs: Number of respondents
        n_items: Number of items
        confidence: Coverage. Defaults to config.DEFAULT_CONFIDENCE

    Returns:
        Tuple of (lower, upper)
    """
    if confidence is None:
        confidence = config.DEFAULT_CONFIDENCE
    if n_obs < 2 or n_items < 2:
        raise ValueError("Feldt interval needs n_obs >= 2 and n_items >= 2")

    tail = (1 - confidence) / 2
    df1 = n_obs - 1
    df2 = (n_obs - 1) * (n_items - 1)

    lower = 1 - (1 - alpha) * scipy_stats.f.ppf(1 - tail, df1, df2)
    upper = 1 - (1 - alpha) * scipy_stats.f.ppf(tail, df1, df2)
    return float(lower), float(upper)


def alpha_if_item_deleted(df: pd.DataFrame) -> pd.DataFrame:
    """
    Alpha recomputed with each item removed, plus corrected item-total correlation.

    Parameters:
        df: Item responses, at least three items

    Returns:
        DataFrame indexed by item with alpha_if_deleted and item_total_r
    """
    data = df.dropna()
    rows = []
    for item in data.columns:
        rest = data.drop(columns=item)
        rows.append({
            'item': item,
            'alpha_if_deleted': cronbach_alpha(rest),
            'item_total_r': data[item].corr(rest.sum(axis=1)),
        })
    return pd.DataFrame(rows).set_index('item')


def reliability_summary(
    df: pd.DataFrame,
    groups: Optional[dict[str, list[str]]] = None,
    confidence: Optional[float] = None
) -> pd.DataFrame:
    """
    Alpha and its confidence interval for the full scale and each subscale.

    Parameters:
        df: Item responses
        groups: Optional mapping of subscale name to its items
        confidence: Coverage. Defaults to config.DEFAULT_CONFIDENCE

    Returns:
        DataFrame with one row per scale
    """
    scales = {'Total': list(df.columns)}
    if groups:
        scales.update(groups)

    rows = []
    for name, items in scales.items():
        if len(items) < 2:
            print(f"  {name}: skipped (fewer than 2 items)")
            continue
        subset = df[items].dropna()
        alpha = cronbach_alpha(subset)
        lower, upper = alpha_ci(alpha, len(subset), len(items), confidence)
        rows.append({
            'scale': name,
            'n_items': len(items),
            'n_obs': len(subset),
            'alpha': alpha,
            'ci_lower': lower,
            'ci_upper': upper,
            'label': config.get_alpha_label(alpha),
        })

    summary = pd.DataFrame(rows)

    print("\n" + "=" * 60)
    print("INTERNAL CONSISTENCY (Cronbach's alpha)")
    print("=" * 60)
    for _, row in summary.iterrows():
        print(f"  {row['scale']}: {row['alpha']:.3f} "
              f"[{row['ci_lower']:.3f}, {row['ci_upper']:.3f}] ({row['label']})")

    return summary


# =============================================================================
# CONVERGENT VALIDITY
# =============================================================================
def composite_reliability(loadings) -> float:
    """Composite reliability: (sum l)^2 / ((sum l)^2 + sum(1 - l^2))."""
    lam = np.asarray(loadings, dtype=float)
    squared_sum = lam.sum() ** 2
    error = (1 - lam**2).sum()
    return float(squared_sum / (squared_sum + error))


def average_variance_extracted(loadings) -> float:
    """Average variance extracted: mean of squared standardized loadings."""
    lam = np.asarray(loadings, dtype=float)
    return float(np.mean(lam**2))


def primary_loadings(
    loadings: pd.DataFrame,
    groups: dict[str, list[str]]
) -> pd.Series:
    """
    Pick each item's loading on the factor it is grouped under.

    Parameters:
        loadings: Items x factors loading matrix
        groups: Mapping of factor (column of loadings) to its items

    Returns:
        Series of loadings indexed by item
    """
    values = {}
    for factor, items in groups.items():
        for item in items:
            values[item] = loadings.loc[item, factor]
    return pd.Series(values, name='loading', dtype=float)


def convergent_validity(
    item_loadings: pd.Series,
    groups: dict[str, list[str]]
) -> pd.DataFrame:
    """
    Composite reliability and AVE per factor.

    Parameters:
        item_loadings: Standardized loading of each item on its own factor
        groups: Mapping of factor name to its items

    Returns:
        DataFrame indexed by factor with n_items, CR, AVE and pass flags
    """
    rows = []
    for factor, items in groups.items():
        lam = item_loadings.loc[items]
        cr = composite_reliability(lam)
        ave = average_variance_extracted(lam)
        rows.append({
            'factor': factor,
            'n_items': len(items),
            'CR': cr,
            'AVE': ave,
            'CR_pass': cr >= config.CR_THRESHOLD,
            'AVE_pass': ave >= config.AVE_THRESHOLD,
        })

    columns = ['factor', 'n_items', 'CR', 'AVE', 'CR_pass', 'AVE_pass']
    table = pd.DataFrame(rows, columns=columns).set_index('factor')

    print("\n" + "=" * 60)
    print("CONVERGENT VALIDITY (CR, AVE)")
    print("=" * 60)
    if table.empty:
        print("  No factor has assigned items")
    for factor, row in table.iterrows():
        print(f"  {factor}: CR={row['CR']:.3f} [{'OK' if row['CR_pass'] else 'LOW'}], "
              f"AVE={row['AVE']:.3f} [{'OK' if row['AVE_pass'] else 'LOW'}]")

    return table


# =============================================================================
# DISCRIMINANT VALIDITY
# =============================================================================
def _mean_abs_offdiag(block: np.ndarray) -> float:
    mask = ~np.eye(block.shape[0], dtype=bool)
    return float(np.abs(block[mask]).mean())


def htmt(corr: pd.DataFrame, groups: dict[str, list[str]]) -> pd.DataFrame:
    """
    Heterotrait-monotrait ratio of correlations.

    HTMT(i, j) = mean |r| between items of i and j divided by the geometric
    mean of the average within-construct |r| (diagonal excluded).

    Parameters:
        corr: Item correlation matrix
        groups: Mapping of construct name to its items (2+ items each)

    Returns:
        Symmetric construct x construct DataFrame, NaN on the diagonal
    """
    for name, items in groups.items():
        if len(items) < 2:
            raise ValueError(f"HTMT needs at least 2 items per construct, '{name}' has {len(items)}")

    names = list(groups)
    result = pd.DataFrame(np.nan, index=names, columns=names)

    within = {
        name: _mean_abs_offdiag(corr.loc[items, items].to_numpy())
        for name, items in groups.items()
    }

    for a, b in itertools.combinations(names, 2):
        cross = np.abs(corr.loc[groups[a], groups[b]].to_numpy()).mean()
        value = cross / np.sqrt(within[a] * within[b])
        result.loc[a, b] = value
        result.loc[b, a] = value

    return result


def flag_htmt(htmt_matrix: pd.DataFrame) -> pd.DataFrame:
    """
    List construct pairs with their HTMT value and threshold checks.

    Parameters:
        htmt_matrix: Output from htmt()

    Returns:
        DataFrame with one row per pair
    """
    rows = []
    for a, b in itertools.combinations(htmt_matrix.index, 2):
        value = htmt_matrix.loc[a, b]
        rows.append({
            'construct_1': a,
            'construct_2': b,
            'HTMT': value,
            'below_strict': value < config.HTMT_STRICT,
            'below_liberal': value < config.HTMT_LIBERAL,
        })

    pairs = pd.DataFrame(rows)

    print("\n" + "=" * 60)
    print(f"DISCRIMINANT VALIDITY (HTMT < {config.HTMT_STRICT})")
    print("=" * 60)
    for _, row in pairs.iterrows():
        status = "OK" if row['below_strict'] else ("BORDERLINE" if row['below_liberal'] else "FAIL")
        print(f"  {row['construct_1']} - {row['construct_2']}: {row['HTMT']:.3f} [{status}]")

    return pairs


def fornell_larcker(ave: pd.Series, factor_corr: pd.DataFrame) -> dict:
    """
    Fornell-Larcker comparison of AVE against squared factor correlations.

    Parameters:
        ave: AVE per factor
        factor_corr: Factor correlation matrix with the same labels

    Returns:
        Dictionary with 'matrix' (AVE on the diagonal, squared correlations
        in the upper triangle, NaN below) and 'passes' (per-factor flag:
        AVE exceeds every squared correlation involving that factor)
    """
    names = list(ave.index)
    squared = factor_corr.loc[names, names] ** 2

    matrix = pd.DataFrame(np.nan, index=names, columns=names)
    for i, a in enumerate(names):
        matrix.loc[a, a] = ave[a]
        for b in names[i + 1:]:
            matrix.loc[a, b] = squared.loc[a, b]

    passes = {}
    for a in names:
        others = squared.loc[a].drop(a)
        passes[a] = bool((ave[a] > others).all())

    return {'matrix': matrix, 'passes': pd.Series(passes, name='passes')}
