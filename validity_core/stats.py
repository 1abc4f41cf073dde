"""
Item Statistics Module
======================

Descriptive statistics, response frequencies, and univariate and
multivariate (Mardia) normality tests for Likert-type items.
"""

import pandas as pd
import numpy as np
from scipy import stats as scipy_stats
from typing import Optional

from . import config


def describe_items(df: pd.DataFrame) -> pd.DataFrame:
    """
    Per-item descriptive statistics.

    Parameters:
        df: Item responses (respondents x items)

    Returns:
        DataFrame indexed by item with n, mean, sd, skew, kurtosis, min, max
    """
    rows = []
    for item in df.columns:
        values = df[item].dropna()
        rows.append({
            'item': item,
            'n': len(values),
            'mean': values.mean(),
            'sd': values.std(ddof=1),
            'skew': scipy_stats.skew(values, bias=False),
            'kurtosis': scipy_stats.kurtosis(values, bias=False),
            'min': values.min(),
            'max': values.max(),
        })
    return pd.DataFrame(rows).set_index('item')


def response_frequencies(df: pd.DataFrame, k: Optional[int] = None) -> pd.DataFrame:
    """
    Proportion of respondents choosing each scale value, per item.

    Parameters:
        df: Item responses coded 1..k
        k: Number of scale categories. Defaults to config.DEFAULT_K

    Returns:
        DataFrame indexed by item with one column per scale value and a
        'missing' proportion column
    """
    if k is None:
        k = config.DEFAULT_K

    scale = list(range(1, k + 1))
    rows = {}
    for item in df.columns:
        values = df[item]
        counts = values.value_counts().reindex(scale, fill_value=0)
        total = len(values)
        row = (counts / total).to_dict() if total else {s: np.nan for s in scale}
        row['missing'] = values.isna().mean() if total else np.nan
        rows[item] = row
    return pd.DataFrame.from_dict(rows, orient='index')[scale + ['missing']]


def run_normality_tests(df: pd.DataFrame, alpha: float = 0.05) -> pd.DataFrame:
    """
    Shapiro-Wilk univariate normality test for each item.

    Parameters:
        df: Item responses
        alpha: Significance level

    Returns:
        DataFrame with statistic, p-value and normality flag per item
    """
    rows = []
    for item in df.columns:
        values = df[item].dropna()
        stat, p_value = scipy_stats.shapiro(values)
        rows.append({
            'item': item,
            'W': stat,
            'p_value': p_value,
            'normal': p_value >= alpha,
        })

    results = pd.DataFrame(rows)

    n_normal = int(results['normal'].sum())
    print("\n" + "=" * 60)
    print("UNIVARIATE NORMALITY (Shapiro-Wilk)")
    print("=" * 60)
    print(f"  {n_normal}/{len(results)} items consistent with normality (alpha={alpha})")

    return results


def mardia_test(df: pd.DataFrame, alpha: Optional[float] = None) -> dict:
    """
    Mardia's test of multivariate skewness and kurtosis.

    With D the matrix of Mahalanobis cross-products of the centered data
    (ML covariance, divisor n):

        b1 = sum(D**3) / n**2,  n * b1 / 6 ~ chi2(p(p+1)(p+2)/6)
        b2 = mean(diag(D)**2),  (b2 - p(p+2)) / sqrt(8p(p+2)/n) ~ N(0, 1)

    Parameters:
        df: Item responses; incomplete rows are dropped
        alpha: Significance level. Defaults to config.NORMALITY_ALPHA

    Returns:
        Dictionary with skewness/kurtosis coefficients, test statistics,
        p-values and a multivariate normality flag
    """
    if alpha is None:
        alpha = config.NORMALITY_ALPHA

    X = df.dropna().to_numpy(dtype=float)
    n, p = X.shape
    if n <= p:
        raise ValueError(f"Mardia's test needs more rows than variables, got {n} x {p}")

    centered = X - X.mean(axis=0)
    cov = centered.T @ centered / n
    D = centered @ np.linalg.pinv(cov) @ centered.T

    b1 = float((D ** 3).sum() / n**2)
    skew_stat = n * b1 / 6
    skew_df = p * (p + 1) * (p + 2) / 6
    skew_p = float(scipy_stats.chi2.sf(skew_stat, skew_df))

    b2 = float(np.mean(np.diag(D) ** 2))
    kurt_z = (b2 - p * (p + 2)) / np.sqrt(8 * p * (p + 2) / n)
    kurt_p = float(2 * scipy_stats.norm.sf(abs(kurt_z)))

    results = {
        'n': n,
        'n_vars': p,
        'skewness': b1,
        'skewness_stat': float(skew_stat),
        'skewness_df': skew_df,
        'skewness_p_value': skew_p,
        'kurtosis': b2,
        'kurtosis_z': float(kurt_z),
        'kurtosis_p_value': kurt_p,
        'normal': skew_p >= alpha and kurt_p >= alpha,
    }

    print("\n" + "=" * 60)
    print("MULTIVARIATE NORMALITY (Mardia)")
    print("=" * 60)
    print(f"  Skewness: b1={b1:.3f}, chi2={skew_stat:.2f}, p={skew_p:.4f}")
    print(f"  Kurtosis: b2={b2:.3f}, z={kurt_z:.2f}, p={kurt_p:.4f}")
    print(f"  {'Consistent with' if results['normal'] else 'Departs from'} "
          f"multivariate normality (alpha={alpha})")

    return results
