"""
Aiken's V Content Validity Module
=================================

Point estimates and score confidence intervals for Aiken's V, plus the
item-level aggregation pass used to build content validity tables from
expert judge ratings.

Aiken's V for an item rated by N judges on a k-point scale:

    V = sum(rating - 1) / (N * (k - 1))

The interval is the score (Wilson-type) interval from Penfield & Giacobbi
(2004), computed with n*k as the effective number of trials.
"""

import numbers

import numpy as np
import pandas as pd
from scipy import stats as scipy_stats
from typing import Optional, Sequence

from . import config


class InvalidInput(ValueError):
    """Raised when ratings or run parameters violate a precondition."""


# =============================================================================
# VALIDATION
# =============================================================================
def _is_integer(value) -> bool:
    return isinstance(value, (int, np.integer)) and not isinstance(value, (bool, np.bool_))


def _check_k(k) -> None:
    if not _is_integer(k) or k < 2:
        raise InvalidInput(f"k must be an integer >= 2, got {k!r}")


def _check_confidence(confidence) -> None:
    if not isinstance(confidence, (int, float, np.floating)) or not 0 < confidence < 1:
        raise InvalidInput(f"confidence must lie in (0, 1), got {confidence!r}")


def _as_ratings(values: Sequence, k: int) -> np.ndarray:
    """Convert ratings to a float array, rejecting anything outside 1..k."""
    values = list(values)
    for value in values:
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
            raise InvalidInput(f"ratings must be numeric, got {value!r}")
    try:
        ratings = np.asarray(values, dtype=float)
    except (TypeError, ValueError) as exc:
        raise InvalidInput(f"ratings must be numeric: {exc}") from exc

    if ratings.ndim != 1:
        raise InvalidInput("ratings must be a flat sequence")
    if ratings.size == 0:
        raise InvalidInput("ratings must not be empty")

    finite = np.isfinite(ratings)
    bad = ~finite
    bad[finite] = (
        (ratings[finite] != np.round(ratings[finite]))
        | (ratings[finite] < 1)
        | (ratings[finite] > k)
    )
    if bad.any():
        offending = ratings[bad].tolist()
        raise InvalidInput(f"ratings must be integers in [1, {k}], got {offending}")

    return ratings


# =============================================================================
# ESTIMATORS
# =============================================================================
def compute_aiken_v(values: Sequence, k: int) -> float:
    """
    Compute Aiken's V for one item.

    Parameters:
        values: Ratings from each judge, integers in [1, k]
        k: Number of ordinal scale categories (>= 2)

    Returns:
        V in [0, 1]; 0 when every rating is 1, 1 when every rating is k

    Raises:
        InvalidInput: empty ratings, k < 2, or a rating outside [1, k]
    """
    _check_k(k)
    ratings = _as_ratings(values, k)

    n = len(ratings)
    return float(np.sum(ratings - 1) / (n * (k - 1)))


def compute_aiken_ci(
    V: float,
    n: int,
    k: int,
    confidence: Optional[float] = None
) -> tuple[float, float]:
    """
    Compute the two-sided score confidence interval for Aiken's V.

    Parameters:
        V: Point estimate in [0, 1]
        n: Number of judges (>= 1)
        k: Number of ordinal scale categories (>= 2)
        confidence: Coverage probability in (0, 1). Defaults to config.DEFAULT_CONFIDENCE

    Returns:
        Tuple of (lower, upper), clamped to [0, 1]

    Raises:
        InvalidInput: any parameter outside its domain
    """
    if confidence is None:
        confidence = config.DEFAULT_CONFIDENCE

    _check_confidence(confidence)
    _check_k(k)
    if not _is_integer(n) or n < 1:
        raise InvalidInput(f"n must be an integer >= 1, got {n!r}")
    if not isinstance(V, (int, float, np.integer, np.floating)) or not 0 <= V <= 1:
        raise InvalidInput(f"V must lie in [0, 1], got {V!r}")

    z = scipy_stats.norm.ppf(1 - (1 - confidence) / 2)

    sqrt_term = np.sqrt(4 * n * k * V * (1 - V) + z**2)

    lower = (2 * n * k * V + z**2 - z * sqrt_term) / (2 * (n * k + z**2))
    upper = (2 * n * k * V + z**2 + z * sqrt_term) / (2 * (n * k + z**2))

    # Rounding error can push the bounds a hair outside [0, 1] at V = 0 or 1
    return max(0.0, float(lower)), min(1.0, float(upper))


def summarize_item(
    values: Sequence,
    k: Optional[int] = None,
    confidence: Optional[float] = None
) -> dict:
    """
    Compute every per-item statistic of the content validity table.

    Parameters:
        values: Ratings from each judge
        k: Number of scale categories. Defaults to config.DEFAULT_K
        confidence: CI coverage. Defaults to config.DEFAULT_CONFIDENCE

    Returns:
        Dictionary with freq_1..freq_k, n, mean, V, ci_lower, ci_upper
    """
    if k is None:
        k = config.DEFAULT_K

    V = compute_aiken_v(values, k)
    ratings = _as_ratings(values, k).astype(int)
    n = len(ratings)
    lower, upper = compute_aiken_ci(V, n, k, confidence)

    counts = np.bincount(ratings, minlength=k + 1)

    summary = {f'freq_{score}': int(counts[score]) for score in range(1, k + 1)}
    summary.update({
        'n': n,
        'mean': float(ratings.mean()),
        'V': V,
        'ci_lower': lower,
        'ci_upper': upper,
    })
    return summary


# =============================================================================
# AGGREGATION
# =============================================================================
def result_columns(k: int, dimension_col: Optional[str] = None) -> list[str]:
    """Return the column order of the content validity table."""
    if dimension_col is None:
        dimension_col = config.DIMENSION_COL

    freq_cols = [f'freq_{score}' for score in range(1, k + 1)]
    return [dimension_col, 'item'] + freq_cols + ['n', 'mean', 'V', 'ci_lower', 'ci_upper']


def compute_item_statistics(
    long_df: pd.DataFrame,
    k: Optional[int] = None,
    confidence: Optional[float] = None,
    dimension_col: Optional[str] = None,
    item_col: str = 'item',
    rating_col: str = 'rating',
    skip_invalid: bool = False
) -> pd.DataFrame:
    """
    Compute Aiken's V, its CI, the mean and score frequencies per item.

    Rows are ordered by dimension (first appearance), then by item
    (first appearance within that dimension). Values are unrounded;
    use round_results() for presentation.

    Parameters:
        long_df: Long-form ratings with dimension, item and rating columns
        k: Number of scale categories. Defaults to config.DEFAULT_K
        confidence: CI coverage. Defaults to config.DEFAULT_CONFIDENCE
        dimension_col: Dimension column. Defaults to config.DIMENSION_COL
        item_col: Item identifier column
        rating_col: Rating column
        skip_invalid: Skip items with invalid ratings instead of aborting

    Returns:
        DataFrame with one row per (dimension, item)

    Raises:
        InvalidInput: invalid run parameters, or an invalid item when
            skip_invalid is False
    """
    if k is None:
        k = config.DEFAULT_K
    if confidence is None:
        confidence = config.DEFAULT_CONFIDENCE
    if dimension_col is None:
        dimension_col = config.DIMENSION_COL

    _check_k(k)
    _check_confidence(confidence)

    missing = [c for c in (dimension_col, item_col, rating_col) if c not in long_df.columns]
    if missing:
        raise KeyError(f"Long-form ratings are missing column(s): {', '.join(missing)}")

    rows = []
    skipped = []
    for dimension in pd.unique(long_df[dimension_col]):
        dim_df = long_df[long_df[dimension_col] == dimension]
        for item in pd.unique(dim_df[item_col]):
            values = dim_df.loc[dim_df[item_col] == item, rating_col].tolist()
            try:
                summary = summarize_item(values, k, confidence)
            except InvalidInput as exc:
                message = f"dimension={dimension!r}, item={item!r}: {exc}"
                if not skip_invalid:
                    raise InvalidInput(message) from exc
                print(f"  Skipping {message}")
                skipped.append((dimension, item))
                continue

            rows.append({dimension_col: dimension, item_col: item, **summary})

    columns = result_columns(k, dimension_col)
    if item_col != 'item':
        columns[1] = item_col
    results = pd.DataFrame(rows, columns=columns)

    print("\n" + "=" * 60)
    print(f"AIKEN'S V (k={k}, {confidence*100:g}% CI)")
    print("=" * 60)
    for dimension, group in results.groupby(dimension_col, sort=False):
        print(f"  {dimension}: {len(group)} items, "
              f"V range {group['V'].min():.3f}-{group['V'].max():.3f}")
    if skipped:
        print(f"  Skipped {len(skipped)} invalid item(s)")

    return results


def round_results(results: pd.DataFrame, decimals: Optional[int] = None) -> pd.DataFrame:
    """
    Round the continuous columns for presentation.

    Parameters:
        results: Output from compute_item_statistics()
        decimals: Decimal places. Defaults to config.ROUND_DECIMALS

    Returns:
        Rounded copy; frequency and n columns are untouched
    """
    if decimals is None:
        decimals = config.ROUND_DECIMALS

    rounded = results.copy()
    cols = ['mean', 'V', 'ci_lower', 'ci_upper']
    rounded[cols] = rounded[cols].round(decimals)
    return rounded


def split_by_dimension(
    results: pd.DataFrame,
    dimension_col: Optional[str] = None
) -> dict[str, pd.DataFrame]:
    """
    Partition the results table into one table per dimension.

    Parameters:
        results: Output from compute_item_statistics() or round_results()
        dimension_col: Dimension column. Defaults to config.DIMENSION_COL

    Returns:
        Dictionary mapping dimension to its table (dimension column dropped),
        in the order dimensions appear in results
    """
    if dimension_col is None:
        dimension_col = config.DIMENSION_COL

    tables = {}
    for dimension in pd.unique(results[dimension_col]):
        table = results[results[dimension_col] == dimension].drop(columns=dimension_col)
        tables[dimension] = table.reset_index(drop=True)
    return tables


def interpret_aiken_v(v: float) -> str:
    """Label a V value against the configured reference lines."""
    if v >= config.AIKEN_GOOD:
        return "Strong"
    elif v >= config.AIKEN_MIN_ACCEPTABLE:
        return "Acceptable"
    return "Weak"


def flag_items(
    results: pd.DataFrame,
    threshold: Optional[float] = None,
    item_col: str = 'item'
) -> pd.DataFrame:
    """
    Return items whose CI lower bound falls below the threshold.

    Parameters:
        results: Output from compute_item_statistics()
        threshold: Minimum acceptable V. Defaults to config.AIKEN_MIN_ACCEPTABLE
        item_col: Item identifier column

    Returns:
        Subset of results with an added 'label' column
    """
    if threshold is None:
        threshold = config.AIKEN_MIN_ACCEPTABLE

    flagged = results[results['ci_lower'] < threshold].copy()
    flagged['label'] = flagged['V'].map(interpret_aiken_v)

    if len(flagged) > 0:
        print(f"\nItems with CI lower bound below {threshold}:")
        for _, row in flagged.iterrows():
            print(f"  {row[item_col]}: V={row['V']:.3f} "
                  f"[{row['ci_lower']:.3f}, {row['ci_upper']:.3f}] ({row['label']})")

    return flagged
