"""
Data Loading and Preprocessing Module
======================================

Functions for loading rating and response files, reshaping judge ratings,
selecting item columns, splitting samples, and standardizing data.
"""

import pandas as pd
import numpy as np
from scipy import stats as scipy_stats
from sklearn.preprocessing import StandardScaler
from typing import Optional

from . import config


def load_csv(filepath: Optional[str] = None) -> pd.DataFrame:
    """
    Load CSV file with basic validation.

    Parameters:
        filepath: Path to CSV file. Defaults to config.DEFAULT_RATINGS_FILE

    Returns:
        DataFrame with loaded data
    """
    if filepath is None:
        filepath = config.DEFAULT_RATINGS_FILE

    df = pd.read_csv(filepath)
    print(f"Loaded {len(df):,} records with {len(df.columns)} columns from {filepath}")
    return df


def ratings_to_long(
    df: pd.DataFrame,
    dimension_col: Optional[str] = None,
    items: Optional[list[str]] = None
) -> pd.DataFrame:
    """
    Reshape wide judge ratings (one row per judge per dimension, one column
    per item) to long form.

    The judge identity is the 1-based row position within each dimension.
    Missing ratings are dropped, so they do not count toward an item's n.
    Rows without a dimension label are rejected.

    Parameters:
        df: Wide ratings table
        dimension_col: Dimension label column. Defaults to config.DIMENSION_COL
        items: Item columns to keep, in order. Defaults to every other column

    Returns:
        DataFrame with columns dimension, item, rater, rating ordered by
        dimension, item, rater

    Raises:
        KeyError: missing dimension column or unknown item column
        ValueError: a row has no dimension label
    """
    if dimension_col is None:
        dimension_col = config.DIMENSION_COL

    if dimension_col not in df.columns:
        raise KeyError(f"Ratings table has no '{dimension_col}' column")

    unlabeled = df.index[df[dimension_col].isna()].tolist()
    if unlabeled:
        raise ValueError(f"Rows {unlabeled} have no '{dimension_col}' label")

    if items is None:
        items = [c for c in df.columns if c != dimension_col]
    else:
        unknown = [c for c in items if c not in df.columns]
        if unknown:
            raise KeyError(f"Unknown item column(s): {', '.join(unknown)}")

    wide = df[[dimension_col] + list(items)].copy()
    wide['rater'] = wide.groupby(dimension_col, sort=False).cumcount() + 1

    long_df = wide.melt(
        id_vars=[dimension_col, 'rater'],
        value_vars=list(items),
        var_name='item',
        value_name='rating'
    )

    n_missing = int(long_df['rating'].isna().sum())
    if n_missing:
        print(f"Dropped {n_missing} missing rating(s)")
    long_df = long_df.dropna(subset=['rating'])

    # Stable dimension-major ordering independent of melt's column traversal
    dim_order = {d: i for i, d in enumerate(pd.unique(df[dimension_col]))}
    item_order = {item: i for i, item in enumerate(items)}
    long_df = long_df.assign(
        _dim=long_df[dimension_col].map(dim_order),
        _item=long_df['item'].map(item_order),
    ).sort_values(['_dim', '_item', 'rater'], kind='stable')

    long_df = long_df[[dimension_col, 'item', 'rater', 'rating']].reset_index(drop=True)
    print(f"Reshaped to {len(long_df):,} ratings across "
          f"{long_df[dimension_col].nunique()} dimension(s) and {len(items)} item(s)")
    return long_df


def select_items(
    df: pd.DataFrame,
    prefixes: Optional[list[str]] = None
) -> pd.DataFrame:
    """
    Keep only item columns whose name starts with one of the prefixes.

    Parameters:
        df: Input DataFrame
        prefixes: Item code prefixes. Defaults to config.DEFAULT_ITEM_PREFIXES

    Returns:
        DataFrame with the matching columns, in their original order
    """
    if prefixes is None:
        prefixes = config.DEFAULT_ITEM_PREFIXES

    columns = [c for c in df.columns if any(str(c).startswith(p) for p in prefixes)]
    if not columns:
        raise ValueError(f"No item columns match prefixes {prefixes}")

    print(f"Selected {len(columns)} item columns")
    return df[columns].copy()


def filter_rows(df: pd.DataFrame, conditions: dict) -> pd.DataFrame:
    """
    Keep rows whose columns equal the required values, e.g. respondents who
    gave consent and use the tool under study.

    Parameters:
        df: Input DataFrame
        conditions: Mapping of column name to required value

    Returns:
        Filtered copy of df
    """
    missing = [c for c in conditions if c not in df.columns]
    if missing:
        raise KeyError(f"Filter column(s) not found: {', '.join(missing)}")

    mask = pd.Series(True, index=df.index)
    for column, value in conditions.items():
        mask &= df[column] == value

    kept = df[mask].copy()
    print(f"Row filter {conditions}: kept {len(kept):,} of {len(df):,} records")
    return kept


def hampel_filter(
    df: pd.DataFrame,
    items: Optional[list[str]] = None,
    n_mad: Optional[float] = None
) -> pd.DataFrame:
    """
    Drop respondents whose total score is an outlier.

    The total is the row sum of the items. Rows are kept when the total lies
    within median +/- n_mad * MAD, where MAD is the raw median absolute
    deviation (no consistency constant). Rows with a missing item have no
    total and are dropped as well.

    Parameters:
        df: Responses table
        items: Item columns making up the total. Defaults to every column
        n_mad: Width of the interval in MADs. Defaults to config.HAMPEL_N_MAD

    Returns:
        Filtered copy of df
    """
    if items is None:
        items = list(df.columns)
    if n_mad is None:
        n_mad = config.HAMPEL_N_MAD

    total = df[items].sum(axis=1, min_count=len(items))
    complete = total.notna()

    median = float(total[complete].median())
    mad = float(scipy_stats.median_abs_deviation(total[complete], scale=1.0))
    lower, upper = median - n_mad * mad, median + n_mad * mad

    kept = df[complete & total.between(lower, upper)].copy()

    print(f"Hampel filter on total score: median={median:g}, MAD={mad:g}, "
          f"bounds [{lower:g}, {upper:g}]")
    print(f"  Kept {len(kept):,} of {len(df):,} records")
    return kept


def build_item_groups(
    columns: list[str],
    prefixes: Optional[list[str]] = None
) -> dict[str, list[str]]:
    """
    Group item columns by prefix (one group per hypothesized factor).

    Parameters:
        columns: Item column names
        prefixes: Item code prefixes. Defaults to config.DEFAULT_ITEM_PREFIXES

    Returns:
        Dictionary mapping prefix to its items; empty groups are omitted
    """
    if prefixes is None:
        prefixes = config.DEFAULT_ITEM_PREFIXES

    groups = {}
    for prefix in prefixes:
        members = [c for c in columns if str(c).startswith(prefix)]
        if members:
            groups[prefix] = members
    return groups


def split_sample(
    df: pd.DataFrame,
    n_first: Optional[int] = None,
    seed: Optional[int] = None
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """
    Randomly split rows into two disjoint samples (e.g. EFA and CFA halves).

    Parameters:
        df: Input DataFrame
        n_first: Size of the first sample. Defaults to config.DEFAULT_EFA_SAMPLE_SIZE
        seed: Random seed. Defaults to config.RANDOM_SEED

    Returns:
        Tuple of (first sample, remaining rows)
    """
    if n_first is None:
        n_first = config.DEFAULT_EFA_SAMPLE_SIZE
    if seed is None:
        seed = config.RANDOM_SEED

    if not 0 < n_first < len(df):
        raise ValueError(f"n_first must be between 1 and {len(df) - 1}, got {n_first}")

    rng = np.random.default_rng(seed)
    positions = rng.choice(len(df), size=n_first, replace=False)
    mask = np.zeros(len(df), dtype=bool)
    mask[positions] = True

    first = df.iloc[np.sort(positions)].copy()
    rest = df.iloc[np.flatnonzero(~mask)].copy()

    print(f"Split sample: {len(first):,} / {len(rest):,} records (seed={seed})")
    return first, rest


def standardize_features(
    df: pd.DataFrame,
    columns: Optional[list[str]] = None
) -> tuple[np.ndarray, pd.DataFrame, pd.Index, StandardScaler]:
    """
    Z-score normalize selected columns.

    Parameters:
        df: Input DataFrame
        columns: Columns to standardize. Defaults to every column

    Returns:
        Tuple of (scaled array, scaled DataFrame, valid indices, fitted scaler)
    """
    if columns is None:
        columns = list(df.columns)

    # Get rows with complete data
    data = df[columns].dropna()
    valid_indices = data.index

    print(f"Records with complete data: {len(data):,}")

    scaler = StandardScaler()
    scaled_array = scaler.fit_transform(data)
    scaled_df = pd.DataFrame(scaled_array, columns=columns, index=valid_indices)

    return scaled_array, scaled_df, valid_indices, scaler
