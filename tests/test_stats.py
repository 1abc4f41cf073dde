"""Unit tests for item descriptives and normality tests."""

import numpy as np
import pandas as pd
import pytest
from scipy import stats as scipy_stats

from validity_core import stats


@pytest.fixture
def likert() -> pd.DataFrame:
    return pd.DataFrame({
        'q1': [1, 2, 2, 3, 4, 4, 4, 3],
        'q2': [4, 4, 4, 4, 3, 3, 2, np.nan],
    })


class TestDescribeItems:

    def test_columns_and_values(self, likert) -> None:
        desc = stats.describe_items(likert)

        assert list(desc.index) == ['q1', 'q2']
        assert list(desc.columns) == ['n', 'mean', 'sd', 'skew', 'kurtosis', 'min', 'max']
        assert desc.loc['q1', 'mean'] == pytest.approx(23 / 8)
        assert desc.loc['q2', 'n'] == 7
        assert desc.loc['q2', 'min'] == 2


class TestResponseFrequencies:

    def test_all_scale_values_present(self, likert) -> None:
        freq = stats.response_frequencies(likert, k=5)

        assert list(freq.columns) == [1, 2, 3, 4, 5, 'missing']
        assert freq.loc['q1', 5] == 0
        assert freq.loc['q1', 4] == pytest.approx(3 / 8)
        assert freq.loc['q2', 'missing'] == pytest.approx(1 / 8)

    def test_proportions_and_missing_sum_to_one(self, likert) -> None:
        freq = stats.response_frequencies(likert, k=4)
        assert np.allclose(freq.sum(axis=1), 1.0)


class TestNormality:

    def test_normal_and_skewed_items(self) -> None:
        quantiles = np.linspace(0.005, 0.995, 200)
        df = pd.DataFrame({
            'normal': scipy_stats.norm.ppf(quantiles),
            'skewed': scipy_stats.expon.ppf(quantiles),
        })

        result = stats.run_normality_tests(df).set_index('item')

        assert bool(result.loc['normal', 'normal']) is True
        assert bool(result.loc['skewed', 'normal']) is False
        assert result['p_value'].between(0, 1).all()


class TestMardia:
    """Tests for Mardia's multivariate skewness and kurtosis."""

    def test_single_variable_reduces_to_univariate_moments(self) -> None:
        values = np.array([1.0, 2.0, 3.0, 4.0, 10.0, 2.0])
        result = stats.mardia_test(pd.DataFrame({'x': values}))

        assert result['skewness'] == pytest.approx(scipy_stats.skew(values) ** 2)
        assert result['kurtosis'] == pytest.approx(scipy_stats.kurtosis(values, fisher=False))
        assert result['skewness_df'] == 1

    def test_multivariate_normal_sample(self) -> None:
        rng = np.random.default_rng(3)
        df = pd.DataFrame(rng.multivariate_normal(
            [0, 0, 0], [[1, 0.5, 0.2], [0.5, 1, 0.3], [0.2, 0.3, 1]], size=500
        ))

        result = stats.mardia_test(df)

        assert result['kurtosis'] == pytest.approx(15, abs=2)
        assert result['skewness'] < 0.5
        assert result['skewness_df'] == 10

    def test_skewed_sample_rejected(self) -> None:
        rng = np.random.default_rng(3)
        df = pd.DataFrame(rng.exponential(size=(300, 3)))

        result = stats.mardia_test(df)

        assert result['skewness_p_value'] < 0.001
        assert result['normal'] is False

    def test_invariant_to_rescaling(self, likert) -> None:
        base = stats.mardia_test(likert)
        rescaled = stats.mardia_test(likert * 2 + 1)

        assert rescaled['skewness'] == pytest.approx(base['skewness'])
        assert rescaled['kurtosis'] == pytest.approx(base['kurtosis'])
        assert base['n'] == 7

    def test_too_few_rows_rejected(self) -> None:
        with pytest.raises(ValueError, match="more rows"):
            stats.mardia_test(pd.DataFrame({'a': [1, 2], 'b': [2, 1]}))
