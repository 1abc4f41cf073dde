"""Tests for the factor analysis module on simulated two-factor data."""

import numpy as np
import pandas as pd
import pytest

from validity_core import efa


@pytest.fixture
def items(two_factor_responses) -> pd.DataFrame:
    return two_factor_responses.drop(columns='age')


class TestFactorability:
    """Tests for Bartlett/KMO checks."""

    def test_correlated_items_are_factorable(self, items) -> None:
        result = efa.check_factorability(items.to_numpy(dtype=float), list(items.columns))

        assert result['bartlett_pass']
        assert result['kmo_overall'] > 0.6
        assert set(result['kmo_per_variable']) == set(items.columns)

    def test_summary_table(self, items) -> None:
        result = efa.check_factorability(items.to_numpy(dtype=float), list(items.columns))
        summary = efa.get_factorability_summary(result)

        assert list(summary.columns) == ['Test', 'Value', 'Interpretation']
        assert len(summary) == 3 + items.shape[1]
        assert summary.loc[1, 'Interpretation'] == 'PASS'


class TestFactorRetention:
    """Tests for Kaiser criterion and parallel analysis."""

    def test_kaiser_finds_two_factors(self, items) -> None:
        eigenvalues, n_factors = efa.determine_num_factors(items.to_numpy(dtype=float))

        assert len(eigenvalues) == items.shape[1]
        assert n_factors == 2

    def test_parallel_analysis_finds_two_factors(self, items) -> None:
        result = efa.parallel_analysis(items.to_numpy(dtype=float), n_iter=30, seed=1)

        assert result['n_factors'] == 2
        assert len(result['random_threshold']) == items.shape[1]

    def test_parallel_analysis_reproducible(self, items) -> None:
        values = items.to_numpy(dtype=float)
        a = efa.parallel_analysis(values, n_iter=10, seed=3)
        b = efa.parallel_analysis(values, n_iter=10, seed=3)
        assert np.array_equal(a['random_threshold'], b['random_threshold'])


class TestRunEfa:
    """Tests for factor extraction and interpretation."""

    def test_oblique_solution(self, items) -> None:
        result = efa.run_efa(items.to_numpy(dtype=float), list(items.columns), 2)

        assert result['loadings'].shape == (8, 2)
        assert list(result['communalities'].columns) == ['Communality']
        assert result['rotation'] == 'oblimin'
        assert result['factor_correlations'].shape == (2, 2)

    def test_items_group_by_their_factor(self, items) -> None:
        result = efa.run_efa(items.to_numpy(dtype=float), list(items.columns), 2)
        groups = efa.assign_items_to_factors(result['loadings'])

        found = sorted(sorted(members) for members in groups.values())
        assert found == [['CT1', 'CT2', 'CT3', 'CT4'], ['EC1', 'EC2', 'EC3', 'EC4']]

    def test_orthogonal_solution_has_no_factor_correlations(self, items) -> None:
        result = efa.run_efa(items.to_numpy(dtype=float), list(items.columns), 2,
                             rotation='varimax')
        assert result['factor_correlations'] is None

    def test_interpret_factors_sorted_by_strength(self) -> None:
        loadings = pd.DataFrame(
            {'Factor_1': [0.5, -0.9, 0.1], 'Factor_2': [0.2, 0.1, 0.7]},
            index=['x1', 'x2', 'x3']
        )
        interpretation = efa.interpret_factors(loadings, threshold=0.4)

        assert interpretation['Factor_1'] == [('x2', -0.9), ('x1', 0.5)]
        assert interpretation['Factor_2'] == [('x3', 0.7)]

    def test_assign_items_skips_weak_items(self) -> None:
        loadings = pd.DataFrame(
            {'Factor_1': [0.8, 0.3], 'Factor_2': [0.1, 0.2]},
            index=['x1', 'x2']
        )
        assert efa.assign_items_to_factors(loadings) == {'Factor_1': ['x1']}

    def test_factor_scores_shape(self, items) -> None:
        values = items.to_numpy(dtype=float)
        result = efa.run_efa(values, list(items.columns), 2)
        scores = efa.calculate_factor_scores(result['factor_analyzer'], values, items.index)

        assert scores.shape == (len(items), 2)
        assert list(scores.index) == list(items.index)
