"""Tests for plotting helpers and dated output files."""

from datetime import date

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import pytest

from validity_core import aiken, data, output, viz


@pytest.fixture
def results(wide_ratings) -> pd.DataFrame:
    return aiken.compute_item_statistics(data.ratings_to_long(wide_ratings), k=4)


class TestAikenPlots:
    """Tests for Aiken's V interval plots."""

    def test_single_dimension_axes(self, results) -> None:
        ax = viz.plot_aiken_intervals(results, 'relevance')

        labels = [tick.get_text() for tick in ax.get_yticklabels()]
        assert labels == ['CT3', 'CT2', 'CT1']  # First item at the top
        assert "Relevance" in ax.get_xlabel()
        plt.close(ax.figure)

    def test_reference_lines_drawn(self, results) -> None:
        ax = viz.plot_aiken_intervals(results, 'wording')

        xs = sorted(line.get_xdata()[0] for line in ax.get_lines()
                    if line.get_linestyle() == '--')
        assert xs == [0.5, 0.8]
        plt.close(ax.figure)

    def test_unknown_dimension_rejected(self, results) -> None:
        with pytest.raises(ValueError, match="clarity"):
            viz.plot_aiken_intervals(results, 'clarity')

    def test_panel_per_dimension(self, results) -> None:
        fig = viz.plot_aiken_by_dimension(results)
        assert len(fig.axes) == 2
        plt.close(fig)

    def test_custom_item_column_labels(self, results) -> None:
        ax = viz.plot_aiken_intervals(results.rename(columns={'item': 'code'}), 'relevance',
                                      item_col='code')

        assert [tick.get_text() for tick in ax.get_yticklabels()] == ['CT3', 'CT2', 'CT1']
        plt.close(ax.figure)

    def test_empty_results_rejected(self, results) -> None:
        with pytest.raises(ValueError, match="No Aiken's V results"):
            viz.plot_aiken_by_dimension(results.iloc[0:0])


class TestOtherPlots:

    def test_scree_with_parallel_curve(self) -> None:
        fig = viz.plot_scree(np.array([3.2, 1.8, 0.6, 0.4]), np.array([1.3, 1.1, 1.0, 0.9]))
        assert len(fig.axes[0].get_lines()) == 3
        plt.close(fig)

    def test_heatmap(self) -> None:
        matrix = pd.DataFrame(np.eye(3), index=list('abc'), columns=list('abc'))
        fig = viz.plot_heatmap(matrix, 'Identity', style='sequential')
        assert fig.axes[0].get_title() == 'Identity'
        plt.close(fig)


class TestOutput:
    """Tests for dated output naming."""

    def test_output_dir_is_dated(self, tmp_path) -> None:
        out = output.get_output_dir('content-validity', str(tmp_path))

        assert out.exists()
        assert out.name == f"{date.today().isoformat()}-content-validity"

    def test_dimension_tables_written_in_one_call(self, tmp_path, results) -> None:
        paths = output.save_dimension_tables(aiken.split_by_dimension(results), tmp_path, 'cv')

        assert list(paths) == ['relevance', 'wording']
        assert paths['relevance'].name == f"{date.today().isoformat()}-cv-aiken-relevance.csv"
        assert len(pd.read_csv(paths['wording'])) == 3

    def test_names_are_slugified(self, tmp_path) -> None:
        path = output.save_table(pd.DataFrame({'a': [1]}), tmp_path, 'cv', 'Alpha If Deleted')

        assert path.name.endswith('-cv-alpha-if-deleted.csv')
        assert output.slugify(' Clarity / Wording ') == 'clarity-wording'

    def test_run_files_grouped_by_kind(self, tmp_path, results) -> None:
        fig, _ = viz.create_figure()
        fig_path = output.save_figure(fig, tmp_path, 'cv', 'plot')
        table_path = output.save_table(results, tmp_path, 'cv', 'items')
        report_path = output.save_report("hello", tmp_path, 'cv')

        files = output.summarize_run_files(tmp_path)

        assert report_path.read_text(encoding='utf-8') == "hello"
        assert files == {
            'table': [table_path.name],
            'figure': [fig_path.name],
            'report': [report_path.name],
        }
