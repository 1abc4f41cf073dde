"""End-to-end tests for the analysis scripts in analyses/."""

import pandas as pd
import pytest

from validity_core.aiken import InvalidInput


class TestContentValidityPipeline:
    """Tests for analyses/run_content_validity.py."""

    @pytest.fixture
    def params(self, load_script, tmp_path) -> dict:
        script = load_script('run_content_validity')
        return {**script.DEFAULTS, 'output_base': str(tmp_path), 'data_file': 'in-memory'}

    def test_runs_from_csv(self, load_script, tmp_path, wide_ratings) -> None:
        script = load_script('run_content_validity')
        path = tmp_path / "ratings.csv"
        wide_ratings.to_csv(path, index=False)
        params = {**script.DEFAULTS, 'output_base': str(tmp_path / "out"), 'data_file': str(path)}

        result = script.run_analysis(params)

        assert list(result['tables']) == ['relevance', 'wording']
        files = sorted(p.name.split('-content-validity-')[1] for p in result['output_dir'].iterdir())
        assert files == [
            'aiken-relevance.csv', 'aiken-v.png', 'aiken-wording.csv', 'items.csv', 'report.txt',
        ]

    def test_tables_are_rounded(self, load_script, params, wide_ratings) -> None:
        script = load_script('run_content_validity')
        result = script.run_analysis(params, wide_ratings)

        relevance = result['tables']['relevance']
        assert list(relevance.columns) == [
            'item', 'freq_1', 'freq_2', 'freq_3', 'freq_4',
            'n', 'mean', 'V', 'ci_lower', 'ci_upper',
        ]
        assert relevance.loc[0, 'V'] == 0.917
        assert result['results'].loc[0, 'V'] == pytest.approx(11 / 12)

    def test_report_lists_flagged_items(self, load_script, params, wide_ratings) -> None:
        script = load_script('run_content_validity')
        result = script.run_analysis(params, wide_ratings)

        report = next(result['output_dir'].glob('*-report.txt')).read_text(encoding='utf-8')
        assert "relevance / CT2" in report
        assert "wording / CT3" in report

    def test_invalid_rating_aborts(self, load_script, params, wide_ratings) -> None:
        script = load_script('run_content_validity')
        wide_ratings.loc[2, 'CT2'] = 7

        with pytest.raises(InvalidInput, match="item='CT2'"):
            script.run_analysis(params, wide_ratings)

    def test_invalid_rating_skipped_when_requested(self, load_script, params, wide_ratings) -> None:
        script = load_script('run_content_validity')
        wide_ratings.loc[2, 'CT2'] = 7

        result = script.run_analysis({**params, 'skip_invalid': True}, wide_ratings)

        assert list(result['tables']['relevance']['item']) == ['CT1', 'CT3']
        assert list(result['tables']['wording']['item']) == ['CT1', 'CT2', 'CT3']

    def test_no_valid_items_still_writes_report(self, load_script, params) -> None:
        script = load_script('run_content_validity')
        wide = pd.DataFrame({'dimension': ['relevance'] * 2, 'CT1': [9, 9]})

        result = script.run_analysis({**params, 'skip_invalid': True}, wide)

        assert result['results'].empty
        assert result['tables'] == {}
        names = [p.name for p in result['output_dir'].iterdir()]
        assert len(names) == 1 and names[0].endswith('-report.txt')
        report = (result['output_dir'] / names[0]).read_text(encoding='utf-8')
        assert "No items passed validation." in report


class TestPsychometricsPipeline:
    """Tests for analyses/run_psychometrics.py."""

    def test_full_run(self, load_script, tmp_path, two_factor_responses) -> None:
        script = load_script('run_psychometrics')
        params = {
            **script.DEFAULTS,
            'item_prefixes': ['CT', 'EC'],
            'efa_sample_size': 300,
            'output_base': str(tmp_path),
            'data_file': 'in-memory',
        }

        responses = two_factor_responses.assign(
            consentimiento=['SI'] * 390 + ['NO'] * 10,
            usa_ChatGPT='SI',
        )

        result = script.run_analysis(params, responses)

        screened = result['screened']
        assert len(screened) <= 390
        assert len(result['efa_sample']) == 300
        assert len(result['holdout_sample']) == len(screened) - 300
        assert result['mardia']['n_vars'] == 8
        assert result['efa']['n_factors'] == 2
        assert list(result['reliability']['scale']) == ['Total', 'CT', 'EC']
        assert isinstance(result['htmt'], pd.DataFrame)
        assert result['htmt'].loc['CT', 'EC'] < 0.85
        assert result['fornell_larcker']['passes'].all()

        names = [p.name for p in result['output_dir'].iterdir()]
        for suffix in ('loadings.csv', 'reliability.csv', 'htmt.csv', 'mardia.csv',
                       'scree.png', 'report.txt'):
            assert any(name.endswith(suffix) for name in names)
