"""
지원분야 간 요약 모듈 테스트
"""

import copy

import pandas as pd
import pytest
from recruit_stats.cohort import build_cohorts
from recruit_stats.config import FieldRoleMapping, GroupDefinition, ResultRoleMapping
from recruit_stats.summary import (
    SUMMARY_COLUMNS,
    compute_stats,
    cross_group_summary,
    stats_from_cohorts,
    summarize_group,
    summary_to_frame,
)


@pytest.fixture
def rows():
    """행정 3명 + 전산 4명 + 평가제외 1명"""
    return [
        {'수험번호': 1, '지원분야': '일반행정', '서류': 40, '면접': 40, '전형결과': '합격', '최종결과': '합격'},
        {'수험번호': 2, '지원분야': '지역행정', '서류': 45, '면접': 45, '전형결과': '합격', '최종결과': '불합격'},
        {'수험번호': 3, '지원분야': '일반행정', '서류': 30, '면접': 30, '전형결과': '불합격', '최종결과': ''},
        {'수험번호': 4, '지원분야': '일반행정', '서류': 10, '면접': 10, '전형결과': '결시', '최종결과': ''},
        {'수험번호': 5, '지원분야': '전산', '서류': 10, '면접': '결시', '전형결과': '불합격', '최종결과': ''},
        {'수험번호': 6, '지원분야': '전산', '서류': 20, '면접': '', '전형결과': '불합격', '최종결과': ''},
        {'수험번호': 7, '지원분야': '전산', '서류': 30, '면접': '', '전형결과': '합격', '최종결과': ''},
        {'수험번호': 8, '지원분야': '전산', '서류': 40, '면접': '', '전형결과': '합격', '최종결과': ''},
    ]


@pytest.fixture
def mapping():
    return FieldRoleMapping(
        candidate_id_field='수험번호',
        category_field='지원분야',
        evaluation_fields=['서류', '면접'],
        phase_result_field='전형결과',
        final_result_field='최종결과',
    )


@pytest.fixture
def groups():
    return GroupDefinition({'행정': ['일반행정', '지역행정'], '전산': ['전산'], '기계': ['기계']})


@pytest.fixture
def result_mapping():
    return ResultRoleMapping(
        phase={'합격': '합격', '불합격': '불합격', '결시': '평가제외'},
        final={'합격': '합격', '불합격': '불합격'},
    )


class TestSummarizeGroup:
    """그룹 요약 테스트"""

    def test_empty_group(self):
        """빈 그룹은 n=0, 나머지 None"""
        row = summarize_group('기계', [])
        assert row == {
            'group_name': '기계',
            'n': 0,
            'pass_rate': None,
            'avg_total': None,
            'cutoff': None,
            'cutoff_percentile': None,
        }


class TestComputeStats:
    """전체 통계 계산 테스트"""

    def test_summary_values(self, rows, mapping, groups, result_mapping):
        """그룹별 요약 값"""
        stats = compute_stats(rows, mapping, groups, result_mapping)
        summary = stats['cross_group_summary']

        assert [r['group_name'] for r in summary] == ['행정', '전산', '기계']

        admin = summary[0]
        assert admin['n'] == 3
        assert admin['pass_rate'] == pytest.approx(66.67, abs=0.01)
        assert admin['avg_total'] == pytest.approx(76.67, abs=0.01)
        assert admin['cutoff'] == 80.0
        assert admin['cutoff_percentile'] == pytest.approx(66.67, abs=0.01)

        assert summary[2]['n'] == 0
        assert summary[2]['pass_rate'] is None

    def test_field_correlation_in_detail(self, rows, mapping, groups, result_mapping):
        """전산 그룹 서류 항목 공헌도"""
        stats = compute_stats(rows, mapping, groups, result_mapping)
        detail = stats['groups']['전산']
        assert detail['available_fields'] == ['서류']
        corr = detail['field_stats'][0]['corr']
        assert corr == pytest.approx(0.894, abs=1e-3)
        assert 0 < corr < 1

    def test_excluded_rows_not_counted(self, rows, mapping, groups, result_mapping):
        """평가제외 행을 추가해도 결과가 바뀌지 않음"""
        before = compute_stats(rows, mapping, groups, result_mapping)
        extra = rows + [
            {'수험번호': 9, '지원분야': '전산', '서류': 99, '면접': 99, '전형결과': '결시', '최종결과': '합격'},
        ]
        after = compute_stats(extra, mapping, groups, result_mapping)
        assert after == before

    def test_idempotent(self, rows, mapping, groups, result_mapping):
        """같은 입력이면 같은 결과, 입력은 변경하지 않음"""
        original = copy.deepcopy(rows)
        first = compute_stats(rows, mapping, groups, result_mapping)
        second = compute_stats(rows, mapping, groups, result_mapping)
        assert first == second
        assert rows == original

    def test_accepts_dicts_and_frame(self, rows, mapping, groups, result_mapping):
        """dict 설정(예전 키 포함)과 DataFrame 입력"""
        expected = compute_stats(rows, mapping, groups, result_mapping)
        legacy_mapping = {
            'examNo': '수험번호',
            'supportField': '지원분야',
            'evalFields': ['서류', '면접'],
            'phaseResult': '전형결과',
            'finalResult': '최종결과',
        }
        result = compute_stats(
            pd.DataFrame(rows, dtype=object),
            legacy_mapping,
            groups.to_dict(),
            result_mapping.to_dict(),
        )
        assert result['cross_group_summary'] == expected['cross_group_summary']

    def test_included_fields_by_group(self, rows, mapping, groups, result_mapping):
        """그룹별 포함 항목 지정"""
        stats = compute_stats(rows, mapping, groups, result_mapping, {'행정': ['면접']})
        assert [fs['field'] for fs in stats['groups']['행정']['field_stats']] == ['면접']
        assert [fs['field'] for fs in stats['groups']['전산']['field_stats']] == ['서류']

    def test_unmapped_result_values_count_in_denominator(self, rows, mapping, groups):
        """매핑되지 않은 결과 값은 분모에만 포함"""
        stats = compute_stats(rows, mapping, groups, ResultRoleMapping(phase={'합격': '합격'}))
        admin = stats['cross_group_summary'][0]
        # 결시 행도 평가제외로 매핑되지 않았으므로 포함
        assert admin['n'] == 4
        assert admin['pass_rate'] == pytest.approx(50.0)


    def test_numeric_category_and_result_values(self):
        """숫자로 읽힌 지원분야/결과 값도 설정의 숫자 값과 일치"""
        rows = [
            {'분야코드': 1.0, '점수': 80, '결과': 1.0},
            {'분야코드': 1, '점수': 60, '결과': 0},
            {'분야코드': '2', '점수': 70, '결과': 1},
        ]
        stats = compute_stats(
            rows,
            {'category_field': '분야코드', 'evaluation_fields': ['점수'], 'phase_result_field': '결과'},
            {'G': [1.0], 'H': [2]},
            {'phase': {1.0: '합격', 0: '불합격'}},
        )
        g, h = stats['cross_group_summary']
        assert g['n'] == 2
        assert g['pass_rate'] == pytest.approx(50.0)
        assert g['cutoff'] == 80.0
        assert h['n'] == 1
        assert h['pass_rate'] == pytest.approx(100.0)

    def test_stats_from_cohorts_matches(self, rows, mapping, groups, result_mapping):
        """미리 구성한 후보자 목록으로 계산해도 같은 결과"""
        cohorts = build_cohorts(rows, mapping, groups, result_mapping)
        included = {'행정': ['서류']}
        assert stats_from_cohorts(cohorts, mapping, included) == compute_stats(
            rows, mapping, groups, result_mapping, included
        )


class TestSummaryFrame:
    """요약 DataFrame 변환 테스트"""

    def test_columns_and_rounding(self, rows, mapping, groups, result_mapping):
        """한글 컬럼명 + 반올림"""
        summary = cross_group_summary({'기계': []})
        df = summary_to_frame(summary)
        assert list(df.columns) == list(SUMMARY_COLUMNS.values())
        assert pd.isna(df.loc[0, '전형 합격률(%)'])

        stats = compute_stats(rows, mapping, groups, result_mapping)
        df = summary_to_frame(stats['cross_group_summary'])
        assert df.loc[0, '전형 합격률(%)'] == 66.67
        assert df.loc[0, '지원분야(통합)'] == '행정'


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
