"""
통계 계산 모듈 테스트
"""

import pytest
from recruit_stats.cohort import Candidate
from recruit_stats.statistics import (
    FINAL_FAIL_PHASE_PASS_LABEL,
    FINAL_PASS_LABEL,
    correlation,
    cutoff,
    cutoff_percentile,
    field_correlation,
    field_stats,
    final_compare,
    group_detail_stats,
    mean,
    median,
    pass_rate,
    std_dev,
)


def make_candidate(idx, total, phase=None, final=None, scores=None):
    return Candidate(
        row_index=idx,
        group_name='행정',
        candidate_id=f'A-{idx:03d}',
        phase_role=phase,
        final_role=final,
        eval_scores=scores if scores is not None else {},
        total_score=total,
    )


@pytest.fixture
def cohort():
    """합격 2명(80, 90), 불합격 1명(60)"""
    return [
        make_candidate(0, 80.0, '합격', '합격', {'서류': 40.0, '면접': 40.0}),
        make_candidate(1, 90.0, '합격', '불합격', {'서류': 45.0, '면접': 45.0}),
        make_candidate(2, 60.0, '불합격', None, {'서류': 30.0, '면접': 30.0}),
    ]


class TestBasicStats:
    """기본 통계 함수 테스트"""

    def test_mean(self):
        """평균"""
        assert mean([80, 60, 90]) == pytest.approx(76.6667, rel=1e-4)
        assert mean([5]) == 5.0
        assert mean([]) is None

    def test_median(self):
        """중앙값 (홀수/짝수 개)"""
        assert median([3, 1, 2]) == 2.0
        assert median([3, 1, 2, 4]) == 2.5
        assert median([]) is None

    def test_std_dev_population(self):
        """모표준편차 (n으로 나눔)"""
        assert std_dev([2, 4, 4, 4, 5, 5, 7, 9]) == pytest.approx(2.0)
        assert std_dev([1, 3]) == pytest.approx(1.0)

    def test_std_dev_too_few(self):
        """값이 2개 미만이면 None"""
        assert std_dev([5]) is None
        assert std_dev([]) is None


SAMPLES = [
    [0.0, 100.0],
    [1, 2, 3, 4, 5],
    [-3.5, 0.0, 2.25, 9.0, -1.0, 4.0],
    [1e6, 1e6 + 1, 1e6 + 2],
    [7, 7, 7, 8],
    [0.001, 0.002, 1000.0],
    [55, 60, 60, 72, 88, 91, 91, 95],
]


class TestStatProperties:
    """여러 값 목록에 대한 통계 성질 테스트"""

    @pytest.mark.parametrize('xs', SAMPLES)
    def test_mean_and_median_within_range(self, xs):
        """평균/중앙값은 최솟값과 최댓값 사이"""
        assert min(xs) - 1e-9 <= mean(xs) <= max(xs) + 1e-9
        assert min(xs) <= median(xs) <= max(xs)

    @pytest.mark.parametrize('xs', SAMPLES)
    def test_std_dev_non_negative(self, xs):
        """표준편차는 0 이상"""
        assert std_dev(xs) >= 0

    @pytest.mark.parametrize('xs', SAMPLES)
    def test_correlation_in_range(self, xs):
        """상관계수는 -1 ~ 1 (계산 가능한 경우)"""
        outcomes = [i % 2 for i in range(len(xs))]
        r = correlation(xs, outcomes)
        assert r is None or -1.0 <= r <= 1.0
        r = correlation(xs, list(reversed(xs)))
        assert r is None or -1.0 <= r <= 1.0


class TestCorrelation:
    """상관계수 테스트"""

    def test_known_value(self):
        """알려진 상관계수 값"""
        r = correlation([10, 20, 30, 40], [0, 0, 1, 1])
        assert r == pytest.approx(0.8944, abs=1e-3)
        assert 0 < r < 1

    def test_perfect(self):
        """완전 상관"""
        assert correlation([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)
        assert correlation([1, 2, 3], [6, 4, 2]) == pytest.approx(-1.0)

    def test_undefined(self):
        """계산할 수 없는 경우 None"""
        assert correlation([1], [1]) is None
        assert correlation([], []) is None
        assert correlation([1, 2, 3], [1, 2]) is None
        # 분산 0
        assert correlation([5, 5, 5], [0, 1, 1]) is None
        assert correlation([1, 2, 3], [1, 1, 1]) is None

    def test_range(self):
        """결과는 -1 ~ 1 범위"""
        r = correlation([3.1, 2.7, 9.4, 0.2, 5.5], [1, 0, 1, 0, 1])
        assert -1.0 <= r <= 1.0


class TestPassRateAndCutoff:
    """합격률/커트라인 테스트"""

    def test_pass_rate(self, cohort):
        """합격률은 전체 인원 기준"""
        assert pass_rate(cohort) == pytest.approx(66.6667, rel=1e-4)
        assert pass_rate([]) is None

    def test_pass_rate_counts_unscored(self):
        """총점이 없는 후보자도 분모에 포함"""
        cs = [make_candidate(0, None, '합격'), make_candidate(1, None, '기타')]
        assert pass_rate(cs) == 50.0

    def test_cutoff(self, cohort):
        """합격자 최저 총점"""
        assert cutoff(cohort) == 80.0

    def test_cutoff_ignores_unscored_pass(self):
        """총점 없는 합격자는 커트라인 계산에서 제외"""
        cs = [make_candidate(0, None, '합격'), make_candidate(1, 70.0, '합격')]
        assert cutoff(cs) == 70.0

    def test_cutoff_without_pass(self):
        """합격자가 없으면 None"""
        assert cutoff([make_candidate(0, 50.0, '불합격')]) is None

    def test_cutoff_percentile(self, cohort):
        """커트라인 이상 비율"""
        assert cutoff_percentile(cohort, 80.0) == pytest.approx(66.6667, rel=1e-4)
        assert cutoff_percentile(cohort, None) is None
        assert cutoff_percentile([make_candidate(0, None, '합격')], 10.0) is None


class TestFieldStats:
    """평가항목별 통계 테스트"""

    def test_field_correlation(self):
        """합격=1, 불합격=0 과의 상관"""
        cs = [
            make_candidate(0, 10.0, '불합격', scores={'면접': 10.0}),
            make_candidate(1, 20.0, '불합격', scores={'면접': 20.0}),
            make_candidate(2, 30.0, '합격', scores={'면접': 30.0}),
            make_candidate(3, 40.0, '합격', scores={'면접': 40.0}),
            # 기타 역할은 제외
            make_candidate(4, 99.0, '기타', scores={'면접': 99.0}),
        ]
        assert field_correlation(cs, '면접') == pytest.approx(0.8944, abs=1e-3)

    def test_field_correlation_single_role(self):
        """모두 합격이면 분산 0 → None"""
        cs = [
            make_candidate(0, 10.0, '합격', scores={'면접': 10.0}),
            make_candidate(1, 20.0, '합격', scores={'면접': 20.0}),
        ]
        assert field_correlation(cs, '면접') is None

    def test_field_stats(self, cohort):
        """합격자/불합격자 평균"""
        result = field_stats(cohort, ['면접', '서류'])
        assert [fs['field'] for fs in result] == ['면접', '서류']
        assert result[0]['pass_avg'] == pytest.approx(42.5)
        assert result[0]['fail_avg'] == pytest.approx(30.0)
        assert 0 < result[0]['corr'] <= 1

    def test_field_stats_missing_field(self, cohort):
        """숫자 값이 없는 항목"""
        result = field_stats(cohort, ['실기'])
        assert result == [{'field': '실기', 'pass_avg': None, 'fail_avg': None, 'corr': None}]


class TestFinalCompare:
    """최종 결과 비교 테스트"""

    def test_final_compare(self, cohort):
        """최종 합격 vs 최종 불합격(전형 합격)"""
        result = final_compare(cohort)
        assert result == {FINAL_PASS_LABEL: 80.0, FINAL_FAIL_PHASE_PASS_LABEL: 90.0}

    def test_final_compare_empty(self):
        """최종 결과가 없으면 빈 dict"""
        assert final_compare([make_candidate(0, 50.0, '합격')]) == {}


class TestGroupDetailStats:
    """그룹 상세 통계 테스트"""

    def test_detail(self, cohort):
        """전체 상세 통계"""
        detail = group_detail_stats(cohort, ['서류', '면접'])
        assert detail['n'] == 3
        assert detail['pass_count'] == 2
        assert detail['scored_count'] == 3
        assert detail['pass_rate'] == pytest.approx(66.6667, rel=1e-4)
        assert detail['avg_total'] == pytest.approx(76.6667, rel=1e-4)
        assert detail['median'] == 80.0
        assert detail['min'] == 60.0
        assert detail['max'] == 90.0
        assert detail['fail_max'] == 60.0
        assert detail['cutoff'] == 80.0
        assert detail['cutoff_percentile'] == pytest.approx(66.6667, rel=1e-4)
        assert detail['phase_avg'] == {'합격': 85.0, '불합격': 60.0}
        assert detail['available_fields'] == ['서류', '면접']
        assert detail['included_fields'] == ['서류', '면접']
        assert len(detail['field_stats']) == 2

    def test_included_fields_filter(self, cohort):
        """포함 항목 지정 (매핑에 없는 항목은 무시)"""
        detail = group_detail_stats(cohort, ['서류', '면접'], ['면접', '실기'])
        assert detail['included_fields'] == ['면접']
        assert [fs['field'] for fs in detail['field_stats']] == ['면접']

    def test_included_fields_do_not_change_totals(self, cohort):
        """포함 항목은 총점 통계에 영향을 주지 않음"""
        full = group_detail_stats(cohort, ['서류', '면접'])
        partial = group_detail_stats(cohort, ['서류', '면접'], [])
        assert partial['field_stats'] == []
        for key in ('avg_total', 'cutoff', 'cutoff_percentile', 'std_dev'):
            assert partial[key] == full[key]

    def test_empty_cohort(self):
        """빈 그룹"""
        detail = group_detail_stats([], ['서류'])
        assert detail['n'] == 0
        assert detail['pass_rate'] is None
        assert detail['avg_total'] is None
        assert detail['std_dev'] is None
        assert detail['cutoff'] is None
        assert detail['phase_avg'] == {}
        assert detail['field_stats'] == []


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
