"""
데이터 로더 모듈 테스트
"""

import logging

import pytest
from openpyxl import Workbook
from recruit_stats.config import GroupDefinition
from recruit_stats.data_loader import (
    USAGE_UNUSED,
    USAGE_USED,
    detect_field_usage,
    load_rows_from_excel,
    rows_to_frame,
    ungrouped_values,
    unique_category_values,
    unique_result_values,
)


def write_workbook(path, rows):
    wb = Workbook()
    ws = wb.active
    for row in rows:
        ws.append(row)
    wb.save(path)
    return path


@pytest.fixture
def sample_rows():
    return [
        {'지원분야': '일반행정', '서류': 40, '면접': '결시', '전형결과': '합격'},
        {'지원분야': '지역행정', '서류': '', '면접': 30, '전형결과': ''},
        {'지원분야': '전산', '서류': '35', '면접': '', '전형결과': '불합격'},
        {'지원분야': ' 일반행정 ', '서류': 20, '면접': '불참', '전형결과': '합격'},
        {'지원분야': '', '서류': 10, '면접': 10, '전형결과': '불합격'},
    ]


class TestLoadRowsFromExcel:
    """엑셀 로딩 테스트"""

    def test_headers_and_rows(self, tmp_path):
        """1행 헤더 + 빈 셀은 ''"""
        path = write_workbook(tmp_path / 'applicants.xlsx', [
            [' 수험번호 ', '지원분야', '면접'],
            ['A-001', '일반행정', 85.5],
            ['A-002', '전산', None],
        ])
        headers, rows = load_rows_from_excel(path)

        assert headers == ['수험번호', '지원분야', '면접']
        assert len(rows) == 2
        assert rows[0]['수험번호'] == 'A-001'
        assert rows[0]['면접'] == 85.5
        assert rows[1]['면접'] == ''

    def test_duplicate_header_warns(self, tmp_path, caplog):
        """중복 헤더는 경고"""
        path = write_workbook(tmp_path / 'dup.xlsx', [
            ['점수', '점수'],
            [1, 2],
        ])
        with caplog.at_level(logging.WARNING, logger='recruit_stats.data_loader'):
            headers, rows = load_rows_from_excel(path)
        assert 'duplicate header' in caplog.text
        assert rows == [{'점수': 2}]

    def test_empty_sheet(self, tmp_path):
        """빈 시트"""
        path = tmp_path / 'empty.xlsx'
        Workbook().save(path)
        assert load_rows_from_excel(path) == ([], [])


class TestValueLists:
    """값 목록 추출 테스트"""

    def test_unique_category_values(self, sample_rows):
        """공백 제외, 등장 순서"""
        assert unique_category_values(sample_rows, '지원분야') == ['일반행정', '지역행정', '전산']
        assert unique_category_values(sample_rows, '') == []

    def test_unique_result_values(self, sample_rows):
        """빈 값도 포함"""
        assert unique_result_values(sample_rows, '전형결과') == ['합격', '', '불합격']
        assert unique_result_values(sample_rows, None) == []

    def test_ungrouped_values(self, sample_rows):
        """어느 그룹에도 없는 값"""
        groups = GroupDefinition({'행정': ['일반행정', '지역행정']})
        assert ungrouped_values(sample_rows, '지원분야', groups) == ['전산']

    def test_rows_to_frame(self, sample_rows):
        """미리보기 DataFrame"""
        df = rows_to_frame(['지원분야', '서류', '면접', '전형결과'], sample_rows)
        assert df.shape == (5, 4)
        assert list(df.columns) == ['지원분야', '서류', '면접', '전형결과']


class TestDetectFieldUsage:
    """평가항목 사용 여부 점검 테스트"""

    def test_usage(self, sample_rows):
        """그룹별 사용/미사용 + 텍스트 값"""
        groups = GroupDefinition({'행정': ['일반행정', '지역행정'], '전산': ['전산']})
        usage = detect_field_usage(sample_rows, '지원분야', groups, ['서류', '면접'])

        assert usage['행정']['서류'] == {'status': USAGE_USED, 'text_values': []}
        assert usage['행정']['면접'] == {'status': USAGE_UNUSED, 'text_values': ['결시', '불참']}
        assert usage['전산']['서류']['status'] == USAGE_USED
        # 빈 셀만 있으면 텍스트 값 없음
        assert usage['전산']['면접'] == {'status': USAGE_USED, 'text_values': []}

    def test_without_category_field(self, sample_rows):
        """지원분야 컬럼이 없으면 빈 결과"""
        assert detect_field_usage(sample_rows, None, GroupDefinition({'A': ['전산']}), ['서류']) == {}


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
