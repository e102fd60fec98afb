"""
엑셀 내보내기 모듈

계산된 통계(지원분야 간 요약 + 그룹별 상세)를 서식이 적용된 엑셀 파일로 만듭니다.
"""

import re
from datetime import datetime
from io import BytesIO
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from recruit_stats.styles import format_detail_frame, format_field_stats_frame, format_summary_frame

SUMMARY_SHEET_TITLE = "지원분야 요약"

_INVALID_SHEET_CHARS = re.compile(r'[\[\]:*?/\\]')

THIN_BORDER = Border(
    left=Side(style='thin'),
    right=Side(style='thin'),
    top=Side(style='thin'),
    bottom=Side(style='thin')
)
HEADER_FILL = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
HEADER_FONT = Font(name='맑은 고딕', size=11, bold=True)
DATA_FONT = Font(name='맑은 고딕', size=10)
CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)


def sanitize_sheet_title(name: str, used: Optional[set] = None) -> str:
    """
    엑셀 시트 이름으로 쓸 수 있게 정리합니다.

    금지 문자([]:*?/\\)는 '_'로 바꾸고 31자로 자르며, 이미 쓴 이름과 겹치면
    뒤에 번호를 붙입니다.

    Examples:
        >>> sanitize_sheet_title('행정/기술')
        '행정_기술'
        >>> sanitize_sheet_title('행정', used={'행정'})
        '행정 (2)'
    """
    used = used if used is not None else set()
    base = _INVALID_SHEET_CHARS.sub('_', str(name or '')).strip() or 'untitled'
    base = base[:31]
    title = base
    idx = 2
    while title in used:
        suffix = f" ({idx})"
        title = base[:31 - len(suffix)] + suffix
        idx += 1
    used.add(title)
    return title


def _write_banner(ws, title: str, width: int) -> int:
    cell = ws.cell(row=1, column=1, value=title)
    cell.font = Font(name='맑은 고딕', size=14, bold=True, color="FFFFFF")
    cell.fill = PatternFill(start_color="1A5C9E", end_color="1A5C9E", fill_type="solid")
    cell.alignment = Alignment(horizontal="center", vertical="center")
    if width > 1:
        ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=width)
    ws.row_dimensions[1].height = 24

    info = ws.cell(row=2, column=1, value="출력일시:")
    info.font = Font(name='맑은 고딕', bold=True, size=10)
    ws.cell(row=2, column=2, value=datetime.now().strftime('%Y년 %m월 %d일 %H:%M:%S')).font = DATA_FONT
    return 4


def _write_table(ws, df: pd.DataFrame, start_row: int) -> int:
    """표를 쓰고 다음에 쓸 행 번호를 반환합니다."""
    for col_num, col_name in enumerate(df.columns, 1):
        cell = ws.cell(row=start_row, column=col_num, value=col_name)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.alignment = CENTER
        cell.border = THIN_BORDER
    ws.row_dimensions[start_row].height = 20

    for offset, row_values in enumerate(df.itertuples(index=False, name=None), 1):
        excel_row = start_row + offset
        for col_num, value in enumerate(row_values, 1):
            cell = ws.cell(row=excel_row, column=col_num, value=value)
            cell.font = DATA_FONT
            cell.alignment = CENTER
            cell.border = THIN_BORDER
        ws.row_dimensions[excel_row].height = 18

    return start_row + len(df) + 2


def _autofit(ws, frames: List[pd.DataFrame]) -> None:
    widths: Dict[int, int] = {}
    for df in frames:
        for col_num, col_name in enumerate(df.columns, 1):
            max_length = len(str(col_name)) + 2
            for value in df[col_name]:
                max_length = max(max_length, len(str(value)) + 2)
            widths[col_num] = max(widths.get(col_num, 0), max_length)

    for col_num, width in widths.items():
        # 최대 35, 최소 8로 제한
        ws.column_dimensions[get_column_letter(col_num)].width = min(35, max(8, width))


def export_stats_to_excel(stats: Mapping[str, Any], title: str = "지원분야별 통계") -> bytes:
    """
    계산 결과를 엑셀 파일(bytes)로 만듭니다.

    Args:
        stats (Mapping): compute_stats() 결과 {'cross_group_summary', 'groups'}
        title (str): 첫 시트 제목

    Returns:
        bytes: xlsx 파일 내용

    Note:
        - 첫 시트: 지원분야 간 요약 비교표
        - 이후 그룹마다 시트 1개: 요약 통계(총점 기준) + 평가항목별 합/불 평균
    """
    wb = Workbook()
    ws = wb.active
    used_titles = set()
    ws.title = sanitize_sheet_title(SUMMARY_SHEET_TITLE, used_titles)

    summary_df = format_summary_frame(stats.get('cross_group_summary', []))
    row_num = _write_banner(ws, f"📊 {title}", len(summary_df.columns))
    _write_table(ws, summary_df, row_num)
    _autofit(ws, [summary_df])

    for group_name, detail in stats.get('groups', {}).items():
        gws = wb.create_sheet(sanitize_sheet_title(group_name, used_titles))
        detail_df = format_detail_frame(detail)
        field_df = format_field_stats_frame(detail)

        row_num = _write_banner(gws, f"{group_name} (통계 대상 {detail.get('n', 0)}명)", len(field_df.columns))
        row_num = _write_table(gws, detail_df, row_num)
        if not field_df.empty:
            _write_table(gws, field_df, row_num)
        _autofit(gws, [detail_df, field_df])

    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output.getvalue()
