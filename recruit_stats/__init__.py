"""
채용 전형 통계 모듈 패키지

이 패키지는 지원자 데이터를 지원분야(상위 카테고리)별로 집계하고
전형 합격률, 커트라인, 평가항목 상관계수 등의 통계를 계산하는 기능을 제공합니다.

Modules:
    - config: 컬럼 역할 매핑, 지원분야 그룹, 결과 역할 매핑 설정
    - roles: 결과 값 → 역할(합격/불합격/평가제외/기타) 변환
    - cohort: 지원분야별 후보자(Candidate) 구성 및 점수 변환
    - statistics: 통계 계산 (평균, 표준편차, 커트라인, 상관계수 등)
    - summary: 지원분야 간 요약 비교 및 전체 계산 진입점
    - snapshot: 계산 결과 스냅샷 레코드
    - repository: SQLite 저장소 (전형 + 전형당 1개 스냅샷)
    - service: 스냅샷 조회/저장/삭제 (권한 확인 포함)
    - errors: 오류 타입
    - data_loader: 엑셀 데이터 로딩
    - visualizations: Plotly 기반 시각화
    - styles: HTML 테이블 및 표시 형식 처리
    - export: 엑셀 내보내기
"""

__version__ = "1.0.0"
__author__ = "채용분석팀"
