"""
API 라우트 패키지

각 기능별 라우터 모듈:
- health: 헬스 체크
- rotation: 순번 조회/결제/보정/참가자 관리/알림
"""
