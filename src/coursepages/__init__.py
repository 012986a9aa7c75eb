"""Static course pages server."""

__version__ = '1.0.0'

# 페이지 라우트보다 우선하는 운영용 엔드포인트
HEALTH_PATH = '/api/health'
METRICS_PATH = '/metrics'
