# 강의 소개 정적 페이지 서버
# /home, /courses 등 고정된 경로를 정적 HTML 문서로 응답하는 Flask 앱
import logging
import os
import signal
import socket
import sys
import time
from datetime import datetime

from flask import Flask, Response, g, request
from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Histogram, generate_latest
from werkzeug.serving import make_server

from coursepages import HEALTH_PATH, METRICS_PATH
from coursepages.pages import PageLoadError, build_route_table, parse_routes

logger = logging.getLogger('coursepages')

SERVICE_NAME = os.getenv('SERVICE_NAME', 'coursepages')
DEFAULT_PORT = 8080

NOT_FOUND_BODY = '404 page not found\n'
INTERNAL_ERROR_BODY = '500 internal server error\n'

# 페이지 경로는 GET/HEAD 만 허용, 그 외 메서드도 catch-all 로 받아 미등록 경로는 404
PAGE_METHODS = ('GET', 'HEAD')
ANY_METHOD = ['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS']

RESERVED_PATHS = (HEALTH_PATH, METRICS_PATH)

# 미등록 경로는 하나의 라벨로 묶어 메트릭 cardinality 제한
UNMATCHED_LABEL = '<unmatched>'


def _routes_from_env():
    value = os.getenv('PAGE_ROUTES')
    return parse_routes(value) if value else None


def create_app(routes=None, pages_dir=None, preload=None):
    """앱 팩토리 - 라우트 테이블을 시작 시 한 번 구성"""
    if routes is None:
        routes = _routes_from_env()
    if pages_dir is None:
        pages_dir = os.getenv('PAGES_DIR') or None
    if preload is None:
        preload = os.getenv('PRELOAD_PAGES', 'true').lower() == 'true'

    for reserved in RESERVED_PATHS:
        if routes and reserved in routes:
            raise ValueError(f'{reserved} 경로는 페이지로 등록할 수 없습니다')

    route_table = build_route_table(routes, pages_dir, preload)

    # 앱마다 별도 레지스트리 사용 (테스트에서 앱을 여러 번 만들어도 중복 등록 없음)
    registry = CollectorRegistry()
    request_count = Counter(
        'coursepages_http_requests_total',
        'Total number of HTTP requests processed by the page server',
        ['method', 'path', 'status'],
        registry=registry,
    )
    request_latency = Histogram(
        'coursepages_http_request_latency_seconds',
        'Latency of HTTP requests processed by the page server',
        ['path'],
        registry=registry,
    )

    app = Flask(__name__, static_folder=None)
    app.extensions['coursepages'] = {'route_table': route_table, 'registry': registry}

    def metric_path(path):
        if path in route_table or path == HEALTH_PATH:
            return path
        return UNMATCHED_LABEL

    @app.before_request
    def start_timer():
        """요청 시작 시각을 기록하여 응답 지연을 산출"""
        if request.path == METRICS_PATH:
            return
        g.request_start_time = time.time()

    @app.after_request
    def record_request_metrics(response):
        """요청 건수 및 응답 시간을 Prometheus 메트릭으로 저장"""
        if request.path != METRICS_PATH:
            elapsed = time.time() - getattr(g, 'request_start_time', time.time())
            path = metric_path(request.path)
            request_latency.labels(path=path).observe(elapsed)
            request_count.labels(
                method=request.method,
                path=path,
                status=response.status_code
            ).inc()
        return response

    @app.route(METRICS_PATH)
    def metrics():
        """Prometheus가 스크랩할 메트릭 엔드포인트"""
        return Response(generate_latest(registry), mimetype=CONTENT_TYPE_LATEST)

    # 헬스체크 엔드포인트 - Kubernetes liveness/readiness probe용
    @app.route(HEALTH_PATH)
    def health():
        return {
            'status': 'ok',
            'service': SERVICE_NAME,
            'hostname': socket.gethostname(),
            'timestamp': datetime.now().isoformat(),
            'pages': len(route_table)
        }

    @app.route('/', defaults={'path': ''}, methods=ANY_METHOD, provide_automatic_options=False)
    @app.route('/<path:path>', methods=ANY_METHOD, provide_automatic_options=False)
    def serve_page(path):
        try:
            page = route_table.resolve(request.path)
        except PageLoadError as e:
            # 배포/설정 결함 - 해당 요청만 500, 프로세스는 계속 서비스
            logger.error('%s 요청 처리 실패: %s', request.path, e)
            return Response(INTERNAL_ERROR_BODY, status=500, mimetype='text/plain')

        if page is None:
            logger.info('%s %s -> 404', request.method, request.path)
            return Response(NOT_FOUND_BODY, status=404, mimetype='text/plain')

        if request.method not in PAGE_METHODS:
            return Response(status=405, headers={'Allow': ', '.join(PAGE_METHODS)})

        return Response(page.body, status=200, content_type=page.content_type)

    return app


def bind(app, host, port):
    """리스닝 소켓을 바인딩한 서버 반환. 실패 시 연결을 받기 전에 종료"""
    try:
        server = make_server(host, port, app, threaded=True)
    except SystemExit:
        # werkzeug 는 바인딩 실패를 출력한 뒤 sys.exit(1) 호출
        logger.critical('%s:%s 바인딩 실패 - 프로세스 종료', host, port)
        raise
    except OSError as e:
        logger.critical('%s:%s 바인딩 실패 - 프로세스 종료: %s', host, port, e)
        raise SystemExit(1) from e

    logger.info('서버 시작: http://%s:%s', host, server.server_port)
    return server


def serve(app, host='0.0.0.0', port=DEFAULT_PORT):
    server = bind(app, host, port)
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        logger.info('종료 신호 수신')
    finally:
        server.server_close()
        logger.info('서버 종료')


def _handle_sigterm(signum, frame):
    # Pod 종료 시 SIGTERM - serve()의 finally 에서 소켓 정리 후 0으로 종료
    logger.info('종료 신호 수신 (SIGTERM)')
    raise SystemExit(0)


def main():
    logging.basicConfig(
        level=os.getenv('LOG_LEVEL', 'INFO').upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s'
    )
    host = os.getenv('HOST', '0.0.0.0')
    port = int(os.getenv('PORT', str(DEFAULT_PORT)))

    signal.signal(signal.SIGTERM, _handle_sigterm)
    serve(create_app(), host, port)
    return 0


# flask --app coursepages.app run 은 create_app 팩토리를 찾아 사용
if __name__ == '__main__':
    sys.exit(main())
