"""
배포 후 스모크 체크
CI 파이프라인에서 방금 빌드한 컨테이너(또는 클러스터 Ingress)에 대해
모든 페이지와 헬스체크가 200을 반환하는지 확인한다.

    coursepages-smoke --url http://localhost:8080
    coursepages-smoke --url http://localhost:8080 /home /courses
"""
import argparse
import sys
from collections import namedtuple

import requests

from coursepages import HEALTH_PATH
from coursepages.pages import DEFAULT_ROUTES

CheckResult = namedtuple('CheckResult', ['path', 'ok', 'status', 'detail'])


def check_page(base_url, path, timeout=5):
    url = base_url.rstrip('/') + path
    try:
        response = requests.get(url, timeout=timeout)
    except requests.exceptions.RequestException as e:
        return CheckResult(path, False, None, str(e))

    if response.status_code != 200:
        return CheckResult(path, False, response.status_code, f'unexpected status {response.status_code}')
    return CheckResult(path, True, 200, f'{len(response.content)} bytes')


def run_checks(base_url, paths=None, timeout=5):
    paths = list(paths or DEFAULT_ROUTES) + [HEALTH_PATH]
    return [check_page(base_url, path, timeout) for path in paths]


def main(argv=None):
    parser = argparse.ArgumentParser(description='course pages smoke check')
    parser.add_argument('--url', default='http://localhost:8080', help='base URL of the server')
    parser.add_argument('--timeout', type=float, default=5.0)
    parser.add_argument('paths', nargs='*', help='page paths to check (default: all built-in pages)')
    args = parser.parse_args(argv)

    results = run_checks(args.url, args.paths, args.timeout)
    for result in results:
        mark = 'OK  ' if result.ok else 'FAIL'
        print(f'{mark} {result.path} ({result.status}): {result.detail}')

    failed = [r for r in results if not r.ok]
    if failed:
        print(f'{len(failed)}/{len(results)} checks failed')
        return 1
    print(f'all {len(results)} checks passed')
    return 0


if __name__ == '__main__':
    sys.exit(main())
