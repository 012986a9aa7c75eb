# 정적 페이지 라우트 테이블
# URL 경로 -> HTML 문서 매핑을 시작 시 한 번 구성하고 이후에는 변경하지 않음
import logging
import mimetypes
import os
from dataclasses import dataclass
from types import MappingProxyType

logger = logging.getLogger('coursepages.pages')

# 패키지에 포함된 기본 페이지 디렉터리
DEFAULT_PAGES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'static')

DEFAULT_ROUTES = {
    '/home': 'home.html',
    '/courses': 'courses.html',
    '/about': 'about.html',
    '/contact': 'contact.html',
}


class PageLoadError(OSError):
    """설정된 문서를 읽을 수 없을 때 (배포/설정 결함)"""

    def __init__(self, source, reason):
        super().__init__(f'페이지 로드 실패 ({source}): {reason}')
        self.source = source
        self.reason = reason


@dataclass(frozen=True)
class Page:
    body: bytes
    content_type: str
    source: str


def guess_content_type(filename):
    content_type, _ = mimetypes.guess_type(filename)
    if content_type is None:
        return 'application/octet-stream'
    if content_type.startswith('text/'):
        return f'{content_type}; charset=utf-8'
    return content_type


def load_page(source):
    """파일 전체를 읽어 Page 로 반환 (핸들은 읽은 직후 닫힘)"""
    try:
        with open(source, 'rb') as f:
            body = f.read()
    except OSError as e:
        raise PageLoadError(source, e.strerror or str(e)) from e
    return Page(body=body, content_type=guess_content_type(source), source=source)


def parse_routes(text):
    """'/home=home.html,/courses=courses.html' 형식의 PAGE_ROUTES 값을 파싱"""
    routes = {}
    for entry in text.split(','):
        entry = entry.strip()
        if not entry:
            continue
        path, sep, filename = entry.partition('=')
        path, filename = path.strip(), filename.strip()
        if not sep or not path or not filename:
            raise ValueError(f'잘못된 라우트 항목: {entry!r}')
        if not path.startswith('/'):
            raise ValueError(f'라우트 경로는 /로 시작해야 합니다: {path!r}')
        if path in routes:
            raise ValueError(f'중복된 라우트 경로: {path!r}')
        routes[path] = filename
    if not routes:
        raise ValueError('PAGE_ROUTES에 라우트가 없습니다')
    return routes


class RouteTable:
    """경로 -> 문서 매핑. 생성 이후 읽기 전용이라 요청 간 락이 필요 없음"""

    def __init__(self, entries, preload):
        self._entries = MappingProxyType(dict(entries))
        self.preload = preload

    @property
    def entries(self):
        return self._entries

    def __contains__(self, path):
        return path in self._entries

    def __len__(self):
        return len(self._entries)

    def paths(self):
        return list(self._entries)

    def resolve(self, path):
        """등록된 경로면 Page, 미등록이면 None. 문서를 읽을 수 없으면 PageLoadError"""
        entry = self._entries.get(path)
        if entry is None:
            return None
        if isinstance(entry, Page):
            return entry
        if isinstance(entry, PageLoadError):
            # 시작 시 로드에 실패한 문서
            raise PageLoadError(entry.source, entry.reason)
        return load_page(entry)


def build_route_table(routes=None, pages_dir=None, preload=True):
    routes = DEFAULT_ROUTES if routes is None else routes
    pages_dir = pages_dir or DEFAULT_PAGES_DIR

    entries = {}
    for path, filename in routes.items():
        source = os.path.join(pages_dir, filename)
        if not preload:
            entries[path] = source
            continue
        try:
            entries[path] = load_page(source)
        except PageLoadError as e:
            # 다른 라우트는 계속 서비스하고 해당 경로만 500 응답
            logger.error('%s 문서를 로드하지 못함: %s', path, e)
            entries[path] = e

    logger.info('라우트 %d개 등록 (preload=%s): %s', len(entries), preload, ', '.join(entries))
    return RouteTable(entries, preload)
