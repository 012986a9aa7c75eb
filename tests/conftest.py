"""Pytest configuration and shared fixtures."""

import threading

import pytest

from coursepages.app import bind, create_app


HOME_HTML = b'<!DOCTYPE html><html><body><h1>Home</h1></body></html>\n'
COURSES_HTML = b'<!DOCTYPE html><html><body><h1>Courses</h1><ul><li>Docker</li></ul></body></html>\n'

TEST_ROUTES = {
    '/home': 'home.html',
    '/courses': 'courses.html',
}


# ============================================================================
# Pages on disk
# ============================================================================

@pytest.fixture
def pages_dir(tmp_path):
    """Temporary pages directory holding home.html and courses.html."""
    (tmp_path / 'home.html').write_bytes(HOME_HTML)
    (tmp_path / 'courses.html').write_bytes(COURSES_HTML)
    return tmp_path


# ============================================================================
# Application
# ============================================================================

@pytest.fixture
def app(pages_dir):
    return create_app(routes=TEST_ROUTES, pages_dir=str(pages_dir), preload=True)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def live_server(app):
    """Real threaded server on an ephemeral port; yields its base URL."""
    server = bind(app, '127.0.0.1', 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield f'http://127.0.0.1:{server.server_port}'
    server.shutdown()
    server.server_close()
    thread.join(timeout=5)
