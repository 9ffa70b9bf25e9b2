from __future__ import annotations

import pytest

from medal_server import ServeConfig, create_app
from tests.fakes import RecordingDecompiler


@pytest.fixture
def decompiler():
    return RecordingDecompiler()


@pytest.fixture
def asset_dir(tmp_path):
    public = tmp_path / "public"
    public.mkdir()
    (public / "index.html").write_text("<html>medal</html>")
    (public / "app.js").write_text("console.log('medal');")
    return public


@pytest.fixture
def make_client(asset_dir, decompiler):
    def factory(luau=True, lua51=True, **kwargs):
        config = ServeConfig(luau=luau, lua51=lua51, asset_dir=str(asset_dir), **kwargs)
        app = create_app(config, decompiler=decompiler)
        app.testing = True
        return app.test_client()

    return factory


@pytest.fixture
def client(make_client):
    return make_client()
