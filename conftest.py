import os
import importlib

import pytest
from fastapi.testclient import TestClient

from locallibrary.catalog import Catalog


@pytest.fixture
def catalog(tmp_path, request):
    # Her test için benzersiz bir veritabanı dosyası oluştur
    db_file = str(tmp_path / f"test_{request.node.name}.db")
    yield Catalog(db_file=db_file)
    if os.path.exists(db_file):
        os.remove(db_file)


@pytest.fixture
def api_module(tmp_path, request, monkeypatch):
    # api modülü içe aktarılırken global Catalog() test veritabanını kullanmalı
    db_file = str(tmp_path / f"api_test_{request.node.name}.db")
    monkeypatch.setenv("LIBRARY_DB_FILE", db_file)

    import locallibrary.api as module
    importlib.reload(module)
    return module


@pytest.fixture
def client(api_module):
    with TestClient(api_module.app) as test_client:
        yield test_client
