"""Tests for the batch entry point exit codes."""

import pytest

from adpulse import cli
from adpulse.database import create_db_engine, init_db
from adpulse.models.sync_models import TokenType
from adpulse.store.credentials import CredentialStore


@pytest.fixture
def db_url(tmp_path, monkeypatch):
    url = f"sqlite:///{tmp_path / 'sync.db'}"
    monkeypatch.setenv("DATABASE_URL", url)
    monkeypatch.setenv("META_AD_ACCOUNT_IDS", "")
    monkeypatch.setenv("META_ACCESS_TOKEN", "")
    monkeypatch.setenv("META_APP_ID", "")
    monkeypatch.setenv("SYNC_DAY_DELAY_SECONDS", "0")
    return url


def store_long_lived_token(url):
    engine = create_db_engine(url)
    init_db(engine)
    CredentialStore(engine).save_token("facebook", "tok", TokenType.LONG_LIVED)
    engine.dispose()


def test_exits_1_without_long_lived_token(db_url):
    assert cli.main() == 1


def test_exits_0_when_day_loop_completes(db_url):
    store_long_lived_token(db_url)
    assert cli.main() == 0


def test_exits_1_on_unexpected_error(db_url, monkeypatch):
    store_long_lived_token(db_url)

    async def explode(ctx):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(cli, "run_sync", explode)
    assert cli.main() == 1
