import json

from floorwatch import main as entry
from tests.helpers.fakes import FakeFetcher


class _FakeClient(FakeFetcher):
    def __init__(self, cfg=None):
        super().__init__({"https://api.store.test/c/x/stats": {"floor": 3.5}})

    async def start(self):
        pass

    async def stop(self):
        pass


def _write_config(tmp_path):
    cfg = {
        "stores": [{
            "name": "store",
            "collection_slugs": ["x"],
            "store_url": "https://store.test/c/%s",
            "stats_url": "https://api.store.test/c/%s/stats",
            "json_map": ["floor"],
            "min": 0,
            "max": 10,
        }],
        "history_json_path": str(tmp_path / "history.json"),
    }
    p = tmp_path / "config.json"
    p.write_text(json.dumps(cfg))
    return p


def test_bad_config_exits_with_2(tmp_path, monkeypatch):
    monkeypatch.setattr(entry, "configure_logging", lambda *a, **kw: None)
    assert entry.main(["-c", str(tmp_path / "missing.json")]) == entry.EXIT_CONFIG_ERROR

def test_once_dry_run_prints_and_records(tmp_path, monkeypatch, capsys):
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)
    monkeypatch.delenv("TELEGRAM_CHAT_ID", raising=False)
    monkeypatch.setattr(entry, "configure_logging", lambda *a, **kw: None)
    monkeypatch.setattr(entry, "MarketplaceClient", _FakeClient)

    rc = entry.main(["-c", str(_write_config(tmp_path)), "--once", "--dry-run"])

    assert rc == 0
    assert "[x](https://store.test/c/x): 3.5000*(+100.00%)*" in capsys.readouterr().out
    saved = json.loads((tmp_path / "history.json").read_text())
    assert [(e["slug"], e["floor"]) for e in saved] == [("x", 3.5)]
