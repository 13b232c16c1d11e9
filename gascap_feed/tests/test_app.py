from pathlib import Path

from gascap_feed.config.settings import Settings
from gascap_feed.runtime.app import App
from gascap_feed.tests.fakes import FakeContract


def test_build_wires_settings(tmp_path: Path) -> None:
    settings = Settings(
        rpc_url="http://localhost:8545",
        contract_address="0x973Ca902b10Bb229cB8d90F79E451F1B16aa82B4",
        account="",
        data_dir=str(tmp_path),
        log_level="INFO",
        poll_interval_ms=1000,
        lookback_blocks=100,
        feed_size=10,
        tick_retention=500,
    )
    orch = App(settings).build(contract=FakeContract())
    assert orch.interval_s == 1.0
    assert orch.synchronizer.cursor.lookback_blocks == 100
    assert orch.synchronizer.feed_size == 10
    assert orch.store.max_ticks == 500
    assert orch.store.path == tmp_path / "ftso_ticks.json"
