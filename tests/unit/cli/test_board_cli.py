from pathlib import Path

from liveboard.cli.board import _cli_overrides, _parse_args, format_snapshot, main
from liveboard.feed.types import BoardSnapshot, ConnectionState
from liveboard.types.types import DepthLadder, DepthLevel, Side, Trade


def test_parse_args():
    args = _parse_args(
        [
            "MINT",
            "--endpoint",
            "wss://feed.test",
            "--reconnect",
            "--telemetry",
            "events.jsonl",
            "--log-level",
            "debug",
        ]
    )
    assert args.mint == "MINT"
    assert args.endpoint == "wss://feed.test"
    assert args.reconnect is True
    assert args.telemetry == Path("events.jsonl")
    assert args.config is None


def test_cli_overrides():
    args = _parse_args(["MINT", "--reconnect", "--log-level", "debug"])
    assert _cli_overrides(args) == {
        "feed": {"subscription_key": "MINT"},
        "reconnect": {"enabled": True},
        "logging": {"level": "DEBUG"},
    }


def test_cli_overrides_empty():
    assert _cli_overrides(_parse_args([])) == {}


def test_format_snapshot_idle():
    snapshot = BoardSnapshot(
        connection_state=ConnectionState.IDLE,
        last_price=None,
        tape=(),
        candles=(),
        depth=DepthLadder.empty(),
    )
    assert format_snapshot(snapshot) == "[idle] price=- tape=0"


def test_format_snapshot_with_trade():
    trade = Trade(timestamp_ms=605_000, price=1.05, size=20.0, side=Side.BUY, tx_id="t")
    snapshot = BoardSnapshot(
        connection_state=ConnectionState.CONNECTED,
        last_price=1.05,
        tape=(trade,),
        candles=(),
        depth=DepthLadder(
            center=1.05,
            bids=(DepthLevel(price=1.0479, quantity=1.0),),
            asks=(DepthLevel(price=1.0521, quantity=1.0),),
        ),
        candle_update={"time": 600, "open": 1.0, "high": 1.05, "low": 1.0, "close": 1.05},
    )

    line = format_snapshot(snapshot)

    assert line == (
        "[connected] price=1.05 1m(t=600 o=1 h=1.05 l=1 c=1.05) tape=1 "
        "ladder=1.0479/1.0521 (synthetic) last=buy 20"
    )


def test_main_rejects_bad_config(tmp_path, capsys):
    path = tmp_path / "board.toml"
    path.write_text('[feed]\nendpont = "typo"\n', encoding="utf-8")

    assert main(["MINT", "--config", str(path)]) == 2
    assert "endpont" in capsys.readouterr().err


def test_main_missing_config_file(tmp_path, capsys):
    assert main(["MINT", "--config", str(tmp_path / "absent.toml")]) == 2
    assert "not found" in capsys.readouterr().err
