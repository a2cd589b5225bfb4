"""Unit tests for the refresh CLI exit codes and file handling."""
import json
from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

import scripts.run_dashboard_refresh as cli
from conftest import make_config
from membership_dashboard.pipeline import DashboardRefreshService


@pytest.fixture
def campaign_file(tmp_path):
    path = tmp_path / "campaign.json"
    path.write_text(
        json.dumps(
            {
                "campaign_start_date": "2026-09-01",
                "trial_price": 1,
                "avg_paid_price": 29,
                "avg_months_retained": 6,
                "manual_ad_spend": 500,
            }
        ),
        encoding="utf-8",
    )
    return path


@pytest.fixture
def no_warehouse(monkeypatch):
    warehouse_cls = MagicMock()
    warehouse_cls.from_config.return_value.aclose = AsyncMock()
    monkeypatch.setattr(cli, "WarehouseClient", warehouse_cls)
    monkeypatch.delenv("META_ACCESS_TOKEN", raising=False)
    return warehouse_cls


@pytest.mark.asyncio
async def test_missing_config_exits_1(tmp_path):
    output = tmp_path / "data.json"

    code = await cli.main(
        ["--campaign-config", str(tmp_path / "missing.json"), "--output", str(output)]
    )

    assert code == 1
    assert not output.exists()


@pytest.mark.asyncio
async def test_failed_run_keeps_previous_snapshot(tmp_path, campaign_file, no_warehouse, monkeypatch):
    output = tmp_path / "data.json"
    output.write_text('{"previous": true}', encoding="utf-8")
    monkeypatch.setattr(cli, "refresh", AsyncMock(side_effect=RuntimeError("quota exceeded")))

    code = await cli.main(["--campaign-config", str(campaign_file), "--output", str(output)])

    assert code == 1
    assert json.loads(output.read_text(encoding="utf-8")) == {"previous": True}
    no_warehouse.from_config.return_value.aclose.assert_awaited_once()


@pytest.mark.asyncio
async def test_successful_run_writes_and_prints(
    tmp_path, campaign_file, no_warehouse, fake_warehouse, campaign, monkeypatch, capsys
):
    snapshot = await DashboardRefreshService(
        make_config(campaign), fake_warehouse, MagicMock()
    ).run_once(date(2026, 10, 19))
    refresh = AsyncMock(return_value=snapshot)
    monkeypatch.setattr(cli, "refresh", refresh)
    output = tmp_path / "data.json"

    code = await cli.main(
        ["--campaign-config", str(campaign_file), "--output", str(output), "--date", "2026-10-19"]
    )

    assert code == 0
    assert json.loads(output.read_text(encoding="utf-8"))["periods"].keys() == {
        "7d",
        "30d",
        "90d",
        "ytd",
    }
    assert refresh.call_args.args[2] == date(2026, 10, 19)
    assert "30-day summary:" in capsys.readouterr().out


@pytest.mark.asyncio
async def test_dry_run_does_not_write(tmp_path, campaign_file, no_warehouse, fake_warehouse, campaign, monkeypatch):
    snapshot = await DashboardRefreshService(
        make_config(campaign), fake_warehouse, MagicMock()
    ).run_once(date(2026, 10, 19))
    monkeypatch.setattr(cli, "refresh", AsyncMock(return_value=snapshot))
    output = tmp_path / "data.json"

    code = await cli.main(
        ["--campaign-config", str(campaign_file), "--output", str(output), "--dry-run"]
    )

    assert code == 0
    assert not output.exists()
