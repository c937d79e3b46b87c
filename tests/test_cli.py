"""Tests for the ``python -m coralfeast`` entry point."""

import logging
import sys

import pytest

from coralfeast.__main__ import build_parser, main, simulate
from coralfeast.logging_config import configure_logging
from coralfeast.pond.catalog import Catalog, CreatureSpec
from coralfeast.pond.slot import Stage
from coralfeast.simulation.config import PondConfig


class TestParser:
    """Tests for argument parsing."""

    def test_defaults(self) -> None:
        args = build_parser().parse_args([])
        assert args.seconds == 600
        assert args.stock is None
        assert args.config.name == "default.yaml"

    def test_overrides(self) -> None:
        args = build_parser().parse_args(["--seconds", "30", "--stock", "koi", "-c", "x.yaml"])
        assert args.seconds == 30
        assert args.stock == "koi"
        assert str(args.config) == "x.yaml"


class TestSimulate:
    """Tests for the headless run."""

    @pytest.mark.asyncio
    async def test_stocks_every_slot(self, quiet_config) -> None:
        engine = await simulate(quiet_config, seconds=10, creature=None)
        assert all(s.stage == Stage.EGG for s in engine.pond.slots)
        assert engine.wallet.balance == 0

    @pytest.mark.asyncio
    async def test_ready_creatures_are_harvested(self) -> None:
        config = PondConfig(
            rows=2,
            columns=2,
            ph_interval=0,
            oxygen_interval=0,
            temperature_interval=0,
            catalog=Catalog(
                creatures={
                    "minnow": CreatureSpec(
                        slug="minnow",
                        egg_stage_seconds=2,
                        adult_stage_seconds=3,
                        harvest_value=10,
                    ),
                },
            ),
        )
        engine = await simulate(config, seconds=10, creature="minnow")
        assert engine.wallet.balance == 40
        assert all(s.stage == Stage.EMPTY for s in engine.pond.slots)


def test_main_runs_default_config(monkeypatch, caplog) -> None:
    monkeypatch.setattr(
        sys,
        "argv",
        ["coralfeast", "--seconds", "5", "--stock", "guppy", "--log-level", "INFO"],
    )
    with caplog.at_level(logging.INFO, logger="coralfeast"):
        main()
    assert "Day 1, day" in caplog.text


def test_log_level_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("CORALFEAST_LOG_LEVEL", "debug")
    app_logger = configure_logging()
    assert app_logger.name == "coralfeast"
    assert app_logger.level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
