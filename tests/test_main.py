"""Tests for main.py: the console command loop and logging setup."""

import asyncio
import logging
import sys

import pytest

import main
from catalog_api import NetworkError
from config import STATUS_START_FAILED
from conftest import FIRE, FakeCatalogClient


def _fake_client():
    return FakeCatalogClient(
        total=100,
        categories={"fire": FIRE, "water": list(range(7, 37)), "grass": [1, 2, 3]},
    )


def _script(monkeypatch, lines):
    """Feed `lines` to the prompt, then signal end of input."""
    pending = iter(lines)
    prompts = []

    def fake_input(prompt=""):
        prompts.append(prompt)
        try:
            return next(pending)
        except StopIteration:
            raise EOFError

    monkeypatch.setattr("builtins.input", fake_input)
    return prompts


# ── Command loop ─────────────────────────────────────────

def test_startup_loads_first_batch_then_exits_on_eof(monkeypatch, capsys):
    client = _fake_client()
    prompts = _script(monkeypatch, [])

    assert asyncio.run(main.run_console(client=client)) == 0
    out = capsys.readouterr().out
    assert "Types: fire, grass, water" in out
    assert "#0001 bulbasaur" in out
    assert "#0024" in out
    assert "#0025" not in out
    assert "Showing 24 Pokémon" in out
    assert prompts == ["> "]


def test_initial_filters_and_commands(monkeypatch, capsys):
    client = _fake_client()
    _script(monkeypatch, ["search", "type water", "bogus", "more", "types", "quit", "more"])

    code = asyncio.run(main.run_console(category="fire", search="char", client=client))
    out = capsys.readouterr().out
    assert code == 0

    # --type fire --search char: only the three fire-type matches
    first, rest = out.split("Showing 3 Pokémon", 1)
    assert "#0004 charmander" in first
    assert "#0006 charizard" in first
    assert "#0037" not in first
    assert "#0001" not in first

    # bare "search" clears the text and keeps the type
    assert "#0037 vulpix" in rest
    assert "Showing 12 Pokémon" in rest

    # "type water" restarts on the water listing
    assert "#0007 squirtle" in rest
    assert "Showing 24 Pokémon" in rest

    assert "Unknown command: bogus" in rest

    # "more" appends the rest of water
    assert "#0036" in rest
    assert "Showing 30 Pokémon" in rest
    assert rest.count("Types: fire, grass, water") == 1

    # Nothing after "quit" runs
    assert rest.count("Showing 30 Pokémon") == 1
    assert client.calls.count(client.category_url("water")) == 1


def test_enter_loads_next_batch(monkeypatch, capsys):
    client = _fake_client()
    _script(monkeypatch, ["", "  MORE  "])

    assert asyncio.run(main.run_console(client=client)) == 0
    out = capsys.readouterr().out
    assert "#0072" in out
    assert "Showing 72 Pokémon" in out


def test_start_failure_returns_error_code(monkeypatch, capsys):
    client = _fake_client()
    client.failures[client.categories_url()] = NetworkError("HTTP 503", status=503)
    prompts = _script(monkeypatch, ["more"])

    assert asyncio.run(main.run_console(client=client)) == 1
    assert STATUS_START_FAILED in capsys.readouterr().out
    assert prompts == []


# ── Logging ──────────────────────────────────────────────

@pytest.fixture
def fresh_handlers():
    root = logging.getLogger()
    before = list(root.handlers)
    level = root.level
    yield root
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_setup_logging_console_and_file(tmp_path, monkeypatch, fresh_handlers):
    log_file = tmp_path / "logs" / "dexfeed.log"
    monkeypatch.setattr(main, "LOG_FILE", log_file)
    before = list(fresh_handlers.handlers)

    main.setup_logging(debug=True)

    added = [h for h in fresh_handlers.handlers if h not in before]
    console = [h for h in added if type(h) is logging.StreamHandler]
    files = [h for h in added if isinstance(h, logging.FileHandler)]
    assert len(console) == 1 and len(files) == 1
    assert console[0].stream is sys.stdout
    assert console[0].level == logging.INFO
    assert files[0].level == logging.DEBUG
    assert fresh_handlers.level == logging.DEBUG
    assert log_file.parent.is_dir()
