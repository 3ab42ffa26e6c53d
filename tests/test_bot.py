import pytest

from tldr_bot import bot as bot_module
from tldr_bot import config
from tldr_bot.tldr import TldrHandler


def test_tldr_command_registered():
    command = bot_module.bot.tree.get_command("tldr")

    assert command is not None
    assert [p.display_name for p in command.parameters] == ["range"]
    assert command.parameters[0].required


def test_create_handler(monkeypatch):
    monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setattr(config, "MAX_RANGE", "")

    handler = bot_module.create_handler()

    assert isinstance(handler, TldrHandler)
    assert handler.max_range is None
    assert handler.store.limit == config.RETENTION_LIMIT


def test_main_requires_discord_token(monkeypatch):
    monkeypatch.setattr(config, "DISCORD_TOKEN", "")

    with pytest.raises(SystemExit):
        bot_module.main()


def test_main_requires_anthropic_key(monkeypatch):
    monkeypatch.setattr(config, "DISCORD_TOKEN", "token")
    monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "")

    with pytest.raises(SystemExit):
        bot_module.main()


def test_main_rejects_bad_max_range(monkeypatch):
    monkeypatch.setattr(config, "DISCORD_TOKEN", "token")
    monkeypatch.setattr(config, "ANTHROPIC_API_KEY", "test-key")
    monkeypatch.setattr(config, "MAX_RANGE", "forever")
    run = []
    monkeypatch.setattr(bot_module.bot, "run", lambda *a, **k: run.append(a))

    with pytest.raises(SystemExit):
        bot_module.main()
    assert run == []
