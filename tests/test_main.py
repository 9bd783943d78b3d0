"""Tests for the command line front-end."""

import asyncio

import pytest

from order_archive import main as cli
from order_archive.adapters.local import LocalBackend
from order_archive.core.models import ROOT_ID, Member, MemberRank


@pytest.fixture()
def data_path(tmp_path):
    return tmp_path / "archive.json"


@pytest.fixture(autouse=True)
def local_env(monkeypatch, data_path):
    monkeypatch.delenv("ORDER_ARCHIVE_URL", raising=False)
    monkeypatch.delenv("ORDER_ARCHIVE_KEY", raising=False)
    monkeypatch.setenv("ORDER_ARCHIVE_DATA", str(data_path))
    monkeypatch.setenv("ORDER_ARCHIVE_ROOT_PASSWORD", "alpha")


def test_members_lists_bootstrapped_root(capsys):
    """The Root Architect is created on first run and listed as admin."""
    assert cli.main(["members"]) == 0
    out = capsys.readouterr().out
    assert f"{ROOT_ID}\tARCHITECT\tArchitect\tadmin\tactive" in out


def test_members_listed_by_rank(data_path, capsys):
    """Higher ranks come first; only architects are marked admin."""
    backend = LocalBackend(data_path)
    asyncio.run(
        backend.save_member(Member(id="M1", name="Alice", codename="Lux", rank=MemberRank.ADEPT))
    )
    assert cli.main(["members"]) == 0
    lines = capsys.readouterr().out.splitlines()
    assert lines[0].startswith(f"{ROOT_ID}\t")
    assert lines[1] == "M1\tLux\tAdept\tmember\tactive"


def test_verify(capsys):
    """Known ids are described; unknown ids exit with status 1."""
    assert cli.main(["verify", ROOT_ID]) == 0
    assert "Root Architect" in capsys.readouterr().out
    assert cli.main(["verify", "AO-404"]) == 1
    assert "NOT FOUND" in capsys.readouterr().out


def test_login(monkeypatch, capsys):
    """Login accepts the admin alias and rejects a wrong password."""
    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "alpha")
    assert cli.main(["login", "admin"]) == 0
    assert "Welcome, ARCHITECT." in capsys.readouterr().out

    monkeypatch.setattr(cli.getpass, "getpass", lambda prompt: "wrong")
    assert cli.main(["login", "admin"]) == 1


def test_pin_unknown_article():
    """Pinning a missing article fails."""
    assert cli.main(["pin", "DOC-1"]) == 1


def test_articles_and_reset(capsys):
    """Reset leaves the root in place."""
    assert cli.main(["articles", "--author", "Lux"]) == 0
    assert cli.main(["reset"]) == 0
    assert cli.main(["members"]) == 0
    assert ROOT_ID in capsys.readouterr().out


def test_unreadable_store_exits_with_error(data_path):
    """A storage failure is reported through the exit status."""
    data_path.write_text("{truncated", encoding="utf-8")
    assert cli.main(["reset"]) == 1
    assert data_path.read_text(encoding="utf-8") == "{truncated"


def test_missing_command_is_usage_error():
    """Running without a subcommand is an argparse usage error."""
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 2
