"""CLI commands that need no running node."""

from __future__ import annotations

from click.testing import CliRunner

from shieldtx.cli import cli


def _config(tmp_path, **sections) -> str:
    path = tmp_path / "shieldtx.toml"
    lines = [f'[storage]\ndb_path = "{tmp_path / "journal.db"}"\n']
    for name, body in sections.items():
        lines.append(f"[{name}]\n{body}\n")
    path.write_text("\n".join(lines))
    return str(path)


def test_status_shows_direct_mode(tmp_path, monkeypatch):
    monkeypatch.delenv("SHIELDTX_RELAYER", raising=False)
    monkeypatch.delenv("SHIELDTX_SEED", raising=False)
    result = CliRunner().invoke(cli, ["-c", _config(tmp_path), "status"])

    assert result.exit_code == 0
    assert "(direct submission)" in result.output
    assert "Keypair:       (not set)" in result.output


def test_status_masks_keypair(tmp_path, monkeypatch):
    monkeypatch.setenv("SHIELDTX_SEED", "//Alice")
    result = CliRunner().invoke(cli, ["-c", _config(tmp_path), "status"])

    assert "***configured***" in result.output
    assert "//Alice" not in result.output


def test_history_empty(tmp_path):
    result = CliRunner().invoke(cli, ["-c", _config(tmp_path), "history"])
    assert result.exit_code == 0
    assert "No submissions yet." in result.output


def test_withdraw_without_proving_key(tmp_path):
    result = CliRunner().invoke(
        cli,
        ["-c", _config(tmp_path), "withdraw", "webb://x", "--recipient", "5bob", "--leaf-index", "0"],
    )
    assert result.exit_code == 1
    assert "No proving key configured" in result.output


def test_relayer_info_needs_endpoint(tmp_path, monkeypatch):
    monkeypatch.delenv("SHIELDTX_RELAYER", raising=False)
    result = CliRunner().invoke(cli, ["-c", _config(tmp_path), "relayer-info"])
    assert result.exit_code == 1
