from __future__ import annotations

import json
from pathlib import Path

import pytest

from nomeador import cli, settings


@pytest.fixture
def store_path(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "store.json"
    monkeypatch.setenv("NOMEADOR_STORE", "json")
    monkeypatch.setenv("NOMEADOR_STORE_PATH", str(path))
    monkeypatch.setenv("NOMEADOR_LOG_LEVEL", "WARNING")
    getters = (settings.get_store_backend, settings.get_store_path, settings.get_log_level)
    for getter in getters:
        getter.cache_clear()
    yield path
    for getter in getters:
        getter.cache_clear()


def _read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_toggle_and_state(store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli.main(["toggle", "off"]) == 0
    assert _read(store_path)["enabled"] is False

    assert cli.main(["state"]) == 0
    output = capsys.readouterr().out
    assert "Inativo" in output
    assert "60/hora" in output


def test_annotate_while_disabled_marks_nodes_without_lookups(
    store_path: Path, tmp_path: Path
) -> None:
    source = tmp_path / "page.html"
    source.write_text(
        '<html><body><a class="author" href="/octocat">octocat</a></body></html>',
        encoding="utf-8",
    )
    output = tmp_path / "out" / "page.html"
    cli.main(["toggle", "off"])

    assert cli.main(["annotate", str(source), "--output", str(output)]) == 0

    annotated = output.read_text(encoding="utf-8")
    assert 'data-nomeador-handle="octocat"' in annotated
    assert ">octocat</a>" in annotated


def test_annotate_missing_file_fails(store_path: Path, tmp_path: Path) -> None:
    assert cli.main(["annotate", str(tmp_path / "absent.html")]) == 1


def test_purge_and_refresh_cache(store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store_path.write_text(
        json.dumps(
            {
                "enabled": True,
                "handle:ancient": {"label": "Ancient", "timestamp": 0},
                "handle:recent": {"label": "Recent", "timestamp": 9_999_999_999},
            }
        ),
        encoding="utf-8",
    )

    assert cli.main(["purge-cache"]) == 0
    assert set(_read(store_path)) == {"enabled", "handle:recent"}
    assert '"removed": 1' in capsys.readouterr().out

    assert cli.main(["refresh-cache"]) == 0
    assert _read(store_path) == {"enabled": True}
    assert "1 nomes descartados" in capsys.readouterr().out


def test_corrupted_store_is_reported(store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    store_path.write_text("[]", encoding="utf-8")

    assert cli.main(["purge-cache"]) == 1
    assert "Conteúdo inesperado" in capsys.readouterr().out


def test_token_set_saves_token_and_discards_cached_names(
    store_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    store_path.write_text(
        json.dumps(
            {
                "enabled": True,
                "handle:octocat": {"label": "octocat", "timestamp": 9_999_999_999},
            }
        ),
        encoding="utf-8",
    )

    assert cli.main(["token", "set", " ghp_abc123 "]) == 0

    assert _read(store_path) == {"enabled": True, "githubToken": "ghp_abc123"}
    assert "1 nomes descartados" in capsys.readouterr().out

    assert cli.main(["state"]) == 0
    assert "Sim" in capsys.readouterr().out


def test_token_remove_deletes_the_key(store_path: Path) -> None:
    store_path.write_text(
        json.dumps({"githubToken": "github_pat_xyz", "handle:ghost": {"label": "Ghost", "timestamp": 0}}),
        encoding="utf-8",
    )

    assert cli.main(["token", "remove"]) == 0

    assert _read(store_path) == {}


def test_invalid_token_is_rejected(store_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.main(["toggle", "on"])

    assert cli.main(["token", "set", "abc123"]) == 1

    assert "Formato de token inválido" in capsys.readouterr().out
    assert "githubToken" not in _read(store_path)


def test_token_set_requires_a_value(store_path: Path) -> None:
    assert cli.main(["token", "set"]) == 1
    assert not store_path.exists()
