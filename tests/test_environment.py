from __future__ import annotations

import logging
from pathlib import Path

import pytest

from vitrine import ReadError, StaticAsset, StaticEnvironment

from .conftest import FIXED_MTIME, write_asset


@pytest.mark.parametrize(
    "path, content_type",
    [
        ("app.js", "application/javascript"),
        ("lib/module.mjs", "application/javascript"),
        ("style.css", "text/css"),
        ("STYLE.CSS", "text/css"),
        ("logo.svg", "image/svg+xml"),
        ("font.woff2", "font/woff2"),
        ("archive.unknownext", "application/octet-stream"),
        ("README", "application/octet-stream"),
    ],
)
def test_content_type_of(environment: StaticEnvironment, path: str, content_type: str) -> None:
    assert environment.content_type_of(path) == content_type


def test_load_paths_are_searched_in_order(asset_root: Path) -> None:
    write_asset(asset_root, "stylesheets/app.js", "// shadowed\n")
    environment = StaticEnvironment(asset_root, paths=["stylesheets", "javascripts"])

    asset = environment.find_asset("app.js")

    assert asset is not None
    assert asset.pathname == asset_root.resolve() / "stylesheets" / "app.js"


def test_leading_slash_is_ignored(environment: StaticEnvironment) -> None:
    assert environment.find_asset("/app.js") == environment.find_asset("app.js")


def test_missing_asset(environment: StaticEnvironment) -> None:
    assert environment.find_asset("missing.js") is None


def test_directories_are_not_assets(environment: StaticEnvironment) -> None:
    assert environment.find_asset("vendor") is None


def test_fingerprinted_lookup(environment: StaticEnvironment) -> None:
    asset = environment.find_asset("app.js")
    assert asset is not None

    assert environment.find_asset(asset.digest_path) == asset
    assert environment.find_asset(f"app-{asset.digest[:16]}.js") == asset


def test_fingerprint_mismatch(environment: StaticEnvironment) -> None:
    assert environment.find_asset("app-deadbeefdeadbeef.js") is None


def test_hex_suffix_in_real_file_name(environment: StaticEnvironment, asset_root: Path) -> None:
    write_asset(asset_root, "fonts-abcdef1.woff", "wOFF")

    asset = environment.find_asset("fonts-abcdef1.woff")

    assert asset is not None
    assert asset.logical_path == "fonts-abcdef1.woff"
    assert environment.find_asset(asset.digest_path) == asset


def test_real_file_wins_over_mismatched_fingerprint(environment: StaticEnvironment, asset_root: Path) -> None:
    write_asset(asset_root, "javascripts/app-deadbeef.js", "// pinned\n")

    asset = environment.find_asset("app-deadbeef.js")

    assert asset is not None
    assert asset.body == b"// pinned\n"


def test_nothing_outside_the_load_path(environment: StaticEnvironment, tmp_path: Path) -> None:
    write_asset(tmp_path, "outside.txt", "nope")

    assert environment.find_asset("../outside.txt") is None
    assert environment.resolve("../outside.txt") is None


def test_load_path_outside_root(asset_root: Path) -> None:
    with pytest.raises(ValueError, match="outside"):
        StaticEnvironment(asset_root, paths=[".."])


def test_append_path(asset_root: Path) -> None:
    environment = StaticEnvironment(asset_root, paths=["stylesheets"])
    before = environment.digest()

    environment.append_path("javascripts")

    assert environment.find_asset("app.js") is not None
    assert environment.digest() != before


def test_digest_depends_on_version(asset_root: Path) -> None:
    first = StaticEnvironment(asset_root, version="1")
    second = StaticEnvironment(asset_root, version="2")

    assert first.digest() == StaticEnvironment(asset_root, version="1").digest()
    assert first.digest() != second.digest()


def test_digest_algorithm(asset_root: Path) -> None:
    environment = StaticEnvironment(asset_root, digest_algorithm="md5")

    asset = environment.find_asset("greeting.txt")

    assert asset is not None
    assert len(asset.digest) == 32


def test_stat(environment: StaticEnvironment, asset_root: Path) -> None:
    stat = environment.stat(asset_root / "greeting.txt")

    assert stat is not None
    assert stat.size == 6
    assert stat.mtime.timestamp() == FIXED_MTIME
    assert environment.stat(asset_root / "missing.txt") is None


def test_file_digest_of_missing_file(environment: StaticEnvironment, asset_root: Path) -> None:
    assert environment.file_digest(asset_root / "missing.txt") is None


class TestIndex:
    def test_fresh_assets_are_reused(self, environment: StaticEnvironment) -> None:
        first = environment.find_asset("app.js")

        assert environment.find_asset("app.js") is first

    def test_stale_assets_are_rebuilt(self, environment: StaticEnvironment, asset_root: Path) -> None:
        first = environment.find_asset("app.js")
        write_asset(asset_root, "javascripts/app.js", "console.log('bye');\n", mtime=FIXED_MTIME + 60)

        second = environment.find_asset("app.js")

        assert first is not None and second is not None
        assert second != first
        assert second.body == b"console.log('bye');\n"

    def test_expire_index(self, environment: StaticEnvironment, caplog: pytest.LogCaptureFixture) -> None:
        first = environment.find_asset("app.js")

        with caplog.at_level("DEBUG", logger="vitrine.environment"):
            environment.expire_index()

        second = environment.find_asset("app.js")
        assert second is not first
        assert second == first
        assert caplog.messages == ["Expiring 1 indexed assets"]

    def test_deleted_file_disappears(self, environment: StaticEnvironment, asset_root: Path) -> None:
        assert environment.find_asset("app.js") is not None

        (asset_root / "javascripts" / "app.js").unlink()

        assert environment.find_asset("app.js") is None


def test_read_failures_become_read_errors(environment: StaticEnvironment, monkeypatch: pytest.MonkeyPatch) -> None:
    def unreadable(path: object) -> None:
        raise PermissionError("permission denied")

    monkeypatch.setattr(environment, "file_digest", unreadable)

    with pytest.raises(ReadError, match="permission denied"):
        environment.find_asset("app.js")


def test_custom_logger(asset_root: Path) -> None:
    logger = logging.getLogger("myapp.assets")

    environment = StaticEnvironment(asset_root, logger=logger)

    assert environment.logger is logger
    assert StaticEnvironment(asset_root).logger is logging.getLogger("vitrine")


def test_assets_are_snapshots_of_their_environment(environment: StaticEnvironment) -> None:
    asset = environment.find_asset("style.css")

    assert isinstance(asset, StaticAsset)
    assert asset.environment is environment
    assert asset.content_type == "text/css"
