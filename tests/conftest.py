from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, List, Optional

import pytest

from vitrine import AssetServer, CompileError, StaticAsset, StaticEnvironment

# Mon, 01 Jan 2024 00:00:00 GMT
FIXED_MTIME = 1704067200

ASSET_FILES = {
    "javascripts/app.js": "console.log('hello');\n",
    "javascripts/vendor/jquery.js": "window.jQuery = {};\n",
    "stylesheets/style.css": "body { color: red; }\n",
    "greeting.txt": "héllo",
    "secret.txt": "top secret",
}


def write_asset(root: Path, relative_path: str, content: str, mtime: float = FIXED_MTIME) -> Path:
    path = root / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content.encode("utf-8"))
    os.utime(path, (mtime, mtime))
    return path


class BrokenEnvironment(StaticEnvironment):
    """
    A StaticEnvironment whose compiler fails for some logical paths.
    """

    def __init__(self, root: Path, failures: Dict[str, Exception], **kwargs: object) -> None:
        super().__init__(root, **kwargs)  # type: ignore[arg-type]
        self.failures = failures
        self.lookups: List[str] = []
        self.expired = 0

    def find_asset(self, logical_path: str) -> Optional[StaticAsset]:
        self.lookups.append(logical_path)
        if logical_path in self.failures:
            raise self.failures[logical_path]
        return super().find_asset(logical_path)

    def expire_index(self) -> None:
        self.expired += 1
        super().expire_index()


@pytest.fixture()
def asset_root(tmp_path: Path) -> Path:
    root = tmp_path / "public"
    for relative_path, content in ASSET_FILES.items():
        write_asset(root, relative_path, content)
    return root


@pytest.fixture()
def environment(asset_root: Path) -> StaticEnvironment:
    return StaticEnvironment(asset_root, paths=["javascripts", "stylesheets", "."])


@pytest.fixture()
def server(environment: StaticEnvironment) -> AssetServer:
    return AssetServer(environment)


@pytest.fixture()
def broken_environment(asset_root: Path) -> BrokenEnvironment:
    return BrokenEnvironment(
        asset_root,
        failures={
            "broken.js": CompileError('unexpected token "}" in app/broken.js\nat line 3'),
            "broken.css": CompileError('undefined variable "$brand" in /app/broken.css'),
            "broken.png": CompileError("cannot optimize image"),
        },
        paths=["javascripts", "stylesheets", "."],
    )
