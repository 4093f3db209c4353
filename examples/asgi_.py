#!/usr/bin/env uv run
# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "vitrine",
#     "uvicorn",
# ]
#
# [tool.uv.sources]
# vitrine = { path = "../", editable = true }
# ///

import uvicorn

from vitrine import AssetServer, ServerOptions, StaticEnvironment
from vitrine.asgi import ASGIAssetApp

environment = StaticEnvironment("public", version="2024-01")
app = ASGIAssetApp(AssetServer(environment, ServerOptions(max_age=86400 * 30)))


if __name__ == "__main__":
    uvicorn.run(app, port=8000)
