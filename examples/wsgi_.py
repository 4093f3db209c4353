#!/usr/bin/env uv run
# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "vitrine",
# ]
#
# [tool.uv.sources]
# vitrine = { path = "../", editable = true }
# ///

import logging
from wsgiref.simple_server import make_server

from vitrine import AssetServer, StaticEnvironment
from vitrine.wsgi import WSGIAssetApp

logging.basicConfig(level=logging.INFO)

environment = StaticEnvironment("public", paths=["javascripts", "stylesheets", "images"])
server = AssetServer(environment)
app = WSGIAssetApp(server)


if __name__ == "__main__":
    print(f"Fingerprinted URL: {server.asset_url('application.js', port=8000)}")
    make_server("", 8000, app).serve_forever()
