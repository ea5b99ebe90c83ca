"""
Tests for the command line browser
"""

import io
import json

from catfeed.app import browse, build_parser, main
from catfeed.core.dispatch import Dispatcher, ImmediateDispatcher
from catfeed.services.config_service import AppConfig, PagingConfig
from catfeed.services.container import ServiceContainerBuilder
from catfeed.services.interfaces import ICatApi, ILogger
from catfeed.services.logging_service import MemoryLogger

from conftest import FakeCatApi, make_cats


def build(api, page_size=2):
    return (
        ServiceContainerBuilder(AppConfig(paging=PagingConfig(page_size=page_size)))
        .add_instance(ILogger, MemoryLogger())
        .add_instance(Dispatcher, ImmediateDispatcher())
        .add_instance(ICatApi, api)
        .configure_default_services()
        .build()
    )


def test_browse_prints_rows_for_each_page():
    api = FakeCatApi(pages={0: make_cats(0, 2), 1: make_cats(2, 2), 2: make_cats(4, 1)})
    out = io.StringIO()

    assert browse(build(api), pages=3, with_images=False, as_json=False, timeout=1, out=out) == 0

    lines = out.getvalue().splitlines()
    assert len(lines) == 5
    assert lines[0].split() == ["0", "0", "640", "x", "480", "https://cdn2.thecatapi.com/images/0.jpg"]
    assert api.page_source.calls == [(0, 2), (1, 2), (2, 2)]


def test_browse_json_output():
    api = FakeCatApi(pages={0: make_cats(0, 1)})
    out = io.StringIO()

    browse(build(api), pages=1, with_images=False, as_json=True, timeout=1, out=out)

    assert json.loads(out.getvalue())["id"] == "0"


def test_browse_stops_after_failed_page():
    api = FakeCatApi(pages={0: make_cats(0, 2)})
    out = io.StringIO()

    browse(build(api), pages=4, with_images=False, as_json=False, timeout=1, out=out)

    text = out.getvalue()
    assert "<failed: no page 1>" in text
    assert api.page_source.calls == [(0, 2), (1, 2)]


def test_browse_images_hits_cache_on_second_pass(png_bytes):
    cats = make_cats(0, 2)
    api = FakeCatApi(pages={0: cats}, images={cats[0]["url"]: png_bytes})
    out = io.StringIO()

    browse(build(api), pages=1, with_images=True, as_json=False, timeout=1, out=out)

    assert out.getvalue().splitlines()[-1] == "images: 1 cached, 3 fetched, 1 hits, 2 failed"
    assert api.image_calls.count(cats[0]["url"]) == 1


def test_parser_defaults():
    args = build_parser().parse_args(["browse"])
    assert args.pages == 1
    assert args.page_size is None
    assert args.images is False


def test_main_reports_bad_config(tmp_path, capsys):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps({"paging": {"page_size": 0}}))

    assert main(["--config", str(path), "browse"]) == 1
    assert "catfeed:" in capsys.readouterr().err


def test_main_rejects_bad_override(capsys):
    assert main(["browse", "--page-size", "0"]) == 1
    assert "Invalid command line override" in capsys.readouterr().err
