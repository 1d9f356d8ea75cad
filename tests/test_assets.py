"""Asset discovery, URL resolution and rewrite tests."""

import pytest
from bs4 import BeautifulSoup

from sitepin.errors import ErrorKind, FetchError
from sitepin.mirror.assets import (
    apply_updates,
    discover_assets,
    find_collisions,
    local_filename,
    resolve_asset,
    resolve_url,
)
from sitepin.mirror.models import AssetKind, AssetReference, PendingUpdate

ORIGIN = "https://example.com"


# --- URL resolution (sync) ---


def test_relative_url_is_prefixed_with_origin():
    assert resolve_url("/img/logo.png", ORIGIN) == "https://example.com/img/logo.png"


def test_relative_url_without_leading_slash():
    assert resolve_url("img/logo.png", ORIGIN) == "https://example.com/img/logo.png"


def test_origin_trailing_slash_is_not_doubled():
    assert resolve_url("/a.css", "https://example.com/") == "https://example.com/a.css"


def test_absolute_url_passes_through():
    url = "http://cdn.example.net/x.js?v=2"
    assert resolve_url(url, ORIGIN) == url


def test_protocol_relative_url_takes_origin_scheme():
    assert resolve_url("//cdn.example.net/x.js", ORIGIN) == "https://cdn.example.net/x.js"


def test_local_filename_ignores_query_string():
    assert local_filename("/js/app.js?v=123") == "app.js"


def test_local_filename_decodes_percent_escapes():
    assert local_filename("/img/my%20logo.png") == "my logo.png"


def test_local_filename_falls_back_for_bare_path():
    assert local_filename("https://example.com/") == "index"


def test_resolve_asset_spec_example():
    ref = AssetReference(kind=AssetKind.IMAGE, attribute="src", original_url="/img/logo.png")
    asset = resolve_asset(ref, ORIGIN)
    assert asset.absolute_url == "https://example.com/img/logo.png"
    assert asset.filename == "logo.png"
    assert asset.local_path == "/assets/logo.png"


# --- Discovery (sync) ---


def test_discover_reads_the_right_attribute_per_kind():
    soup = BeautifulSoup(
        '<img src="a.png"><link href="b.css"><script src="c.js"></script>',
        "html.parser",
    )
    found, skipped = discover_assets(soup)
    refs = [ref for _, ref in found]
    assert [(r.kind, r.attribute, r.original_url) for r in refs] == [
        (AssetKind.IMAGE, "src", "a.png"),
        (AssetKind.LINK, "href", "b.css"),
        (AssetKind.SCRIPT, "src", "c.js"),
    ]
    assert skipped == []


def test_discover_skips_missing_attribute_without_failing():
    soup = BeautifulSoup('<script>var x;</script><img src=""><img src="ok.png">', "html.parser")
    found, skipped = discover_assets(soup)
    assert len(found) == 1
    assert len(skipped) == 2
    assert all(f.kind is ErrorKind.MISSING_ATTRIBUTE for f in skipped)
    assert not any(f.fatal for f in skipped)
    assert skipped[0].context["element"] == "script"


def test_discover_ignores_other_elements():
    soup = BeautifulSoup('<a href="/page"></a><iframe src="/x"></iframe>', "html.parser")
    found, skipped = discover_assets(soup)
    assert found == []
    assert skipped == []


# --- Collisions and rewriting (sync) ---


def test_find_collisions_reports_shared_basenames():
    refs = [
        AssetReference(AssetKind.IMAGE, "src", "/a/logo.png"),
        AssetReference(AssetKind.IMAGE, "src", "/b/logo.png"),
        AssetReference(AssetKind.SCRIPT, "src", "/app.js"),
    ]
    assets = [resolve_asset(r, ORIGIN) for r in refs]
    assert find_collisions(assets) == ["logo.png"]


def test_same_url_twice_is_not_a_collision():
    ref = AssetReference(AssetKind.IMAGE, "src", "/logo.png")
    assets = [resolve_asset(ref, ORIGIN), resolve_asset(ref, ORIGIN)]
    assert find_collisions(assets) == []


def test_apply_updates_rewrites_attributes():
    soup = BeautifulSoup('<link href="/css/site.css"><img src="/img/logo.png">', "html.parser")
    found, _ = discover_assets(soup)
    updates = [PendingUpdate(element=el, asset=resolve_asset(ref, ORIGIN)) for el, ref in found]

    assert apply_updates(updates) == 2
    html = str(soup)
    assert 'href="/assets/site.css"' in html
    assert 'src="/assets/logo.png"' in html


@pytest.mark.parametrize("url", ["/a/..", "/a/.", "/a/%2e%2e", "/img/%2E"])
def test_local_filename_never_escapes_assets_dir(url):
    assert local_filename(url) == "index"


def test_resolve_asset_malformed_url_raises_fetch_error():
    ref = AssetReference(AssetKind.IMAGE, "src", "http://[::1/broken.png")
    with pytest.raises(FetchError) as exc_info:
        resolve_asset(ref, ORIGIN)
    assert exc_info.value.context["url"] == "http://[::1/broken.png"


def test_discover_leaves_data_and_javascript_urls_inline():
    soup = BeautifulSoup(
        '<img src="data:image/png;base64,iVBORw0KGgo=">'
        '<script src="javascript:void(0)"></script>'
        '<img src="HTTPS://example.com/a.png">',
        "html.parser",
    )
    found, skipped = discover_assets(soup)

    assert [ref.original_url for _, ref in found] == ["HTTPS://example.com/a.png"]
    assert [f.context["scheme"] for f in skipped] == ["data", "javascript"]
    assert all(f.kind is ErrorKind.UNSUPPORTED_SCHEME and not f.fatal for f in skipped)
