from sitechat.crawl.links import is_document_url, normalize_url, resolve_links

BASE = "https://example.com/dir/page"


def test_relative_links_resolve_against_base():
    markup = '<a href="/about">About</a><a href="contact.html#form">Contact</a>'
    assert resolve_links(markup, BASE) == [
        "https://example.com/about",
        "https://example.com/dir/contact.html",
    ]


def test_non_http_targets_are_dropped():
    markup = (
        '<a href="mailto:a@example.com">Mail</a>'
        '<a href="tel:+3612345">Call</a>'
        '<a href="javascript:void(0)">JS</a>'
        '<a href="ftp://example.com/file">FTP</a>'
    )
    assert resolve_links(markup, BASE) == []


def test_same_host_restriction():
    markup = '<a href="https://other.test/x">Other</a><a href="/local">Local</a>'

    assert resolve_links(markup, BASE, same_host_only=True) == ["https://example.com/local"]
    assert resolve_links(markup, BASE, same_host_only=False) == [
        "https://other.test/x",
        "https://example.com/local",
    ]


def test_non_document_extensions_are_dropped():
    markup = (
        '<a href="/logo.PNG">Logo</a>'
        '<a href="/brochure.pdf">PDF</a>'
        '<a href="/archive.zip">Zip</a>'
        '<link rel="stylesheet" href="/site.css">'
        '<a href="/pricing">Pricing</a>'
    )
    assert resolve_links(markup, BASE) == ["https://example.com/pricing"]


def test_duplicates_are_kept_for_the_crawler_to_handle():
    markup = '<a href="/a">A</a><a href="/a#section">A again</a>'
    assert resolve_links(markup, BASE) == ["https://example.com/a", "https://example.com/a"]


def test_normalize_url():
    assert normalize_url("https://example.com") == "https://example.com/"
    assert normalize_url("https://example.com/x#frag") == "https://example.com/x"
    assert normalize_url("/relative") is None
    assert normalize_url("mailto:a@b.com") is None


def test_is_document_url():
    assert is_document_url("https://example.com/about")
    assert is_document_url("https://example.com/")
    assert not is_document_url("https://example.com/img/photo.jpeg")
    assert not is_document_url("https://example.com/fonts/a.woff2")
