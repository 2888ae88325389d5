import random

import pytest

from garden_crawler.core import Crawler
from garden_crawler.errors import TransportFailure
from garden_crawler.models import FrontierEntry, PageKind
from garden_crawler.storage import FailureLog, PageCache, RecordClient

from conftest import BASE_URL, FakeResponse, FakeSession

ROOT = BASE_URL + "flowers.html"
SCENE1 = BASE_URL + "scene001.html"
SCENE2 = BASE_URL + "scene002.html"
HEAD = '<div class="head2"><p><b>Astilbe, Chinese</b></p></div>\n'


def make_crawler(session, tmp_path, root=ROOT, kind=PageKind.LIST, **kwargs):
    sleeps = []
    crawler = Crawler(
        FrontierEntry(root, kind),
        session=session,
        client=RecordClient("http://store/flower", session=session),
        failure_log=FailureLog(tmp_path / "log" / "link_failures.txt"),
        cache=PageCache(tmp_path / "html"),
        sleep=sleeps.append,
        rng=random.Random(7),
        **kwargs,
    )
    return crawler, sleeps


def test_list_page_expands_to_detail_pages(tmp_path, list_html, detail_html):
    session = FakeSession({ROOT: list_html, SCENE1: detail_html, SCENE2: detail_html})
    crawler, sleeps = make_crawler(session, tmp_path)

    stats = crawler.run()

    assert session.fetched == [ROOT, SCENE1, SCENE2]
    assert [p["flw_source"] for p in session.saved] == [SCENE1, SCENE2]
    assert stats.pages_fetched == 3
    assert stats.lists_expanded == 1
    assert stats.links_discovered == 3
    assert stats.links_enqueued == 2
    assert stats.duplicates_skipped == 1
    assert stats.records_saved == 2
    assert stats.total_failures == 0
    assert not (tmp_path / "log" / "link_failures.txt").exists()
    assert not crawler.queue


def test_pauses_between_fetches_only(tmp_path, list_html, detail_html):
    session = FakeSession({ROOT: list_html, SCENE1: detail_html, SCENE2: detail_html})
    crawler, sleeps = make_crawler(session, tmp_path)
    crawler.run()

    assert len(sleeps) == 2
    assert all(1.0 <= s <= 10.0 for s in sleeps)


def test_parse_failure_is_logged_and_crawl_continues(tmp_path, list_html, detail_html):
    session = FakeSession({ROOT: list_html, SCENE1: detail_html.replace(HEAD, ""), SCENE2: detail_html})
    crawler, _ = make_crawler(session, tmp_path)

    stats = crawler.run()

    assert session.fetched == [ROOT, SCENE1, SCENE2]
    assert stats.records_saved == 1
    assert stats.failure_counts == {"ParseFailure": 1}
    log = (tmp_path / "log" / "link_failures.txt").read_text(encoding="utf-8")
    assert log == f"{SCENE1},ParseFailure\n"


def test_save_failure_is_logged(tmp_path, detail_html):
    session = FakeSession({SCENE1: detail_html}, save_response=FakeResponse(status_code=503))
    crawler, _ = make_crawler(session, tmp_path, root=SCENE1, kind=PageKind.LEAF)

    stats = crawler.run()

    assert stats.records_saved == 0
    assert stats.failure_counts == {"SaveFailure": 1}
    log = (tmp_path / "log" / "link_failures.txt").read_text(encoding="utf-8")
    assert log == f"{SCENE1},SaveFailure\n"


def test_failure_log_errors_do_not_stop_crawl(tmp_path, list_html, detail_html):
    session = FakeSession({ROOT: list_html, SCENE1: "<html><body></body></html>", SCENE2: detail_html})
    crawler, _ = make_crawler(session, tmp_path)
    crawler.failure_log = FailureLog(tmp_path)

    stats = crawler.run()

    assert stats.log_failures == 1
    assert stats.records_saved == 1


def test_fetch_error_aborts_crawl(tmp_path, list_html):
    session = FakeSession({ROOT: list_html, SCENE1: FakeResponse(status_code=404)})
    crawler, _ = make_crawler(session, tmp_path)

    with pytest.raises(TransportFailure):
        crawler.run()
    assert session.fetched == [ROOT, SCENE1]


def test_leaf_root_is_cached_and_saved(tmp_path, detail_html):
    session = FakeSession({SCENE1: detail_html})
    crawler, sleeps = make_crawler(session, tmp_path, root=SCENE1, kind=PageKind.LEAF)

    stats = crawler.run()

    assert stats.records_saved == 1
    assert sleeps == []
    cached = (tmp_path / "html" / "scene001.html").read_text(encoding="utf-8")
    assert cached.startswith(f"<link>{SCENE1}</link>\n")


def test_max_pages(tmp_path, list_html, detail_html):
    session = FakeSession({ROOT: list_html, SCENE1: detail_html, SCENE2: detail_html})
    crawler, _ = make_crawler(session, tmp_path, max_pages=2)

    stats = crawler.run()

    assert session.fetched == [ROOT, SCENE1]
    assert stats.records_saved == 1
    assert len(crawler.queue) == 1


def test_independent_crawlers_do_not_share_seen_links(tmp_path, list_html, detail_html):
    pages = {ROOT: list_html, SCENE1: detail_html, SCENE2: detail_html}
    first, _ = make_crawler(FakeSession(pages), tmp_path)
    second, _ = make_crawler(FakeSession(pages), tmp_path)

    assert first.run().records_saved == 2
    assert second.run().records_saved == 2
