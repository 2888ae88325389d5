import pytest

from garden_crawler import cli
from garden_crawler.errors import TransportFailure
from garden_crawler.models import CrawlStats, FailureReason

FEED = "http://www.gardening.cornell.edu/homegardening/flowers.html"


def test_options_override_environment():
    args = cli.build_parser().parse_args(["--api-url", "http://store/flower", "--delay-max", "3", "--not-list"])
    config = cli.load_config(args, environ={"FEED": FEED, "CRAWLER_API_URL": "http://env/flower"})
    assert config.feed == FEED
    assert config.feed_is_list is False
    assert config.api_url == "http://store/flower"
    assert config.delay_max == 3.0


def test_positional_root_link_replaces_feed():
    args = cli.build_parser().parse_args(["http://example.org/list.html"])
    config = cli.load_config(args, environ={"FEED": FEED})
    assert config.feed == "http://example.org/list.html"
    assert config.feed_is_list is True


def test_main_runs_crawl_and_prints_summary(monkeypatch, capsys):
    stats = CrawlStats(pages_fetched=3, records_saved=1)
    stats.record_failure(FailureReason.PARSE_FAILURE)
    seen = {}

    def fake_crawl(config):
        seen["config"] = config
        return stats

    monkeypatch.setattr(cli, "crawl", fake_crawl)
    assert cli.main([FEED, "--summary", "--delay-min", "0", "--delay-max", "0"]) == 0

    assert seen["config"].feed == FEED
    err = capsys.readouterr().err
    assert "CRAWL SUMMARY" in err
    assert "ParseFailure: 1" in err


def test_main_reports_transport_failure(monkeypatch):
    def failing_crawl(config):
        raise TransportFailure("Fetching failed")

    monkeypatch.setattr(cli, "crawl", failing_crawl)
    assert cli.main([FEED]) == 1


def test_option_completes_range_started_in_environment():
    args = cli.build_parser().parse_args(["--delay-max", "30"])
    config = cli.load_config(args, environ={"FEED": FEED, "CRAWLER_DELAY_MIN": "20"})
    assert (config.delay_min, config.delay_max) == (20.0, 30.0)


def test_log_level_is_case_insensitive():
    args = cli.build_parser().parse_args(["--log-level", "debug"])
    assert args.log_level == "DEBUG"


def test_invalid_log_level_option_rejected(monkeypatch):
    monkeypatch.setattr(cli, "crawl", lambda config: CrawlStats())
    with pytest.raises(SystemExit) as exc:
        cli.main([FEED, "--log-level", "loud"])
    assert exc.value.code == 2


def test_invalid_log_level_env_rejected(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "loud")
    monkeypatch.setattr(cli, "crawl", lambda config: CrawlStats())
    with pytest.raises(SystemExit) as exc:
        cli.main([FEED])
    assert exc.value.code == 2
