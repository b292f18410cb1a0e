"""
Crawler service entrypoint.
Runs the scrape/reconcile loop with asyncio until SIGINT/SIGTERM.
"""
from __future__ import annotations

import asyncio
import signal
import sys
from pathlib import Path

# Ensure backend root is on path when run as python -m crawler.main
_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

from shared.config import get_settings
from shared.utils.http_client import CrawlerHTTPClient
from shared.utils.logging import get_logger, setup_logging
from shared.utils.metrics import start_metrics_server

from crawler.cache import ResultCache
from crawler.club_names import ClubNameMapper
from crawler.config import get_crawler_settings, load_file_config
from crawler.engine import CrawlerEngine, run_crawler_loop
from crawler.extractor import GameExtractor
from crawler.reconciliation import ReconciliationEngine
from crawler.sources.afpb import RoundResolver
from crawler.sources.domingoasdez import DomingoAsDezClient

logger = get_logger(__name__)


async def main() -> None:
    setup_logging("crawler")
    settings = get_settings()
    crawler_settings = get_crawler_settings()
    file_config = load_file_config(crawler_settings.config_file)

    cache = ResultCache(crawler_settings.cache_file)
    cache.load()

    site_http = CrawlerHTTPClient(
        "afpb",
        max_retries=crawler_settings.max_retries,
        randomize_identity=True,
    )
    api_http = CrawlerHTTPClient("domingoasdez", base_url=settings.api_base_url)
    await site_http.start()
    await api_http.start()

    reference = DomingoAsDezClient(
        api_http,
        api_key=settings.api_key or file_config.domingo_as_dez_api_key,
        source=crawler_settings.report_source,
        user_agent=crawler_settings.report_user_agent,
    )
    mapper = ClubNameMapper(file_config.club_names_map)
    engine = CrawlerEngine(
        reference=reference,
        resolver=RoundResolver(
            site_http,
            site_base_url=crawler_settings.site_base_url,
            delay_range_s=(crawler_settings.request_delay_min_s, crawler_settings.request_delay_max_s),
        ),
        extractor=GameExtractor(
            site_http,
            mapper,
            site_base_url=crawler_settings.site_base_url,
            finished_strategy=crawler_settings.finished_strategy,
            tz_name=crawler_settings.timezone,
        ),
        reconciler=ReconciliationEngine(cache, reference),
    )

    start_metrics_server()
    loop_task = asyncio.create_task(
        run_crawler_loop(engine, crawler_settings.active_sleep_s, crawler_settings.inactive_sleep_s)
    )

    shutdown = asyncio.Event()

    def on_signal() -> None:
        shutdown.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            asyncio.get_running_loop().add_signal_handler(sig, on_signal)
        except NotImplementedError:
            pass

    logger.info(
        "crawler_started",
        api_base_url=settings.api_base_url,
        report_uuid=reference.report_uuid,
        cached_results=len(cache),
        club_names=len(mapper),
    )
    await shutdown.wait()

    loop_task.cancel()
    try:
        await loop_task
    except asyncio.CancelledError:
        pass

    await site_http.close()
    await api_http.close()
    logger.info("crawler_stopped")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
