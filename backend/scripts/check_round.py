#!/usr/bin/env python3
"""
Smoke check for the AFPB scraping side of the crawler.

Checks:
  1. The round fragment for EDITION/ROUND is reachable
  2. At least one game container is extracted from it
  3. Every team name resolves through the club-name map
  4. (optional) The reference API live games endpoint answers

Nothing is forwarded and the sent-results cache is not touched.

Usage:
  python scripts/check_round.py EDITION ROUND [--api]

  EDITION is the AFPB edition id (49, 50, 51, 48 for the cup).
  ROUND is the reference round number; the cup offset is applied automatically.
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

_backend = Path(__file__).resolve().parent.parent
if str(_backend) not in sys.path:
    sys.path.insert(0, str(_backend))

from shared.config import get_settings
from shared.utils.http_client import CrawlerHTTPClient
from shared.utils.logging import setup_logging

from crawler.club_names import ClubNameMapper
from crawler.config import get_crawler_settings, load_file_config
from crawler.extractor import GameExtractor
from crawler.sources.afpb import DEFAULT_EDITION_TABLE, RoundResolver
from crawler.sources.domingoasdez import DomingoAsDezClient

GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
RESET = "\033[0m"

passed = 0
failed = 0
warnings = 0


def ok(msg: str) -> None:
    global passed
    passed += 1
    print(f"  {GREEN}PASS{RESET}  {msg}")


def fail(msg: str) -> None:
    global failed
    failed += 1
    print(f"  {RED}FAIL{RESET}  {msg}")


def warn(msg: str) -> None:
    global warnings
    warnings += 1
    print(f"  {YELLOW}WARN{RESET}  {msg}")


async def run(edition: int, round_number: int, check_api: bool) -> None:
    crawler_settings = get_crawler_settings()
    file_config = load_file_config(crawler_settings.config_file)
    mapper = ClubNameMapper(file_config.club_names_map)

    http = CrawlerHTTPClient("afpb", max_retries=1, randomize_identity=True)
    await http.start()
    try:
        resolver = RoundResolver(http, site_base_url=crawler_settings.site_base_url)
        ordering = DEFAULT_EDITION_TABLE.ordering(edition, round_number)
        url = resolver.round_url(edition, ordering)

        print(f"\n=== AFPB Round Check ===")
        print(f"Edition {edition}, round {round_number} (ordering {ordering})\n")

        print("[1] Round fragment")
        try:
            resp = await http.get(url)
        except Exception as exc:
            fail(f"{url}: {exc}")
            return
        ok(f"{url}: HTTP {resp.status_code}, {len(resp.text)} bytes")

        print("[2] Extraction")
        extractor = GameExtractor(
            http,
            mapper,
            site_base_url=crawler_settings.site_base_url,
            finished_strategy=crawler_settings.finished_strategy,
            tz_name=crawler_settings.timezone,
        )
        games = await extractor.extract(resp.text, edition=edition)
        if games:
            ok(f"{len(games)} games extracted")
        else:
            fail("no games extracted; selectors may be out of date")
        for game in games:
            print(f"        {game.date_iso}  {game.describe()}")

        print("[3] Club names")
        raw_names = {n for raw in extractor.parse(resp.text) for n in (raw.home_team, raw.away_team)}
        unmapped = sorted(n for n in raw_names if mapper.map(n) == n)
        if not mapper.configured:
            warn("no club_names_map in config file")
        elif unmapped:
            warn(f"unmapped clubs: {', '.join(unmapped)}")
        else:
            ok(f"all {len(raw_names)} clubs mapped")
    finally:
        await http.close()

    if check_api:
        print("[4] Reference API live games")
        settings = get_settings()
        api_http = CrawlerHTTPClient("domingoasdez", base_url=settings.api_base_url)
        await api_http.start()
        try:
            client = DomingoAsDezClient(api_http, api_key=settings.api_key or file_config.domingo_as_dez_api_key)
            groups = await client.get_live_games()
            ok(f"{settings.api_base_url}: {len(groups)} live groups")
            for group in groups:
                print(f"        {group.label}: {len(group.games)} games")
        except Exception as exc:
            fail(f"{settings.api_base_url}: {exc}")
        finally:
            await api_http.close()


def main() -> None:
    parser = argparse.ArgumentParser(description="Scrape one AFPB round without forwarding anything")
    parser.add_argument("edition", type=int)
    parser.add_argument("round", type=int)
    parser.add_argument("--api", action="store_true", help="also query the reference API live games")
    args = parser.parse_args()

    setup_logging("check_round")
    asyncio.run(run(args.edition, args.round, args.api))

    print(f"\n=== Results: {GREEN}{passed} passed{RESET}, {RED}{failed} failed{RESET}, {YELLOW}{warnings} warnings{RESET} ===\n")
    sys.exit(1 if failed > 0 else 0)


if __name__ == "__main__":
    main()
