import asyncio
import sys
import json
import argparse
import logging
from dotenv import load_dotenv
from scrapers.batch import run_batch, probe_search, parse_comma_list, BatchInputError
from scrapers.config import load_config
from scrapers.location import LocationError

logger = logging.getLogger(__name__)

# Add this block before any asyncio.run() calls
if sys.platform == 'win32':
    asyncio.set_event_loop_policy(asyncio.WindowsProactorEventLoopPolicy())


def main(argv=None):
    parser = argparse.ArgumentParser(description="Blinkit batch search scraper")
    parser.add_argument("mode", choices=["batch", "probe"])
    parser.add_argument("--pincodes", help="Comma-separated pincodes (probe uses the first)")
    parser.add_argument("--terms", help="Comma-separated search terms (probe uses the first)")
    parser.add_argument("--quantities", default="", help="Comma-separated quantities, e.g. 500g,1kg")
    parser.add_argument("--output-dir", help="Directory for the CSV file")
    parser.add_argument("--config", help="JSON file overriding selectors and timeouts")
    parser.add_argument("--headed", action="store_true", help="Show the browser window")
    parser.add_argument("--verbose", action="store_true", help="Log every filter decision")

    args = parser.parse_args(argv)
    load_dotenv()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    config = load_config(args.config)
    pincodes = parse_comma_list(args.pincodes)
    terms = parse_comma_list(args.terms)
    headless = not args.headed

    try:
        if args.mode == "batch":
            result = asyncio.run(run_batch(
                pincodes, terms, parse_comma_list(args.quantities),
                output_dir=args.output_dir, headless=headless, config=config,
            ))
            logger.info(f"Wrote {result['row_count']} rows to {result['file']}")
        else:
            if not pincodes or not terms:
                parser.error("probe needs --pincodes and --terms")
            result = asyncio.run(probe_search(pincodes[0], terms[0], headless=headless, config=config))
            print(json.dumps(result, indent=2, ensure_ascii=False))
    except (BatchInputError, LocationError) as e:
        logger.error(str(e))
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
