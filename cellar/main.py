import argparse
import asyncio
import logging
import mimetypes
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import structlog

from cellar import config
from cellar.estimator import GeminiPriceEstimator
from cellar.gemini import GeminiClient, InlineImage, QuotaExceededError
from cellar.labels import LabelExtractionError, LabelReader, scan_label
from cellar.models import PriceQuery
from cellar.pricing import PriceResolver
from cellar.vivino import VivinoScraper


def configure_logging() -> None:
    level = logging.DEBUG if config.DEBUG else logging.INFO
    # stdout carries the JSON result only
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(sys.stderr),
    )


@asynccontextmanager
async def services():
    """Build the shared HTTP and Gemini clients once and wire the components."""
    async with httpx.AsyncClient(timeout=config.SCRAPE_TIMEOUT) as http:
        gemini = GeminiClient()
        resolver = PriceResolver(
            scraper=VivinoScraper(http),
            estimator=GeminiPriceEstimator(gemini),
        )
        yield gemini, resolver


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cellar", description="Wine price lookup and label scanning")
    sub = parser.add_subparsers(dest="command", required=True)

    price = sub.add_parser("price", help="resolve a wine's market price")
    price.add_argument("producer")
    price.add_argument("--vintage", type=int)
    price.add_argument("--region")
    price.add_argument("--size", default="standard", help="bottle size id, e.g. magnum")

    scan = sub.add_parser("scan", help="read a label photo and price the wine")
    scan.add_argument("image", type=Path)
    scan.add_argument("--size", help="bottle size id; guessed from the label if omitted")
    scan.add_argument("--quick", action="store_true", help="only read what is printed on the label")
    return parser


async def _price(args) -> int:
    async with services() as (_, resolver):
        result = await resolver.resolve(
            PriceQuery(producer=args.producer, vintage=args.vintage, region=args.region, bottle_size=args.size)
        )
    print(result.model_dump_json(indent=2))
    return 0 if result.found else 2


async def _scan(args) -> int:
    mime_type = mimetypes.guess_type(args.image.name)[0] or "image/jpeg"
    image = InlineImage(data=args.image.read_bytes(), mime_type=mime_type)
    async with services() as (gemini, resolver):
        try:
            result = await scan_label(LabelReader(gemini), resolver, image, bottle_size=args.size, quick=args.quick)
        except QuotaExceededError as e:
            print(f"scan: {e}", file=sys.stderr)
            return 3
        except LabelExtractionError as e:
            print(f"scan: {e}", file=sys.stderr)
            return 2
    print(result.model_dump_json(indent=2))
    return 0


def main(argv=None) -> int:
    args = _parser().parse_args(argv)
    configure_logging()
    if args.command == "price":
        return asyncio.run(_price(args))
    return asyncio.run(_scan(args))


if __name__ == "__main__":
    sys.exit(main())
