#!/usr/bin/env python3
"""Command line entry point for the Cannapedia content factory.

Usage:
  python pipeline.py fetch-archive                         # Snapshot the magazine archive
  python pipeline.py fetch-archive --limit 100 --skip-existing
  python pipeline.py fetch-catalog                         # Snapshot the product catalog

  python pipeline.py seed-queue --from data/candidates.json # Add concepts to the queue
  python pipeline.py expand-taxonomy --dry-run             # Discover concepts per category
  python pipeline.py parse-glossary                        # Extract magazine glossary terms for review
  python pipeline.py status                                # Queue and content status

  python pipeline.py generate "קנבידיול" --category cannabinoids
  python pipeline.py bulk --batch 10 --category terpenes    # Queue-driven generation
  python pipeline.py bulk --retry-failed

  python pipeline.py approve cbd                           # Publish a held entry
  python pipeline.py approve --list-pending
  python pipeline.py approve --all-pending

  python pipeline.py stale                                 # List entries with old sources
  python pipeline.py stale --run --batch 10 --delay 20     # Regenerate them

  python pipeline.py retrieve "מירצן" --category terpenes   # Debug archive retrieval
  python pipeline.py products "OG Kush" "מירצן"            # Debug product matching
  python pipeline.py search "שינה"                          # Query the published entries
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import orjson
from dotenv import load_dotenv

load_dotenv()

# Project paths
PROJECT_ROOT = Path(__file__).parent
CONFIG_DIR = PROJECT_ROOT / "config"
DATA_DIR = PROJECT_ROOT / "data"
ARCHIVE_DIR = DATA_DIR / "magazine-archive"
CONTENT_DIR = PROJECT_ROOT / "content"
CATALOG_PATH = DATA_DIR / "cannabiz-catalog.json"
QUEUE_PATH = DATA_DIR / "generation-queue.json"
RATE_LIMIT_DB = DATA_DIR / "rate_limits.db"

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler(PROJECT_ROOT / "pipeline.log"),
    ],
)
logger = logging.getLogger(__name__)


def load_categories() -> dict:
    """Load the category configuration (slug -> label, description, icon)."""
    return orjson.loads((CONFIG_DIR / "categories.json").read_bytes())


def load_discovery_prompts() -> dict:
    """Load the per-category concept discovery prompts (slug -> prompt)."""
    return orjson.loads((CONFIG_DIR / "discovery_prompts.json").read_bytes())


def build_pipeline():
    """Wire the generation pipeline with its production collaborators."""
    from factory.concept_pipeline import ConceptPipeline
    from processors.quality_filter import ArchiveQualityFilter
    from retrieval.archive_store import load_archive
    from retrieval.context_aggregator import ContextAggregator
    from retrieval.retriever import ArchiveRetriever
    from scrapers.live_magazine import LiveMagazineChannel
    from scrapers.web_search import WebSearchChannel
    from scrapers.wikipedia import WikipediaChannel
    from store.concept_store import ConceptStore

    articles = load_archive(ARCHIVE_DIR, quality_filter=ArchiveQualityFilter())
    aggregator = ContextAggregator(
        retriever=ArchiveRetriever(articles),
        live_magazine=LiveMagazineChannel(),
        wikipedia=WikipediaChannel(),
        web_search=WebSearchChannel(),
    )
    return ConceptPipeline(
        aggregator=aggregator,
        store=ConceptStore(CONTENT_DIR),
        categories=load_categories(),
    )


# ---------------------------------------------------------------------------
# FETCH
# ---------------------------------------------------------------------------

def cmd_fetch_archive(args):
    """Snapshot the magazine archive into one JSON file per post."""
    from scrapers.archive_scraper import ArchiveScraper

    logger.info("=" * 60)
    logger.info("FETCHING MAGAZINE ARCHIVE")
    logger.info("=" * 60)

    scraper = ArchiveScraper(archive_dir=ARCHIVE_DIR, delay=args.delay)
    summary = scraper.scrape(
        limit=args.limit,
        start_page=args.start_page,
        skip_existing=args.skip_existing,
    )
    logger.info(
        "ARCHIVE FETCH COMPLETE: %d saved, %d skipped, %d pages",
        summary.saved,
        summary.skipped,
        summary.pages,
    )


def cmd_fetch_catalog(args):
    """Snapshot the partner store's product catalog."""
    from scrapers.catalog_scraper import CatalogScraper

    logger.info("=" * 60)
    logger.info("FETCHING PRODUCT CATALOG")
    logger.info("=" * 60)

    scraper = CatalogScraper(catalog_path=CATALOG_PATH, delay=args.delay)
    catalog = scraper.scrape(limit=args.limit, skip_existing=args.skip_existing)
    logger.info("CATALOG FETCH COMPLETE: %d products", len(catalog))


# ---------------------------------------------------------------------------
# QUEUE
# ---------------------------------------------------------------------------

def cmd_seed_queue(args):
    """Merge a candidate list into the generation queue."""
    from pydantic import TypeAdapter

    from schemas.queue_item import QueueItem
    from store.concept_store import ConceptStore
    from store.queue_store import QueueStore, merge_concepts

    candidates_path = Path(args.source)
    if not candidates_path.exists():
        raise FileNotFoundError(f"Candidate file not found: {candidates_path}")
    candidates = TypeAdapter(list[QueueItem]).validate_python(orjson.loads(candidates_path.read_bytes()))

    categories = load_categories()
    unknown = sorted({c.category_slug for c in candidates} - set(categories))
    if unknown:
        logger.warning("Candidates reference unknown categories: %s", ", ".join(unknown))

    queue_store = QueueStore(QUEUE_PATH)
    existing = set(ConceptStore(CONTENT_DIR).list_slugs())
    queue, added = merge_concepts(queue_store.load_or_empty(), candidates, existing)
    queue_store.save(queue)
    logger.info("Queue now holds %d concepts (%d new pending)", len(queue.concepts), added)


def cmd_expand_taxonomy(args):
    """Ask the model to enumerate each category and queue the new concepts."""
    from factory.taxonomy_expander import TaxonomyExpander
    from store.concept_store import ConceptStore
    from store.queue_store import QueueStore, status_counts

    logger.info("=" * 60)
    logger.info("EXPANDING TAXONOMY%s", " (DRY RUN)" if args.dry_run else "")
    logger.info("=" * 60)

    expander = TaxonomyExpander(load_discovery_prompts(), delay=args.delay)
    queue_store = QueueStore(QUEUE_PATH)
    existing = set(ConceptStore(CONTENT_DIR).list_slugs())
    queue, added = asyncio.run(
        expander.expand_queue(queue_store.load_or_empty(), existing, categories=args.category or None)
    )

    overall, per_category = status_counts(queue)
    logger.info("Queue: %d concepts, %d new pending, %s", len(queue.concepts), added, dict(overall))
    for category_slug, counts in sorted(per_category.items(), key=lambda kv: -sum(kv[1].values())):
        logger.info("  %-28s %d total, %d pending", category_slug, sum(counts.values()), counts["pending"])

    if args.dry_run:
        logger.info("Dry run: queue not written")
        return
    queue_store.save(queue)
    logger.info("Queue saved to %s", QUEUE_PATH)


def cmd_parse_glossary(args):
    """Extract the magazine glossary into a review file."""
    from scrapers.glossary_scraper import GlossaryScraper
    from scrapers.utils import save_json
    from store.concept_store import ConceptStore
    from store.queue_store import QueueStore

    logger.info("=" * 60)
    logger.info("PARSING MAGAZINE GLOSSARY")
    logger.info("=" * 60)

    queue = QueueStore(QUEUE_PATH).load_or_empty()
    review = GlossaryScraper().scrape(
        existing_slugs=ConceptStore(CONTENT_DIR).list_slugs(),
        queued_names=[item.name for item in queue.concepts],
    )
    if review is None:
        raise RuntimeError("Glossary page could not be fetched")

    output = Path(args.output)
    save_json(review.model_dump(mode="json", by_alias=True), output)
    for term in [t for t in review.terms if not (t.exists_in_queue or t.exists_as_content)][:10]:
        logger.info("  [%s] %s: %s", term.suggested_category, term.term, term.definition[:60])
    logger.info("Saved %d terms to %s for manual review", review.total_terms, output)


def cmd_status(args):
    """Show queue progress and content review state."""
    from review.approval import list_pending
    from store.concept_store import ConceptStore
    from store.queue_store import QueueNotFoundError, QueueStore, status_counts

    store = ConceptStore(CONTENT_DIR)

    print("\n" + "=" * 70)
    print("CANNAPEDIA CONTENT FACTORY STATUS")
    print("=" * 70)

    try:
        queue = QueueStore(QUEUE_PATH).load()
    except QueueNotFoundError:
        print("\n  Queue: not seeded (run 'seed-queue')")
    else:
        overall, per_category = status_counts(queue)
        print(f"\n--- Queue ({len(queue.concepts)} concepts, updated {queue.last_updated}) ---")
        for status in ("completed", "pending", "failed", "skipped"):
            print(f"  {status:<10} {overall.get(status, 0)}")
        print("\n  By category:")
        for category in sorted(per_category):
            counts = per_category[category]
            print(
                f"    {category:<30} {counts.get('completed', 0)} done, "
                f"{counts.get('pending', 0)} pending, {counts.get('failed', 0)} failed"
            )
        failed = [item for item in queue.concepts if item.status.value == "failed"]
        if failed:
            print("\n  Failed concepts:")
            for item in failed:
                print(f"    {item.slug} ({item.attempts} attempts): {item.last_error}")

    slugs = store.list_slugs()
    pending = list_pending(store)
    print(f"\n--- Content ({len(slugs)} entries) ---")
    print(f"  Published: {len(slugs) - len(pending)}")
    print(f"  Awaiting review: {len(pending)}")
    print("\n" + "=" * 70)


# ---------------------------------------------------------------------------
# GENERATE
# ---------------------------------------------------------------------------

def cmd_generate(args):
    """Generate a single entry."""
    categories = load_categories()
    if args.category not in categories:
        raise ValueError(f"Unknown category '{args.category}'. Known: {', '.join(sorted(categories))}")

    logger.info("=" * 60)
    logger.info("GENERATING: %s (%s)", args.name, args.category)
    logger.info("=" * 60)

    pipeline = build_pipeline()
    outcome = asyncio.run(pipeline.generate(args.name, args.category, slug=args.slug))

    if outcome.published:
        logger.info("GENERATION COMPLETE: %s published", outcome.slug)
    else:
        logger.info(
            "GENERATION COMPLETE: %s held for review (%s)",
            outcome.slug,
            "; ".join(outcome.decision.reasons),
        )


def cmd_bulk(args):
    """Generate the next batch of queued concepts."""
    from factory.bulk_runner import BulkRunner
    from store.queue_store import QueueStore

    logger.info("=" * 60)
    logger.info("BULK GENERATION (batch %d, delay %ss)", args.batch, args.delay)
    logger.info("=" * 60)

    runner = BulkRunner(build_pipeline(), QueueStore(QUEUE_PATH), delay=args.delay)
    summary = asyncio.run(runner.run(
        batch_size=args.batch,
        category=args.category,
        retry_failed=args.retry_failed,
    ))
    logger.info(
        "BULK COMPLETE: %d/%d processed, %d succeeded, %d failed, %d awaiting review",
        summary.processed,
        summary.eligible,
        len(summary.succeeded),
        len(summary.failed),
        len(summary.pending_review),
    )


def cmd_stale(args):
    """List (and optionally regenerate) entries whose sources are old."""
    from factory.stale_sweep import find_stale_entries, regenerate_stale
    from store.concept_store import ConceptStore

    entries = find_stale_entries(ConceptStore(CONTENT_DIR), cutoff_year=args.cutoff, include_all=args.all)
    label = "total" if args.all else f"stale (newest source < {args.cutoff})"
    print(f"\nFound {len(entries)} {label} entries:\n")
    for entry in entries:
        print(f"  {entry.slug:<45} {entry.category_slug:<30} newest: {entry.newest_source_year or '-'}")

    if not args.run:
        print("\n  Dry run. Pass --run to regenerate.\n")
        return

    summary = asyncio.run(regenerate_stale(build_pipeline(), entries, batch=args.batch, delay=args.delay))
    logger.info(
        "STALE REGENERATION COMPLETE: %d regenerated, %d failed, %d awaiting review",
        len(summary.succeeded),
        len(summary.failed),
        len(summary.pending_review),
    )


# ---------------------------------------------------------------------------
# REVIEW
# ---------------------------------------------------------------------------

def cmd_approve(args):
    """Approve held entries for publication."""
    from review.approval import approve_all_pending, approve_concept, list_pending
    from store.concept_store import ConceptStore

    store = ConceptStore(CONTENT_DIR)

    if args.list_pending:
        pending = list_pending(store)
        print(f"\n{len(pending)} entries awaiting review:\n")
        for entry in pending:
            score = f"{round((entry.confidence_score or 0) * 100)}%"
            risk = entry.risk_level.value if entry.risk_level else "?"
            print(f"  {entry.slug:<40} {score:>5}  risk={risk:<7} {entry.title}")
            for claim in entry.unverified_claims:
                print(f"      - {claim}")
        return

    if args.all_pending:
        approved = approve_all_pending(store)
        print(f"\nApproved {len(approved)} entries")
        return

    if not args.slug:
        raise ValueError("Pass a slug, --list-pending or --all-pending")

    entry = approve_concept(store, args.slug)
    print(f"\nApproved: {entry.title} ({args.slug})")


# ---------------------------------------------------------------------------
# DEBUG QUERIES
# ---------------------------------------------------------------------------

def cmd_retrieve(args):
    """Run archive retrieval for a concept and print the prompt context."""
    from processors.quality_filter import ArchiveQualityFilter
    from retrieval.archive_store import load_archive
    from retrieval.retriever import ArchiveRetriever, format_context_for_prompt

    broad = []
    if args.category:
        label = load_categories().get(args.category, {}).get("label")
        if label:
            broad.append(label)

    retriever = ArchiveRetriever(load_archive(ARCHIVE_DIR, quality_filter=ArchiveQualityFilter()))
    result = retriever.retrieve(args.name, aliases=args.alias, broad_terms=broad)

    print(f"\nQuery: \"{result.query}\" aliases={result.aliases}")
    print(
        f"Scanned {result.total_articles_scanned} articles, matched {result.matched_articles} "
        f"({result.tier1_articles} specific + {result.tier2_articles} broad), {len(result.chunks)} chunks"
    )
    print("-" * 50)
    for source in result.sources:
        print(f"  [{source.date[:10]}] {source.title}  {source.url}")
    print("-" * 50)
    print(format_context_for_prompt(result) or "(no context)")


def cmd_products(args):
    """Show the products that would be displayed for the given aliases."""
    from encyclopedia.product_matcher import find_products

    products = find_products(args.aliases, catalog_path=CATALOG_PATH)
    print(f"\nAliases: {args.aliases}")
    print(f"Matched products: {len(products)}")
    for product in products:
        print(f"  {product.name} ({product.slug})  {product.link}")


def cmd_search(args):
    """Search the published entries."""
    from encyclopedia.search import SearchableConcept, search_concepts
    from store.concept_store import ConceptStore

    concepts = [SearchableConcept.from_entry(e) for e in ConceptStore(CONTENT_DIR).list_entries()]
    results = search_concepts(concepts, args.query)

    print(f"\nQuery: \"{args.query}\"  ({len(results)} results)")
    print("-" * 50)
    for concept, score in results[: args.top_k]:
        print(f"  {score:>7.1f}  {concept.title} ({concept.slug})")


# ---------------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------------

def main():
    parser = argparse.ArgumentParser(
        description="Cannapedia Content Factory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    subparsers = parser.add_subparsers(dest="command", help="Pipeline command")

    # Fetch archive
    archive_parser = subparsers.add_parser("fetch-archive", help="Snapshot the magazine archive")
    archive_parser.add_argument("--limit", type=int, default=None, help="Max posts to fetch (default: all)")
    archive_parser.add_argument("--start-page", type=int, default=1, help="First API page (default: 1)")
    archive_parser.add_argument("--skip-existing", action="store_true", help="Keep posts already saved")
    archive_parser.add_argument("--delay", type=float, default=2.0, help="Seconds between pages (default: 2)")

    # Fetch catalog
    catalog_parser = subparsers.add_parser("fetch-catalog", help="Snapshot the product catalog")
    catalog_parser.add_argument("--limit", type=int, default=None, help="Max products to fetch (default: all)")
    catalog_parser.add_argument("--skip-existing", action="store_true", help="Skip if the catalog file exists")
    catalog_parser.add_argument("--delay", type=float, default=2.0, help="Seconds between pages (default: 2)")

    # Seed queue
    seed_parser = subparsers.add_parser("seed-queue", help="Merge candidate concepts into the queue")
    seed_parser.add_argument(
        "--from",
        dest="source",
        required=True,
        help="JSON list of {name, slug, categorySlug, medicalName}",
    )

    # Expand taxonomy
    expand_parser = subparsers.add_parser("expand-taxonomy", help="Discover new concepts per category")
    expand_parser.add_argument("--category", action="append", default=[], help="Only this category slug (repeatable)")
    expand_parser.add_argument("--dry-run", action="store_true", help="Report the merge without writing the queue")
    expand_parser.add_argument("--delay", type=float, default=2.0, help="Seconds between categories (default: 2)")

    # Parse glossary
    glossary_parser = subparsers.add_parser("parse-glossary", help="Extract magazine glossary terms for review")
    glossary_parser.add_argument(
        "--output",
        default=str(DATA_DIR / "glossary-review.json"),
        help="Review file path (default: data/glossary-review.json)",
    )

    # Status
    subparsers.add_parser("status", help="Show queue and review status")

    # Generate
    generate_parser = subparsers.add_parser("generate", help="Generate one entry")
    generate_parser.add_argument("name", help="Hebrew concept name")
    generate_parser.add_argument("--category", required=True, help="Category slug")
    generate_parser.add_argument("--slug", default=None, help="Override the output slug")

    # Bulk
    bulk_parser = subparsers.add_parser("bulk", help="Generate the next batch from the queue")
    bulk_parser.add_argument("--batch", type=int, default=10, help="Concepts per run (default: 10)")
    bulk_parser.add_argument("--category", default=None, help="Only this category slug")
    bulk_parser.add_argument("--retry-failed", action="store_true", help="Retry failed items under the attempt cap")
    bulk_parser.add_argument("--delay", type=float, default=15, help="Seconds between concepts (default: 15)")

    # Approve
    approve_parser = subparsers.add_parser("approve", help="Approve entries held for review")
    approve_parser.add_argument("slug", nargs="?", help="Entry slug")
    approve_parser.add_argument("--list-pending", action="store_true", help="List entries awaiting review")
    approve_parser.add_argument("--all-pending", action="store_true", help="Approve every pending entry")

    # Stale
    stale_parser = subparsers.add_parser("stale", help="Find and regenerate entries with old sources")
    stale_parser.add_argument("--run", action="store_true", help="Regenerate (default: list only)")
    stale_parser.add_argument("--all", action="store_true", help="Include every entry, not just stale ones")
    stale_parser.add_argument("--batch", type=int, default=999, help="Max entries to regenerate")
    stale_parser.add_argument("--delay", type=float, default=20, help="Seconds between entries (default: 20)")
    stale_parser.add_argument("--cutoff", type=int, default=2020, help="Stale when newest source is older")

    # Retrieve (debug)
    retrieve_parser = subparsers.add_parser("retrieve", help="Debug archive retrieval for a concept")
    retrieve_parser.add_argument("name", help="Concept name")
    retrieve_parser.add_argument("--alias", action="append", default=[], help="Extra alias (repeatable)")
    retrieve_parser.add_argument("--category", default=None, help="Category slug for broad terms")

    # Products (debug)
    products_parser = subparsers.add_parser("products", help="Debug product matching")
    products_parser.add_argument("aliases", nargs="+", help="Search aliases")

    # Search
    search_parser = subparsers.add_parser("search", help="Search published entries")
    search_parser.add_argument("query", help="Query text")
    search_parser.add_argument("--top-k", type=int, default=10, help="Number of results")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    commands = {
        "fetch-archive": cmd_fetch_archive,
        "fetch-catalog": cmd_fetch_catalog,
        "seed-queue": cmd_seed_queue,
        "expand-taxonomy": cmd_expand_taxonomy,
        "parse-glossary": cmd_parse_glossary,
        "status": cmd_status,
        "generate": cmd_generate,
        "bulk": cmd_bulk,
        "approve": cmd_approve,
        "stale": cmd_stale,
        "retrieve": cmd_retrieve,
        "products": cmd_products,
        "search": cmd_search,
    }

    try:
        commands[args.command](args)
    except Exception as e:
        logger.exception("Pipeline error: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
