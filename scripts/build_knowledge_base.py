import argparse
import asyncio
import os
import sys

# Ensure src is in pythonpath
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "src"))

from dotenv import load_dotenv
load_dotenv()

from sitechat.config import settings
from sitechat.embeddings.embedder import Embedder
from sitechat.knowledge.models import KnowledgeBase
from sitechat.knowledge.snapshot import save_knowledge_base
from sitechat.sessions.pipeline import IngestionError, IngestionPipeline


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        description="Crawl a website and write the default knowledge base snapshot.",
    )
    parser.add_argument("url", help="Seed URL to crawl")
    parser.add_argument(
        "output",
        nargs="?",
        default=settings.knowledge_base_path,
        help=f"Snapshot path (default: {settings.knowledge_base_path})",
    )
    parser.add_argument(
        "--max-pages",
        type=int,
        default=settings.snapshot_max_pages,
        help=f"Crawl cap (default: {settings.snapshot_max_pages})",
    )
    return parser.parse_args(argv)


async def main(argv=None):
    args = parse_args(argv)

    print(f"Crawling {args.url} (max {args.max_pages} pages)...")
    pipeline = IngestionPipeline(embedder=Embedder(), max_pages=args.max_pages)

    try:
        kb = await pipeline.build_knowledge_base(args.url)
    except IngestionError as e:
        print(f"No documents parsed: {e}")
        kb = KnowledgeBase.empty()

    for doc in kb.documents:
        print(f"Parsed {doc.url} -> {len(doc.chunks)} chunks")

    path = save_knowledge_base(kb, args.output)
    print(f"Wrote {kb.document_count} documents / {kb.chunk_count} chunks to {path}")


if __name__ == "__main__":
    asyncio.run(main())
