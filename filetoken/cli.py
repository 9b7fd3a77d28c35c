"""
Command line token issuance.

Issues (or reuses) a token for a stored file and prints the link that
serves it, the same call a rendering layer makes in-process.

Usage:
    # Print the link for a public file owned by entity 42
    filetoken-issue sites/default/files/report.pdf 42

    # Private file, custom lifetime, JSON output
    filetoken-issue /system/files/scan.png 42 --ttl 600 --json

Environment Variables:
    DATABASE_URL: Token store connection string
    SITE_BASE_URL: Public site URL links are built from
"""
import argparse
import asyncio
import logging
import sys
from typing import Optional, Sequence

from .core.config import get_settings
from .db.session import AsyncSessionLocal, engine
from .schemas import IssuedTokenResponse
from .services.token_issuer import TokenIssuer
from .store import SQLAlchemyTokenStore

logger = logging.getLogger("filetoken.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filetoken-issue",
        description="Issue a time-limited access token for a stored file",
    )
    parser.add_argument("file_reference", help="Stored file reference (public or private URL path)")
    parser.add_argument("entity_id", type=int, help="Id of the entity that owns the file")
    parser.add_argument("--ttl", type=int, default=None, help="Token lifetime in seconds")
    parser.add_argument("--json", action="store_true", help="Print token details as JSON")
    return parser


async def issue(file_reference: str, entity_id: int, ttl: Optional[int] = None) -> IssuedTokenResponse:
    settings = get_settings()

    async with AsyncSessionLocal() as session:
        store = SQLAlchemyTokenStore(session, timeout=settings.STORE_TIMEOUT_SECONDS)
        issuer = TokenIssuer.from_settings(store, settings)
        issued = await issuer.issue_or_reuse(file_reference, entity_id, ttl=ttl)

    return IssuedTokenResponse(
        token=issued.token,
        url=issuer.build_file_url(issued.token),
        expires_at=issued.expires_at,
        reused=issued.reused,
        durable=issued.durable,
    )


async def _run(args: argparse.Namespace) -> IssuedTokenResponse:
    try:
        return await issue(args.file_reference, args.entity_id, args.ttl)
    finally:
        await engine.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    if args.ttl is not None and args.ttl <= 0:
        print("--ttl must be a positive number of seconds", file=sys.stderr)
        return 2

    result = asyncio.run(_run(args))

    if args.json:
        print(result.model_dump_json(indent=2))
    else:
        print(result.url)

    if not result.durable:
        logger.warning("Token was not stored; the link will not resolve")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
