from __future__ import annotations

import argparse
import asyncio
import getpass
from collections.abc import Sequence

from .adapters.base import StorageError
from .adapters.factory import create_backend
from .config import load_settings
from .data.auth import authenticate
from .data.repository import ArchiveRepository
from .logging_config import setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="order-archive", description="Administer the Order's archive."
    )
    sub = parser.add_subparsers(dest="command", required=True)
    sub.add_parser("members", help="list members")
    articles = sub.add_parser("articles", help="list articles, pinned first")
    articles.add_argument("--author", help="only articles by this codename")
    verify = sub.add_parser("verify", help="verify a membership id")
    verify.add_argument("member_id")
    login = sub.add_parser("login", help="check credentials")
    login.add_argument("identifier", help="member id, codename or ADMIN")
    pin = sub.add_parser("pin", help="toggle the pin flag of an article")
    pin.add_argument("article_id")
    sub.add_parser("reset", help="wipe all data and restore the Root Architect")
    return parser


async def run_command(args: argparse.Namespace, repository: ArchiveRepository) -> int:
    if args.command == "members":
        # highest rank first; architects administer the archive
        members = sorted(await repository.list_members(), key=lambda m: -m.rank.level)
        for m in members:
            state = "active" if m.active else "inactive"
            role = "admin" if m.is_architect else "member"
            print(f"{m.id}\t{m.codename}\t{m.rank.value}\t{role}\t{state}")
        return 0
    if args.command == "articles":
        for a in await repository.list_articles(author=args.author):
            mark = "*" if a.is_pinned else " "
            print(f"{mark} {a.id}\t{a.date}\t{a.author}\t{a.title}")
        return 0
    if args.command == "verify":
        result = await repository.verify_member(args.member_id)
        if not result.valid:
            print(f"{args.member_id}: NOT FOUND")
            return 1
        member = result.member
        print(f"{member.id}: {member.name} ({member.codename}), {member.rank.value}")
        return 0
    if args.command == "login":
        password = getpass.getpass("Password: ")
        member = await authenticate(repository, args.identifier, password)
        if member is None:
            print("Invalid Credentials. Access Denied.")
            return 1
        print(f"Welcome, {member.codename}.")
        return 0
    if args.command == "pin":
        if await repository.get_article(args.article_id) is None:
            print(f"{args.article_id}: NOT FOUND")
            return 1
        await repository.toggle_pin(args.article_id)
        return 0
    if args.command == "reset":
        await repository.reset()
        return 0
    return 2


def main(argv: Sequence[str] | None = None) -> int:
    log = setup_logging()
    args = build_parser().parse_args(argv)
    settings = load_settings()
    repository = ArchiveRepository(
        create_backend(settings), root_password=settings.root_password
    )

    async def runner() -> int:
        try:
            await repository.ensure_root()
            return await run_command(args, repository)
        except StorageError as exc:
            log.error("Storage failure: %s", exc)
            return 1
        except KeyboardInterrupt:
            log.info("Interrupted")
            return 2
        finally:
            await repository.close()

    return asyncio.run(runner())


if __name__ == "__main__":
    raise SystemExit(main())
