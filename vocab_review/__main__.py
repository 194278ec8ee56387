"""CLI interface for Vocab Review.

Usage:
    python -m vocab_review review                      Start a review session
    python -m vocab_review stats                       Show review statistics
    python -m vocab_review add "word" "meaning"        Start learning a meaning
    python -m vocab_review due                         Show how many cards are due
    python -m vocab_review list                        List learned meanings
"""

import argparse
import asyncio
import logging

from sqlalchemy import select

from backend.config import settings
from backend.database import async_session, engine
from backend.models import Base
from backend.models.user import User
from backend.srs.learned_words import add_learned_meaning, list_learned_meanings
from backend.srs.errors import ReviewError
from backend.srs.selector import CardView, DisplayType
from backend.srs.session import start_session
from backend.srs.sm2 import Rating
from backend.srs.stats import get_review_stats, summarize_learned_words

RATING_KEYS = {
    "1": Rating.AGAIN,
    "2": Rating.HARD,
    "3": Rating.GOOD,
    "4": Rating.EASY,
}


async def ensure_db() -> None:
    """Create tables if they don't exist."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def ensure_user() -> int:
    """Ensure there's a default user and return the ID."""
    async with async_session() as db:
        stmt = select(User).order_by(User.id.asc()).limit(1)
        result = await db.execute(stmt)
        user = result.scalar_one_or_none()
        if user:
            return user.id

        user = User(name=settings.default_user_name)
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user.id


def print_card(card: CardView) -> None:
    label = f"  {card.highlighted_word}"
    if card.pos:
        label += f"  ({card.pos})"
    if card.display_type is DisplayType.EXTEND:
        label += "  [new meaning]"
    print(label)
    if card.sentence:
        print(f"  “{card.sentence}”")
    if card.learned_meanings:
        print(f"  Already learned: {'; '.join(card.learned_meanings)}")


async def cmd_review(args: argparse.Namespace) -> None:
    """Run an interactive review session."""
    await ensure_db()
    user_id = await ensure_user()

    async with async_session() as db:
        session = await start_session(db, user_id)
        stats = session.entrance_stats
        print("\n  Review Session")
        print(
            f"  {stats.today_due} due: {stats.new_cards} new, {stats.learning} learning, "
            f"{stats.reviewing} reviewing  ({stats.completed_today} done today)\n"
        )
        card = await session.begin()
        if card is None:
            print("  No cards due for review. You're all caught up!")
            return
        print("  Ratings: 1=Again  2=Hard  3=Good  4=Easy   s=skip  q=quit\n")

        while card is not None:
            print_card(card)
            input("\n  Press enter to show the meaning...")
            print(f"  {card.meaning}\n")

            choice = ""
            while choice not in RATING_KEYS and choice not in ("s", "q"):
                choice = input("  Rate [1-4, s, q]: ").strip().lower()

            if choice == "q":
                print("\n  Session ended early.")
                break
            try:
                if choice == "s":
                    card = await session.skip()
                    print()
                    continue
                result = await session.answer(RATING_KEYS[choice])
            except ReviewError as exc:
                print(f"\n  Review stopped: {exc}")
                print("  Session ended early.")
                break

            print(f"  Next review in {result.new_state.interval_days} day(s)\n")
            card = session.current

        counters = session.finish()

    print("\n  Session Complete!")
    print(
        f"  Reviewed: {counters.reviewed}  Correct: {counters.correct}  "
        f"Skipped: {counters.skipped}  Accuracy: {counters.accuracy * 100:.0f}%\n"
    )


async def cmd_stats(args: argparse.Namespace) -> None:
    """Show review statistics."""
    await ensure_db()
    user_id = await ensure_user()

    async with async_session() as db:
        stats = await get_review_stats(db, user_id)
        summary = summarize_learned_words(await list_learned_meanings(db, user_id))

    print("\n  Vocab Review Statistics")
    print(f"  {'Total vocabulary:':<22} {stats.total_vocab}")
    print(f"  {'Due now:':<22} {stats.today_due}")
    print(f"  {'  new:':<22} {stats.new_cards}")
    print(f"  {'  learning:':<22} {stats.learning}")
    print(f"  {'  reviewing:':<22} {stats.reviewing}")
    print(f"  {'Reviewed today:':<22} {stats.completed_today}")
    print(f"  {'Words in progress:':<22} {summary.learning}")
    print(f"  {'Words well known:':<22} {summary.reviewing}")
    print()


async def cmd_add(args: argparse.Namespace) -> None:
    """Start learning a new word meaning."""
    await ensure_db()
    user_id = await ensure_user()

    async with async_session() as db:
        try:
            card = await add_learned_meaning(
                db,
                user_id,
                args.word,
                args.meaning,
                word_in_text=args.form,
                pos=args.pos,
                example_sentence=args.sentence,
            )
        except ValueError as exc:
            print(f"  Not added: {exc}")
            return
        await db.commit()

    print(f"  Added '{card.word}' (card {card.id}, ready for review)")


async def cmd_due(args: argparse.Namespace) -> None:
    """Show how many cards are due."""
    await ensure_db()
    user_id = await ensure_user()

    async with async_session() as db:
        stats = await get_review_stats(db, user_id)

    print(f"  {stats.today_due} cards due ({stats.new_cards} new)")


async def cmd_list(args: argparse.Namespace) -> None:
    """List learned meanings."""
    await ensure_db()
    user_id = await ensure_user()

    async with async_session() as db:
        cards = await list_learned_meanings(db, user_id, order=args.order)

    if not cards:
        print("  No learned words yet.")
        return
    for card in cards:
        pos = f" ({card.pos})" if card.pos else ""
        print(
            f"  {card.word:<20} {card.meaning_text}{pos}  "
            f"[every {card.interval_days}d, next {card.next_review_date:%Y-%m-%d}]"
        )


def main() -> None:
    """Entry point for the Vocab Review CLI application."""
    parser = argparse.ArgumentParser(
        prog="vocab_review",
        description="Spaced repetition review for learned vocabulary",
    )
    parser.add_argument("-v", "--verbose", action="store_true")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # review
    subparsers.add_parser("review", help="Start a review session")

    # stats
    subparsers.add_parser("stats", help="Show your statistics")

    # add
    add_parser = subparsers.add_parser("add", help="Start learning a word meaning")
    add_parser.add_argument("word", help="Word (stored lower-cased)")
    add_parser.add_argument("meaning", help="Meaning to learn")
    add_parser.add_argument("-p", "--pos", default=None, help="Part of speech, e.g. n. or v.")
    add_parser.add_argument("-s", "--sentence", default=None, help="Example sentence")
    add_parser.add_argument("-f", "--form", default=None, help="Form used in the sentence")

    # due
    subparsers.add_parser("due", help="Show cards due for review")

    # list
    list_parser = subparsers.add_parser("list", help="List learned meanings")
    list_parser.add_argument("--order", choices=["asc", "desc"], default="desc")

    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)

    if not args.command:
        parser.print_help()
        return

    cmd_map = {
        "review": cmd_review,
        "stats": cmd_stats,
        "add": cmd_add,
        "due": cmd_due,
        "list": cmd_list,
    }

    asyncio.run(cmd_map[args.command](args))


if __name__ == "__main__":
    main()
