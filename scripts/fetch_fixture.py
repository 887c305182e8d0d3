import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from stay_sync.network.client import fetch_feed, redact_url
from stay_sync.normalizers.ical import dedupe_events, parse_feed

load_dotenv()

FIXTURE_DIR = Path("tests/fixtures")


# === FIXTURE FETCH + SAVE ===


def save_fixture(text: str, filename: str) -> Path:
    FIXTURE_DIR.mkdir(parents=True, exist_ok=True)
    path = FIXTURE_DIR / filename
    path.write_text(text)
    print(f"Saved {path} ({len(text)} bytes)")
    return path


def summarize(text: str) -> None:
    events, errors = dedupe_events(parse_feed(text))
    print(f"{len(events)} events, {len(errors)} skipped")
    for event in events[:5]:
        print(f"  {event.start} -> {event.end}  {event.summary}  {event.reservation_code or ''}")


# === CLI ===

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Download the calendar feed into tests/fixtures.")
    parser.add_argument("--url", default=os.getenv("CALENDAR_FEED_URL"), help="Feed URL")
    parser.add_argument("--name", default="calendar_feed.ics", help="Fixture file name")
    args = parser.parse_args()

    if not args.url:
        sys.exit("CALENDAR_FEED_URL not set and --url not given")

    print(f"Fetching {redact_url(args.url)}")
    body = fetch_feed(args.url)
    save_fixture(body, args.name)
    summarize(body)
