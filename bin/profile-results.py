"""Print the recorded match results for a player profile.

Usage: uv run python bin/profile-results.py <profile_id>

Reads the results file configured by TRACKER_RESULTS_PATH.
"""

import asyncio
import sys
from pathlib import Path

# Add backend to path for imports
sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "backend"))

from shared.storage import StorageReadError
from tracker.server.settings import TrackerServerSettings
from tracker.session.file_repository import FileResultRepository


async def main() -> None:
    if len(sys.argv) != 2:
        print(f"Usage: {sys.argv[0]} <profile_id>")
        sys.exit(1)

    profile_id = sys.argv[1]
    settings = TrackerServerSettings()
    repository = FileResultRepository(settings.results_path)

    try:
        results = await repository.get_results(profile_id)
    except StorageReadError as e:
        print(f"Error: {e}")
        sys.exit(1)

    if not results:
        print(f"No results recorded for profile {profile_id}")
        return

    for result in results:
        print(f"{result.date_played:%Y-%m-%d %H:%M}  #{result.placement}  {result.final_points:>8}  {result.session_id}")

    wins = sum(1 for r in results if r.placement == 1)
    average = sum(r.placement for r in results) / len(results)
    print(f"Games: {len(results)}  Wins: {wins}  Average placement: {average:.2f}")


if __name__ == "__main__":
    asyncio.run(main())
