import asyncio
import csv
import io
import sys
import time

from collect import CodeforcesClient
from config import configure_logging
from errors import CodeforcesError, NotFoundError
from process import calculate_problem_stats, success_rate
from structs import ProblemStats

def stats_to_csv(stats: ProblemStats) -> str:
    """Summary block followed by one row per tag, as the analytics export expects."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")

    writer.writerow(["Type", "Value"])
    writer.writerow(["Total Problems", stats.total])
    writer.writerow(["Solved Problems", stats.solved])
    writer.writerow(["Success Rate", f"{success_rate(stats):.2f}%"])
    writer.writerow([])

    writer.writerow(["Tag", "Solved", "Total", "Accuracy"])
    for tag, tag_stats in stats.byTag.items():
        writer.writerow([tag, tag_stats.solved, tag_stats.total, f"{tag_stats.accuracy:.2f}%"])
    return buffer.getvalue()

async def export_handle(handle: str, output_filename: str, client: CodeforcesClient = None) -> ProblemStats:
    client = client or CodeforcesClient()
    submissions = await client.fetch_submissions(handle)
    stats = calculate_problem_stats(submissions)
    with open(output_filename, "w", newline="") as f:
        f.write(stats_to_csv(stats))
    return stats

def main():
    if len(sys.argv) not in (2, 3):
        print("Usage: python export_csv.py HANDLE [OUTPUT]")
        sys.exit(1)

    configure_logging()
    handle = sys.argv[1]
    output_filename = sys.argv[2] if len(sys.argv) == 3 else f"analytics-{handle}-{int(time.time())}.csv"

    print(f"Exporting analytics for {handle}...")
    try:
        stats = asyncio.run(export_handle(handle, output_filename))
    except NotFoundError:
        print(f"Error: No such user: {handle}")
        sys.exit(1)
    except CodeforcesError as e:
        print(f"Error fetching data for {handle}: {e.detail}")
        sys.exit(1)
    print(f"Exported {len(stats.byTag)} tags for {stats.attempted} problems: {output_filename}")

if __name__ == "__main__":
    main()
