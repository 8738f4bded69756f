"""Analyse street/sun alignment for an Overpass export: score every straight section, export CSV, plot the year profile.

This script uses the street_alignment library for batching, scoring and the
optimal-day search, and adds CSV export and a matplotlib profile on top.

Usage: python analyze_alignment.py streets.json [YYYY-MM-DD] [sunrise|sunset]
"""

import csv
import datetime as dt
import json
import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt

from street_alignment import (
    AlignmentScorer,
    SolarCalculator,
    StreetsConfig,
    alignment_stats,
    process_osm_data,
)
from street_alignment.logging_config import configure_logging
from street_alignment.optimal_day import DayScan, find_local_maxima
from street_alignment.scoring import best_aligned

OUTPUT_CSV = Path(__file__).parent / "scored_segments.csv"
OUTPUT_PLOT = Path(__file__).parent / "alignment_profile.png"
TOP_DAYS = 5


def centroid(segments) -> tuple[float, float]:
    lats = [p.lat for s in segments for p in (s.start, s.end)]
    lons = [p.lon for s in segments for p in (s.start, s.end)]
    return sum(lats) / len(lats), sum(lons) / len(lons)


def export_csv(scored, path: Path) -> None:
    """Write scored segments to a CSV file."""
    fieldnames = ["way_id", "road_type", "segment_count", "bearing", "total_length", "sun_azimuth", "alignment_score"]
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=fieldnames)
        writer.writeheader()
        for s in scored:
            writer.writerow(
                {
                    "way_id": s.way_id,
                    "road_type": s.road_type,
                    "segment_count": s.segment.segment_count,
                    "bearing": round(s.bearing, 4),
                    "total_length": round(s.segment.total_length, 2),
                    "sun_azimuth": round(s.sun_azimuth, 4),
                    "alignment_score": round(s.alignment_score, 4),
                }
            )
    print(f"CSV exported: {path}")


def plot_profile(scan: DayScan, peaks, path: Path, title: str) -> None:
    """Plot the daily best alignment over the year with local maxima marked."""
    days = [d.day_of_year for d in scan.results]
    scores = [d.score for d in scan.results]

    fig, ax = plt.subplots(figsize=(14, 5))
    ax.plot(days, scores, color="darkorange", linewidth=1.2, label="Best daily alignment")
    ax.fill_between(days, scores, alpha=0.2, color="darkorange")

    ax.scatter([d.day_of_year for d in peaks], [d.score for d in peaks], color="firebrick", zorder=3, label="Top local maxima")
    for d in peaks:
        ax.annotate(d.date.strftime("%b %d"), (d.day_of_year, d.score), textcoords="offset points", xytext=(0, 6), ha="center")

    ax.set_xlabel("Day of year")
    ax.set_ylabel("Alignment score")
    ax.set_ylim(0, 1.05)
    ax.set_xlim(1, scan.total_days)
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(path, dpi=150)
    print(f"Plot saved: {path}")


def main():
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    configure_logging("WARNING")
    source = Path(sys.argv[1])
    date = dt.date.fromisoformat(sys.argv[2]) if len(sys.argv) > 2 else dt.date.today()
    is_sunrise = len(sys.argv) > 3 and sys.argv[3] == "sunrise"

    print(f"Reading street data: {source}\n")
    data = json.loads(source.read_text())
    segments = process_osm_data(data, StreetsConfig())
    print(f"Batched segments: {len(segments):,}")
    if not segments:
        print("No straight street sections found.")
        return

    lat, lng = centroid(segments)
    solar = SolarCalculator()
    sun_azimuth = solar(date, lat, lng, is_sunrise)
    event = "sunrise" if is_sunrise else "sunset"
    print(f"Sun azimuth at {event} on {date}: {sun_azimuth:.2f}°\n")

    scored = AlignmentScorer().score(segments, sun_azimuth)
    stats = alignment_stats(scored)
    print(f"Average score: {stats.average_score:.3f}")
    print(f"Perfect (>=0.9): {stats.perfect:,} ({stats.percentage_perfect:.1f}%)")
    print(f"Good (0.6-0.9):  {stats.good:,} ({stats.percentage_good:.1f}%)")
    print(f"Poor (<0.3):     {stats.poor:,} ({stats.percentage_poor:.1f}%)\n")
    export_csv(scored, OUTPUT_CSV)

    best = best_aligned(scored, top_n=1)[0]
    scan = DayScan(solar, best.bearing, lat, lng, date.year)
    scan.advance(scan.total_days)
    peaks = find_local_maxima(scan.results)[:TOP_DAYS]
    if peaks:
        print(f"Best day for way {best.way_id} ({best.bearing:.1f}°): {peaks[0].date} "
              f"({peaks[0].best_alignment.type}, {peaks[0].score:.1%})")

    title = f"Alignment profile: way {best.way_id}, bearing {best.bearing:.1f}°, {date.year}"
    plot_profile(scan, peaks, OUTPUT_PLOT, title)


if __name__ == "__main__":
    main()
