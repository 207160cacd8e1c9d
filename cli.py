import json
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from astrocore.routers.events import global_events_payload
from astrocore.services.ephem import get_provider
from astrocore.services.solvers import generate_global_events_for_year


def main() -> None:
    year = int(sys.argv[2])
    if year < 1900 or year > 2100:
        print("Invalid year. Must be between 1900 and 2100.")
        sys.exit(1)
    out_path = Path(sys.argv[3])
    provider = get_provider()
    workers = int(os.getenv("SOLVER_WORKERS", "4"))
    events = generate_global_events_for_year(provider, year, workers=workers)
    payload = global_events_payload(events, backend=provider.backend)
    out_path.write_text(json.dumps(payload.model_dump(), indent=2), encoding="utf-8")
    print(
        f"Wrote {len(events.season_ingresses)} seasons, {len(events.sign_ingresses)} ingresses "
        f"and {len(events.stations)} stations → {out_path}"
    )


if __name__ == "__main__":
    load_dotenv()
    if len(sys.argv) < 4 or sys.argv[1] != "global":
        print("Usage: python cli.py global <year> output.json")
        sys.exit(1)
    main()
