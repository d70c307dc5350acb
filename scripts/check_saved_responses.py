"""
Run saved raw model responses through the blueprint recovery pipeline.

Useful for checking extractor behavior against real model failure samples
(fenced output, prose around the JSON, several JSON blocks in one reply).

Usage:
  python scripts/check_saved_responses.py [--dir tmp/model_responses] [--verbose]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Ensure repo root is importable for direct script execution
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from blueprint_core.diagnostics import DiagnosticRecorder
from blueprint_core.errors import BlueprintValidationError
from blueprint_core.pipeline import validate_and_normalize_blueprint


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--dir", default=str(ROOT / "tmp" / "model_responses"), help="Directory of *.txt responses")
    parser.add_argument("--verbose", action="store_true", help="Print pipeline diagnostics per file")
    args = parser.parse_args(argv)

    files = sorted(Path(args.dir).glob("*.txt"))
    if not files:
        print(f"No saved responses found in {args.dir}.")
        return 1

    ok = True
    for file in files:
        recorder = DiagnosticRecorder()
        try:
            blueprint = validate_and_normalize_blueprint(file.read_text(encoding="utf-8"), sink=recorder)
            sections = {k: v.get("displayType") for k, v in blueprint.items() if isinstance(v, dict) and k != "metadata"}
            print(f"[OK] {file.name}: {sections}")
        except BlueprintValidationError as e:
            ok = False
            print(f"[FAIL] {file.name}: {e.code.value} {e.message}")
        if args.verbose:
            for event in recorder.events:
                print(f"    {event.event} {event.fields}")
    return 0 if ok else 2


if __name__ == "__main__":
    raise SystemExit(main())
