"""CLI entrypoint for parsing single AFS regulation HTML files."""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from pathlib import Path

from afs_corpus import AFSParser


def main() -> None:
    parser = argparse.ArgumentParser(description="Parse AFS regulation HTML files to JSON elements")
    parser.add_argument("--input", "-i", required=True, help="Path to input HTML file")
    parser.add_argument(
        "--url",
        help="Source page URL, used to derive the regulation code (e.g. .../afs-20231/)",
    )
    parser.add_argument("--regulation", help="Regulation code override, e.g. 'AFS 2023:1'")
    parser.add_argument("--out", "-o", help="Path to output JSON file (default: out/json/<name>.json)")
    parser.add_argument(
        "--validation",
        "-v",
        nargs="?",
        const=True,
        default=True,
        help="Path to validation report JSON file (default: out/validation/<name>_validation.json)",
    )
    parser.add_argument("--no-validation", action="store_true", help="Disable validation report generation")
    parser.add_argument("--out-dir", default="out", help="Base output directory (default: out)")

    args = parser.parse_args()

    input_path = Path(args.input)
    base_name = input_path.stem
    out_dir = Path(args.out_dir)

    if args.out:
        output_path = Path(args.out)
    else:
        output_path = out_dir / "json" / f"{base_name}.json"

    if args.no_validation:
        validation_path = None
    elif args.validation is True:
        validation_path = out_dir / "validation" / f"{base_name}_validation.json"
    elif args.validation:
        validation_path = Path(args.validation)
    else:
        validation_path = None

    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        raise SystemExit(1)

    with open(input_path, "r", encoding="utf-8") as f:
        html_content = f.read()

    afs_parser = AFSParser(source_url=args.url or str(input_path), regulation=args.regulation)
    elements = afs_parser.parse(html_content)

    output_data = {
        "regulation": afs_parser.regulation,
        "source_url": afs_parser.source_url,
        "elements": [asdict(e) for e in elements],
    }

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump(output_data, f, ensure_ascii=False, indent=2)

    print(f"Parsed {len(elements)} elements -> {output_path}")

    if validation_path:
        validation_path.parent.mkdir(parents=True, exist_ok=True)
        with open(validation_path, "w", encoding="utf-8") as f:
            json.dump(asdict(afs_parser.validation), f, ensure_ascii=False, indent=2)

        status = "PASS" if afs_parser.validation.is_valid() else "ISSUES FOUND"
        print(f"Validation: {status} -> {validation_path}")

    print("\nSummary:")
    for name, count in sorted(afs_parser.validation.counts_parsed.items()):
        print(f"  {name}: {count}")


if __name__ == "__main__":
    main()
