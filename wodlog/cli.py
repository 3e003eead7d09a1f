import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import uvicorn
from fastapi import HTTPException

from wodlog import config, store
from wodlog.catalog import (
    CatalogError,
    classify_missing,
    fetch_catalog,
    find_duplicate_names,
    load_catalog,
    populate_movements,
    sync_catalog,
)
from wodlog.importer import IMPORT_FORMATS, CsvImportError, export_rows, import_scores, process_import, to_csv, to_json

logger = logging.getLogger("wodlog.cli")


def _user_or_exit(email: str) -> dict[str, Any]:
    user = store.get_user_by_email(email)
    if user is None:
        raise SystemExit(f"No user with email {email}")
    return user


def cmd_serve(args: argparse.Namespace) -> int:
    uvicorn.run("wodlog.main:app", host=args.host, port=args.port, reload=args.reload, log_level=config.LOG_LEVEL.lower())
    return 0


def cmd_seed(args: argparse.Namespace) -> int:
    entries = load_catalog(Path(args.file) if args.file else None)
    stats = sync_catalog(entries, update_existing=False)
    print(f"Inserted {stats['inserted']} WODs ({stats['unchanged']} already present, {stats['invalid']} invalid)")
    return 0


def cmd_sync(args: argparse.Namespace) -> int:
    if args.url:
        entries = fetch_catalog(args.url)
    elif args.file:
        entries = load_catalog(Path(args.file))
    elif config.CATALOG_URL:
        entries = fetch_catalog(config.CATALOG_URL)
    else:
        raise SystemExit("Pass --url or --file, or set WODLOG_CATALOG_URL")
    stats = sync_catalog(entries, update_existing=True, dry_run=args.dry_run)
    prefix = "[dry-run] " if args.dry_run else ""
    print(
        f"{prefix}inserted={stats['inserted']} updated={stats['updated']} "
        f"unchanged={stats['unchanged']} invalid={stats['invalid']}"
    )
    return 0


def cmd_populate_movements(_: argparse.Namespace) -> int:
    count = populate_movements()
    print(f"Linked {count} movements across {len(store.load_wods())} WODs")
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    changed = classify_missing(dry_run=args.dry_run)
    for row in changed:
        print(f"{row['wod_name']}: category={row.get('category', '-')} tags={row.get('tags', '-')}")
    print(f"{'Would classify' if args.dry_run else 'Classified'} {len(changed)} WODs")
    return 0


def cmd_find_duplicates(_: argparse.Namespace) -> int:
    groups = find_duplicate_names()
    if not groups:
        print("No duplicate WOD names")
        return 0
    for names in groups.values():
        print(" | ".join(names))
    return 1


def cmd_export_scores(args: argparse.Namespace) -> int:
    user = _user_or_exit(args.user)
    rows = export_rows(store.scores_for_user(user["id"]), store.load_wods())
    fmt = "json" if args.out.endswith(".json") else "csv"
    body = to_json(rows) if fmt == "json" else to_csv(rows)
    Path(args.out).write_text(body)
    print(f"Wrote {len(rows)} scores to {args.out}")
    return 0


def cmd_import_scores(args: argparse.Namespace) -> int:
    user = _user_or_exit(args.user)
    text = Path(args.input).read_text(encoding="utf-8-sig")
    wods = {str(w["wod_name"]): w for w in store.load_wods() if w.get("wod_name")}
    rows = process_import(text, args.format, wods)
    selected = [r["proposed_score"] for r in rows if r["selected"]]
    for row in rows:
        if not row["validation"]["is_valid"]:
            print(f"{row['id']}: {'; '.join(row['validation']['errors'])}")
    if args.dry_run:
        print(f"[dry-run] {len(selected)} of {len(rows)} rows would be imported")
        return 0
    if not selected:
        print("No valid rows to import")
        return 1
    result = import_scores(user["id"], selected)
    print(f"Imported {result['count']} of {len(rows)} rows")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wodlog", description="CrossFit benchmark workout log")
    parser.add_argument("--data-dir", default=None, help="Directory holding the JSON tables (default: WODLOG_DATA_DIR)")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("serve", help="Run the web app")
    p.add_argument("--host", default=config.HOST)
    p.add_argument("--port", type=int, default=config.PORT)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=cmd_serve)

    p = sub.add_parser("seed", help="Insert bundled (or given) catalog WODs that are missing")
    p.add_argument("--file", default=None, help="Catalog JSON file")
    p.set_defaults(func=cmd_seed)

    p = sub.add_parser("sync", help="Upsert WODs from a remote or local catalog")
    p.add_argument("--url", default=None)
    p.add_argument("--file", default=None)
    p.add_argument("--dry-run", action="store_true")
    p.set_defaults(func=cmd_sync)

    p = sub.add_parser("populate-movements", help="Rebuild movement links for every WOD")
    p.set_defaults(func=cmd_populate_movements)

    p = sub.add_parser("classify", help="Fill in missing categories and tags")
    p.add_argument("--dry-run", action="store_true")
    p.set_defaults(func=cmd_classify)

    p = sub.add_parser("find-duplicates", help="List WOD names that differ only in case or spacing")
    p.set_defaults(func=cmd_find_duplicates)

    p = sub.add_parser("export-scores", help="Write a user's scores to CSV or JSON")
    p.add_argument("--user", required=True, help="User email")
    p.add_argument("--out", required=True, help="Output path (.csv or .json)")
    p.set_defaults(func=cmd_export_scores)

    p = sub.add_parser("import-scores", help="Import a CSV of scores for a user")
    p.add_argument("--user", required=True, help="User email")
    p.add_argument("--in", dest="input", required=True, help="CSV path")
    p.add_argument("--format", choices=sorted(IMPORT_FORMATS), default="przilla")
    p.add_argument("--dry-run", action="store_true")
    p.set_defaults(func=cmd_import_scores)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config.configure_logging()
    if args.data_dir:
        config.DATA_DIR = args.data_dir
    try:
        return args.func(args)
    except (CatalogError, CsvImportError, store.IntegrityError, OSError) as err:
        logger.error("%s", err)
        return 1
    except HTTPException as err:
        logger.error("%s", err.detail)
        return 1


if __name__ == "__main__":
    sys.exit(main())
