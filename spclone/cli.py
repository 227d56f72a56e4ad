# -*- coding: utf-8 -*-
"""
===============================================================================
spclone — SharePoint List Cloner (Kommandozeile)
===============================================================================
Description (EN):
    Copies one or more SharePoint lists (schema, views, items) from a source
    site to a target site via the SharePoint REST API. The target list is
    always deleted and recreated. Progress is printed to the console and can
    be exported as CSV or JSON.

Usage examples:
    # 1) One list, app credentials from config.json (MSAL client credentials):
    spclone --config config.json --source https://contoso.sharepoint.com/sites/A \
            --target https://contoso.sharepoint.com/sites/B --list Tasks

    # 2) Several lists, ready-made bearer token, log export as CSV:
    spclone --token "$SP_TOKEN" --source ... --target ... --list Tasks --list Issues \
            --log-format csv --log-dir ./logs

    # 3) Every visible generic list of the source site:
    spclone --config config.json --source ... --target ... --all

    # 4) Jobs from a parameter file (see spclone.params.resolve):
    spclone --config config.json --jobs jobs.json

Example config.json:
{
  "azuread": {
    "tenant_id": "xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx",
    "client_id": "xxxxxxxx-xxxx-xxxx-xxxx-xxxxxxxxxxxx",
    "client_certificate": {"private_key": "...", "thumbprint": "..."}
  },
  "migration": {"propagation_timeout": 45},
  "job_defaults": {"CopyItems": true}
}

Exit codes:
    0  every list migrated
    1  at least one list failed (or the source site could not be enumerated)
    2  parameter/credential errors

Version history:
    v1.0 (2026-10-19)  Initial release.
===============================================================================
"""

# =============================================================================
# Imports
# =============================================================================
import argparse
import dataclasses
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pandas as pd

from spclone.core.auth import StaticTokenProvider, TokenProvider, resource_scope
from spclone.core.config.settings import load_migration_settings
from spclone.core.http import SharePointError
from spclone.core.logbuffer import MigrationLog
from spclone.core.util import ELLIPSIS, split_site_url
from spclone.domains.sharepoint.schema_client import ListSchemaClient
from spclone.domains.sharepoint.sites.lists import KIND_LIST
from spclone.io.writers.csv_writer import write_csv
from spclone.io.writers.json_writer import write_json
from spclone.migration.orchestrator import ListMigrationError, ListMigrationReport, ListMigrator
from spclone.params.resolve import resolve_jobs

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_PARAMS = 2

_REPORT_COLUMNS = ["list_title", "state", "fields_created", "fields_failed", "views_created", "items_created", "items_failed", "succeeded"]


# =============================================================================
# Arguments
# =============================================================================
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="spclone",
        description="Copy SharePoint lists (schema, views, items) from a source site to a target site.",
    )
    parser.add_argument("--source", dest="SOURCE_URL", help="Source site URL, e.g. https://contoso.sharepoint.com/sites/A")
    parser.add_argument("--target", dest="TARGET_URL", help="Target site URL")
    parser.add_argument("--list", dest="LISTS", action="append", default=[],
                        help="List title to migrate (repeatable).")
    parser.add_argument("--all", dest="ALL", action="store_true",
                        help="Migrate every visible generic list of the source site.")
    parser.add_argument("--jobs", dest="JOBS_PATH", help="Parameter JSON with 'defaults' and 'jobs'.")
    parser.add_argument("--config", dest="CONFIG_PATH",
                        help="JSON config (azuread credentials, 'migration' settings, 'job_defaults').")
    parser.add_argument("--token", dest="TOKEN", default=os.getenv("SPCLONE_TOKEN"),
                        help="Ready-made bearer token (default: $SPCLONE_TOKEN).")
    parser.add_argument("--no-views", dest="NO_VIEWS", action="store_true", help="Do not copy views.")
    parser.add_argument("--no-items", dest="NO_ITEMS", action="store_true", help="Do not copy items.")
    parser.add_argument("--log-dir", dest="LOG_DIR", help="Directory for the log export.")
    parser.add_argument("--log-format", dest="LOG_FORMAT", choices=("csv", "json"),
                        help="Export the migration log as csv or json.")
    parser.add_argument("--quiet", dest="QUIET", action="store_true", help="Do not echo log lines to the console.")
    return parser.parse_args(argv)


# =============================================================================
# Helpers
# =============================================================================
def _load_job_defaults(config_path: Optional[str]) -> Dict[str, Any]:
    if not config_path or not Path(config_path).exists():
        return {}
    cfg = json.loads(Path(config_path).read_text(encoding="utf-8"))
    block = cfg.get("job_defaults") if isinstance(cfg, dict) else None
    return dict(block) if isinstance(block, dict) else {}


def build_credential(token: Optional[str], config_path: Optional[str], site_url: str) -> Any:
    """--token > azuread-Sektion aus --config > SPCLONE_TENANT_ID/_CLIENT_ID/_CLIENT_SECRET."""
    if token:
        return StaticTokenProvider(token)
    scope = resource_scope(site_url)
    if config_path:
        return TokenProvider.from_json(config_path, scopes=scope)
    return TokenProvider.from_env(scopes=scope)


def _cli_values(args: argparse.Namespace) -> Dict[str, Any]:
    return {
        "SOURCE_URL": args.SOURCE_URL,
        "TARGET_URL": args.TARGET_URL,
        "CopyViews": False if args.NO_VIEWS else None,
        "CopyItems": False if args.NO_ITEMS else None,
        "LogFormat": args.LOG_FORMAT,
        "LogDir": args.LOG_DIR,
    }


def enumerate_lists(client: ListSchemaClient, site_url: str, log: MigrationLog) -> List[str]:
    """Titel aller sichtbaren generischen Listen; Bibliotheken werden geloggt und übersprungen."""
    df = client.list_site_lists(site_url)
    for title in df.loc[df["kind"] != KIND_LIST, "title"]:
        log.warning("Document libraries are not supported; skipped", list=title)
    return df.loc[df["kind"] == KIND_LIST, "title"].tolist()


def export_log(log: MigrationLog, fmt: Optional[str], directory: Optional[Any]) -> Optional[Path]:
    if not fmt:
        return None
    df = log.to_df()
    if fmt == "json":
        return write_json(df, prefix="spclone_log", directory=directory)
    return write_csv(df, prefix="spclone_log", directory=directory)


def print_summary(reports: List[ListMigrationReport]) -> None:
    if not reports:
        print("[warn] No lists were migrated.")
        return
    df = pd.DataFrame([r.as_dict() for r in reports], columns=_REPORT_COLUMNS)
    with pd.option_context("display.max_rows", 500, "display.max_colwidth", 80):
        print(df.to_string(index=False))


# =============================================================================
# Main
# =============================================================================
def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])

    # (A) Settings: Defaults < config.json['migration'] < ENV
    settings, sinfo = load_migration_settings(config_path=args.CONFIG_PATH)
    for w in sinfo["warnings"]:
        print(f"[warn] {w}")

    log = MigrationLog(echo=not args.QUIET)
    cli = _cli_values(args)

    # (B) Jobs auflösen (bei --all erst nach der Enumeration der Quelle)
    if args.ALL and args.LISTS:
        print("[error] --all and --list are mutually exclusive")
        return EXIT_PARAMS
    if args.ALL and not (args.SOURCE_URL and args.TARGET_URL):
        print("[error] --all requires --source and --target")
        return EXIT_PARAMS

    try:
        job_defaults = _load_job_defaults(args.CONFIG_PATH)
    except ValueError as ex:
        print(f"[error] Failed to parse config '{args.CONFIG_PATH}': {ex}")
        return EXIT_PARAMS

    jobs: List[Dict[str, Any]] = []
    if not args.ALL:
        try:
            jobs, rinfo = resolve_jobs(
                cli=cli, list_titles=args.LISTS, config_block=job_defaults, param_json_path=args.JOBS_PATH
            )
        except (OSError, ValueError, RuntimeError) as ex:
            print(f"[error] {ex}")
            return EXIT_PARAMS
        if rinfo.errors:
            for e in rinfo.errors:
                print(f"[error] {e}")
            return EXIT_PARAMS
        if not jobs:
            print("[error] No jobs to run (use --list, --all or --jobs)")
            return EXIT_PARAMS

    # (C) Credential + Client
    first_source = args.SOURCE_URL or jobs[0]["SOURCE_URL"]
    try:
        credential = build_credential(args.TOKEN, args.CONFIG_PATH, first_source)
    except (OSError, KeyError, ValueError) as ex:
        print(f"[error] Credential setup failed: {ex}")
        return EXIT_PARAMS
    client = ListSchemaClient.from_credential(credential, settings=settings, log=log)

    if args.ALL:
        print(f"[info] Enumerating lists on '{args.SOURCE_URL}' {ELLIPSIS}")
        try:
            titles = enumerate_lists(client, args.SOURCE_URL, log)
        except SharePointError as ex:
            log.error("Failed to enumerate source lists", site=args.SOURCE_URL, error=ex.text or str(ex))
            export_log(log, args.LOG_FORMAT, args.LOG_DIR)
            return EXIT_FAILED
        if not titles:
            print("[warn] No lists found on the source site.")
            export_log(log, args.LOG_FORMAT, args.LOG_DIR)
            return EXIT_OK
        jobs, rinfo = resolve_jobs(cli=cli, list_titles=titles, config_block=job_defaults)
        if rinfo.errors:
            for e in rinfo.errors:
                print(f"[error] {e}")
            return EXIT_PARAMS

    hosts = {split_site_url(j[k])[0].lower() for j in jobs for k in ("SOURCE_URL", "TARGET_URL")}
    if len(hosts) > 1:
        log.warning("Jobs span several SharePoint hosts; one token is used for all", hosts=",".join(sorted(hosts)))

    # (D) Listen nacheinander migrieren
    reports: List[ListMigrationReport] = []
    for job in jobs:
        job_settings = dataclasses.replace(
            settings,
            copy_views=settings.copy_views and job["CopyViews"],
            copy_items=settings.copy_items and job["CopyItems"],
        )
        migrator = ListMigrator(client, log, settings=job_settings)
        try:
            reports.append(migrator.run(job["SOURCE_URL"], job["TARGET_URL"], job["LIST_TITLE"]))
        except ListMigrationError as ex:
            reports.append(ex.report or ListMigrationReport(job["LIST_TITLE"], job["SOURCE_URL"], job["TARGET_URL"], error=str(ex)))

    print_summary(reports)

    # (E) Log-Export (Job-Werte, sonst CLI)
    fmt = args.LOG_FORMAT or jobs[0].get("LogFormat")
    directory = args.LOG_DIR or jobs[0].get("LogDir")
    out = export_log(log, fmt, directory)
    if out is not None:
        print(f"[ok] Log exported to: {out}")

    return EXIT_OK if reports and all(r.succeeded for r in reports) else EXIT_FAILED


# =============================================================================
# Entrypoint
# =============================================================================
if __name__ == "__main__":
    sys.exit(main())
