#!/usr/bin/env python3
"""
Export a PostgreSQL or SQLite database schema into QueryGPT catalog
fixtures. The database comes from the profile `database` block (url,
host or path) unless --database-url or --database is given.

Settings come from a config profile's `schema_export` block, with
command-line flags taking precedence:

    schema_export:
      workspace: Mobility
      description: Trips and payouts
      output_dir: querygpt/fixtures/generated
      include_tables: []
      exclude_tables: [schema_migrations]

Writes workspaces.yml, schemas.yml and an empty sql_examples.yml.
"""
import argparse
import sys
from pathlib import Path
from typing import List, Optional

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from configs import BASE_DIR, ConfigurationError, load_config_file, resolve_profile
from querygpt.adapters import DatabaseError, create_adapter, has_database
from querygpt.tools import WorkspaceStore

DEFAULT_OUTPUT_DIR = BASE_DIR / "querygpt" / "fixtures" / "generated"


def _split(value: Optional[str]) -> Optional[List[str]]:
    if value is None:
        return None
    return [t.strip() for t in value.split(",") if t.strip()]


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Export a database schema into catalog fixtures")
    parser.add_argument("--config", type=str, help="Path to config.yml")
    parser.add_argument("--profile", type=str, help="Profile name from the config file")
    parser.add_argument("--database", type=str, help="SQLite database file (overrides the profile)")
    parser.add_argument("--database-url", type=str, dest="database_url", help="PostgreSQL URL (overrides the profile)")
    parser.add_argument("--workspace", type=str, help="Workspace name for the exported tables")
    parser.add_argument("--description", type=str, help="Workspace description")
    parser.add_argument("--output-dir", type=str, dest="output_dir", help="Where to write the YAML files")
    parser.add_argument("--include", type=str, help="Comma-separated tables to export (wins over --exclude)")
    parser.add_argument("--exclude", type=str, help="Comma-separated tables to skip")
    args = parser.parse_args(argv)

    try:
        profile = resolve_profile(load_config_file(args.config), args.profile)
    except ConfigurationError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    settings = profile.schema_export
    if args.database_url:
        database = {"url": args.database_url}
    elif args.database:
        database = {"path": args.database}
    else:
        database = profile.database
    if not has_database(database):
        print("[ERROR] No database given (use --database-url, --database or a profile database block)", file=sys.stderr)
        return 1

    workspace = args.workspace or settings.get("workspace") or "Workspace"
    description = args.description or settings.get("description") or "Exported from schema"
    output_dir = Path(args.output_dir or settings.get("output_dir") or DEFAULT_OUTPUT_DIR)
    include = _split(args.include) if args.include is not None else settings.get("include_tables")
    exclude = _split(args.exclude) if args.exclude is not None else settings.get("exclude_tables")

    try:
        with create_adapter(database) as adapter:
            data = adapter.export_catalog(workspace, description, include_tables=include, exclude_tables=exclude)
    except DatabaseError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 1

    WorkspaceStore.write_fixtures(data, output_dir)
    print(f"[OK] Wrote fixtures to {output_dir}")
    print(f"- workspaces.yml ({len(data['workspaces'][0]['table_ids'])} tables)")
    print("- schemas.yml")
    print("- sql_examples.yml (empty, add examples as needed)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
