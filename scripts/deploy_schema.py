#!/usr/bin/env python
# ============================================================================
# SCHEMA DEPLOYMENT SCRIPT
# ============================================================================
# EPOCH: 1 - AGENT ORCHESTRATION
# PURPOSE: Deploy the agent_app schema to PostgreSQL
# USAGE:
#   python scripts/deploy_schema.py --dry-run    # Preview SQL
#   python scripts/deploy_schema.py              # Execute deployment
# ============================================================================

import sys
import os
import argparse
import logging

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from repositories.database import SCHEMA, get_connection_string, mask_conninfo
from repositories.schema import build_statements, deploy_schema


def main():
    parser = argparse.ArgumentParser(
        description="Deploy agent_app schema to PostgreSQL",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python scripts/deploy_schema.py --dry-run     # Preview DDL without executing
  python scripts/deploy_schema.py               # Deploy schema

Environment Variables:
  DATABASE_URL          Full PostgreSQL connection string
  POSTGRES_HOST         Database host (default: localhost)
  POSTGRES_DB           Database name (default: postgres)
  POSTGRES_USER         Database user (default: postgres)
  POSTGRES_PASSWORD     Database password
  POSTGRES_PORT         Database port (default: 5432)
  POSTGRES_SSLMODE      SSL mode (default: prefer)
        """
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print DDL without executing"
    )
    parser.add_argument(
        "--connection",
        type=str,
        help="PostgreSQL connection string (overrides environment)"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose logging"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    print("=" * 70)
    print("AGENT ORCHESTRATOR - Schema Deployment")
    print("=" * 70)
    print(f"Schema: {SCHEMA}")
    print(f"Mode: {'DRY RUN' if args.dry_run else 'EXECUTE'}")

    if args.dry_run:
        print("=" * 70)
        for stmt in build_statements():
            print(stmt.as_string(None).strip() + ";\n")
        return

    conninfo = args.connection or get_connection_string()
    print(f"Target: {mask_conninfo(conninfo)}")
    print("=" * 70)

    try:
        count = deploy_schema(conninfo)
    except Exception as e:
        print(f"Deployment failed: {e}")
        sys.exit(1)

    print(f"Deployment completed: {count} statements executed")
    print("=" * 70)


if __name__ == "__main__":
    main()
