#!/usr/bin/env python3
"""
vectorgate CLI.

Every command has a short name and a standard alias:

    COMMAND         ALIASES         WHAT IT DOES
    -------         -------         ----------------------------------
    serve           start           Start the vectorgate HTTP server
    generate        gen             Print a fresh namespace identifier
    load            import          Insert a data,metadata CSV via a running server
    ask             query           Query a running server and print matches
"""

import argparse
import csv
import json
import sys

from vectorgate import __version__

DEFAULT_URL = "http://localhost:8787"


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

def cmd_serve(args):
    """Start the vectorgate server."""
    import uvicorn
    from vectorgate.config import get_config

    cfg = get_config()
    host = args.host or cfg["server"]["host"]
    port = args.port or cfg["server"]["port"]

    print(f"  vectorgate {__version__} on {host}:{port}")
    print(f"  Embedding: {cfg['embedding'].get('backend')} ({cfg['embedding'].get('model', '')})")
    print(f"  Index: {cfg['vector_index'].get('backend')}")
    print()

    uvicorn.run(
        "vectorgate.main:app",
        host=host,
        port=port,
        reload=args.reload,
        log_level="info",
    )


def cmd_generate(args):
    """Print a fresh namespace identifier."""
    from vectorgate.gateway import new_id
    print(new_id())


def read_csv_rows(path: str) -> list[dict]:
    """Read a CSV with data,metadata headers into insert rows."""
    with open(path, newline="", encoding="utf-8") as f:
        reader = csv.DictReader(f)
        if not reader.fieldnames or "data" not in reader.fieldnames:
            raise ValueError(f"{path}: expected a 'data' column (headers: data,metadata)")
        return [
            {"data": row["data"], "metadata": row.get("metadata") or ""}
            for row in reader
            if row.get("data")
        ]


def cmd_load(args):
    """POST a CSV file to a running server's insert endpoint."""
    import httpx

    try:
        rows = read_csv_rows(args.csv)
    except (OSError, ValueError) as e:
        print(f"  ✗  {e}")
        sys.exit(1)

    url = (args.url or DEFAULT_URL).rstrip("/")
    print(f"  Loading {len(rows)} rows for {args.user} into {url}")
    try:
        resp = httpx.post(
            f"{url}/api/insert/",
            params={"user_id": args.user},
            json=rows,
            timeout=args.timeout,
        )
        data = resp.json()
    except httpx.ConnectError:
        print(f"  ✗  Nothing listening at {url}")
        sys.exit(1)
    except (httpx.HTTPError, ValueError) as e:
        print(f"  ✗  Error: {e}")
        sys.exit(1)

    if data.get("success"):
        print(f"  ✓  Inserted (namespace {data.get('namespace')})")
        print(json.dumps(data.get("inserted"), indent=2))
    else:
        print(f"  ✗  {data.get('error', 'unknown error')}")
        sys.exit(1)


def cmd_ask(args):
    """Query a running server."""
    import httpx

    url = (args.url or DEFAULT_URL).rstrip("/")
    text = " ".join(args.query)
    try:
        resp = httpx.post(f"{url}/api/query/", json={"query": text}, timeout=args.timeout)
        data = resp.json()
    except httpx.ConnectError:
        print(f"  ✗  Nothing listening at {url}")
        sys.exit(1)
    except (httpx.HTTPError, ValueError) as e:
        print(f"  ✗  Error: {e}")
        sys.exit(1)

    if "matches" not in data:
        print(f"  ✗  {data.get('error', 'unknown error')}")
        sys.exit(1)

    if not data["matches"]:
        print("  No matches.")
        return

    for i, match in enumerate(data["matches"], 1):
        meta = match.get("metadata") or {}
        content = meta.get("text", "")
        if len(content) > 200:
            content = content[:200] + "..."
        print(f"\n  [{i}] score: {match.get('score', 0):.3f} | id: {match.get('id')}")
        if meta.get("namespace"):
            print(f"      namespace: {meta['namespace']}")
        print(f"      {content}")


# ---------------------------------------------------------------------------
# Parser with aliases
# ---------------------------------------------------------------------------

def _add_command(subparsers, names, help_text, func, setup_fn=None):
    """Register a command under multiple names."""
    p = subparsers.add_parser(names[0], help=help_text, aliases=names[1:])
    p.set_defaults(func=func)
    if setup_fn:
        setup_fn(p)
    return p


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vectorgate",
        description="vectorgate: embed, store and query text through a vector index.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--version", "-V", action="version",
        version=f"vectorgate {__version__}",
    )

    sub = parser.add_subparsers(dest="command", metavar="<command>")

    def setup_serve(p):
        p.add_argument("--host", default=None, help="Override listen host")
        p.add_argument("--port", "-p", type=int, default=None, help="Override listen port")
        p.add_argument("--reload", action="store_true", help="Auto-reload on code changes (dev)")

    _add_command(sub, ["serve", "start"], "Start the vectorgate server", cmd_serve, setup_serve)

    _add_command(sub, ["generate", "gen"], "Print a fresh namespace identifier", cmd_generate)

    def setup_load(p):
        p.add_argument("csv", help="CSV file with data,metadata headers")
        p.add_argument("--user", "-u", required=True, help="User / namespace identifier")
        p.add_argument("--url", default=None, help=f"vectorgate URL (default: {DEFAULT_URL})")
        p.add_argument("--timeout", type=float, default=60.0, help="Request timeout in seconds")

    _add_command(sub, ["load", "import"], "Insert a CSV file via a running server", cmd_load, setup_load)

    def setup_ask(p):
        p.add_argument("query", nargs="+", help="Query text")
        p.add_argument("--url", default=None, help=f"vectorgate URL (default: {DEFAULT_URL})")
        p.add_argument("--timeout", type=float, default=30.0, help="Request timeout in seconds")

    _add_command(sub, ["ask", "query"], "Query a running server", cmd_ask, setup_ask)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
