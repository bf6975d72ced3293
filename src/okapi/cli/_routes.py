"""``okapi routes``: list registered routes in matching order."""

import argparse
import sys

from okapi.cli._resolve import resolve_app


def run_routes(args: argparse.Namespace) -> None:
    """Print METHOD, PATH and the handler chain of every rule."""
    try:
        app = resolve_app(args.app)
    except (ModuleNotFoundError, AttributeError, TypeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    routes = app.routes
    if not routes:
        print("No routes registered.")
        return

    rows: list[tuple[str, str, str]] = []
    for route in routes:
        methods_str = ", ".join(sorted(route.methods)) if route.methods is not None else "*"
        describe = getattr(route.handler, "describe", None)
        steps = " >=> ".join(describe()) if describe is not None else repr(route.handler)
        if route.name:
            steps = f"{steps} ({route.name})"
        rows.append((methods_str, route.path, steps))

    max_methods = max(6, *(len(r[0]) for r in rows))
    max_path = max(4, *(len(r[1]) for r in rows))

    fmt = f"{{:<{max_methods}}}  {{:<{max_path}}}  {{}}"
    print(fmt.format("METHOD", "PATH", "HANDLERS"))
    print("-" * min(max_methods + max_path + 4 + max(len(r[2]) for r in rows), 80))
    for row in rows:
        print(fmt.format(*row))
