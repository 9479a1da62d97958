"""Entry point: search | usage | reset-google."""

import sys

USAGE = "Usage: python -m metasearch.main [search [--no-ai] <query...>|usage|reset-google]"


def main():
    mode = "search"
    if len(sys.argv) > 1:
        mode = sys.argv[1].lower()

    if mode == "search":
        from metasearch.interfaces.cli import search_main

        use_ai = "--no-ai" not in sys.argv[2:]
        query_parts = [arg for arg in sys.argv[2:] if arg != "--no-ai"]
        if query_parts:
            query = " ".join(query_parts).strip()
        else:
            query = sys.stdin.read().strip()
        sys.exit(search_main(query=query, use_ai=use_ai))

    elif mode == "usage":
        from metasearch.interfaces.cli import run_usage

        sys.exit(run_usage())

    elif mode == "reset-google":
        from metasearch.interfaces.cli import run_reset_google

        sys.exit(run_reset_google())

    else:
        print(f"Unknown mode: {mode}")
        print(USAGE)
        sys.exit(1)


if __name__ == "__main__":
    main()
