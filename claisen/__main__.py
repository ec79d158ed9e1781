"""Serve the sandbox: ``python -m claisen [--host HOST] [--port PORT]``."""
import argparse

import uvicorn


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Claisen kinetics sandbox server")
    parser.add_argument("--host", type=str, default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--reload", action="store_true", help="Restart on code changes")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    uvicorn.run("claisen.api:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
