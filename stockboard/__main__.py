"""Lance le serveur StockBoard : ``python -m stockboard``."""
from __future__ import annotations

import argparse

import uvicorn


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Lance l'API StockBoard")
    parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Adresse d'écoute d'uvicorn (défaut: 127.0.0.1)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=8000,
        help="Port sur lequel exposer l'API (défaut: 8000)",
    )
    parser.add_argument("--reload", action="store_true", help="Rechargement automatique (développement)")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    # Un seul worker : la file hors ligne vit dans la mémoire du processus.
    uvicorn.run("stockboard.app:app", host=args.host, port=args.port, reload=args.reload, workers=1)
    return 0


if __name__ == "__main__":  # pragma: no cover - point d'entrée standard
    raise SystemExit(main())
