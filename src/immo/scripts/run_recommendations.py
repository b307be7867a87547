"""
Script para generar recomendaciones de un usuario.

Útil para revisar el ranking desde la terminal sin pasar por la UI.

Uso:
    python -m immo.scripts.run_recommendations
    python -m immo.scripts.run_recommendations --user-id <uuid> --limit 10
    python -m immo.scripts.run_recommendations --user-id <uuid> --json
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import structlog

from immo.config import get_settings
from immo.recommendations import RecommendationEngine, ScoredCandidate

logger = structlog.get_logger()


def configure_logging(log_level: str):
    """Configura structlog sobre el logging estándar."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def format_results(results: list[ScoredCandidate], as_json: bool = False) -> str:
    if as_json:
        payload = [
            {
                "id": r.property.id,
                "title": r.property.title,
                "city": r.property.city,
                "neighborhood": r.property.neighborhood,
                "price": r.property.price,
                "price_unit": r.property.price_unit,
                "score": round(r.score, 2),
                "reasons": r.reasons,
            }
            for r in results
        ]
        return json.dumps(payload, ensure_ascii=False, indent=2)

    lines = []
    for position, r in enumerate(results, start=1):
        location = r.property.city
        if r.property.neighborhood:
            location = f"{r.property.neighborhood}, {location}"
        reasons = " · ".join(r.reasons) or "-"
        lines.append(
            f"{position:>2}. [{r.score:6.2f}] {r.property.title} ({location}) "
            f"{r.property.price:,.0f}/{r.property.price_unit} | {reasons}"
        )
    return "\n".join(lines)


async def run_recommendations(
    user_id: Optional[str] = None,
    limit: Optional[int] = None,
    engine: Optional[RecommendationEngine] = None,
) -> list[ScoredCandidate]:
    """Ejecuta una pasada del motor de recomendaciones."""
    engine = engine or RecommendationEngine()
    return await engine.recommend(user_id=user_id, limit=limit)


def main(argv: Optional[list[str]] = None):
    """Entry point del script."""
    parser = argparse.ArgumentParser(
        description="Genera recomendaciones de propiedades para un usuario"
    )
    parser.add_argument(
        "--user-id",
        default=None,
        help="UUID del usuario (sin valor = visitante anónimo)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Cantidad de recomendaciones",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Imprime el resultado como JSON",
    )
    args = parser.parse_args(argv)

    settings = get_settings()
    configure_logging(settings.log_level)

    logger.info("Generando recomendaciones", user_id=args.user_id, limit=args.limit)

    try:
        results = asyncio.run(run_recommendations(user_id=args.user_id, limit=args.limit))
        print(format_results(results, as_json=args.json))
        sys.exit(0)

    except KeyboardInterrupt:
        logger.info("Recomendaciones interrumpidas por usuario")
        sys.exit(130)
    except Exception as e:
        logger.error("Error fatal generando recomendaciones", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
