"""
Configuracion de logging (loguru) compartida por la API y el job CLI.
"""
import sys

from loguru import logger


def configure_logging(level: str = "INFO", log_file: str = "") -> None:
    """
    Reemplaza el sink por defecto de loguru.

    Args:
        level: Nivel minimo (DEBUG, INFO, ...)
        log_file: Ruta de archivo opcional; si se indica se agrega un sink
            con rotacion y retencion.
    """
    logger.remove()
    logger.add(sys.stderr, level=level.upper())

    if log_file:
        logger.add(
            log_file,
            rotation="500 MB",
            retention="10 days",
            level=level.upper(),
        )
