import logging

from lookup_enums.core.config import settings


def _category_enabled(category: str | None) -> bool:
    if not settings.ENUM_LOGS_ENABLED:
        return False
    if category == "binding":
        return settings.ENUM_BINDING_LOGS_ENABLED
    return True


def enum_info(
    logger: logging.Logger,
    msg: str,
    *args,
    category: str | None = None,
    **kwargs,
) -> None:
    if _category_enabled(category):
        logger.info(msg, *args, **kwargs)


def enum_debug(
    logger: logging.Logger,
    msg: str,
    *args,
    category: str | None = None,
    **kwargs,
) -> None:
    if _category_enabled(category):
        logger.debug(msg, *args, **kwargs)
