# Forge package init
import logging
import os


def _configure_logging() -> None:
    level_name = (os.getenv("FORGE_LOG_LEVEL") or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    formatter = logging.Formatter("[FORGE][%(levelname)s] %(message)s")
    # Module loggers live under the import name; LLM events use "forge.llm".
    for name in {"forge", __name__}:
        logger = logging.getLogger(name)
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            logger.addHandler(handler)
        logger.setLevel(level)

    llm_level_name = (os.getenv("FORGE_LLM_LOG_LEVEL") or level_name).upper()
    llm_level = getattr(logging, llm_level_name, level)
    logging.getLogger("forge.llm").setLevel(llm_level)


_configure_logging()
