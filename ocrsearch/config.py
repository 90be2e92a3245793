# ocrsearch/config.py

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


DEFAULT_DATABASE_URL    = "sqlite:///./data/ocrsearch.db"
DEFAULT_INDEX_PORT      = 8000
DEFAULT_INDEX_NAME      = "documents"
DEFAULT_INDEX_DIRECTORY = "./data/chroma_db"
DEFAULT_OCR_LANGUAGE    = "eng"
DEFAULT_PREVIEW_CHARS   = 500
DEFAULT_API_HOST        = "0.0.0.0"
# ChromaDB servers listen on 8000 by default.
DEFAULT_API_PORT        = 8001


@dataclass(frozen=True)
class AppConfig:
    """
    Everything the adapters and the API server need, read once at startup
    and passed into their constructors.

    When `index_host` is set the search index is a remote ChromaDB server;
    otherwise an embedded index is persisted under `index_directory`.
    """
    database_url:    str           = DEFAULT_DATABASE_URL
    index_host:      Optional[str] = None
    index_port:      int           = DEFAULT_INDEX_PORT
    index_name:      str           = DEFAULT_INDEX_NAME
    index_directory: str           = DEFAULT_INDEX_DIRECTORY
    tessdata_path:   Optional[str] = None
    ocr_language:    str           = DEFAULT_OCR_LANGUAGE
    preview_chars:   int           = DEFAULT_PREVIEW_CHARS
    api_host:        str           = DEFAULT_API_HOST
    api_port:        int           = DEFAULT_API_PORT


def _parse_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        print(f"[Config] ⚠ {name}='{value}' is not a number, using default {default}.")
        return default


def _optional(name: str) -> Optional[str]:
    value = os.getenv(name, "").strip()
    return value or None


def load_config(env_file: Optional[str] = None) -> AppConfig:
    """Load configuration from environment variables (and a .env file if present)."""
    load_dotenv(env_file)

    config = AppConfig(
        database_url    = os.getenv("OCRSEARCH_DATABASE_URL") or DEFAULT_DATABASE_URL,
        index_host      = _optional("OCRSEARCH_INDEX_HOST"),
        index_port      = _parse_int("OCRSEARCH_INDEX_PORT", DEFAULT_INDEX_PORT),
        index_name      = os.getenv("OCRSEARCH_INDEX_NAME") or DEFAULT_INDEX_NAME,
        index_directory = os.getenv("OCRSEARCH_INDEX_DIR") or DEFAULT_INDEX_DIRECTORY,
        tessdata_path   = _optional("OCRSEARCH_TESSDATA_PATH"),
        ocr_language    = os.getenv("OCRSEARCH_OCR_LANGUAGE") or DEFAULT_OCR_LANGUAGE,
        preview_chars   = _parse_int("OCRSEARCH_PREVIEW_CHARS", DEFAULT_PREVIEW_CHARS),
        api_host        = os.getenv("OCRSEARCH_API_HOST") or DEFAULT_API_HOST,
        api_port        = _parse_int("OCRSEARCH_API_PORT", DEFAULT_API_PORT),
    )

    index_target = (
        f"{config.index_host}:{config.index_port}"
        if config.index_host
        else config.index_directory
    )
    print(f"[Config] Database: {config.database_url} | Index: {index_target} ({config.index_name})")
    return config


__all__ = ["AppConfig", "load_config"]
