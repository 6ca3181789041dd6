"""
Database operations for Supabase.

Handles client initialization and paged table reads.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence
import pandas as pd
from supabase import create_client, Client
from attendance_dashboard.config import Config

logger = logging.getLogger(__name__)


class SourceUnavailableError(RuntimeError):
    """Raised when attendance facts cannot be read from their source."""


def get_supabase_client() -> Client:
    """
    Initialize and return a Supabase client.

    Returns:
        Client: Initialized Supabase client

    Raises:
        ValueError: If configuration is invalid
        SourceUnavailableError: If the client cannot be created
    """
    Config.validate()

    try:
        client = create_client(Config.SUPABASE_URL, Config.SUPABASE_SERVICE_ROLE_KEY)
    except Exception as e:
        logger.error(f"Error initializing Supabase client: {e}")
        raise SourceUnavailableError(f"Could not connect to Supabase: {e}") from e

    logger.info("Supabase client initialized successfully")
    return client


def query_table_to_dataframe(
    client: Client,
    table_name: str,
    columns: str = "*",
    order: Optional[Sequence[str]] = None,
    page_size: int = Config.PAGE_SIZE
) -> pd.DataFrame:
    """
    Query a Supabase table and return as pandas DataFrame.

    PostgREST caps the rows returned per request, so the table is read in
    consecutive ranges until a short page comes back. PostgREST only keeps
    row order stable across range requests under an explicit ORDER BY, so
    paged reads should pass an order key.

    Args:
        client: Supabase client
        table_name: Name of the table to query
        columns: Column names to select (default: "*" for all)
        order: Columns to sort by (ascending) before ranging
        page_size: Number of rows requested per range

    Returns:
        DataFrame containing table data

    Raises:
        SourceUnavailableError: If any page cannot be read
    """
    if page_size <= 0:
        raise ValueError(f"page_size must be positive, got {page_size}")

    records: List[Dict[str, Any]] = []
    start = 0
    try:
        while True:
            query = client.table(table_name).select(columns)
            for column in order or ():
                query = query.order(column)
            response = query.range(start, start + page_size - 1).execute()
            page = response.data or []
            records.extend(page)
            logger.debug(f"Read rows {start}-{start + len(page) - 1} from {table_name}")
            if len(page) < page_size:
                break
            start += page_size
    except Exception as e:
        logger.error(f"Error querying table {table_name}: {e}")
        raise SourceUnavailableError(f"Could not read table {table_name}: {e}") from e

    df = pd.DataFrame(records)
    logger.info(f"Retrieved {len(df)} rows from {table_name}")
    return df
