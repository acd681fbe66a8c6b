#!/usr/bin/env python3
"""
Database manager for classification data kept in PostgreSQL
"""
import logging
from contextlib import contextmanager
from typing import Dict, Any, List, Tuple, Optional, Generator, Union

import psycopg2
import psycopg2.extras

from atomcache.exceptions import ConnectionError, QueryError

QueryParams = Optional[Union[Tuple, Dict[str, Any]]]


class DBManager:
    """Thin psycopg2 wrapper: one connection per unit of work"""

    REQUIRED_FIELDS = ('host', 'port', 'database', 'user')

    def __init__(self, config: Dict[str, Any]):
        """Initialize database manager

        Args:
            config: Connection settings passed to ``psycopg2.connect``

        Raises:
            ConnectionError: If a required setting is missing
        """
        self.logger = logging.getLogger("atomcache.db")

        for field in self.REQUIRED_FIELDS:
            if field not in config:
                raise ConnectionError(f"Missing required database configuration field: {field}")

        # extra keys such as 'schema' are ours, not libpq's
        self.schema = config.get('schema', 'public')
        self.config = {k: v for k, v in config.items() if k != 'schema'}

    @contextmanager
    def get_connection(self) -> Generator[psycopg2.extensions.connection, None, None]:
        """Context manager for database connections

        Yields:
            Database connection, committed on success and rolled back on error

        Raises:
            ConnectionError: If connecting fails
        """
        try:
            conn = psycopg2.connect(**self.config)
        except psycopg2.Error as e:
            error_msg = f"Database connection error: {str(e)}"
            self.logger.error(error_msg)
            raise ConnectionError(error_msg, {"code": getattr(e, 'pgcode', None)}) from e

        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    def _execute(self, query: str, params: QueryParams, cursor_factory=None) -> List[Any]:
        try:
            with self.get_connection() as conn:
                with conn.cursor(cursor_factory=cursor_factory) as cursor:
                    cursor.execute(query, params or ())
                    if cursor.description:
                        return cursor.fetchall()
                    return []
        except ConnectionError:
            raise
        except psycopg2.Error as e:
            error_msg = f"Query execution error: {str(e)}"
            self.logger.error(f"{error_msg}\nQuery: {query}\nParams: {params}")
            raise QueryError(error_msg, {"query": query, "params": params,
                                         "code": getattr(e, 'pgcode', None)}) from e

    def execute_query(self, query: str, params: QueryParams = None) -> List[Tuple]:
        """Execute a query and return result tuples

        Raises:
            QueryError: If query execution fails
        """
        return self._execute(query, params)

    def execute_dict_query(self, query: str, params: QueryParams = None) -> List[Dict[str, Any]]:
        """Execute a query and return results as dictionaries

        Raises:
            QueryError: If query execution fails
        """
        rows = self._execute(query, params, cursor_factory=psycopg2.extras.RealDictCursor)
        return [dict(row) for row in rows]
