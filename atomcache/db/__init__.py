from atomcache.db.manager import DBManager

__all__ = ['DBManager']
