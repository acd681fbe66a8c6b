from atomcache.io.reader import PDBFileReader, FileParsingParameters

__all__ = ['PDBFileReader', 'FileParsingParameters']
