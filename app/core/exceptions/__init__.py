# app/core/exceptions/__init__.py

from .base_exception import (
    BaseBusinessException,
    NotFoundException,
    ServerSideException,
)
from .auth_exceptions import (
    InvalidPassphraseException,
)
from .file_exceptions import (
    NoFilesProvidedException,
    NoIdsProvidedException,
    RecordNotFoundException,
    ObjectStoreWriteException,
    ObjectStoreDeleteException,
    ObjectFetchException,
    MetadataPersistException,
    MetadataQueryException,
    ArchiveWriteException,
)

__all__ = [
    "BaseBusinessException",
    "NotFoundException",
    "ServerSideException",

    "InvalidPassphraseException",

    "NoFilesProvidedException",
    "NoIdsProvidedException",
    "RecordNotFoundException",
    "ObjectStoreWriteException",
    "ObjectStoreDeleteException",
    "ObjectFetchException",
    "MetadataPersistException",
    "MetadataQueryException",
    "ArchiveWriteException",
]
