"""MongoDB index management.

Unique indexes back the duplicate-account guarantees, so an index left over
with the same name but weaker options (e.g. not unique) is replaced rather
than tolerated.
"""

from logging import getLogger

from pymongo.errors import OperationFailure

logger = getLogger(__name__)

# Server error codes for an index that clashes with an existing one
INDEX_OPTIONS_CONFLICT = 85
INDEX_KEY_SPECS_CONFLICT = 86

_COMPARED_OPTIONS = ('unique', 'sparse', 'partialFilterExpression')


def _options_match(existing: dict, wanted: dict) -> bool:
    return all(existing.get(option) == wanted.get(option) for option in _COMPARED_OPTIONS)


async def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create an index, replacing any existing index it conflicts with.

    A conflict is an index with the same name but different keys or options,
    or the same keys under another name.
    """
    try:
        await collection.create_index(keys, name=name, **kwargs)
        return True
    except OperationFailure as e:
        if e.code not in (INDEX_OPTIONS_CONFLICT, INDEX_KEY_SPECS_CONFLICT):
            raise
    return await _replace_conflicting(collection, keys, name, **kwargs)


async def _replace_conflicting(collection, keys: list, name: str, **kwargs) -> bool:
    wanted_keys = dict(keys)

    for idx_name, idx_info in (await collection.index_information()).items():
        if idx_name == '_id_':
            continue

        same_name = idx_name == name
        same_keys = dict(idx_info.get('key', [])) == wanted_keys
        if not (same_name or same_keys):
            continue
        if same_name and same_keys and _options_match(idx_info, kwargs):
            continue

        logger.warning("Replacing conflicting index", extra={"index": idx_name, "wanted": name})
        await collection.drop_index(idx_name)
        await collection.create_index(keys, name=name, **kwargs)
        return True

    logger.error("Could not resolve index conflict", extra={"index": name})
    return False


async def ensure_all_indexes(db) -> bool:
    """Ensure indexes for every collection. Called at app startup."""
    from adapter.mongodb.user_repository import MongoUserRepository

    return await MongoUserRepository(db).ensure_indexes()
