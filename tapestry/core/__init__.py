"""
Core persistence components: hashing, storage, registry, migration, file bridge.
"""
